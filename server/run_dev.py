#!/usr/bin/env python
"""
Development server runner with auto-reload enabled.
"""
import uvicorn
from pathlib import Path

if __name__ == "__main__":
    script_dir = Path(__file__).parent.absolute()

    # Watch the package and the entry point
    reload_dirs = [
        str(script_dir / "yqwork"),
        str(script_dir),
    ]

    print("Starting yqwork development server with hot reload...")
    for dir_path in reload_dirs:
        print(f"   watching {dir_path}")

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=reload_dirs,
        reload_includes=["*.py"],
        reload_excludes=["*.pyc", "__pycache__", "*.log", ".git", "venv", ".venv"],
        reload_delay=0.25,
        log_level="info",
    )
