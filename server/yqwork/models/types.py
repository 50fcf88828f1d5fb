"""
Integer-coded enums and the column type that stores them.

Stored status codes are decoded through ``CodedEnum``: an unknown code never
raises while reading a row, it folds to the enum's documented ``fallback()``
member and logs a warning. Client input goes through ``CodedEnum.parse``,
which rejects unknown codes instead.
"""
import enum
import logging

from sqlalchemy import Integer
from sqlalchemy.types import TypeDecorator

logger = logging.getLogger(__name__)


class CodedEnum(enum.IntEnum):
    """
    IntEnum with an explicit fallback for unknown stored codes.

    Every subclass must define a ``fallback()`` classmethod; a subclass
    without one is rejected when the class is created.
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not callable(getattr(cls, "fallback", None)):
            raise TypeError(f"{cls.__name__} must define fallback()")

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            member = cls.fallback()
            logger.warning(
                "Unknown %s code %r, decoding as %s", cls.__name__, value, member.name
            )
            return member
        return None

    @classmethod
    def parse(cls, value) -> "CodedEnum":
        """Strict lookup for client input."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            member = cls._value2member_map_.get(value)
            if member is not None:
                return member
        raise ValueError(f"Invalid {cls.__name__} code: {value!r}")


class IntEnumType(TypeDecorator):
    """Stores a CodedEnum as its integer code."""

    impl = Integer
    cache_ok = True

    def __init__(self, enum_class: type, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.enum_class(value)
