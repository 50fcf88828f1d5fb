import pytest

from yqwork.models.types import CodedEnum
from yqwork.models.user import UserStatus
from yqwork.models.work_hour import WorkHourStatus, WorkHourRecordStatus


def test_known_codes_decode_to_members():
    assert WorkHourStatus(0) is WorkHourStatus.PENDING
    assert WorkHourStatus(4) is WorkHourStatus.CLOSED
    assert WorkHourRecordStatus(2) is WorkHourRecordStatus.PENDING_FINANCE
    assert UserStatus(3) is UserStatus.RETIRED


def test_campaign_status_gap_is_not_a_state():
    assert 3 not in {member.value for member in WorkHourStatus}
    assert WorkHourStatus(3) is WorkHourStatus.CLOSED


@pytest.mark.parametrize("code", [5, 99, -1])
def test_unknown_codes_use_fallback(code):
    assert WorkHourStatus(code) is WorkHourStatus.CLOSED
    assert WorkHourRecordStatus(code) is WorkHourRecordStatus.CLOSED
    assert UserStatus(code) is UserStatus.UNKNOWN


def test_fallback_logs_a_warning(caplog):
    with caplog.at_level("WARNING"):
        WorkHourRecordStatus(42)
    assert "Unknown WorkHourRecordStatus code 42" in caplog.text


def test_parse_rejects_unknown_codes():
    with pytest.raises(ValueError):
        WorkHourStatus.parse(3)
    with pytest.raises(ValueError):
        WorkHourRecordStatus.parse(9)
    with pytest.raises(ValueError):
        UserStatus.parse("1")


def test_parse_accepts_known_codes_and_members():
    assert WorkHourRecordStatus.parse(1) is WorkHourRecordStatus.PENDING_APPROVAL
    assert WorkHourStatus.parse(WorkHourStatus.ENDED) is WorkHourStatus.ENDED


def test_coded_enum_without_fallback_is_rejected_at_definition():
    with pytest.raises(TypeError, match="must define fallback"):
        class Colour(CodedEnum):
            RED = 0
            BLUE = 1
