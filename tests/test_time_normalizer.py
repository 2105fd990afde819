import pytest
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.core.exceptions import ValidationError
from app.services.time_normalizer import normalize, parse_instant, weekday_name, INVALID_DATE

PHNOM_PENH = ZoneInfo("Asia/Phnom_Penh")


@pytest.mark.parametrize("raw", ["", "   ", None, "not a date", "2024-13-45 10:00", 42])
def test_unusable_input_gives_invalid_sentinel(raw):
    result = normalize(raw, timezone.utc)
    assert result.date == INVALID_DATE
    assert result.time == ""
    assert result.iso is None
    assert not result.is_valid


def test_space_separated_text_is_read_as_date_and_time():
    result = normalize("2024-01-01 13:05", timezone.utc)
    assert result.date == "2024-01-01"
    assert result.time == "1:05 PM"
    assert result.iso == "2024-01-01T13:05:00+00:00"


def test_midnight_and_noon_render_as_twelve():
    assert normalize("2024-01-01 00:15", timezone.utc).time == "12:15 AM"
    assert normalize("2024-01-01 12:00", timezone.utc).time == "12:00 PM"
    assert normalize("2024-01-01 09:07", timezone.utc).time == "9:07 AM"


def test_naive_text_is_local_time():
    result = normalize("2024-01-01 10:00", PHNOM_PENH)
    assert result.date == "2024-01-01"
    assert result.time == "10:00 AM"
    # Phnom Penh is UTC+7
    assert result.iso == "2024-01-01T03:00:00+00:00"


def test_aware_datetime_is_displayed_in_spa_timezone():
    result = normalize(datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc), PHNOM_PENH)
    assert result.date == "2024-01-02"
    assert result.time == "3:00 AM"


def test_stored_utc_values_use_default_tz():
    result = normalize("2024-01-01T03:00:00", PHNOM_PENH, default_tz=timezone.utc)
    assert result.time == "10:00 AM"

    result = normalize("2024-01-01T03:00:00Z", PHNOM_PENH)
    assert result.time == "10:00 AM"


def test_parse_instant_rejects_garbage():
    with pytest.raises(ValidationError) as exc:
        parse_instant("tomorrow-ish", timezone.utc)
    assert exc.value.message == INVALID_DATE

    with pytest.raises(ValidationError):
        parse_instant(None, timezone.utc)


def test_parse_instant_attaches_default_timezone():
    dt = parse_instant("2024-01-02 10:00", PHNOM_PENH)
    assert dt.tzinfo is PHNOM_PENH
    assert dt.astimezone(timezone.utc).hour == 3


def test_weekday_name_uses_spa_timezone():
    # Wednesday 20:00 UTC is already Thursday in Phnom Penh
    dt = datetime(2024, 1, 3, 20, 0, tzinfo=timezone.utc)
    assert weekday_name(dt, timezone.utc) == "Wednesday"
    assert weekday_name(dt, PHNOM_PENH) == "Thursday"
