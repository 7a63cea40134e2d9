from datetime import datetime, timedelta, timezone

from viewing_periods.models import Status, ViewingPeriod, format_rfc3339, format_seconds


def make_period(**overrides):
    fields = dict(
        status=Status.MATCH,
        user_id="169808",
        query_time=datetime(2023, 1, 2, 0, 3, 44, 41_000, tzinfo=timezone.utc),
        time_in_file=datetime(2023, 1, 2, 0, 2, 16, 352_000, tzinfo=timezone.utc),
        duration=timedelta(milliseconds=12928),
        stream_id="329",
        entry_id="p-1",
        ber=0.247597,
        valid=True,
    )
    fields.update(overrides)
    return ViewingPeriod(**fields)


def test_derived_views():
    period = make_period()
    assert period.end_time == period.query_time + period.duration
    assert period.offset == period.query_time - period.time_in_file
    assert period.offset == timedelta(milliseconds=87_689)


def test_negative_duration_end_time():
    period = make_period(duration=timedelta(milliseconds=-500))
    assert period.end_time == datetime(2023, 1, 2, 0, 3, 43, 541_000, tzinfo=timezone.utc)


def test_format_seconds():
    assert format_seconds(timedelta(milliseconds=12928)) == "12.928"
    assert format_seconds(timedelta(milliseconds=-1500)) == "-1.500"
    assert format_seconds(timedelta(0)) == "0.000"


def test_format_rfc3339():
    moment = datetime(2023, 1, 12, 13, 50, 0, 123_456, tzinfo=timezone.utc)
    assert format_rfc3339(moment) == "2023-01-12T13:50:00.123Z"


def test_text_representation():
    assert str(make_period()) == (
        "user_id: 169808, status: MATCH, stream_id: 329entry_id: p-1"
        "offset_s: 87.689, startTime: 2023-01-02T00:03:44.041Z, "
        "endTime: 2023-01-02T00:03:56.969Z, duration: 12.928, ber: 0.25, valid: true"
    )


def test_text_representation_of_missing_ids():
    text = str(ViewingPeriod())
    assert text.startswith("user_id: 0, status: NO_MATCH, stream_id: entry_id: offset_s: 0.000, ")
    assert text.endswith("ber: 0.00, valid: false")


def test_json_includes_derived_views():
    data = make_period().model_dump(mode="json")
    assert data["status"] == "MATCH"
    assert "end_time" in data
    assert "offset" in data


def test_format_rfc3339_pads_early_years():
    moment = datetime(999, 1, 2, 3, 4, 5, 6_000, tzinfo=timezone.utc)
    assert format_rfc3339(moment) == "0999-01-02T03:04:05.006Z"
