import datetime as dt
import io
import json

from orbit_track.logging import configure_logging, get_logger, log_context


def _setup_logger():
    stream = io.StringIO()
    configure_logging(level="INFO", stream=stream, force=True)
    return get_logger("tests"), stream


def test_json_logging_includes_context_and_extras():
    logger, stream = _setup_logger()
    with log_context(norad_id="25544", step=60.0):
        logger.info("cache_built", extra={"samples": 93, "failures": 0})
    payload = json.loads(stream.getvalue())
    assert payload["message"] == "cache_built"
    assert payload["logger"] == "orbit_track.tests"
    assert payload["context"] == {"norad_id": "25544", "step": 60.0}
    assert payload["extra"] == {"samples": 93, "failures": 0}


def test_datetimes_are_serialized_as_iso():
    logger, stream = _setup_logger()
    when = dt.datetime(2024, 11, 17, 2, 15, 22, tzinfo=dt.timezone.utc)
    logger.info("cache_stale", extra={"when": when, "window": (when, when)})
    payload = json.loads(stream.getvalue())
    assert payload["extra"]["when"] == "2024-11-17T02:15:22+00:00"
    assert payload["extra"]["window"] == [when.isoformat(), when.isoformat()]


def test_context_is_restored_after_block():
    logger, stream = _setup_logger()
    with log_context(norad_id="25544"):
        with log_context(attempt=2):
            logger.info("inner")
    logger.info("outer")
    inner, outer = (json.loads(line) for line in stream.getvalue().splitlines())
    assert inner["context"] == {"norad_id": "25544", "attempt": 2}
    assert "context" not in outer


def test_level_filters_records():
    stream = io.StringIO()
    configure_logging(level="WARNING", stream=stream, force=True)
    get_logger("sampling.cache").info("cache_built")
    get_logger("sampling.cache").warning("propagation_failures")
    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["logger"] == "orbit_track.sampling.cache"


def test_get_logger_names():
    assert get_logger().name == "orbit_track"
    assert get_logger("orbit_track.cli").name == "orbit_track.cli"
    assert get_logger("timeline.exporter").name == "orbit_track.timeline.exporter"
