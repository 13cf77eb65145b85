import pytest

from rubber.logger import get_logger, log_timing, log_with_context

logger = get_logger()


@pytest.fixture
def records():
    captured = []
    sink_id = logger.add(captured.append, level="DEBUG", format="{message}")
    yield captured
    logger.remove(sink_id)


def test_context_drops_empty_fields(records):
    log_with_context(logger, repository="acme/widgets", pull_number=None).info("hello")

    extra = records[-1].record["extra"]
    assert extra["repository"] == "acme/widgets"
    assert "pull_number" not in extra


def test_timing_logs_failure_and_reraises(records):
    with pytest.raises(ValueError):
        with log_timing(logger, "fetch_files", repository="acme/widgets"):
            raise ValueError("boom")

    assert records[0].record["message"] == "Starting fetch_files"
    assert records[-1].record["level"].name == "ERROR"
    assert "Failed fetch_files" in records[-1].record["message"]
    assert records[-1].record["extra"]["repository"] == "acme/widgets"
