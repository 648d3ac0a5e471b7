"""Tests for wsrun.logging module."""

import json

import pytest

from wsrun.logging import LOG_FORMATS, configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure_logging(force_reconfigure=True)


class TestConfigureLogging:
    """Sink installation and validation."""

    def test_unknown_format_raises(self):
        with pytest.raises(ValueError, match="Unknown log format"):
            configure_logging(format="xml", force_reconfigure=True)  # type: ignore[arg-type]

    @pytest.mark.parametrize("format", LOG_FORMATS)
    def test_every_format_installs(self, format):
        configure_logging(format=format, force_reconfigure=True)
        get_logger("wsrun.tests").info("configured {format}", format=format)

    def test_file_sink_writes_json_records(self, tmp_path):
        log_file = tmp_path / "logs" / "wsrun.jsonl"
        configure_logging(level="DEBUG", format="console", output_file=log_file)

        get_logger("wsrun.tests").debug("Resolved {count} directories", count=2)
        configure_logging(force_reconfigure=True)

        lines = log_file.read_text().splitlines()
        assert lines
        record = json.loads(lines[-1])["record"]
        assert record["message"] == "Resolved 2 directories"
        assert record["extra"]["module"] == "wsrun.tests"

    def test_level_filters_file_sink(self, tmp_path):
        log_file = tmp_path / "wsrun.jsonl"
        configure_logging(level="WARNING", format="console", output_file=log_file)

        log = get_logger("wsrun.tests")
        log.info("hidden")
        log.warning("shown")
        configure_logging(force_reconfigure=True)

        lines = log_file.read_text().splitlines()
        messages = [json.loads(line)["record"]["message"] for line in lines]
        assert messages == ["shown"]


class TestGetLogger:
    def test_cached_per_name(self):
        assert get_logger("wsrun.a") is get_logger("wsrun.a")
        assert get_logger("wsrun.a") is not get_logger("wsrun.b")
