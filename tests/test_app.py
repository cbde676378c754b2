"""Tests for application wiring: logging sinks and the console entry point."""
from loguru import logger

from lodge_ledger import main
from lodge_ledger.core.config import settings
from lodge_ledger.core.logging import setup_logging


class TestLogging:
    def test_file_sink_written(self, tmp_path, monkeypatch):
        log_file = tmp_path / "logs" / "app.log"
        monkeypatch.setattr(settings, "LOG_FILE", str(log_file))
        setup_logging()
        logger.info("import started for june.csv")
        logger.remove()

        assert "import started for june.csv" in log_file.read_text()

        monkeypatch.setattr(settings, "LOG_FILE", "")
        setup_logging()

    def test_empty_log_file_means_stderr_only(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(settings, "LOG_FILE", "")
        setup_logging()
        logger.info("nothing on disk")
        assert list(tmp_path.iterdir()) == []


class TestEntryPoint:
    def test_run_uses_configured_host_and_port(self, monkeypatch):
        calls = []
        monkeypatch.setattr(main.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))
        monkeypatch.setattr(settings, "API_HOST", "127.0.0.1")
        monkeypatch.setattr(settings, "API_PORT", 8123)

        main.run()

        assert calls == [(main.app, {"host": "127.0.0.1", "port": 8123})]
