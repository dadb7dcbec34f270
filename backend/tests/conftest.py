"""Shared pytest configuration."""

import pytest


@pytest.fixture(autouse=True)
def error_log_dir(tmp_path, monkeypatch):
    """Write error report files under a temporary directory."""
    monkeypatch.setattr("notifications.error_logger.LOG_DIR", str(tmp_path / "logs"))
    return tmp_path / "logs"
