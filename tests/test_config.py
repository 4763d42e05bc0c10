# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from bgbridge.config import (
    DEFAULT_CHANNEL_NAME,
    DEFAULT_PROCESSING_IDENTIFIER,
    DEFAULT_REFRESH_IDENTIFIER,
    Settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    import os

    for name in list(os.environ):
        if name.startswith("BGBRIDGE_"):
            monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings.from_env(load_env_file=False)

    assert s.refresh_identifier == DEFAULT_REFRESH_IDENTIFIER
    assert s.processing_identifier == DEFAULT_PROCESSING_IDENTIFIER
    assert s.channel_name == DEFAULT_CHANNEL_NAME
    assert s.refresh_delay_seconds == 900
    assert s.processing_delay_seconds == 1800
    assert s.processing_requires_network is False
    assert s.processing_requires_power is False
    assert s.legacy_mode is False
    assert s.auto_start is True
    assert s.data_dir == Path(".local/bgbridge")


def test_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BGBRIDGE_REFRESH_DELAY_SECONDS", "60")
    monkeypatch.setenv("BGBRIDGE_PROCESSING_REQUIRES_POWER", "yes")
    monkeypatch.setenv("BGBRIDGE_TIME_SCALE", "120")
    monkeypatch.setenv("BGBRIDGE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("BGBRIDGE_DEBUG", "1")

    s = Settings.from_env(load_env_file=False)

    assert s.refresh_delay_seconds == 60
    assert s.processing_requires_power is True
    assert s.time_scale == 120.0
    assert s.data_dir == tmp_path
    assert s.debug is True


def test_bad_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BGBRIDGE_PROCESSING_DELAY_SECONDS", "half an hour")
    monkeypatch.setenv("BGBRIDGE_WINDOW_BUDGET_SECONDS", "")

    s = Settings.from_env(load_env_file=False)

    assert s.processing_delay_seconds == 1800
    assert s.window_budget_seconds == 30.0
