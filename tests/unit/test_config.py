from __future__ import annotations

import pytest

from hospital_flow import config


def test_env_float_falls_back_on_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOSPITAL_FLOW_DECISION_INTERVAL", "soon")
    assert config._env_float("HOSPITAL_FLOW_DECISION_INTERVAL", 10.0) == 10.0
    monkeypatch.setenv("HOSPITAL_FLOW_DECISION_INTERVAL", "-3")
    assert config._env_float("HOSPITAL_FLOW_DECISION_INTERVAL", 10.0) == 10.0
    monkeypatch.setenv("HOSPITAL_FLOW_DECISION_INTERVAL", "2.5")
    assert config._env_float("HOSPITAL_FLOW_DECISION_INTERVAL", 10.0) == 2.5


def test_env_int_and_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOSPITAL_FLOW_EMERGENCY_CAPACITY", "75")
    assert config._env_int("HOSPITAL_FLOW_EMERGENCY_CAPACITY", 50) == 75
    monkeypatch.setenv("HOSPITAL_FLOW_EMERGENCY_CAPACITY", "")
    assert config._env_int("HOSPITAL_FLOW_EMERGENCY_CAPACITY", 50) == 50
    monkeypatch.setenv("HOSPITAL_FLOW_AUTOSTART", "off")
    assert config._env_bool("HOSPITAL_FLOW_AUTOSTART", True) is False
    monkeypatch.delenv("HOSPITAL_FLOW_AUTOSTART")
    assert config._env_bool("HOSPITAL_FLOW_AUTOSTART", True) is True


def test_default_database_is_sqlite_in_data_dir() -> None:
    assert config.default_database_url().startswith("sqlite:///")
    assert config.LOG_DIR.parent == config.DATA_DIR
