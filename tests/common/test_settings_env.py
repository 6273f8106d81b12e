from __future__ import annotations

import pytest

from common import settings
from common.env import env_bool, env_float, env_int


def test_env_int_defaults_and_bounds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PXS_TEST_INT", raising=False)
    assert env_int("PXS_TEST_INT", 5) == 5
    monkeypatch.setenv("PXS_TEST_INT", "x")
    assert env_int("PXS_TEST_INT", 5) == 5
    monkeypatch.setenv("PXS_TEST_INT", "-3")
    assert env_int("PXS_TEST_INT", 5, min_value=1) == 1


def test_env_float_and_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PXS_TEST_FLOAT", "2.5")
    assert env_float("PXS_TEST_FLOAT", 1.0) == 2.5
    for raw, expected in [("1", True), ("0", False), ("yes", True), ("off", False), ("?", True)]:
        monkeypatch.setenv("PXS_TEST_BOOL", raw)
        assert env_bool("PXS_TEST_BOOL", True) is expected


def test_settings_defaults() -> None:
    s = settings.get()
    assert s.MAX_RENDER_ITERATIONS == 10
    assert s.DEFAULT_FPS == 30.0
    assert s.DEFAULT_SEED == 0
    assert s.WARN_INVALID_YIELD is True


def test_settings_reload_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PXS_MAX_RENDER_ITERATIONS", "0")
    monkeypatch.setenv("PXS_DEFAULT_FPS", "-5")
    monkeypatch.setenv("PXS_DEFAULT_SEED", "12")
    settings.reload_from_env()
    s = settings.get()
    assert s.MAX_RENDER_ITERATIONS == 1
    assert s.DEFAULT_FPS == 30.0
    assert s.DEFAULT_SEED == 12
