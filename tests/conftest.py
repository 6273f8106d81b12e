"""共通フィクスチャ。

- 依存収集レジストリと活性実行コンテキスト（プロセス全体）をテストごとに空へ戻す
- 設定スナップショットを環境変数から読み直す
- 小さなプレイバック/ログ収集器
"""

from __future__ import annotations

import logging
from typing import Iterator

import numpy as np
import pytest

from common import settings
from common.logging import LogCollector
import engine.core.context as context_module
from engine.playback import PlaybackManager
from engine.signals import DependencyContext


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture(autouse=True)
def clean_dependency_registry() -> Iterator[None]:
    DependencyContext.consume_promises()
    DependencyContext._collection_stack.clear()
    yield
    DependencyContext.consume_promises()
    DependencyContext._collection_stack.clear()


@pytest.fixture(autouse=True)
def clean_execution_contexts() -> Iterator[None]:
    yield
    context_module._active.clear()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in (
        "PXS_MAX_RENDER_ITERATIONS",
        "PXS_DEFAULT_FPS",
        "PXS_DEFAULT_SEED",
        "PXS_WARN_INVALID_YIELD",
    ):
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env()
    yield
    monkeypatch.undo()
    settings.reload_from_env()


@pytest.fixture()
def playback() -> PlaybackManager:
    return PlaybackManager(fps=30)


@pytest.fixture()
def log_collector() -> Iterator[LogCollector]:
    collector = LogCollector()
    root = logging.getLogger()
    old_level = root.level
    root.addHandler(collector)
    root.setLevel(logging.DEBUG)
    yield collector
    root.removeHandler(collector)
    root.setLevel(old_level)
