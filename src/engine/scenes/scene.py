"""
どこで: `engine.scenes.scene`
何を: シーンの構成 `SceneDescription` と、プレイバックが利用するシーンのインターフェース `Scene`。
なぜ: `PlaybackManager` を具象シーン（`GeneratorScene`）から切り離し、Protocol で一様に扱うため。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, Protocol, TypeVar

from common.types import Vec2
from engine.core.context import ExecutionContext, default_context

from .metadata import SceneMetadata

if TYPE_CHECKING:  # pragma: no cover - 型のみ
    from engine.playback.status import PlaybackStatus

TConfig = TypeVar("TConfig")


@dataclass
class SceneDescription(Generic[TConfig]):
    """シーン生成に必要な情報一式。

    `config` はシーン種別ごとの設定（`GeneratorScene` ではスレッドジェネレータのファクトリ）。
    """

    name: str
    config: TConfig
    playback: PlaybackStatus
    size: Vec2 = (1920.0, 1080.0)
    logger: logging.Logger | None = None
    meta: SceneMetadata = field(default_factory=SceneMetadata)
    stack: str | None = None
    context: ExecutionContext = field(default_factory=lambda: default_context)


class Scene(Protocol):
    """プレイバックから見たシーン。"""

    name: str

    @property
    def first_frame(self) -> float: ...

    @property
    def last_frame(self) -> float: ...

    async def reset(self, previous_scene: Any = None) -> None: ...

    async def next(self) -> None: ...

    async def recalculate(self, set_frame: Callable[[float], None]) -> None: ...

    async def render(self, context: Any) -> None: ...

    def is_cached(self) -> bool: ...

    def is_finished(self) -> bool: ...

    def is_after_transition_in(self) -> bool: ...

    def can_transition_out(self) -> bool: ...


__all__ = ["SceneDescription", "Scene"]
