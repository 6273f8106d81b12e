"""
どこで: `engine.scenes.view`
何を: シーンの描画ツリー（`Node`/`Rect`/`Image`/`View`）と、それを描く具象シーン `ViewScene`。
なぜ: ジェネレータからノードのプロパティ（`Signal`）を操作し、描画パスでは値を読むだけに
      することで、描画を再試行しても同じ結果になるようにするため。

補足:
- `Image` のピクセルは `AsyncResource` で遅延ロードされる。未ロードのまま描くと
  プレースホルダ（何も描かない）となり、ハンドルが `DependencyContext` に集まる。
- ノードは `to_awaitable()` を持つため、ジェネレータから `yield node` すると
  サブツリーの非同期リソースが揃うまで待機できる。
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Awaitable, Callable, Iterator

import numpy as np

from common.types import RGBA, Vec2
from engine.core.context import current_context
from engine.signals import AsyncResource, DependencyContext, Signal

from .generator_scene import GeneratorScene, ThreadGeneratorFactory
from .scene import SceneDescription

_anonymous_ids = itertools.count()


def _auto_key(prefix: str) -> str:
    scene = current_context().scene
    if scene is not None:
        return scene.create_key(prefix)
    return f"{prefix}-anon{next(_anonymous_ids)}"


class Node:
    """位置を持つ描画ノード。子は追加順に描画される。"""

    def __init__(
        self,
        *,
        key: str | None = None,
        x: float = 0.0,
        y: float = 0.0,
        children: tuple["Node", ...] = (),
    ) -> None:
        self.key = key or _auto_key(type(self).__name__)
        self.x: Signal[float] = Signal(float(x), owner=self)
        self.y: Signal[float] = Signal(float(y), owner=self)
        self.parent: Node | None = None
        self.children: list[Node] = []
        self._deps: DependencyContext[Node] = DependencyContext(self)
        self.add(*children)

    # ---- tree -----------------------------------------------------------
    def add(self, *nodes: "Node") -> "Node":
        for node in nodes:
            node.remove()
            node.parent = self
            self.children.append(node)
        return self

    def remove(self) -> "Node":
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        return self

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def absolute_position(self) -> Vec2:
        x, y = self.x(), self.y()
        if self.parent is not None:
            px, py = self.parent.absolute_position()
            return (px + x, py + y)
        return (x, y)

    # ---- drawing --------------------------------------------------------
    def draw(self, context: Any) -> None:
        with self._deps.collecting():
            self.draw_self(context)
        for child in list(self.children):
            child.draw(context)

    def draw_self(self, context: Any) -> None:
        """このノード自身を描く（既定は何も描かない）。"""

    # ---- readiness ------------------------------------------------------
    def resources(self) -> list[AsyncResource[Any]]:
        return []

    def to_awaitable(self) -> Awaitable[None]:
        """サブツリーの非同期リソースが揃うと完了する awaitable。"""
        pending = [r for node in self.walk() for r in node.resources()]

        async def ready() -> None:
            if pending:
                await asyncio.gather(*(resource.load() for resource in pending))

        return ready()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r})"


class Rect(Node):
    """塗りつぶし矩形。"""

    def __init__(
        self,
        *,
        width: float = 0.0,
        height: float = 0.0,
        fill: RGBA = (1.0, 1.0, 1.0, 1.0),
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.width: Signal[float] = Signal(float(width), owner=self)
        self.height: Signal[float] = Signal(float(height), owner=self)
        self.fill: Signal[RGBA] = Signal(fill, owner=self)

    def draw_self(self, context: Any) -> None:
        x, y = self.absolute_position()
        context.fill_rect(x, y, self.width(), self.height(), self.fill())


class Image(Node):
    """遅延ロードされる RGBA ピクセル配列 (H, W, 4) を描くノード。"""

    def __init__(self, loader: Callable[[], Awaitable[np.ndarray]], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.pixels: AsyncResource[np.ndarray] = AsyncResource(loader, None, key=self.key)

    def resources(self) -> list[AsyncResource[Any]]:
        return [self.pixels]

    def draw_self(self, context: Any) -> None:
        pixels = self.pixels()
        if pixels is None:
            return
        x, y = self.absolute_position()
        context.blit(x, y, pixels)


class View(Node):
    """シーンのルートノード。"""

    def __init__(self, size: Vec2, *, key: str = "view") -> None:
        super().__init__(key=key)
        self.size = size


class ViewScene(GeneratorScene[View]):
    """`View` ツリーを描く具象シーン。リセットごとにツリーを作り直す。"""

    def __init__(self, description: SceneDescription[ThreadGeneratorFactory]) -> None:
        super().__init__(description)
        self._view = View(self.get_size())

    def get_view(self) -> View:
        return self._view

    async def reset(self, previous_scene: Any = None) -> None:
        self._view = View(self.get_size())
        await super().reset(previous_scene)

    def draw(self, context: Any) -> None:
        self._view.draw(context)


__all__ = ["Node", "Rect", "Image", "View", "ViewScene"]
