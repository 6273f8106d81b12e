"""
どこで: `engine.render.surface`
何を: 描画コンテキストの Protocol `DrawContext` と、RGBA(0–1) の float32 配列へ描く `Surface`。
なぜ: 再試行描画（save → clear → draw → restore）が何度走っても同じピクセルになるよう、
      状態スタックとクリアを明示的に持つ最小のラスタを用意するため。

要点:
- 配列形状は (height, width, 4)。原点は左上、x は右、y は下向き。
- `save()`/`restore()` は平行移動と不透明度の状態を積む。対応しない `restore()` は無視する。
- 塗りはアルファ合成（source-over）。範囲外はクリップ。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np

from common.types import RGBA

logger = logging.getLogger(__name__)


@runtime_checkable
class DrawContext(Protocol):
    """シーンの `render()` が要求する最小の描画インターフェース。"""

    def save(self) -> None: ...

    def restore(self) -> None: ...

    def clear(self) -> None: ...


def to_rgba(value: object) -> RGBA:
    """色指定を RGBA(0–1) へ正規化する。

    受理: "#RRGGBB" / "#RRGGBBAA" 形式の Hex 文字列、または (r, g, b[, a])（0–1）。
    """
    if isinstance(value, str):
        text = value.strip().lstrip("#")
        if len(text) not in (6, 8):
            raise ValueError(f"invalid hex color: {value!r}")
        try:
            channels = [int(text[i : i + 2], 16) / 255.0 for i in range(0, len(text), 2)]
        except ValueError as e:
            raise ValueError(f"invalid hex color: {value!r}") from e
    elif isinstance(value, (tuple, list)) and len(value) in (3, 4):
        channels = [float(c) for c in value]
    else:
        raise ValueError(f"unsupported color: {value!r}")
    if len(channels) == 3:
        channels.append(1.0)
    r, g, b, a = (min(1.0, max(0.0, c)) for c in channels)
    return (r, g, b, a)


@dataclass(slots=True, frozen=True)
class _State:
    dx: float = 0.0
    dy: float = 0.0
    alpha: float = 1.0


class Surface:
    """numpy RGBA バッファへ描く `DrawContext` 実装。

    Parameters
    ----------
    width, height : int
        ピクセル寸法。
    background : object
        `clear()` で塗る色（既定は透明）。
    """

    def __init__(self, width: int, height: int, background: object = (0.0, 0.0, 0.0, 0.0)) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive: {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.background = to_rgba(background)
        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.float32)
        self._state = _State()
        self._stack: list[_State] = []
        self.clear()

    # ---- DrawContext ----------------------------------------------------
    def save(self) -> None:
        self._stack.append(self._state)

    def restore(self) -> None:
        if not self._stack:
            logger.debug("restore() without matching save(); ignored")
            return
        self._state = self._stack.pop()

    def clear(self) -> None:
        self.pixels[...] = self.background

    # ---- state ----------------------------------------------------------
    @property
    def depth(self) -> int:
        return len(self._stack)

    def translate(self, dx: float, dy: float) -> None:
        s = self._state
        self._state = _State(s.dx + dx, s.dy + dy, s.alpha)

    def set_alpha(self, alpha: float) -> None:
        s = self._state
        self._state = _State(s.dx, s.dy, min(1.0, max(0.0, float(alpha))))

    # ---- drawing --------------------------------------------------------
    def _region(self, x: float, y: float, w: int, h: int) -> tuple[int, int, int, int]:
        x0 = int(round(x + self._state.dx))
        y0 = int(round(y + self._state.dy))
        return (
            max(0, x0),
            max(0, y0),
            min(self.width, x0 + w),
            min(self.height, y0 + h),
        )

    def fill_rect(self, x: float, y: float, width: float, height: float, color: object) -> None:
        """矩形を塗る（アルファ合成）。"""
        r, g, b, a = to_rgba(color)
        a *= self._state.alpha
        x0, y0, x1, y1 = self._region(x, y, int(round(width)), int(round(height)))
        if x0 >= x1 or y0 >= y1 or a <= 0.0:
            return
        src = np.array([r, g, b, 1.0], dtype=np.float32)
        dst = self.pixels[y0:y1, x0:x1]
        dst[...] = src * a + dst * (1.0 - a)

    def blit(self, x: float, y: float, image: np.ndarray) -> None:
        """(H, W, 4) の RGBA 配列を合成する。"""
        arr = np.asarray(image, dtype=np.float32)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"image must have shape (H, W, 4), got {arr.shape}")
        h, w = arr.shape[:2]
        x0, y0, x1, y1 = self._region(x, y, w, h)
        if x0 >= x1 or y0 >= y1:
            return
        ox = x0 - int(round(x + self._state.dx))
        oy = y0 - int(round(y + self._state.dy))
        src = arr[oy : oy + (y1 - y0), ox : ox + (x1 - x0)]
        alpha = src[..., 3:4] * self._state.alpha
        dst = self.pixels[y0:y1, x0:x1]
        dst[..., :3] = src[..., :3] * alpha + dst[..., :3] * (1.0 - alpha)
        dst[..., 3:4] = alpha + dst[..., 3:4] * (1.0 - alpha)

    def snapshot(self) -> np.ndarray:
        return self.pixels.copy()

    def pixel(self, x: int, y: int) -> RGBA:
        r, g, b, a = (float(c) for c in self.pixels[y, x])
        return (r, g, b, a)


__all__ = ["DrawContext", "Surface", "to_rgba"]
