"""
どこで: `engine.scenes.random`
何を: シード固定の擬似乱数源 `Random`（`numpy.random.Generator` の薄いラッパ）。
なぜ: 同じシードなら何度リセット/シークしても同じ乱数列を得て、タイムラインを再現可能にするため。
"""

from __future__ import annotations

import numpy as np


class Random:
    """シーン単位の決定的な乱数源。

    Parameters
    ----------
    seed : int
        シード。`SceneMetadata.seed` から供給される。
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._rng = np.random.default_rng(self.seed)

    def next_float(self, low: float = 0.0, high: float = 1.0) -> float:
        """[low, high) の一様乱数。"""
        return float(self._rng.uniform(low, high))

    def next_int(self, low: int = 0, high: int = 2**31 - 1) -> int:
        """[low, high) の整数乱数。"""
        return int(self._rng.integers(low, high))

    def next_bool(self, probability: float = 0.5) -> bool:
        return bool(self._rng.random() < probability)

    def gauss(self, mean: float = 0.0, stdev: float = 1.0) -> float:
        return float(self._rng.normal(mean, stdev))

    def float_array(self, size: int, low: float = 0.0, high: float = 1.0) -> np.ndarray:
        return self._rng.uniform(low, high, size=size)

    def spawn(self) -> "Random":
        """この乱数源から派生した独立な乱数源を返す（派生列も決定的）。"""
        return Random(self.next_int())


__all__ = ["Random"]
