"""
どこで: `engine.core` の簡易フレームドライバ。
何を: `Tickable` の列を固定順序で呼び出す FrameClock（dt 測定と固定回数ループ）。
なぜ: ホスト側のループから呼び出すだけで複数コンポーネントの更新順を統一するため。
"""

from __future__ import annotations

import time
from typing import Callable, Sequence

from .tickable import Tickable


class FrameClock:
    """登録された Tickable を固定順序で実行するだけの極小クラス。"""

    def __init__(self, tickables: Sequence[Tickable], *, clock: Callable[[], float] = time.perf_counter):
        self._tickables = tuple(tickables)
        self._clock = clock
        self._last_time = clock()

    def tick(self, dt: float | None = None) -> None:
        if dt is None:  # 呼び出し側が dt を渡さない場合は実測
            now = self._clock()
            dt = now - self._last_time
            self._last_time = now

        for t in self._tickables:
            t.tick(dt)

    def run(self, interval: float, *, until: Callable[[], bool], sleep: Callable[[float], None] = time.sleep) -> None:
        """`until()` が真になるまで `interval` 秒ごとに `tick()` する。"""
        self._last_time = self._clock()
        while not until():
            sleep(interval)
            self.tick()
