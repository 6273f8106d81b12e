"""
どこで: `engine.threading.thread`
何を: 1 本のジェネレータ計算（論理レーン）を表す `Thread` と、1 ステップの結果 `StepResult`。
なぜ: OS スレッドではなく「中断点」としてのスレッドを木構造で扱い、子の生成・キャンセル・
      ローカル時刻の進行を決定的に管理するため。

注意:
- キャンセルは協調的でも明示的でもない。親（シーン）が木ごと破棄するだけで、
  `close()` は呼ばない。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generator

from engine.core.context import ExecutionContext, current_context, use_time

ThreadGenerator = Generator[Any, Any, Any]


@dataclass(slots=True, frozen=True)
class StepResult:
    """ジェネレータ 1 ステップの結果（`done` 時の `value` は戻り値）。"""

    done: bool
    value: Any = None


class Thread:
    """ジェネレータを包むスレッド。

    Attributes
    ----------
    value : Any
        次回再開時にジェネレータへ送る値（送信後は None に戻る）。
    time : float
        スレッドのローカル論理時刻 [sec]。`wait_for` が目標時刻に揃えることがある。
    fixed : float
        手動調整を含まない累積時刻 [sec]。
    """

    def __init__(
        self,
        runner: ThreadGenerator,
        *,
        context: ExecutionContext | None = None,
        name: str | None = None,
    ) -> None:
        self.runner = runner
        self.context = context or current_context()
        self.name = name or getattr(runner, "__name__", "thread")
        self.children: list[Thread] = []
        self.parent: Thread | None = None
        self.value: Any = None
        self.time: float = use_time(self.context)
        self.fixed: float = self.time
        self.done = False
        self._canceled = False
        self._paused = False
        self._spawned: list[Thread] = []

    # ---- state ----------------------------------------------------------
    @property
    def canceled(self) -> bool:
        """自身か祖先がキャンセル済みなら True。"""
        return self._canceled or (self.parent is not None and self.parent.canceled)

    @property
    def paused(self) -> bool:
        return self._paused or (self.parent is not None and self.parent.paused)

    def cancel(self) -> None:
        self._canceled = True

    def pause(self, value: bool) -> None:
        self._paused = value

    # ---- stepping -------------------------------------------------------
    def next(self) -> StepResult:
        """保持している `value` でジェネレータを 1 ステップ再開する。"""
        if self.paused:
            return StepResult(done=False, value=None)
        value, self.value = self.value, None
        with self.context.thread_scope(self):
            try:
                yielded = self.runner.send(value)
            except StopIteration as stop:
                self.done = True
                return StepResult(done=True, value=stop.value)
        return StepResult(done=False, value=yielded)

    def update(self, dt: float) -> None:
        """フレーム終端で呼ばれ、時刻を進めて終了済みの子を取り除く。"""
        if not self.paused:
            self.time += dt
            self.fixed += dt
        self.children = [child for child in self.children if not child.canceled]

    def add(self, child: Thread) -> None:
        """子スレッドを登録し、時刻を親に揃える。"""
        child.parent = self
        child._canceled = False
        child.time = self.time
        child.fixed = self.fixed
        self.children.append(child)

    def spawn(self, runner: ThreadGenerator) -> Thread:
        """子スレッドを登録し、次フレームから進める（スケジューラが `drain()` で拾う）。"""
        child = Thread(runner, context=self.context)
        self.add(child)
        self._spawned.append(child)
        return child

    def drain(self) -> list[Thread]:
        spawned, self._spawned = self._spawned, []
        return spawned

    def __repr__(self) -> str:
        state = "canceled" if self.canceled else ("done" if self.done else "running")
        return f"Thread({self.name}, {state}, time={self.time:.3f})"


__all__ = ["Thread", "StepResult", "ThreadGenerator"]
