"""
どこで: `engine.threading` サブパッケージ。
何を: ジェネレータベースの擬似スレッド、ルートスケジューラ、フロー制御ヘルパ。
なぜ: シーン 1 本ぶんの入れ子計算を 1 論理フレームずつ決定的に進めるため。
"""

from .flow import (
    all_,
    any_,
    cancel,
    chain,
    delay,
    finish_scene,
    join,
    loop,
    sequence,
    spawn,
    transition,
    use_transition,
    wait_for,
    wait_until,
)
from .scheduler import Promisable, YieldKind, classify, threads
from .thread import StepResult, Thread, ThreadGenerator

__all__ = [
    "Thread",
    "StepResult",
    "ThreadGenerator",
    "Promisable",
    "YieldKind",
    "classify",
    "threads",
    "all_",
    "any_",
    "cancel",
    "chain",
    "delay",
    "finish_scene",
    "join",
    "loop",
    "sequence",
    "spawn",
    "transition",
    "use_transition",
    "wait_for",
    "wait_until",
]
