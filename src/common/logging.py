"""
どこで: `common.logging`
何を: 既定ロギング設定ヘルパと、構造化ペイロード付きレコードを保持するシンク。
なぜ: 各モジュールは `logging.getLogger(__name__)` を使い、外部コンソールは
      `LogCollector` から message/object/inspect/stack を取り出せるようにするため。

要点:
- ペイロードは `logger.warning(msg, extra={"payload": LogPayload(...)})` で渡す。
- アプリ側で設定が無い場合でも、妥当な最小構成を 1 度だけ適用できる。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class LogPayload:
    """ロガーへ添付する任意の診断情報。"""

    object: Any = None
    inspect: str | None = None
    stack: str | None = None


@dataclass(slots=True, frozen=True)
class LogEntry:
    level: str
    message: str
    logger: str
    payload: LogPayload | None = None


def payload_extra(
    *, object: Any = None, inspect: str | None = None, stack: str | None = None
) -> dict[str, LogPayload]:
    """`extra=` に渡す辞書を生成する。"""
    return {"payload": LogPayload(object=object, inspect=inspect, stack=stack)}


class LogCollector(logging.Handler):
    """受け取ったレコードを `LogEntry` として保持するハンドラ。"""

    def __init__(self, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.entries: list[LogEntry] = []

    def emit(self, record: logging.LogRecord) -> None:
        payload = getattr(record, "payload", None)
        self.entries.append(
            LogEntry(
                level=record.levelname.lower(),
                message=record.getMessage(),
                logger=record.name,
                payload=payload if isinstance(payload, LogPayload) else None,
            )
        )

    def messages(self, level: str | None = None) -> list[str]:
        return [e.message for e in self.entries if level is None or e.level == level]

    def clear(self) -> None:
        self.entries.clear()


def setup_default_logging(level: int | str = "INFO") -> None:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op）
    - 上位のランナー/CLI から呼び出す想定
    """
    if isinstance(level, str):
        lvl = getattr(logging, level.upper(), logging.INFO)
    else:
        lvl = int(level)

    root = logging.getLogger()
    if root.handlers:
        # Assume the app has configured logging
        return
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


__all__ = ["LogPayload", "LogEntry", "LogCollector", "payload_extra", "setup_default_logging"]
