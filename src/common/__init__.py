"""
どこで: `common` パッケージ。
何を: エンジン全体で使う軽量ユーティリティ（環境変数・設定スナップショット・ログ補助・型）。
なぜ: 下位層に依存しない共通基盤を分離し、依存の向きを単純化するため。
"""

from . import settings
from .logging import LogCollector, LogPayload, payload_extra

__all__ = [
    "settings",
    "LogCollector",
    "LogPayload",
    "payload_extra",
]
