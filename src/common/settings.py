"""
どこで: `common.settings`
何を: シーン実行に関わる環境変数を型付きで一元管理し、起動時に読み込む。
なぜ: 再試行上限や既定 FPS などの魔法定数を散在させず、テストから差し替え可能にするため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int


@dataclass
class _Settings:
    # render() の再試行上限（依存が解決しないときの打ち切り回数）
    MAX_RENDER_ITERATIONS: int = 10

    # Playback
    DEFAULT_FPS: float = 30.0
    DEFAULT_SEED: int = 0

    # Scheduler
    WARN_INVALID_YIELD: bool = True


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - 整数は `env_int`、真偽は `env_bool` を使用。
    - 再試行上限は 1 未満にならないよう丸める（1 回は必ず描画する）。
    """
    _settings.MAX_RENDER_ITERATIONS = (
        env_int("PXS_MAX_RENDER_ITERATIONS", 10, min_value=1) or 10
    )
    _settings.DEFAULT_FPS = env_float("PXS_DEFAULT_FPS", 30.0)
    if _settings.DEFAULT_FPS <= 0:
        _settings.DEFAULT_FPS = 30.0
    _settings.DEFAULT_SEED = env_int("PXS_DEFAULT_SEED", 0) or 0
    _settings.WARN_INVALID_YIELD = env_bool("PXS_WARN_INVALID_YIELD", True)


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
