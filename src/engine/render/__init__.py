"""
どこで: `engine.render` サブパッケージ。
何を: シーンが描画する先のインターフェース `DrawContext` と、numpy バッファ実装 `Surface`。
なぜ: シーン側を具体的な描画バックエンドから切り離し、テストでもピクセルを検証できるようにするため。
"""

from .surface import DrawContext, Surface, to_rgba

__all__ = ["DrawContext", "Surface", "to_rgba"]
