"""
どこで: `engine.core` サブパッケージ。
何を: 実行コンテキスト（現在のシーン/プレイバック/スレッド）とフレーム駆動（Tickable/FrameClock）。
なぜ: スケジューラ・シーン・プレイヤーが共有する最下層の基盤として分離するため。
"""
