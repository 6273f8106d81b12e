"""
どこで: `engine.scenes` サブパッケージ。
何を: シーンのライフサイクル（状態機械・再計算キャッシュ・再試行描画）と描画ツリー。
なぜ: スケジューラで進めたタイムラインを、プレイバックから一様に扱える単位へまとめるため。
"""

from .generator_scene import GeneratorScene, ThreadGeneratorFactory
from .metadata import SceneMetadata
from .random import Random
from .scene import Scene, SceneDescription
from .state import TRANSITION_UNKNOWN, CachedSceneData, SceneRenderEvent, SceneState
from .view import Image, Node, Rect, View, ViewScene

__all__ = [
    "GeneratorScene",
    "ThreadGeneratorFactory",
    "SceneMetadata",
    "Random",
    "Scene",
    "SceneDescription",
    "TRANSITION_UNKNOWN",
    "CachedSceneData",
    "SceneRenderEvent",
    "SceneState",
    "Image",
    "Node",
    "Rect",
    "View",
    "ViewScene",
]
