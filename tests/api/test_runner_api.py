from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

import api
from api.runner import resolve_canvas_size, resolve_fps, resolve_seed
from common import settings


def _blink(view):
    box = api.Rect(width=2, height=2, fill="#ff0000")
    view.add(box)
    yield from api.wait_for(0.1)
    box.fill((0.0, 1.0, 0.0, 1.0))
    yield from api.wait_for(0.1)


@pytest.mark.integration
def test_render_runs_scenes_synchronously() -> None:
    colors: list[tuple[int, tuple[float, ...]]] = []

    def sink(frame: int, surface) -> None:
        colors.append((frame, tuple(float(c) for c in surface.pixels[0, 0])))

    frames = api.render([("blink", _blink)], fps=30, size=(4, 4), on_frame=sink)

    assert frames == list(range(len(frames)))
    assert colors[0][1] == (1.0, 0.0, 0.0, 1.0)
    assert colors[-1][1] == (0.0, 1.0, 0.0, 1.0)


@pytest.mark.integration
def test_render_accepts_mapping_and_range() -> None:
    frames = api.render({"a": _blink, "b": _blink}, fps=30, size=(2, 2), start=3, end=7)
    assert frames == [3, 4, 5, 6]


def test_render_requires_scenes() -> None:
    with pytest.raises(ValueError):
        api.render([])


def test_resolve_fps_prefers_argument_then_config(monkeypatch: pytest.MonkeyPatch) -> None:
    assert resolve_fps(60) == 60.0
    assert resolve_fps(-1) == settings.get().DEFAULT_FPS
    monkeypatch.setattr("api.runner.config_section", lambda name: {"fps": 24})
    assert resolve_fps(None) == 24.0
    monkeypatch.setattr("api.runner.config_section", lambda name: {})
    assert resolve_fps(None) == settings.get().DEFAULT_FPS


def test_resolve_seed_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("api.runner.config_section", lambda name: {})
    monkeypatch.setenv("PXS_DEFAULT_SEED", "99")
    settings.reload_from_env()
    assert resolve_seed(None) == 99
    assert resolve_seed(5) == 5


def test_resolve_canvas_size_validates() -> None:
    assert resolve_canvas_size((10, 20)) == (10, 20)
    with pytest.raises(ValueError):
        resolve_canvas_size((0, 20))
    with pytest.raises(ValueError):
        resolve_canvas_size(("a", "b"))  # type: ignore[arg-type]


def test_make_scene_builds_view_scene() -> None:
    from engine.playback import PlaybackManager

    playback = PlaybackManager(fps=30)
    scene = api.make_scene("named", _blink, playback=playback, size=(8.0, 8.0), seed=4)
    assert isinstance(scene, api.ViewScene)
    assert scene.name == "named"
    assert scene.meta.seed == 4
    assert scene.get_size() == (8.0, 8.0)


def test_default_config_file_is_valid_yaml() -> None:
    import yaml

    root = Path(__file__).resolve().parents[2]
    data = yaml.safe_load((root / "configs" / "default.yaml").read_text(encoding="utf-8"))
    assert isinstance(data.get("playback"), dict)
    assert np.isfinite(float(data["playback"]["fps"]))
