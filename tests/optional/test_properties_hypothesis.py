import pytest

hypothesis = pytest.importorskip("hypothesis", reason="hypothesis is a dev optional dependency")
from hypothesis import given, settings, strategies as st  # type: ignore

from engine.events import ValueDispatcher
from engine.playback import PlaybackManager
from engine.scenes import Random
from engine.threading import wait_for
from tests._utils.scenes import drive_threads, make_view_scene, run

pytestmark = pytest.mark.optional


@given(seed=st.integers(0, 2**32 - 1), n=st.integers(1, 20))
def test_random_is_reproducible(seed, n):
    a, b = Random(seed), Random(seed)
    assert [a.next_float() for _ in range(n)] == [b.next_float() for _ in range(n)]


@given(values=st.lists(st.integers(-3, 3), max_size=30))
def test_value_dispatcher_notifies_only_on_change(values):
    d = ValueDispatcher(0)
    seen = []
    d.subscribe(seen.append, dispatch_immediately=False)
    expected = []
    current = 0
    for v in values:
        d.current = v
        if v != current:
            expected.append(v)
            current = v
    assert seen == expected


@settings(max_examples=25, deadline=None)
@given(frames=st.integers(1, 60), fps=st.sampled_from([24, 25, 30, 60]))
def test_wait_for_spans_whole_frames(frames, fps):
    playback = PlaybackManager(fps=fps)

    def root():
        yield from wait_for(frames / fps)

    # 先頭フレームを含めて `frames` フレームを占有する
    assert drive_threads(root, playback) == frames - 1


@settings(max_examples=15, deadline=None)
@given(frames=st.lists(st.integers(0, 12), min_size=1, max_size=4))
def test_set_frame_calls_increase_strictly(frames):
    playback = PlaybackManager(fps=30)

    def body(view):
        for _ in range(frames[0]):
            yield

    scene = make_view_scene(body, playback=playback)
    calls = []

    def set_frame(frame):
        calls.append(frame)
        playback.frame = frame

    run(scene.recalculate(set_frame))
    assert all(b > a for a, b in zip(calls, calls[1:]))
    assert scene.cache.duration == frames[0]
