"""共通フィクスチャ。

- 手動時計（FakeClock, ms）
- 手動ステップの FrameQueue と、それに載せた EnvelopeScheduler
"""

from __future__ import annotations

from typing import Callable

import pytest

from engine.core.envelope import EnvelopeScheduler
from engine.core.frame_source import FrameQueue
from tests._utils.clock import FakeClock


class RenderCounter:
    """描画通知の回数を数えるだけのコールバック。"""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(0.0)


@pytest.fixture()
def frames(clock: FakeClock) -> FrameQueue:
    return FrameQueue(clock)


@pytest.fixture()
def render() -> RenderCounter:
    return RenderCounter()


@pytest.fixture()
def make_scheduler(
    frames: FrameQueue, clock: FakeClock, render: RenderCounter
) -> Callable[..., EnvelopeScheduler]:
    def _make(epsilon: float = 0.001, on_active_frame=None) -> EnvelopeScheduler:
        cb = render if on_active_frame is None else on_active_frame
        return EnvelopeScheduler(cb, epsilon, frame_source=frames, clock=clock)

    return _make
