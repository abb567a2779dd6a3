"""Sprite-frame playback for the duck.

The animator runs on the same gated tick as the behaviour but keeps its own
per-frame timer, so frame cadence does not depend on how often states change.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class AnimationClip:
    """Frame indices into the sprite sheet and how long each one is held (seconds)."""

    frames: Tuple[int, ...]
    holds: Tuple[float, ...]

    def __post_init__(self) -> None:
        if not self.frames:
            raise ValueError("AnimationClip needs at least one frame")
        if len(self.frames) != len(self.holds):
            raise ValueError("AnimationClip frames and holds must have the same length")

    @classmethod
    def uniform(cls, frames, hold: float) -> "AnimationClip":
        frames = tuple(frames)
        return cls(frames, (hold,) * len(frames))

    def __len__(self) -> int:
        return len(self.frames)


def sprite_cell(frame: int, columns: int) -> Tuple[int, int]:
    """Return (column, row) of a frame index in a sheet with ``columns`` cells per row."""
    return frame % columns, frame // columns


class FrameAnimator:
    def __init__(self, clip: AnimationClip) -> None:
        self.clip = clip
        self.cursor = 0
        self.elapsed = 0.0

    @property
    def frame(self) -> int:
        return self.clip.frames[self.cursor]

    @property
    def hold(self) -> float:
        return self.clip.holds[self.cursor]

    def play(self, clip: AnimationClip) -> None:
        self.clip = clip
        self.cursor = 0
        self.elapsed = 0.0

    def advance(self, dt: float) -> bool:
        """
        Accumulate dt and step to the next frame once the current hold is exceeded.
        Overshoot is dropped, not carried into the next frame. Returns True on a frame change.
        """
        self.elapsed += dt
        if self.elapsed > self.hold:
            self.cursor = (self.cursor + 1) % len(self.clip)
            self.elapsed = 0.0
            return True
        return False
