"""Slide-to-lock gesture recognition.

Pure functions over an immutable :class:`GestureTrack`. They never touch the
recorder; the interaction controller decides what a :class:`GestureEvent`
means. Upward drags produce negative displacement.
"""

from __future__ import annotations

from dataclasses import replace

from models import GestureEvent, GestureTrack, GestureUpdate

DEFAULT_LOCK_THRESHOLD = 60.0


def new_track(lock_threshold: float = DEFAULT_LOCK_THRESHOLD) -> GestureTrack:
    if lock_threshold <= 0:
        raise ValueError("lock_threshold must be positive")
    return GestureTrack(lock_threshold=float(lock_threshold))


def lock_progress(track: GestureTrack, displacement: float) -> float:
    return min(1.0, max(0.0, abs(displacement) / track.lock_threshold))


def on_sample(track: GestureTrack, displacement: float) -> GestureUpdate:
    """Fold one drag sample into the track.

    ``LOCK`` is edge-triggered: it is emitted the first time the drag goes
    past ``-lock_threshold`` and never again for the same track.
    """
    if track.locked:
        return GestureUpdate(track=track, progress=1.0)
    moved = replace(track, vertical_displacement=float(displacement))
    progress = lock_progress(track, displacement)
    if displacement < -track.lock_threshold:
        return GestureUpdate(
            track=replace(moved, locked=True),
            progress=1.0,
            event=GestureEvent.LOCK,
        )
    return GestureUpdate(track=moved, progress=progress)


def on_end(track: GestureTrack) -> GestureUpdate:
    if track.locked:
        return GestureUpdate(track=track, progress=1.0)
    return GestureUpdate(
        track=replace(track, vertical_displacement=0.0),
        progress=0.0,
        event=GestureEvent.RELEASE_WITHOUT_LOCK,
    )
