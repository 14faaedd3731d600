"""Loop-region selection during playback."""

from __future__ import annotations

import logging
from functools import reduce
from typing import Iterable, Optional

from .models import Region
from .store import LabelStore

logger = logging.getLogger("vcon_labeler")

LOOP_EPSILON = 0.1


def _nested(inner: Region, outer: Region) -> bool:
    return inner.start >= outer.start and inner.end <= outer.end


def prefer_region(selected: Region, challenger: Region) -> Region:
    """Pick the region to loop out of two that both contain the playhead.

    The innermost region wins a nesting; for a partial overlap the one that
    starts later wins; identical bounds fall back to the shorter duration.
    """
    challenger_inside = _nested(challenger, selected)
    selected_inside = _nested(selected, challenger)
    if challenger_inside and not selected_inside:
        return challenger
    if selected_inside and not challenger_inside:
        return selected
    if not challenger_inside and not selected_inside:
        return challenger if challenger.start > selected.start else selected
    return challenger if challenger.duration < selected.duration else selected


def resolve_loop_region(regions: Iterable[Region], time: float) -> Optional[Region]:
    containing = [r for r in regions if r.contains(time)]
    if not containing:
        return None
    return reduce(prefer_region, containing)


class LoopController:
    """Tracks the loop region for one playback run.

    The looping flag is read once in `on_play`; toggling it while playing
    takes effect on the next play.
    """

    def __init__(self, store: LabelStore, epsilon: float = LOOP_EPSILON) -> None:
        self.store = store
        self.epsilon = epsilon
        self.playing = False
        self.loop_region_id: Optional[str] = None

    def on_play(self, time: float, looping_enabled: bool) -> Optional[Region]:
        self.playing = True
        self.loop_region_id = None
        if not looping_enabled:
            return None
        region = resolve_loop_region(self.store.regions(), time)
        if region is not None:
            self.loop_region_id = region.id
            logger.debug("Looping region %s [%.3f, %.3f]", region.id, region.start, region.end)
        return region

    def on_time_update(self, time: float) -> Optional[float]:
        """Return the time to seek to, or None to keep playing."""
        if not self.playing or self.loop_region_id is None:
            return None
        region = self.store.get_region(self.loop_region_id)
        if region is None:
            self.loop_region_id = None
            return None
        if time >= region.end - self.epsilon:
            return region.start
        return None

    def on_pause(self) -> None:
        self.playing = False
        self.loop_region_id = None

    def reset(self) -> None:
        self.on_pause()
