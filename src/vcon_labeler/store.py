"""Regions and their per-channel annotations.

`LabelStore` keeps the two record sets consistent:

- an annotation always carries its region's bounds (rounded to milliseconds),
- deleting a region deletes its annotations,
- deleting the last annotation of a region deletes the region,
- a region holds at most one annotation per channel.

Callers only mutate through the methods below; `regions()` and
`annotations()` return copies.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from .errors import InvalidRangeError, NotFoundError
from .models import LEFT, RIGHT, TARGETS, Annotation, Region
from .parties import PartyRegistry

logger = logging.getLogger("vcon_labeler")

TARGET_CHANNELS = {
    "left": (LEFT,),
    "right": (RIGHT,),
    "both": (LEFT, RIGHT),
}


def round_time(value: float) -> float:
    return round(float(value), 3)


def new_annotation_id() -> str:
    return str(uuid.uuid4())


def new_region_id() -> str:
    return f"region-{uuid.uuid4().hex[:12]}"


class LabelStore:
    def __init__(self) -> None:
        self._regions: Dict[str, Region] = {}
        self._annotations: Dict[str, Annotation] = {}
        # region id -> annotation ids, in insertion order
        self._by_region: Dict[str, List[str]] = {}
        self._listeners: List[Callable[[], None]] = []
        self.active_region_id: Optional[str] = None
        self.revision = 0

    # ---------------- Change notification ----------------

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def _changed(self) -> None:
        self.revision += 1
        for callback in list(self._listeners):
            callback()

    # ---------------- Reads ----------------

    def regions(self) -> List[Region]:
        return [replace(region) for region in self._regions.values()]

    def annotations(self) -> List[Annotation]:
        return [replace(ann) for ann in self._annotations.values()]

    def get_region(self, region_id: str) -> Optional[Region]:
        region = self._regions.get(region_id)
        return replace(region) if region else None

    def get_annotation(self, annotation_id: str) -> Optional[Annotation]:
        ann = self._annotations.get(annotation_id)
        return replace(ann) if ann else None

    def annotations_for_region(self, region_id: str) -> List[Annotation]:
        return [
            replace(self._annotations[ann_id])
            for ann_id in self._by_region.get(region_id, [])
        ]

    def find_containing(self, time: float) -> List[Region]:
        return [replace(r) for r in self._regions.values() if r.contains(time)]

    def is_empty(self) -> bool:
        return not self._regions and not self._annotations

    # ---------------- Regions ----------------

    def create_region(
        self, start: float, end: float, region_id: Optional[str] = None
    ) -> Region:
        start = float(start)
        end = float(end)
        if end <= start:
            raise InvalidRangeError(start, end)
        region_id = region_id or new_region_id()
        if region_id in self._regions:
            raise ValueError(f"Region id already in use: {region_id}")
        region = Region(id=region_id, start=start, end=end)
        self._regions[region_id] = region
        self._by_region[region_id] = []
        self.active_region_id = region_id
        self._changed()
        return replace(region)

    def update_region(self, region_id: str, start: float, end: float) -> Region:
        start = float(start)
        end = float(end)
        if end <= start:
            raise InvalidRangeError(start, end)
        region = self._regions.get(region_id)
        if region is None:
            raise NotFoundError("Region", region_id)
        region.start = start
        region.end = end
        for ann_id in self._by_region[region_id]:
            ann = self._annotations[ann_id]
            ann.start = round_time(start)
            ann.end = round_time(end)
        self.active_region_id = region_id
        self._changed()
        return replace(region)

    def delete_region(self, region_id: str) -> bool:
        if region_id not in self._regions:
            return False
        self._drop_region(region_id)
        self._changed()
        return True

    def _drop_region(self, region_id: str) -> None:
        del self._regions[region_id]
        for ann_id in self._by_region.pop(region_id, []):
            self._annotations.pop(ann_id, None)
        if self.active_region_id == region_id:
            self.active_region_id = None

    def select_region(self, region_id: Optional[str]) -> None:
        if region_id is not None and region_id not in self._regions:
            raise NotFoundError("Region", region_id)
        self.active_region_id = region_id

    # ---------------- Annotations ----------------

    def set_label(
        self,
        region_id: str,
        type: str,
        value: str,
        target: str,
        parties: PartyRegistry,
    ) -> List[Annotation]:
        """Replace the region's annotations with a label on the target channel(s)."""
        if target not in TARGETS:
            raise ValueError(f"Unknown target '{target}'. Allowed: {list(TARGETS)}")
        region = self._regions.get(region_id)
        if region is None:
            raise NotFoundError("Region", region_id)

        for ann_id in self._by_region[region_id]:
            self._annotations.pop(ann_id, None)
        self._by_region[region_id] = []

        created: List[Annotation] = []
        for channel in TARGET_CHANNELS[target]:
            party = parties.for_channel(channel)
            ann = Annotation(
                id=new_annotation_id(),
                type=type or "label",
                value=value or "",
                start=round_time(region.start),
                end=round_time(region.end),
                target=party.id if party else None,
                channel=channel,
                region_id=region_id,
            )
            self._annotations[ann.id] = ann
            self._by_region[region_id].append(ann.id)
            created.append(replace(ann))
        self._changed()
        return created

    def restore_annotation(self, region_id: str, annotation: Annotation) -> Annotation:
        """Link a persisted annotation to a reconstructed region, keeping its id."""
        region = self._regions.get(region_id)
        if region is None:
            raise NotFoundError("Region", region_id)
        if annotation.id in self._annotations:
            raise ValueError(f"Annotation id already in use: {annotation.id}")
        ann = replace(
            annotation,
            start=round_time(region.start),
            end=round_time(region.end),
            region_id=region_id,
        )
        self._annotations[ann.id] = ann
        self._by_region[region_id].append(ann.id)
        self._changed()
        return replace(ann)

    def delete_annotation(self, annotation_id: str) -> bool:
        ann = self._annotations.pop(annotation_id, None)
        if ann is None:
            return False
        region_id = ann.region_id
        if region_id is not None and region_id in self._by_region:
            siblings = self._by_region[region_id]
            siblings.remove(annotation_id)
            if not siblings:
                logger.debug("Region %s has no labels left, removing it", region_id)
                self._drop_region(region_id)
        self._changed()
        return True

    def clear_all(self) -> None:
        self._regions.clear()
        self._annotations.clear()
        self._by_region.clear()
        self.active_region_id = None
        self._changed()
