"""Bridge between the waveform's visual regions and the label store."""

from __future__ import annotations

import logging
from typing import Dict, Hashable, Optional

from .models import Region
from .store import LabelStore

logger = logging.getLogger("vcon_labeler")


class RegionLayerAdapter:
    """Maps visual region handles to store region ids.

    The layer object needs `create_visual_region(start, end) -> handle` and
    `remove_visual_region(handle)`. Handles are only foreign keys; bounds
    always come from the store.
    """

    def __init__(self, store: LabelStore, layer=None) -> None:
        self.store = store
        self.layer = layer
        self._region_by_handle: Dict[Hashable, str] = {}
        self._handle_by_region: Dict[str, Hashable] = {}
        self._creating = False

    def handle_for(self, region_id: str) -> Optional[Hashable]:
        return self._handle_by_region.get(region_id)

    def region_id_for(self, handle: Hashable) -> Optional[str]:
        return self._region_by_handle.get(handle)

    def _link(self, handle: Hashable, region_id: str) -> None:
        self._region_by_handle[handle] = region_id
        self._handle_by_region[region_id] = handle

    # ---------------- Store -> layer ----------------

    def show(self, region: Region) -> Optional[Hashable]:
        if self.layer is None:
            return None
        self._creating = True
        try:
            handle = self.layer.create_visual_region(region.start, region.end)
        finally:
            self._creating = False
        self._link(handle, region.id)
        return handle

    def show_all(self) -> None:
        for region in self.store.regions():
            if region.id not in self._handle_by_region:
                self.show(region)

    def prune(self) -> None:
        """Remove visual regions whose store region is gone."""
        for region_id, handle in list(self._handle_by_region.items()):
            if self.store.get_region(region_id) is None:
                del self._handle_by_region[region_id]
                self._region_by_handle.pop(handle, None)
                if self.layer is not None:
                    self.layer.remove_visual_region(handle)

    def clear(self) -> None:
        if self.layer is not None:
            for handle in list(self._region_by_handle):
                self.layer.remove_visual_region(handle)
        self._region_by_handle.clear()
        self._handle_by_region.clear()

    # ---------------- Layer events -> store ----------------

    def on_region_created(self, handle: Hashable, start: float, end: float) -> Optional[Region]:
        if self._creating or handle in self._region_by_handle:
            return None
        region = self.store.create_region(start, end)
        self._link(handle, region.id)
        return region

    def on_region_updated(self, handle: Hashable, start: float, end: float) -> Optional[Region]:
        region_id = self._region_by_handle.get(handle)
        if region_id is None:
            logger.debug("Update for unknown visual region %r ignored", handle)
            return None
        return self.store.update_region(region_id, start, end)

    def on_region_clicked(self, handle: Hashable) -> Optional[str]:
        region_id = self._region_by_handle.get(handle)
        if region_id is not None:
            self.store.select_region(region_id)
        return region_id
