"""Event-driven labeling session for one audio source at a time."""

from __future__ import annotations

import logging
from typing import Hashable, List, Optional, Tuple

from .config import Config
from .display import DisplayAggregator
from .errors import InvalidRangeError, MalformedSessionError, NotFoundError, PersistenceError
from .loop import LoopController
from .models import LEFT, RIGHT, Annotation, DisplayRow, LabelDraft, MediaInfo, Region
from .parties import PartyRegistry
from .region_layer import RegionLayerAdapter
from .session_io import SessionCodec, SessionDocument, media_for_audio, parse_vcon, rebuild_store
from .storage import LocalFileAccess, session_path_for
from .store import LabelStore

logger = logging.getLogger("vcon_labeler")


class LabelingSession:
    """Wires the store, loop controller, display rows and session file together.

    The host calls the `on_*` methods as events arrive. File reads and the
    duration probe may finish late; each carries the generation returned by
    `select_source`, and results for an older generation are dropped.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        file_access=None,
        transport=None,
        layer=None,
    ) -> None:
        self.config = config or Config()
        self.label_types: List[str] = list(self.config.label_types)
        self.file_access = file_access or LocalFileAccess()
        self.transport = transport

        self.store = LabelStore()
        self.parties = PartyRegistry(
            self.config.left_party.to_party(), self.config.right_party.to_party()
        )
        self.codec = SessionCodec(
            self.file_access,
            generator=self.config.session.generator,
            autosave=self.config.session.autosave,
        )
        self.loop = LoopController(self.store, epsilon=self.config.loop_epsilon)
        self.display = DisplayAggregator(self.store, self.parties)
        self.regions = RegionLayerAdapter(self.store, layer)

        self.audio_ref: Optional[str] = None
        self.session_ref: Optional[str] = None
        self.duration: Optional[float] = None
        self.generation = 0
        self.ready = False
        self.looping_enabled = False
        self.last_error: Optional[str] = None
        self._pending: Optional[Tuple[SessionDocument, str]] = None

        self.store.subscribe(self._on_store_changed)

    # ---------------- Source switching and loading ----------------

    def select_source(self, audio_ref: str) -> int:
        """Reset all session state for a new audio source; returns its generation."""
        self.generation += 1
        self.ready = False
        self._pending = None
        self.codec.unbind()
        self.loop.reset()
        self.store.clear_all()
        self.regions.clear()
        self.parties.replace(
            self.config.left_party.to_party(), self.config.right_party.to_party()
        )
        self.duration = None
        self.last_error = None
        self.audio_ref = audio_ref
        self.session_ref = session_path_for(audio_ref, self.config.session.suffix)
        logger.info("Selected %s (generation %d)", audio_ref, self.generation)
        return self.generation

    def read_session(self) -> Optional[str]:
        """Read the session file for the current source; None when there is none.

        Raises PersistenceError when the file exists but cannot be read.
        """
        if self.session_ref is None or not self.file_access.exists(self.session_ref):
            return None
        return self.file_access.read_file(self.session_ref)

    def open(self, audio_ref: str, duration: float) -> int:
        """Select a source and load its session synchronously."""
        generation = self.select_source(audio_ref)
        try:
            text = self.read_session()
        except PersistenceError as exc:
            self.on_session_load_failed(generation, exc)
        else:
            self.on_session_loaded(generation, text)
        self.on_duration_known(generation, duration)
        return generation

    def on_session_loaded(self, generation: int, text: Optional[str]) -> bool:
        if generation != self.generation:
            logger.debug("Dropping stale session load (generation %d)", generation)
            return False
        mode = "fresh" if text is None else "loaded"
        document = SessionDocument()
        if text is not None:
            try:
                document = parse_vcon(text)
            except MalformedSessionError as exc:
                logger.warning("Session %s is malformed, starting fresh: %s", self.session_ref, exc)
                mode = "fresh"
        self._pending = (document, mode)
        self._apply_pending()
        return True

    def on_session_load_failed(self, generation: int, exc: Exception) -> bool:
        """The session file exists but could not be read.

        Editing continues in memory with the file left unbound, so the unread
        labels are never overwritten; `export` to another path still works.
        """
        if generation != self.generation:
            logger.debug("Dropping stale load failure (generation %d)", generation)
            return False
        self._report(exc)
        self._pending = (SessionDocument(), "unreadable")
        self._apply_pending()
        return True

    def on_duration_known(self, generation: int, duration: float) -> bool:
        if generation != self.generation:
            logger.debug("Dropping stale duration (generation %d)", generation)
            return False
        self.duration = float(duration)
        if self._pending is not None:
            self._apply_pending()
        else:
            self._persist()
        return True

    def _apply_pending(self) -> None:
        if self.duration is None or self._pending is None:
            return
        document, mode = self._pending
        self._pending = None
        self.ready = False
        if document.parties:
            self.parties.replace(*document.parties)
        rebuild_store(self.store, document.annotations)
        self.regions.show_all()
        self.ready = True
        if mode == "unreadable":
            self.codec.unbind()
            return
        self.codec.bind(self.session_ref)
        if mode == "fresh":
            try:
                self.codec.initialize(self.session_ref, self.parties, self.media())
            except PersistenceError as exc:
                self._report(exc)
        else:
            self._persist()
        logger.info(
            "Session ready: %d region(s), %d label(s)",
            len(self.store.regions()),
            len(self.store.annotations()),
        )

    # ---------------- Persistence ----------------

    def media(self) -> MediaInfo:
        return media_for_audio(self.audio_ref, self.duration or 0.0)

    def _on_store_changed(self) -> None:
        self.regions.prune()
        self._persist()

    def _persist(self) -> None:
        if not self.ready:
            return
        try:
            if self.codec.persist(self.store, self.parties, self.media()):
                self.last_error = None
        except PersistenceError as exc:
            self._report(exc)

    def _report(self, exc: Exception) -> None:
        self.last_error = str(exc)
        logger.warning("Session file problem: %s", exc)

    def export(self, ref: Optional[str] = None) -> str:
        """Write the session to `ref` (default: the bound file) regardless of autosave."""
        target = ref or self.codec.session_ref
        if target is None:
            raise PersistenceError("No session file selected.")
        self.codec.write(target, self.store, self.parties, self.media())
        return target

    # ---------------- Regions ----------------

    def _clamp(self, start: float, end: float) -> Tuple[float, float]:
        start = max(0.0, float(start))
        end = float(end)
        if self.duration is not None:
            start = min(start, self.duration)
            end = min(end, self.duration)
        return start, end

    def add_region(self, start: float, end: float) -> Region:
        start, end = self._clamp(start, end)
        region = self.store.create_region(start, end)
        self.regions.show(region)
        return region

    def add_region_at_playhead(self) -> Region:
        start = self.transport.current_time() if self.transport else 0.0
        return self.add_region(start, start + self.config.default_region_length)

    def update_region(self, region_id: str, start: float, end: float) -> Optional[Region]:
        start, end = self._clamp(start, end)
        try:
            return self.store.update_region(region_id, start, end)
        except NotFoundError:
            logger.debug("Update for removed region %s ignored", region_id)
            return None

    def delete_region(self, region_id: str) -> bool:
        return self.store.delete_region(region_id)

    def delete_active_region(self) -> bool:
        region_id = self.store.active_region_id
        if region_id is None:
            return False
        return self.store.delete_region(region_id)

    def on_region_created(self, handle: Hashable, start: float, end: float) -> Optional[Region]:
        start, end = self._clamp(start, end)
        try:
            return self.regions.on_region_created(handle, start, end)
        except InvalidRangeError as exc:
            logger.warning("Ignoring drawn region: %s", exc)
            return None

    def on_region_updated(self, handle: Hashable, start: float, end: float) -> Optional[Region]:
        start, end = self._clamp(start, end)
        try:
            return self.regions.on_region_updated(handle, start, end)
        except NotFoundError:
            logger.debug("Update for removed region %r ignored", handle)
        except InvalidRangeError as exc:
            logger.warning("Ignoring region resize: %s", exc)
        return None

    def on_region_clicked(self, handle: Hashable) -> Optional[LabelDraft]:
        region_id = self.regions.on_region_clicked(handle)
        if region_id is None:
            return None
        return self.label_draft_for_region(region_id)

    # ---------------- Labels ----------------

    def label_draft_for_region(self, region_id: str) -> LabelDraft:
        """Values to pre-fill the label form with for a region."""
        existing = self.store.annotations_for_region(region_id)
        if not existing:
            return LabelDraft(type=self.config.default_label_type, value="", target="left")
        channels = {ann.channel for ann in existing}
        first = existing[0]
        if LEFT in channels and RIGHT in channels:
            target = "both"
        elif first.channel == LEFT:
            target = "left"
        else:
            target = "right"
        return LabelDraft(type=first.type, value=first.value, target=target)

    def set_label(
        self, type: str, value: str, target: str, region_id: Optional[str] = None
    ) -> List[Annotation]:
        region_id = region_id or self.store.active_region_id
        if region_id is None:
            logger.debug("Label save without a selected region ignored")
            return []
        try:
            return self.store.set_label(region_id, type, value, target, self.parties)
        except NotFoundError:
            logger.debug("Label save for removed region %s ignored", region_id)
            return []

    def delete_annotation(self, annotation_id: str) -> bool:
        return self.store.delete_annotation(annotation_id)

    def rows(self) -> List[DisplayRow]:
        return self.display.rows()

    def delete_row(self, row: DisplayRow) -> int:
        return self.display.delete_row(row)

    def clear_all(self) -> None:
        self.loop.reset()
        self.store.clear_all()

    def update_party(self, channel: int, **changes) -> None:
        self.parties.update(channel, **changes)
        self._persist()

    # ---------------- Playback ----------------

    def set_looping(self, enabled: bool) -> None:
        self.looping_enabled = bool(enabled)

    def on_play(self, time: Optional[float] = None) -> Optional[Region]:
        if time is None:
            time = self.transport.current_time() if self.transport else 0.0
        return self.loop.on_play(time, self.looping_enabled and self.ready)

    def on_pause(self) -> None:
        self.loop.on_pause()

    def on_time_update(self, time: float) -> Optional[float]:
        target = self.loop.on_time_update(time)
        if target is not None and self.transport is not None:
            self.transport.seek(target)
        return target
