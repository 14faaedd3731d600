"""vCon session serialization and reconstruction."""

from __future__ import annotations

import json
import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .errors import InvalidRangeError, MalformedSessionError
from .models import LEFT, PARTY_ROLES, RIGHT, Annotation, MediaInfo, Party, Region
from .parties import PartyRegistry
from .store import LabelStore, new_annotation_id

logger = logging.getLogger("vcon_labeler")

VCON_VERSION = "0.9.0"
GENERATOR = "VConAudioLabeler"


@dataclass
class SessionDocument:
    annotations: List[Annotation] = field(default_factory=list)
    parties: Optional[List[Party]] = None
    media: Optional[MediaInfo] = None
    uuid: Optional[str] = None


def media_for_audio(audio_path: Optional[str], duration: float) -> MediaInfo:
    if not audio_path:
        return MediaInfo(type="audio", uri=None, channels=2, duration=duration)
    name = os.path.basename(audio_path)
    content_type, _ = mimetypes.guess_type(name)
    return MediaInfo(
        type=content_type or "audio/wav",
        uri=f"file:{name}",
        channels=2,
        duration=duration,
    )


def _utc_now_iso() -> str:
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def _drop_none(payload: Dict) -> Dict:
    return {key: value for key, value in payload.items() if value is not None}


def build_vcon(
    annotations: List[Annotation],
    parties: List[Party],
    media: MediaInfo,
    generator: str = GENERATOR,
) -> Dict:
    return {
        "vcon": VCON_VERSION,
        "uuid": str(uuid.uuid4()),
        "parties": [
            _drop_none({"id": p.id, "role": p.role, "name": p.name, "uri": p.uri})
            for p in parties
        ],
        "media": [
            _drop_none(
                {
                    "type": media.type,
                    "uri": media.uri,
                    "channels": 2,
                    "duration": media.duration,
                }
            )
        ],
        "analysis": [
            _drop_none(
                {
                    "id": a.id,
                    "type": a.type,
                    "start": a.start,
                    "end": a.end,
                    "value": a.value,
                    "target": a.target,
                    "channel": a.channel,
                }
            )
            for a in annotations
        ],
        "metadata": {"created_at": _utc_now_iso(), "generator": generator},
    }


def dumps_vcon(payload: Dict) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def _number(item: Dict, key: str) -> float:
    value = item.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedSessionError(f"analysis entry has non-numeric '{key}': {value!r}")
    return float(value)


def _parse_annotation(item: object) -> Annotation:
    if not isinstance(item, dict):
        raise MalformedSessionError(f"analysis entry is not an object: {item!r}")
    channel = item.get("channel")
    if channel not in (None, LEFT, RIGHT) or isinstance(channel, bool):
        raise MalformedSessionError(f"analysis entry has invalid channel: {channel!r}")
    target = item.get("target")
    return Annotation(
        id=str(item.get("id") or new_annotation_id()),
        type=str(item.get("type") or "label"),
        value="" if item.get("value") is None else str(item.get("value")),
        start=round(_number(item, "start"), 3),
        end=round(_number(item, "end"), 3),
        target=None if target is None else str(target),
        channel=None if channel is None else int(channel),
    )


def _parse_parties(raw: object) -> Optional[List[Party]]:
    if raw is None:
        return None
    if not isinstance(raw, list) or len(raw) != 2:
        raise MalformedSessionError("'parties' must be a list of exactly two parties")
    parties = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("id"):
            raise MalformedSessionError(f"party is missing an id: {item!r}")
        role = item.get("role", "unknown")
        if role not in PARTY_ROLES:
            logger.warning("Unknown party role %r, using 'unknown'", role)
            role = "unknown"
        parties.append(
            Party(
                id=str(item["id"]),
                role=role,
                name=item.get("name"),
                uri=item.get("uri"),
            )
        )
    return parties


def _parse_media(raw: object) -> Optional[MediaInfo]:
    if not isinstance(raw, list) or not raw or not isinstance(raw[0], dict):
        return None
    first = raw[0]
    duration = first.get("duration")
    return MediaInfo(
        type=str(first.get("type") or "audio"),
        uri=first.get("uri"),
        channels=2,
        duration=float(duration) if isinstance(duration, (int, float)) else 0.0,
    )


def parse_vcon(text: str) -> SessionDocument:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise MalformedSessionError(f"Session file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedSessionError("Session file root must be an object")
    analysis = data.get("analysis", [])
    if not isinstance(analysis, list):
        raise MalformedSessionError("'analysis' must be a list")
    return SessionDocument(
        annotations=[_parse_annotation(item) for item in analysis],
        parties=_parse_parties(data.get("parties")),
        media=_parse_media(data.get("media")),
        uuid=data.get("uuid"),
    )


def rebuild_store(store: LabelStore, annotations: List[Annotation]) -> List[Region]:
    """Recreate regions from flattened annotations.

    Region links are not persisted, so every distinct (start, end) pair becomes
    one region and all annotations with those bounds are attached to it.
    Annotations that are identical in bounds, type and value therefore land in
    the same region even if they were drawn as separate regions.
    """
    store.clear_all()
    groups: Dict[Tuple[float, float], List[Annotation]] = {}
    for ann in annotations:
        groups.setdefault((ann.start, ann.end), []).append(ann)

    regions: List[Region] = []
    seen_ids = set()
    for (start, end), members in groups.items():
        try:
            region = store.create_region(start, end)
        except InvalidRangeError:
            logger.warning(
                "Skipping %d label(s) with empty range [%s, %s]", len(members), start, end
            )
            continue
        for ann in members:
            if ann.id in seen_ids:
                ann = replace(ann, id=new_annotation_id())
                logger.warning("Duplicate label id in session, assigned %s", ann.id)
            seen_ids.add(ann.id)
            store.restore_annotation(region.id, ann)
        regions.append(region)
    store.select_region(None)
    logger.info("Rebuilt %d region(s) from %d label(s)", len(regions), len(annotations))
    return regions


class SessionCodec:
    """Serializes a session and owns the bound session file.

    Writes always replace the whole file.
    """

    def __init__(self, file_access, generator: str = GENERATOR, autosave: bool = True) -> None:
        self.file_access = file_access
        self.generator = generator
        self.autosave = autosave
        self.session_ref: Optional[str] = None

    def bind(self, ref: str) -> None:
        self.session_ref = ref

    def unbind(self) -> None:
        self.session_ref = None

    def serialize(self, store: LabelStore, parties: PartyRegistry, media: MediaInfo) -> str:
        payload = build_vcon(store.annotations(), parties.all(), media, self.generator)
        return dumps_vcon(payload)

    def persist(self, store: LabelStore, parties: PartyRegistry, media: MediaInfo) -> bool:
        if self.session_ref is None or not self.autosave:
            return False
        self.write(self.session_ref, store, parties, media)
        return True

    def write(
        self, ref: str, store: LabelStore, parties: PartyRegistry, media: MediaInfo
    ) -> None:
        self.file_access.write_file(ref, self.serialize(store, parties, media))
        logger.debug("Saved session %s (%d labels)", ref, len(store.annotations()))

    def load(self, ref: str) -> SessionDocument:
        return parse_vcon(self.file_access.read_file(ref))

    def initialize(self, ref: str, parties: PartyRegistry, media: MediaInfo) -> None:
        """Write a fresh session file holding the parties and no labels."""
        self.file_access.create_file(ref)
        self.write(ref, LabelStore(), parties, media)
        logger.info("Initialized session file %s", ref)
