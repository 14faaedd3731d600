"""Data models for the labeler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

PARTY_ROLES = ("agent", "customer", "unknown")
TARGETS = ("left", "right", "both")

LEFT = 0
RIGHT = 1


@dataclass
class Party:
    id: str
    role: str = "unknown"
    name: Optional[str] = None
    uri: Optional[str] = None


@dataclass
class Region:
    id: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def contains(self, time: float) -> bool:
        return self.start <= time <= self.end


@dataclass
class Annotation:
    id: str
    type: str
    value: str
    start: float
    end: float
    target: Optional[str] = None
    channel: Optional[int] = None
    region_id: Optional[str] = None


@dataclass
class MediaInfo:
    type: str = "audio"
    uri: Optional[str] = None
    channels: int = 2
    duration: float = 0.0


@dataclass
class LabelDraft:
    type: str
    value: str = ""
    target: str = "left"


@dataclass(frozen=True)
class DisplayRow:
    start: float
    end: float
    type: str
    value: str
    channel: str
    annotation_ids: Tuple[str, ...] = field(default_factory=tuple)
    party: Optional[Party] = None
