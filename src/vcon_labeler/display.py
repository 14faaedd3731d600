"""Display rows for the labels table."""

from __future__ import annotations

from typing import List, Optional, Tuple

from .models import LEFT, RIGHT, Annotation, DisplayRow
from .parties import PartyRegistry
from .store import LabelStore

CHANNEL_NAMES = {LEFT: "left", RIGHT: "right", None: "global"}


def _pairs_with(a: Annotation, b: Annotation) -> bool:
    return (
        {a.channel, b.channel} == {LEFT, RIGHT}
        and a.start == b.start
        and a.end == b.end
        and a.type == b.type
        and a.value == b.value
    )


def aggregate_rows(annotations: List[Annotation], parties: PartyRegistry) -> List[DisplayRow]:
    """Merge matching left/right annotations into "both" rows.

    Rows are ordered by (start, end). Each annotation joins at most one pair;
    the first matching partner wins.
    """
    ordered = sorted(annotations, key=lambda a: (a.start, a.end))
    consumed = set()
    rows: List[DisplayRow] = []

    for idx, ann in enumerate(ordered):
        if ann.id in consumed:
            continue
        consumed.add(ann.id)
        partner: Optional[Annotation] = None
        if ann.channel in (LEFT, RIGHT):
            for other in ordered[idx + 1:]:
                if other.id not in consumed and _pairs_with(ann, other):
                    partner = other
                    break

        if partner is not None:
            consumed.add(partner.id)
            left, right = (ann, partner) if ann.channel == LEFT else (partner, ann)
            rows.append(
                DisplayRow(
                    start=ann.start,
                    end=ann.end,
                    type=ann.type,
                    value=ann.value,
                    channel="both",
                    annotation_ids=(left.id, right.id),
                )
            )
            continue

        party = parties.by_id(ann.target) or parties.for_channel(ann.channel)
        rows.append(
            DisplayRow(
                start=ann.start,
                end=ann.end,
                type=ann.type,
                value=ann.value,
                channel=CHANNEL_NAMES.get(ann.channel, "global"),
                annotation_ids=(ann.id,),
                party=party,
            )
        )
    return rows


class DisplayAggregator:
    """Cached projection of a store, rebuilt after any store or party change."""

    def __init__(self, store: LabelStore, parties: PartyRegistry) -> None:
        self.store = store
        self.parties = parties
        self._key: Optional[Tuple[int, int]] = None
        self._rows: List[DisplayRow] = []

    def rows(self) -> List[DisplayRow]:
        key = (self.store.revision, self.parties.revision)
        if key != self._key:
            self._rows = aggregate_rows(self.store.annotations(), self.parties)
            self._key = key
        return list(self._rows)

    def delete_row(self, row: DisplayRow) -> int:
        """Delete every annotation behind a row; returns how many were removed."""
        removed = 0
        for ann_id in row.annotation_ids:
            if self.store.delete_annotation(ann_id):
                removed += 1
        return removed
