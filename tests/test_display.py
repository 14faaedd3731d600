from vcon_labeler.display import DisplayAggregator, aggregate_rows
from vcon_labeler.models import Annotation
from vcon_labeler.parties import PartyRegistry
from vcon_labeler.store import LabelStore


def _ann(ann_id, channel, start=1.0, end=2.0, type="sentiment", value="positive"):
    target = {0: "party-1", 1: "party-2"}.get(channel)
    return Annotation(
        id=ann_id, type=type, value=value, start=start, end=end,
        target=target, channel=channel,
    )


def test_matching_pair_becomes_both_row():
    rows = aggregate_rows([_ann("l", 0), _ann("r", 1)], PartyRegistry())
    assert len(rows) == 1
    assert rows[0].channel == "both"
    assert rows[0].annotation_ids == ("l", "r")
    assert rows[0].party is None


def test_different_values_stay_separate():
    rows = aggregate_rows(
        [_ann("l", 0), _ann("r", 1, value="negative")], PartyRegistry()
    )
    assert [row.channel for row in rows] == ["left", "right"]
    assert rows[0].party.name == "Agent"
    assert rows[1].party.name == "Customer"


def test_first_match_wins():
    rows = aggregate_rows(
        [_ann("l1", 0), _ann("r1", 1), _ann("l2", 0)], PartyRegistry()
    )
    assert [row.channel for row in rows] == ["both", "left"]
    assert rows[0].annotation_ids == ("l1", "r1")
    assert rows[1].annotation_ids == ("l2",)


def test_same_channel_never_pairs():
    rows = aggregate_rows([_ann("a", 0), _ann("b", 0)], PartyRegistry())
    assert [row.channel for row in rows] == ["left", "left"]


def test_rows_sorted_by_start_then_end():
    rows = aggregate_rows(
        [
            _ann("c", 0, start=5.0, end=6.0),
            _ann("b", 1, start=1.0, end=4.0),
            _ann("a", 0, start=1.0, end=2.0),
        ],
        PartyRegistry(),
    )
    assert [row.annotation_ids[0] for row in rows] == ["a", "b", "c"]


def test_channelless_annotation_is_global():
    rows = aggregate_rows([_ann("g", None)], PartyRegistry())
    assert rows[0].channel == "global"
    assert rows[0].party is None


def test_deleting_both_row_removes_annotations_and_region():
    store = LabelStore()
    parties = PartyRegistry()
    region = store.create_region(1.0, 2.0)
    store.set_label(region.id, "sentiment", "positive", "both", parties)
    display = DisplayAggregator(store, parties)

    (row,) = display.rows()
    assert row.channel == "both"
    assert display.delete_row(row) == 2
    assert store.annotations() == []
    assert store.get_region(region.id) is None
    assert display.rows() == []


def test_projection_is_cached_until_change():
    store = LabelStore()
    parties = PartyRegistry()
    region = store.create_region(1.0, 2.0)
    store.set_label(region.id, "topic", "billing", "left", parties)
    display = DisplayAggregator(store, parties)

    first = display.rows()
    assert display.rows() == first

    parties.update(0, name="Alice")
    assert display.rows()[0].party.name == "Alice"

    store.set_label(region.id, "topic", "billing", "both", parties)
    assert display.rows()[0].channel == "both"
