"""Tests for the Schoppen Mie closing round."""

import pytest

from rikken.game.closing import resolve_closing
from rikken.game.errors import (
    InvalidSeatReference,
    NoDoublingTokenAvailable,
    RoundAlreadyClosed,
    VariantUnavailable,
)
from rikken.game.models import Declaration, PointTable, Seat, Variant
from rikken.game.resolver import RoundContext
from rikken.utils.constants import KIND_CLOSING, KIND_STANDARD

MIE = Variant(
    variant_id="schoppen-mie", name="Schoppen Mie", kind=KIND_CLOSING,
    points=PointTable(made=5),
)


def ctx(variant=MIE, closed=False, without_token=()):
    seats = tuple(
        Seat(seat_id=sid, name=sid, ordinal=i, has_doubling_token=sid not in without_token)
        for i, sid in enumerate(("a", "b", "c", "d"), 1)
    )
    return RoundContext(round_number=20, variant=variant, playing_seats=seats, closed=closed)


def mie(**kwargs) -> Declaration:
    return Declaration(variant_id="schoppen-mie", **kwargs)


class TestResolveClosing:
    def test_same_seat_stacks(self):
        result = resolve_closing(mie(marked_card_seat_id="c", last_trick_seat_id="c"), ctx())
        assert result.deltas == {"a": 0, "b": 0, "c": 20, "d": 0}
        assert result.winners == ("c",)

    def test_different_seats_each_paid(self):
        result = resolve_closing(mie(marked_card_seat_id="a", last_trick_seat_id="d"), ctx())
        assert result.deltas == {"a": 5, "b": 0, "c": 0, "d": 5}

    def test_only_marked_card_known(self):
        result = resolve_closing(mie(marked_card_seat_id="b"), ctx())
        assert result.deltas == {"a": 0, "b": 5, "c": 0, "d": 0}

    def test_nothing_entered_all_zero(self):
        result = resolve_closing(mie(), ctx())
        assert set(result.deltas.values()) == {0}
        assert result.winners == ()

    def test_doubled(self):
        decl = mie(
            marked_card_seat_id="c", last_trick_seat_id="c",
            doubled=True, doubling_seat_id="a",
        )
        result = resolve_closing(decl, ctx())
        assert result.deltas["c"] == 40
        assert result.token_consumed == "a"

    def test_doubling_needs_token(self):
        decl = mie(marked_card_seat_id="c", doubled=True, doubling_seat_id="a")
        with pytest.raises(NoDoublingTokenAvailable):
            resolve_closing(decl, ctx(without_token=("a",)))

    def test_unknown_seat(self):
        with pytest.raises(InvalidSeatReference) as exc:
            resolve_closing(mie(last_trick_seat_id="x"), ctx())
        assert exc.value.seat_id == "x"

    def test_closed_night_rejected(self):
        with pytest.raises(RoundAlreadyClosed):
            resolve_closing(mie(marked_card_seat_id="a"), ctx(closed=True))

    def test_regular_variant_rejected(self):
        piek = Variant(variant_id="piek", name="Piek", kind=KIND_STANDARD)
        with pytest.raises(VariantUnavailable):
            resolve_closing(Declaration(variant_id="piek"), ctx(variant=piek))
