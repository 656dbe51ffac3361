"""Tests for data models."""

from decimal import Decimal

from rikken.game.models import Declaration, Night, PointTable, RoundRecord, Seat, Variant
from rikken.utils.constants import KIND_SOLO, KIND_STANDARD, STATUS_PLAYING


class TestPointTable:
    def test_decimal_from_storage(self):
        table = PointTable.from_dict(
            {"gemaakt": Decimal("5"), "overslag": Decimal("1.5"), "nat": None}
        )
        assert table.made == 5
        assert isinstance(table.made, int)
        assert table.overtrick == 1.5
        assert table.failed == 0
        assert table.undertrick == 0


class TestVariant:
    def test_round_trip(self):
        v = Variant(
            variant_id="alleen-9", name="9 alleen", kind=KIND_SOLO, minimum_tricks=9,
            points=PointTable(made=7, overtrick=1, failed=14, undertrick=1),
        )
        assert Variant.from_dict(v.to_dict()) == v

    def test_dutch_keys(self):
        d = Variant(variant_id="rik", name="Rik", requires_partner=True).to_dict()
        assert d["naam"] == "Rik"
        assert d["metMaat"] is True


class TestSeat:
    def test_active_by_default(self):
        seat = Seat(seat_id="a", name="Anna", ordinal=1)
        assert seat.active
        assert seat.is_active_in(1)
        assert seat.is_active_in(99)

    def test_closed_span(self):
        seat = Seat(seat_id="a", name="Anna", ordinal=1, spans=[[1, 4]])
        assert not seat.active
        assert seat.is_active_in(4)
        assert not seat.is_active_in(5)

    def test_rejoined(self):
        seat = Seat(seat_id="a", name="Anna", ordinal=1, spans=[[1, 2], [6, None]])
        assert seat.active
        assert not seat.is_active_in(4)
        assert seat.is_active_in(6)

    def test_from_dict_decimal_spans(self):
        seat = Seat.from_dict({
            "seatId": "a", "volgorde": Decimal("2"),
            "spans": [[Decimal("1"), Decimal("3")], [Decimal("5"), None]],
        })
        assert seat.name == "a"
        assert seat.ordinal == 2
        assert seat.spans == [[1, 3], [5, None]]


class TestDeclaration:
    def test_outcomes_round_trip(self):
        decl = Declaration(
            variant_id="meerdere-piek", outcomes=(("a", True), ("b", False)),
        )
        restored = Declaration.from_dict(decl.to_dict())
        assert restored == decl
        assert restored.outcome_map == {"a": True, "b": False}

    def test_tricks_from_decimal(self):
        decl = Declaration.from_dict({"variantId": "rik", "slagen": Decimal("9")})
        assert decl.tricks == 9
        assert decl.made is None


class TestRoundRecord:
    def test_record_keeps_variant_snapshot(self):
        variant = Variant(
            variant_id="piek", name="Piek", kind=KIND_STANDARD, points=PointTable(made=10),
        )
        record = RoundRecord(
            round_number=1, variant_name="Piek",
            declaration=Declaration(variant_id="piek", challenger_id="a", made=True),
            deltas={"a": 0, "b": 10}, dealer_id="a", variant=variant,
        )
        restored = RoundRecord.from_dict(record.to_dict())
        assert restored.variant == variant

    def test_record_without_snapshot(self):
        d = {
            "rondeNummer": 1, "spelNaam": "Piek", "declaratie": {"variantId": "piek"},
            "punten": {}, "delerId": "a",
        }
        assert RoundRecord.from_dict(d).variant is None


class TestNight:
    def make_night(self):
        seats = [
            Seat(seat_id="b", name="B", ordinal=2),
            Seat(seat_id="a", name="A", ordinal=1),
            Seat(seat_id="c", name="C", ordinal=3, spans=[[1, 2]]),
        ]
        record = RoundRecord(
            round_number=1, variant_name="Piek",
            declaration=Declaration(variant_id="piek", challenger_id="a", made=True),
            deltas={"a": 0, "b": 10, "c": 10}, dealer_id="a",
        )
        return Night(
            night_id="n1", date="2025-01-10", location="Kerkstraat", seats=seats,
            start_dealer_id="a", rounds=[record], status=STATUS_PLAYING,
            settings={"meerdere_enabled": True}, updated_at="2025-01-10T20:00:00+00:00",
        )

    def test_round_trip(self):
        night = self.make_night()
        assert Night.from_dict(night.to_dict()) == night

    def test_seat_order(self):
        night = self.make_night()
        assert [s.seat_id for s in night.seats_in_order()] == ["a", "b", "c"]
        assert [s.seat_id for s in night.get_active_seats()] == ["a", "b"]

    def test_next_round_number(self):
        assert self.make_night().next_round_number == 2

    def test_missing_settings_get_defaults(self):
        d = self.make_night().to_dict()
        del d["settings"]
        assert Night.from_dict(d).settings["meerdere_enabled"] is False

    def test_new_night_ids_unique(self):
        assert Night.new_night_id() != Night.new_night_id()
