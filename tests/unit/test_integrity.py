"""Tests for state integrity checker."""

from dataclasses import replace

from rikken.db.memory import InMemoryNightRepository, InMemorySettingsRepository
from rikken.game.engine import NightEngine
from rikken.game.integrity import validate_night_integrity
from rikken.game.models import Declaration, Seat
from rikken.utils.constants import STATUS_CLOSED


def _make_played_night():
    eng = NightEngine(InMemoryNightRepository(), InMemorySettingsRepository())
    night = eng.create_night(["a", "b", "c", "d", "e"]).night
    nid = night.night_id
    eng.set_start_dealer(nid, "a")
    eng.submit_round(
        nid,
        Declaration(
            variant_id="rik", challenger_id="b", partner_id="c", tricks=8,
            doubled=True, doubling_seat_id="d",
        ),
    )
    result = eng.submit_round(
        nid, Declaration(variant_id="piek", challenger_id="c", made=False)
    )
    return result.night


class TestValidateNightIntegrity:
    def test_valid_night_passes(self):
        night = _make_played_night()
        errors = validate_night_integrity(night)
        assert errors == [], f"Unexpected errors: {errors}"

    def test_gap_in_round_numbers(self):
        night = _make_played_night()
        night.rounds[1] = replace(night.rounds[1], round_number=3)
        errors = validate_night_integrity(night)
        assert any("aaneengesloten" in e for e in errors)

    def test_sitter_with_points(self):
        night = _make_played_night()
        night.rounds[0] = replace(night.rounds[0], deltas={**night.rounds[0].deltas, "a": 5})
        errors = validate_night_integrity(night)
        assert any("stilzitter a" in e for e in errors)

    def test_unknown_seat_in_deltas(self):
        night = _make_played_night()
        night.rounds[0] = replace(night.rounds[0], deltas={"z": 1})
        errors = validate_night_integrity(night)
        assert any("onbekende spelers" in e for e in errors)

    def test_closing_not_last(self):
        night = _make_played_night()
        night.rounds[0] = replace(night.rounds[0], closing=True)
        night.status = STATUS_CLOSED
        errors = validate_night_integrity(night)
        assert any("Schoppen Mie" in e for e in errors)

    def test_status_without_closing(self):
        night = _make_played_night()
        night.status = STATUS_CLOSED
        errors = validate_night_integrity(night)
        assert any("Status" in e for e in errors)

    def test_token_mismatch(self):
        night = _make_played_night()
        night.get_seat("d").has_doubling_token = True
        errors = validate_night_integrity(night)
        assert any("Verdubbelaar van d" in e for e in errors)

    def test_unknown_start_dealer(self):
        night = _make_played_night()
        night.start_dealer_id = "x"
        errors = validate_night_integrity(night)
        assert any("Startdeler" in e for e in errors)

    def test_duplicate_ordinal(self):
        night = _make_played_night()
        night.get_seat("e").ordinal = 1
        errors = validate_night_integrity(night)
        assert any("Volgorde 1" in e for e in errors)

    def test_too_many_active(self):
        night = _make_played_night()
        night.seats.extend(Seat(seat_id=s, name=s, ordinal=i) for i, s in ((6, "f"), (7, "g")))
        errors = validate_night_integrity(night)
        assert any("actieve spelers" in e for e in errors)

    def test_stored_sitters_differ_from_rotation(self):
        night = _make_played_night()
        night.rounds[1] = replace(night.rounds[1], dealer_id="c", sitter_ids=("c",))
        errors = validate_night_integrity(night)
        assert any("Ronde 2: deler/stilzitters" in e for e in errors)

    def test_reordered_seats_detected(self):
        night = _make_played_night()
        night.get_seat("a").ordinal, night.get_seat("b").ordinal = 2, 1
        errors = validate_night_integrity(night)
        assert any("wijken af van de rotatie" in e for e in errors)
