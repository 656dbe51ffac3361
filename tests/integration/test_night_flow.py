"""Integration tests for complete game nights."""

import json
import random

import pytest

from cli.inspect_state import inspect_state
from cli.simulate import simulate_night
from rikken.db.memory import InMemoryNightRepository, InMemorySettingsRepository
from rikken.game.engine import NightEngine
from rikken.game.integrity import validate_night_integrity
from rikken.game.models import Declaration, Night
from rikken.utils.constants import STATUS_CLOSED


def assert_integrity(night):
    errors = validate_night_integrity(night)
    assert not errors, f"Integrity violations: {errors}"


def submit(eng, nid, **kwargs):
    result = eng.submit_round(nid, Declaration(**kwargs))
    assert result.success, result.error
    assert_integrity(result.night)
    return result.night


class TestFullNight:
    def test_six_players_with_leaver(self):
        """Six players, one leaves halfway, night closed with Schoppen Mie."""
        eng = NightEngine(InMemoryNightRepository(), InMemorySettingsRepository())
        night = eng.create_night(list("abcdef"), date="2025-01-10", location="Kerkstraat").night
        nid = night.night_id
        eng.set_start_dealer(nid, "a")

        # Round 1: a deals, a and d sit out
        night = submit(eng, nid, variant_id="rik", challenger_id="b", partner_id="c", tricks=8)
        assert night.rounds[0].sitter_ids == ("a", "d")
        assert night.rounds[0].deltas == {"b": 0, "c": 0, "e": 6, "f": 6}

        # Round 2: b deals, b and e sit out; a doubles and loses the token
        night = submit(
            eng, nid, variant_id="alleen-8", challenger_id="c", tricks=9,
            doubled=True, doubling_seat_id="a",
        )
        assert night.rounds[1].deltas == {"a": 12, "c": 0, "d": 12, "f": 12}
        assert not night.get_seat("a").has_doubling_token

        # f leaves: five seats from round 3, the dealer sits out alone
        assert eng.set_seat_active(nid, "f", False).success
        night = submit(
            eng, nid, variant_id="allemaal-piek", challenger_id="a",
            outcomes=(("a", True), ("b", False), ("d", True), ("e", False)),
        )
        assert night.rounds[2].sitter_ids == ("c",)
        assert night.rounds[2].deltas == {"a": 0, "b": -5, "d": 0, "e": -5}

        # a has no token left
        rejected = eng.submit_round(
            nid,
            Declaration(
                variant_id="piek", challenger_id="b", made=True,
                doubled=True, doubling_seat_id="a",
            ),
        )
        assert rejected.error_code == "no_doubling_token"

        result = eng.submit_closing(
            nid,
            Declaration(
                variant_id="schoppen-mie", marked_card_seat_id="e", last_trick_seat_id="e",
            ),
        )
        assert result.success
        night = result.night
        assert_integrity(night)
        assert night.status == STATUS_CLOSED
        assert night.rounds[3].sitter_ids == ("d",)

        board = eng.get_scoreboard(nid)
        assert board.cumulative == {"a": 12, "b": -5, "c": 0, "d": 12, "e": 21, "f": 18}
        assert board.ranking == ["b", "c", "a", "d", "f", "e"]
        assert eng.get_scoreboard(nid, as_of=2).cumulative["f"] == 18

        summary = eng.get_final_standings(nid)
        assert summary["stilzittersPerRonde"] == {1: ["a", "d"], 2: ["b", "e"], 3: ["c"], 4: ["d"]}
        assert summary["schoppenMieRonde"] == 4

    def test_correction_mid_night(self):
        """A mistyped round is deleted; the rest of the night replays."""
        eng = NightEngine(InMemoryNightRepository(), InMemorySettingsRepository())
        nid = eng.create_night(list("abcd")).night.night_id
        eng.set_start_dealer(nid, "c")

        submit(eng, nid, variant_id="rik", challenger_id="a", partner_id="b", tricks=9,
               doubled=True, doubling_seat_id="d")
        submit(eng, nid, variant_id="piek", challenger_id="d", made=True)
        submit(eng, nid, variant_id="misere", challenger_id="b", made=False)

        result = eng.delete_round(nid, 1)
        assert result.success
        night = result.night
        assert_integrity(night)
        assert [r.variant_name for r in night.rounds] == ["Piek", "Misère"]
        assert [r.dealer_id for r in night.rounds] == ["c", "d"]
        # d lost the token in the deleted round
        assert night.get_seat("d").has_doubling_token
        assert eng.get_scoreboard(nid).cumulative == {"a": 10, "b": -35, "c": 10, "d": 0}


class TestSnapshot:
    def _closed_night(self) -> Night:
        eng = NightEngine(InMemoryNightRepository(), InMemorySettingsRepository())
        nid = eng.create_night(list("abcd")).night.night_id
        eng.set_start_dealer(nid, "a")
        submit(eng, nid, variant_id="rik", challenger_id="a", partner_id="b", tricks=9)
        return eng.submit_closing(
            nid, Declaration(variant_id="schoppen-mie", marked_card_seat_id="c")
        ).night

    def test_json_round_trip(self):
        night = self._closed_night()
        restored = Night.from_dict(json.loads(json.dumps(night.to_dict())))
        assert restored == night
        assert_integrity(restored)

    def test_inspect_validate(self, tmp_path, capsys):
        path = tmp_path / "night.json"
        path.write_text(json.dumps(self._closed_night().to_dict()))
        inspect_state(str(path), show=None, as_of=None, validate=True)
        assert "Stand geldig" in capsys.readouterr().out

    def test_inspect_reports_broken_state(self, tmp_path):
        data = self._closed_night().to_dict()
        data["status"] = "playing"
        path = tmp_path / "night.json"
        path.write_text(json.dumps(data))
        with pytest.raises(SystemExit):
            inspect_state(str(path), show=None, as_of=None, validate=True)

    def test_inspect_scoreboard(self, tmp_path, capsys):
        path = tmp_path / "night.json"
        path.write_text(json.dumps(self._closed_night().to_dict()))
        inspect_state(str(path), show="scoreboard", as_of=1, validate=False)
        out = capsys.readouterr().out
        assert "na ronde 1" in out
        assert out.splitlines()[1].split()[1] == "a"


class TestSimulation:
    @pytest.mark.parametrize("players", [4, 5, 6])
    def test_random_nights_stay_consistent(self, players):
        for seed in range(10):
            result = simulate_night(players, 25, random.Random(seed))
            assert result["error"] is None, result["error"]
            assert result["rounds"] + result["rejected"] == 26
