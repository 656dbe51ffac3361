"""Inspect and validate a saved night.

Usage:
  python -m cli.inspect_state --file night_snapshot.json
  python -m cli.inspect_state --file night_snapshot.json --show scoreboard
  python -m cli.inspect_state --file night_snapshot.json --show scoreboard --round 5
  python -m cli.inspect_state --file night_snapshot.json --show rounds
  python -m cli.inspect_state --file night_snapshot.json --validate
"""

from __future__ import annotations

import argparse
import json
import sys

from rikken.game.integrity import validate_night_integrity
from rikken.game.models import Night
from rikken.game.scoring import aggregate


def inspect_state(
    file_path: str,
    show: str | None,
    as_of: int | None,
    validate: bool,
) -> None:
    with open(file_path) as f:
        data = json.load(f)

    night = Night.from_dict(data)

    if validate:
        errors = validate_night_integrity(night)
        if errors:
            print("Integriteitsfouten:")
            for e in errors:
                print(f"  - {e}")
            sys.exit(1)
        else:
            print("Stand geldig ✓")
        return

    seats = night.seats_in_order()

    if show == "scoreboard":
        agg = aggregate(night.rounds, seats, as_of=as_of)
        label = f"na ronde {as_of}" if as_of else "totaal"
        print(f"Stand ({label}):")
        for pos, sid in enumerate(agg.ranking, 1):
            seat = night.get_seat(sid)
            print(f"  {pos}. {seat.name:<12} {agg.cumulative[sid]:>6}")
        return

    if show == "rounds":
        if not night.rounds:
            print("Nog geen rondes gespeeld")
            return
        for r in night.rounds:
            marks = " x2" if r.doubled else ""
            sitters = ",".join(r.sitter_ids) or "-"
            deltas = " ".join(f"{sid}:{p:+d}" for sid, p in r.deltas.items() if p)
            print(
                f"  {r.round_number:3d}. {r.variant_name:<16} deler={r.dealer_id} "
                f"stil={sitters}{marks}  {deltas}"
            )
        return

    # Default: full dump
    print(f"Night ID: {night.night_id}")
    print(f"Datum: {night.date}  Locatie: {night.location}")
    print(f"Status: {night.status}")
    print(f"Startdeler: {night.start_dealer_id}")
    print(f"Rondes: {len(night.rounds)}")
    print("Spelers:")
    for s in seats:
        status = "actief" if s.active else "inactief"
        token = "verdubbelaar" if s.has_doubling_token else "geen verdubbelaar"
        print(f"  {s.ordinal}. {s.name} ({status}, {token})")


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect Rikken night state")
    parser.add_argument("--file", required=True, help="Path to night state JSON")
    parser.add_argument("--show", choices=["scoreboard", "rounds"], help="What to show")
    parser.add_argument("--round", type=int, dest="as_of", help="Scoreboard as of round")
    parser.add_argument("--validate", action="store_true", help="Validate integrity")
    args = parser.parse_args()
    inspect_state(args.file, args.show, args.as_of, args.validate)


if __name__ == "__main__":
    main()
