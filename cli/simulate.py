"""Simulate Rikken nights with random declarations.

Usage: python -m cli.simulate --nights 100 --players 5 [--rounds 20] [--seed 42] [--verbose]
"""

from __future__ import annotations

import argparse
import random
import time

from rikken.db.memory import InMemoryNightRepository, InMemorySettingsRepository
from rikken.game.engine import NightEngine
from rikken.game.integrity import validate_night_integrity
from rikken.game.models import Declaration, Night, Variant
from rikken.game.resolver import trick_options
from rikken.game.rotation import Rotation
from rikken.utils.constants import (
    KIND_ALL_DECLARE,
    KIND_CLOSING,
    KIND_MULTIPLE,
    KIND_SOLO,
    KIND_STANDARD,
    KIND_TEAM,
    MAX_DECLARANTS,
    MAX_SEATS,
    MIN_DECLARANTS,
    MIN_SEATS,
)


def random_declaration(
    variant: Variant, rotation: Rotation, night: Night, rng: random.Random
) -> Declaration:
    """Build a complete declaration for `variant` among the playing seats."""
    playing = list(rotation.playing_ids)
    challenger = rng.choice(playing)
    kwargs: dict = {"variant_id": variant.variant_id}

    if variant.kind in (KIND_TEAM, KIND_SOLO):
        kwargs["challenger_id"] = challenger
        if variant.requires_partner:
            kwargs["partner_id"] = rng.choice([s for s in playing if s != challenger])
        kwargs["tricks"] = rng.choice(trick_options(variant) or [0])
    elif variant.kind == KIND_STANDARD:
        kwargs["challenger_id"] = challenger
        kwargs["made"] = rng.random() < 0.5
    elif variant.kind == KIND_ALL_DECLARE:
        kwargs["outcomes"] = tuple((sid, rng.random() < 0.5) for sid in playing)
    elif variant.kind == KIND_MULTIPLE:
        size = rng.randint(MIN_DECLARANTS, min(MAX_DECLARANTS, len(playing)))
        kwargs["outcomes"] = tuple(
            (sid, rng.random() < 0.5) for sid in rng.sample(playing, size)
        )

    holders = [
        sid for sid in playing if night.get_seat(sid).has_doubling_token
    ]
    if variant.doubling_allowed and holders and rng.random() < 0.2:
        kwargs["doubled"] = True
        kwargs["doubling_seat_id"] = rng.choice(holders)
    return Declaration(**kwargs)


def closing_declaration(
    variant: Variant, rotation: Rotation, rng: random.Random
) -> Declaration:
    playing = list(rotation.playing_ids)
    return Declaration(
        variant_id=variant.variant_id,
        marked_card_seat_id=rng.choice(playing),
        last_trick_seat_id=rng.choice(playing),
    )


def simulate_night(
    num_players: int, num_rounds: int, rng: random.Random, verbose: bool = False
) -> dict:
    """Simulate one complete night. Returns stats dict."""
    settings_repo = InMemorySettingsRepository()
    engine = NightEngine(InMemoryNightRepository(), settings_repo)

    player_ids = [f"p{i + 1}" for i in range(num_players)]
    result = engine.create_night(
        player_ids, location="sim", settings={"meerdere_enabled": True}
    )
    night = result.night
    assert night is not None
    night = engine.set_start_dealer(night.night_id, rng.choice(player_ids)).night

    variants = settings_repo.list_variants()
    regular = [v for v in variants if v.kind != KIND_CLOSING]
    closing = next(v for v in variants if v.kind == KIND_CLOSING)
    rejected = 0

    for _ in range(num_rounds):
        rotation = engine.get_rotation(night.night_id)
        assert rotation is not None
        variant = rng.choice(regular)
        declaration = random_declaration(variant, rotation, night, rng)
        result = engine.submit_round(night.night_id, declaration)
        if not result.success:
            # Allemaal Piek twice by the same seat, for instance
            rejected += 1
            continue
        night = result.night

        errors = validate_night_integrity(night)
        if errors:
            return {"error": f"Integrity: {errors}", "rounds": len(night.rounds)}

        if verbose and len(night.rounds) % 10 == 0:
            print(f"  Ronde {len(night.rounds)}")

    rotation = engine.get_rotation(night.night_id)
    result = engine.submit_closing(
        night.night_id, closing_declaration(closing, rotation, rng)
    )
    if not result.success:
        return {"error": result.error, "rounds": len(night.rounds)}
    night = result.night

    errors = validate_night_integrity(night)
    if errors:
        return {"error": f"Integrity: {errors}", "rounds": len(night.rounds)}

    board = engine.get_scoreboard(night.night_id)
    return {
        "winner": board.ranking[0],
        "rounds": len(night.rounds),
        "rejected": rejected,
        "scores": dict(board.cumulative),
        "error": None,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Rikken Simulator")
    parser.add_argument("--nights", type=int, default=100)
    parser.add_argument(
        "--players", type=int, default=4, choices=range(MIN_SEATS, MAX_SEATS + 1)
    )
    parser.add_argument("--rounds", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    base_seed = args.seed if args.seed is not None else int(time.time())
    n, p = args.nights, args.players
    print(f"Simulating {n} nights with {p} players (base seed: {base_seed})")

    errors = 0
    wins: dict[str, int] = {}
    total_rounds = 0
    total_rejected = 0

    for i in range(args.nights):
        rng = random.Random(base_seed + i)
        result = simulate_night(args.players, args.rounds, rng, verbose=args.verbose)

        if result.get("error"):
            errors += 1
            if args.verbose:
                print(f"  Avond {i + 1}: ERROR - {result['error']}")
        else:
            winner = result["winner"]
            wins[winner] = wins.get(winner, 0) + 1
            total_rounds += result["rounds"]
            total_rejected += result["rejected"]

            if args.verbose:
                print(
                    f"  Avond {i + 1}: winnaar={winner}, "
                    f"rondes={result['rounds']}, scores={result['scores']}"
                )

        if (i + 1) % 100 == 0 and not args.verbose:
            print(f"  {i + 1}/{args.nights} gespeeld...")

    completed = args.nights - errors
    print("\nResultaten:")
    print(f"  Avonden voltooid: {completed}/{args.nights}")
    print(f"  Fouten: {errors}")
    if completed > 0:
        print(f"  Gemiddeld aantal rondes: {total_rounds / completed:.1f}")
        print(f"  Afgewezen declaraties: {total_rejected}")
        print(f"  Winst per speler: {wins}")


if __name__ == "__main__":
    main()
