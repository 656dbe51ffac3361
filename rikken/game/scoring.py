"""Score aggregation for Rikken.

Totals are always rebuilt from the round log, never kept incrementally,
so deleting or correcting a round only needs a replay.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rikken.game.models import Night, RoundRecord, Seat


@dataclass(frozen=True)
class Aggregation:
    cumulative: dict[str, int]
    per_round: dict[str, dict[int, int]]
    running: dict[str, dict[int, int]]
    ranking: list[str] = field(default_factory=list)

    def total_after(self, seat_id: str, round_number: int) -> int:
        """Cumulative total of a seat after `round_number` (0 before round 1)."""
        totals = self.running.get(seat_id, {})
        eligible = [n for n in totals if n <= round_number]
        return totals[max(eligible)] if eligible else 0


def rank(totals: dict[str, int], seats: list[Seat]) -> list[str]:
    """Seat ids from best to worst: lowest total first, ties by ordinal."""
    return [
        s.seat_id
        for s in sorted(seats, key=lambda s: (totals.get(s.seat_id, 0), s.ordinal))
    ]


def aggregate(
    rounds: list[RoundRecord],
    seats: list[Seat],
    as_of: int | None = None,
) -> Aggregation:
    """Fold the round log into totals, optionally only up to round `as_of`."""
    per_round: dict[str, dict[int, int]] = {s.seat_id: {} for s in seats}
    running: dict[str, dict[int, int]] = {s.seat_id: {} for s in seats}
    cumulative = {s.seat_id: 0 for s in seats}

    for record in sorted(rounds, key=lambda r: r.round_number):
        if as_of is not None and record.round_number > as_of:
            break
        for seat_id, delta in record.deltas.items():
            per_round.setdefault(seat_id, {})[record.round_number] = delta
            cumulative[seat_id] = cumulative.get(seat_id, 0) + delta
        for seat_id, total in cumulative.items():
            running.setdefault(seat_id, {})[record.round_number] = total

    return Aggregation(
        cumulative=cumulative,
        per_round=per_round,
        running=running,
        ranking=rank(cumulative, seats),
    )


def replay_tokens(seats: list[Seat], rounds: list[RoundRecord]) -> dict[str, bool]:
    """Doubling-token state after the given rounds, every seat starting with one."""
    tokens = {s.seat_id: True for s in seats}
    for record in sorted(rounds, key=lambda r: r.round_number):
        if record.token_consumed is not None:
            tokens[record.token_consumed] = False
        if record.token_restored is not None:
            tokens[record.token_restored] = True
    return tokens


def night_summary(night: Night) -> dict:
    """Final-standings data for a night."""
    seats = night.seats_in_order()
    agg = aggregate(night.rounds, seats)
    closing = [r.round_number for r in night.rounds if r.closing]
    return {
        "nightId": night.night_id,
        "datum": night.date,
        "rondes": len(night.rounds),
        "eindstand": [
            {
                "seatId": sid,
                "naam": night.get_seat(sid).name,
                "positie": pos,
                "totaal": agg.cumulative[sid],
            }
            for pos, sid in enumerate(agg.ranking, 1)
        ],
        "stilzittersPerRonde": {
            r.round_number: list(r.sitter_ids) for r in night.rounds if r.sitter_ids
        },
        "verdubbeldeRondes": [r.round_number for r in night.rounds if r.doubled],
        "schoppenMieRonde": closing[-1] if closing else None,
        "status": night.status,
    }
