"""State integrity checker for stored Rikken nights."""

from __future__ import annotations

from collections import Counter

from rikken.game.errors import RoundError
from rikken.game.models import Night
from rikken.game.rotation import rotation_for_round
from rikken.game.scoring import replay_tokens
from rikken.utils.constants import MAX_SEATS, STATUS_CLOSED, STATUS_PLAYING


def validate_night_integrity(night: Night) -> list[str]:
    """Validate all night state invariants. Returns list of errors (empty = OK).

    Checks:
    1. Round numbers run 1..n without gaps
    2. Deltas only name known seats, never a sitter
    3. Only the last round may be a closing round; status matches it
    4. Doubling tokens match a replay of the round log
    5. Start dealer is a known seat once rounds exist
    6. Seat ordinals are unique
    7. No more than 6 active seats
    8. Stored dealer and sitters match the rotation re-derived per round
    """
    errors: list[str] = []
    seat_ids = {s.seat_id for s in night.seats}

    # 1. Sequence numbers
    numbers = [r.round_number for r in night.rounds]
    if numbers != list(range(1, len(numbers) + 1)):
        errors.append(f"Rondenummers niet aaneengesloten: {numbers}")

    # 2. Deltas
    for record in night.rounds:
        unknown = set(record.deltas) - seat_ids
        if unknown:
            errors.append(
                f"Ronde {record.round_number}: punten voor onbekende spelers {sorted(unknown)}"
            )
        for sid in record.sitter_ids:
            if record.deltas.get(sid, 0) != 0:
                errors.append(
                    f"Ronde {record.round_number}: stilzitter {sid} heeft punten"
                )

    # 3. Closing round
    closing = [r.round_number for r in night.rounds if r.closing]
    if closing and closing != [len(night.rounds)]:
        errors.append(f"Schoppen Mie is niet de laatste ronde: {closing}")
    expected_status = STATUS_CLOSED if closing else STATUS_PLAYING
    if night.status != expected_status:
        errors.append(f"Status {night.status}, verwacht {expected_status}")

    # 4. Doubling tokens
    tokens = replay_tokens(night.seats, night.rounds)
    for seat in night.seats:
        if seat.has_doubling_token != tokens[seat.seat_id]:
            errors.append(f"Verdubbelaar van {seat.seat_id} klopt niet met de rondes")

    # 5. Start dealer
    if night.rounds and night.start_dealer_id not in seat_ids:
        errors.append(f"Startdeler {night.start_dealer_id} is geen speler")

    # 6. Ordinals
    for ordinal, count in Counter(s.ordinal for s in night.seats).items():
        if count > 1:
            errors.append(f"Volgorde {ordinal} komt {count} keer voor")

    # 7. Table size
    active = len(night.get_active_seats())
    if active > MAX_SEATS:
        errors.append(f"{active} actieve spelers, maximaal {MAX_SEATS}")

    # 8. Rotation
    if night.start_dealer_id in seat_ids:
        for record in night.rounds:
            try:
                rotation = rotation_for_round(
                    night.seats, night.start_dealer_id, record.round_number
                )
            except (RoundError, ValueError):
                errors.append(f"Ronde {record.round_number}: deler niet af te leiden")
                continue
            if (
                rotation.dealer.seat_id != record.dealer_id
                or rotation.sitter_ids != record.sitter_ids
            ):
                errors.append(
                    f"Ronde {record.round_number}: deler/stilzitters wijken af van de rotatie"
                )

    return errors
