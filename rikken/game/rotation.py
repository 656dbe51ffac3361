"""Dealer rotation and sit-out derivation for Rikken.

The dealer moves one seat per round. At a 5-seat table the dealer sits
out; at a 6-seat table the dealer and the seat opposite (3 further) sit
out. Everything here is a pure function of the seat order, the start
dealer and the round number, so any past round can be re-derived.
"""

from __future__ import annotations

from dataclasses import dataclass

from rikken.game.errors import InvalidSeatReference
from rikken.game.models import Seat
from rikken.utils.constants import (
    OPPOSITE_SEAT_OFFSET,
    SEATS_ONE_SITTER,
    SEATS_TWO_SITTERS,
)


@dataclass(frozen=True)
class Rotation:
    dealer: Seat
    sitters: tuple[Seat, ...]
    playing: tuple[Seat, ...]

    @property
    def sitter_ids(self) -> tuple[str, ...]:
        return tuple(s.seat_id for s in self.sitters)

    @property
    def playing_ids(self) -> tuple[str, ...]:
        return tuple(s.seat_id for s in self.playing)


def seats_for_round(seats: list[Seat], round_number: int) -> list[Seat]:
    """Seats that were active during `round_number`, in table order."""
    return sorted(
        (s for s in seats if s.is_active_in(round_number)),
        key=lambda s: s.ordinal,
    )


def dealer_and_sitters(
    active_seats_in_order: list[Seat],
    start_dealer_id: str,
    round_number: int,
) -> Rotation:
    if round_number < 1:
        raise ValueError(f"Rondenummer moet 1 of hoger zijn, niet {round_number}")

    ids = [s.seat_id for s in active_seats_in_order]
    if start_dealer_id not in ids:
        raise InvalidSeatReference(
            "Startdeler zit niet aan tafel",
            seat_id=start_dealer_id,
            round_number=round_number,
        )

    count = len(active_seats_in_order)
    dealer_idx = (ids.index(start_dealer_id) + round_number - 1) % count
    dealer = active_seats_in_order[dealer_idx]

    if count == SEATS_ONE_SITTER:
        sitters: tuple[Seat, ...] = (dealer,)
    elif count == SEATS_TWO_SITTERS:
        opposite = active_seats_in_order[(dealer_idx + OPPOSITE_SEAT_OFFSET) % count]
        sitters = (dealer, opposite)
    else:
        # Fewer than 5 everybody plays; more than 6 is outside the rules.
        sitters = ()

    playing = tuple(s for s in active_seats_in_order if s not in sitters)
    return Rotation(dealer=dealer, sitters=sitters, playing=playing)


def rotation_for_round(
    seats: list[Seat], start_dealer_id: str, round_number: int
) -> Rotation:
    """Rotation for a round using the seat membership valid at that round."""
    return dealer_and_sitters(
        seats_for_round(seats, round_number), start_dealer_id, round_number
    )
