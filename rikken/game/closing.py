"""Schoppen Mie, the closing round of a night.

The seat holding the queen of spades and the seat taking the last trick
are each paid the made amount. When one seat does both, it gets four
times the made amount instead.
"""

from __future__ import annotations

from rikken.game.errors import RoundAlreadyClosed, VariantUnavailable
from rikken.game.models import Declaration, RoundResult
from rikken.game.resolver import (
    RoundContext,
    build_result,
    doubling_multiplier,
    require_playing_seat,
    round_half_up,
)
from rikken.utils.constants import CLOSING_STACK_FACTOR


def resolve_closing(declaration: Declaration, context: RoundContext) -> RoundResult:
    if context.closed:
        raise RoundAlreadyClosed(
            "De avond is al afgesloten", **context.error_kwargs()
        )
    if not context.variant.is_closing:
        raise VariantUnavailable(
            f"{context.variant.name} is geen afsluitronde", **context.error_kwargs()
        )

    multiplier = doubling_multiplier(declaration, context)
    marked = declaration.marked_card_seat_id
    last = declaration.last_trick_seat_id
    if marked is not None:
        require_playing_seat(marked, context, "schoppen vrouw")
    if last is not None:
        require_playing_seat(last, context, "laatste slag")

    made = context.point_table.made
    deltas = {sid: 0 for sid in context.playing_ids}
    if marked is not None and marked == last:
        deltas[marked] = round_half_up(made * CLOSING_STACK_FACTOR * multiplier)
        winners: tuple[str, ...] = (marked,)
    else:
        winners = tuple(sid for sid in (marked, last) if sid is not None)
        for sid in winners:
            deltas[sid] += round_half_up(made * multiplier)

    return build_result(deltas, winners, declaration, context.variant)
