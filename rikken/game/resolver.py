"""Round resolution for Rikken.

Turns one round's declaration into point deltas per seat. Which payout
rule applies is decided by `Variant.kind`:

- team_declared: challenger (+ partner) against the other playing seats,
  paid on tricks over/under the variant minimum
- solo_only: as team_declared, challenger alone, failures count triple
- standard: Piek, Misère and the open variants, resolved by a made flag
- all_declare: Allemaal Piek, every playing seat has its own outcome
- multiple: Meerdere, 2 to 4 declarants each with their own outcome

The closing round has its own rule, see `rikken.game.closing`.

Nothing here mutates its inputs. Doubling-token changes are reported in
the result and applied by the caller together with the round itself.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from rikken.game.errors import (
    IncompleteDeclaration,
    InvalidParticipantCount,
    InvalidSeatReference,
    NoDoublingTokenAvailable,
    RoundAlreadyClosed,
    VariantUnavailable,
)
from rikken.game.models import Declaration, PointTable, RoundResult, Seat, Variant
from rikken.utils.constants import (
    DOUBLING_FACTOR,
    KIND_ALL_DECLARE,
    KIND_MULTIPLE,
    KIND_SOLO,
    KIND_STANDARD,
    KIND_TEAM,
    MAX_DECLARANTS,
    MIN_DECLARANTS,
    SETTLE_CREDIT_DECLARANTS,
    SETTLE_DEBIT_OTHERS,
    SETTLEMENT_POLICIES,
    SOLO_FACTOR,
    TOTAL_TRICKS,
    TRICK_OPTION_SPREAD,
)


@dataclass(frozen=True)
class RoundContext:
    """Everything the resolver needs besides the declaration itself."""

    round_number: int
    variant: Variant
    playing_seats: tuple[Seat, ...]
    closed: bool = False
    points: PointTable | None = None

    @property
    def point_table(self) -> PointTable:
        return self.points if self.points is not None else self.variant.points

    @property
    def playing_ids(self) -> tuple[str, ...]:
        return tuple(s.seat_id for s in self.playing_seats)

    def seat(self, seat_id: str) -> Seat | None:
        for s in self.playing_seats:
            if s.seat_id == seat_id:
                return s
        return None

    def error_kwargs(self, seat_id: str | None = None) -> dict:
        return {
            "seat_id": seat_id,
            "round_number": self.round_number,
            "variant_name": self.variant.name,
        }


@dataclass(frozen=True)
class ResolverConfig:
    """House-rule switches that change how rounds are paid out."""

    multiple_enabled: bool = False
    multiple_settlement: str = SETTLE_DEBIT_OTHERS
    all_declare_success_credit: bool = False

    def __post_init__(self) -> None:
        if self.multiple_settlement not in SETTLEMENT_POLICIES:
            raise ValueError(
                f"Onbekende afrekening voor Meerdere: {self.multiple_settlement}"
            )

    @classmethod
    def from_settings(cls, settings: dict | None) -> ResolverConfig:
        settings = settings or {}
        return cls(
            multiple_enabled=bool(settings.get("meerdere_enabled", False)),
            multiple_settlement=settings.get(
                "meerdere_settlement", SETTLE_DEBIT_OTHERS
            ),
            all_declare_success_credit=bool(
                settings.get("allemaal_piek_success_credit", False)
            ),
        )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf (like Math.round)."""
    return int(math.floor(value + 0.5))


def trick_options(variant: Variant) -> list[int]:
    """Trick counts offered for a variant: its minimum plus or minus 5."""
    if not variant.minimum_tricks:
        return []
    low = max(variant.minimum_tricks - TRICK_OPTION_SPREAD, 0)
    high = min(variant.minimum_tricks + TRICK_OPTION_SPREAD, TOTAL_TRICKS)
    return list(range(low, high + 1))


def require_playing_seat(
    seat_id: str | None, context: RoundContext, role: str
) -> str:
    if seat_id is None:
        raise IncompleteDeclaration(
            f"Geen {role} opgegeven", **context.error_kwargs()
        )
    if context.seat(seat_id) is None:
        raise InvalidSeatReference(
            f"{role.capitalize()} {seat_id} speelt deze ronde niet mee",
            **context.error_kwargs(seat_id),
        )
    return seat_id


def doubling_multiplier(declaration: Declaration, context: RoundContext) -> int:
    """Validate the doubling part of a declaration and return its multiplier."""
    if not declaration.doubled:
        if declaration.doubling_seat_id is not None:
            raise IncompleteDeclaration(
                "Verdubbelaar opgegeven maar niet verdubbeld",
                **context.error_kwargs(declaration.doubling_seat_id),
            )
        return 1

    if not context.variant.doubling_allowed:
        raise VariantUnavailable(
            f"{context.variant.name} kan niet verdubbeld worden",
            **context.error_kwargs(),
        )
    seat_id = require_playing_seat(
        declaration.doubling_seat_id, context, "verdubbelaar"
    )
    if not context.seat(seat_id).has_doubling_token:
        raise NoDoublingTokenAvailable(
            f"{seat_id} heeft geen verdubbelaar meer",
            **context.error_kwargs(seat_id),
        )
    return DOUBLING_FACTOR


def build_result(
    deltas: dict[str, int],
    winners: tuple[str, ...],
    declaration: Declaration,
    variant: Variant,
) -> RoundResult:
    consumed = declaration.doubling_seat_id if declaration.doubled else None
    restored = None
    if consumed is not None and variant.returns_doubling_token and consumed in winners:
        restored = consumed
    return RoundResult(
        deltas=deltas,
        winners=winners,
        token_consumed=consumed,
        token_restored=restored,
    )


# --- Meerdere settlement policies ---

SettlementPolicy = Callable[[dict[str, bool], list[str], int], dict[str, int]]


def _settle_debit_others(
    outcomes: dict[str, bool], others: list[str], amount: int
) -> dict[str, int]:
    deltas: dict[str, int] = {}
    for seat_id, made in outcomes.items():
        if made:
            for other in others:
                deltas[other] = deltas.get(other, 0) - amount
        else:
            deltas[seat_id] = deltas.get(seat_id, 0) - amount
    return deltas


def _settle_credit_declarants(
    outcomes: dict[str, bool], others: list[str], amount: int
) -> dict[str, int]:
    return {
        seat_id: amount if made else -amount
        for seat_id, made in outcomes.items()
    }


SETTLEMENTS: dict[str, SettlementPolicy] = {
    SETTLE_DEBIT_OTHERS: _settle_debit_others,
    SETTLE_CREDIT_DECLARANTS: _settle_credit_declarants,
}


class RoundResolver:
    """Resolves declarations under one fixed set of house rules."""

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self._config = config or ResolverConfig()
        self._handlers = {
            KIND_TEAM: self._resolve_tricks,
            KIND_SOLO: self._resolve_tricks,
            KIND_STANDARD: self._resolve_flag,
            KIND_ALL_DECLARE: self._resolve_all_declare,
            KIND_MULTIPLE: self._resolve_multiple,
        }

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def resolve(self, declaration: Declaration, context: RoundContext) -> RoundResult:
        variant = context.variant
        if context.closed:
            raise RoundAlreadyClosed(
                "De avond is al afgesloten", **context.error_kwargs()
            )
        if declaration.variant_id != variant.variant_id:
            raise IncompleteDeclaration(
                f"Declaratie hoort bij spelvorm {declaration.variant_id}",
                **context.error_kwargs(),
            )
        handler = self._handlers.get(variant.kind)
        if handler is None:
            raise VariantUnavailable(
                f"{variant.name} wordt niet als gewone ronde afgerekend",
                **context.error_kwargs(),
            )

        multiplier = doubling_multiplier(declaration, context)
        deltas, winners = handler(declaration, context, multiplier)
        full = {sid: deltas.get(sid, 0) for sid in context.playing_ids}
        return build_result(full, winners, declaration, variant)

    # --- Branches ---

    def _resolve_tricks(
        self, declaration: Declaration, context: RoundContext, multiplier: int
    ) -> tuple[dict[str, int], tuple[str, ...]]:
        variant = context.variant
        points = context.point_table
        challenger = require_playing_seat(
            declaration.challenger_id, context, "uitdager"
        )
        partner = declaration.partner_id

        if variant.kind == KIND_SOLO and partner is not None:
            raise InvalidParticipantCount(
                f"{variant.name} wordt zonder maat gespeeld",
                **context.error_kwargs(partner),
            )
        if variant.requires_partner and partner is None:
            raise InvalidParticipantCount(
                f"{variant.name} vereist een maat", **context.error_kwargs(challenger)
            )
        if partner is not None:
            require_playing_seat(partner, context, "maat")
            if partner == challenger:
                raise InvalidSeatReference(
                    "Uitdager kan niet zijn eigen maat zijn",
                    **context.error_kwargs(partner),
                )

        declarers = (challenger,) if partner is None else (challenger, partner)
        opponents = tuple(sid for sid in context.playing_ids if sid not in declarers)

        tricks = declaration.tricks
        if tricks is not None:
            if not 0 <= tricks <= TOTAL_TRICKS:
                raise IncompleteDeclaration(
                    f"Aantal slagen moet tussen 0 en {TOTAL_TRICKS} liggen",
                    **context.error_kwargs(challenger),
                )
            success = tricks > variant.minimum_tricks
            over = max(0, tricks - variant.minimum_tricks)
            under = max(0, variant.minimum_tricks - tricks)
        elif declaration.made is not None:
            success = declaration.made
            over = under = 0
        else:
            raise IncompleteDeclaration(
                "Aantal slagen of gemaakt/nat ontbreekt",
                **context.error_kwargs(challenger),
            )

        if success:
            amount = round_half_up((points.made + points.overtrick * over) * multiplier)
            return {sid: amount for sid in opponents}, declarers

        # A partner-requiring variant always has one by now, so a missing
        # partner means the challenger played alone.
        solo = SOLO_FACTOR if partner is None else 1
        penalty = round_half_up(
            (points.failed + points.undertrick * under) * solo * multiplier
        )
        return {sid: -penalty for sid in declarers}, opponents

    def _resolve_flag(
        self, declaration: Declaration, context: RoundContext, multiplier: int
    ) -> tuple[dict[str, int], tuple[str, ...]]:
        challenger = require_playing_seat(
            declaration.challenger_id, context, "uitdager"
        )
        if declaration.partner_id is not None:
            raise InvalidParticipantCount(
                f"{context.variant.name} wordt zonder maat gespeeld",
                **context.error_kwargs(declaration.partner_id),
            )
        if declaration.made is None:
            raise IncompleteDeclaration(
                "Gemaakt of nat ontbreekt", **context.error_kwargs(challenger)
            )

        made = context.point_table.made
        others = tuple(sid for sid in context.playing_ids if sid != challenger)
        if declaration.made:
            amount = round_half_up(made * multiplier)
            return {sid: amount for sid in others}, (challenger,)
        penalty = round_half_up(made * SOLO_FACTOR * multiplier)
        return {challenger: -penalty}, others

    def _resolve_all_declare(
        self, declaration: Declaration, context: RoundContext, multiplier: int
    ) -> tuple[dict[str, int], tuple[str, ...]]:
        if declaration.challenger_id is not None:
            require_playing_seat(declaration.challenger_id, context, "uitdager")
        outcomes = declaration.outcome_map
        for seat_id in outcomes:
            if context.seat(seat_id) is None:
                raise InvalidSeatReference(
                    f"{seat_id} speelt deze ronde niet mee",
                    **context.error_kwargs(seat_id),
                )
        for seat_id in context.playing_ids:
            if outcomes.get(seat_id) is None:
                raise IncompleteDeclaration(
                    f"Nog geen gemaakt/nat gekozen voor {seat_id}",
                    **context.error_kwargs(seat_id),
                )

        amount = round_half_up(context.point_table.made * multiplier)
        credit = amount if self._config.all_declare_success_credit else 0
        deltas = {
            sid: credit if outcomes[sid] else -amount for sid in context.playing_ids
        }
        winners = tuple(sid for sid in context.playing_ids if outcomes[sid])
        return deltas, winners

    def _resolve_multiple(
        self, declaration: Declaration, context: RoundContext, multiplier: int
    ) -> tuple[dict[str, int], tuple[str, ...]]:
        if not self._config.multiple_enabled:
            raise VariantUnavailable(
                "Meerdere staat uit voor deze avond", **context.error_kwargs()
            )
        outcomes = declaration.outcome_map
        if not MIN_DECLARANTS <= len(outcomes) <= MAX_DECLARANTS:
            raise InvalidParticipantCount(
                f"Meerdere vereist {MIN_DECLARANTS} tot {MAX_DECLARANTS} "
                f"deelnemers, niet {len(outcomes)}",
                **context.error_kwargs(),
            )
        for seat_id, made in outcomes.items():
            require_playing_seat(seat_id, context, "deelnemer")
            if not isinstance(made, bool):
                raise IncompleteDeclaration(
                    f"Nog geen gemaakt/nat gekozen voor {seat_id}",
                    **context.error_kwargs(seat_id),
                )

        others = [sid for sid in context.playing_ids if sid not in outcomes]
        amount = round_half_up(context.point_table.made * multiplier)
        policy = SETTLEMENTS[self._config.multiple_settlement]
        deltas = policy(outcomes, others, amount)

        winners = tuple(sid for sid, made in outcomes.items() if made)
        if not winners:
            winners = tuple(others)
        return deltas, winners


def resolve_round(
    declaration: Declaration,
    context: RoundContext,
    config: ResolverConfig | None = None,
) -> RoundResult:
    return RoundResolver(config).resolve(declaration, context)


def settle(deltas: dict[str, int], playing_ids: tuple[str, ...] | list[str]) -> dict[str, int]:
    """Zero-sum view of a round.

    The seats with a nonzero delta are the ones charged; their total is
    spread evenly over the playing seats left at zero, any remainder
    going one point each in seat order. Rounds where every playing seat
    was charged (or none was) are returned unchanged.
    """
    charged = [sid for sid in playing_ids if deltas.get(sid, 0) != 0]
    counterparties = [sid for sid in playing_ids if deltas.get(sid, 0) == 0]
    if not charged or not counterparties:
        return dict(deltas)

    total = sum(deltas[sid] for sid in charged)
    share, remainder = divmod(-total, len(counterparties))
    settled = dict(deltas)
    for i, sid in enumerate(counterparties):
        settled[sid] = share + (1 if i < remainder else 0)
    return settled
