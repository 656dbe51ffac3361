"""Data models for Rikken night state."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from rikken.utils.constants import (
    DEFAULT_SETTINGS,
    KIND_CLOSING,
    KIND_TEAM,
    STATUS_PLAYING,
)


def _number(value) -> int | float:
    """Plain int/float from stored numbers (DynamoDB hands back Decimal)."""
    if value is None:
        return 0
    as_float = float(value)
    return int(as_float) if as_float.is_integer() else as_float


@dataclass(frozen=True)
class PointTable:
    """Payout parameters of one variant. Signs are applied by the resolver."""

    made: float = 0
    overtrick: float = 0
    failed: float = 0
    undertrick: float = 0

    def to_dict(self) -> dict:
        return {
            "gemaakt": self.made,
            "overslag": self.overtrick,
            "nat": self.failed,
            "onderslag": self.undertrick,
        }

    @classmethod
    def from_dict(cls, d: dict) -> PointTable:
        return cls(
            made=_number(d.get("gemaakt")),
            overtrick=_number(d.get("overslag")),
            failed=_number(d.get("nat")),
            undertrick=_number(d.get("onderslag")),
        )


@dataclass(frozen=True)
class Variant:
    """An immutable game type with its own payout rule."""

    variant_id: str
    name: str
    kind: str = KIND_TEAM
    requires_partner: bool = False
    minimum_tricks: int = 0
    doubling_allowed: bool = True
    returns_doubling_token: bool = False
    points: PointTable = field(default_factory=PointTable)

    @property
    def is_closing(self) -> bool:
        return self.kind == KIND_CLOSING

    def to_dict(self) -> dict:
        return {
            "id": self.variant_id,
            "naam": self.name,
            "kind": self.kind,
            "metMaat": self.requires_partner,
            "minimaalSlagen": self.minimum_tricks,
            "verdubbelbaar": self.doubling_allowed,
            "verdubbelaarTerug": self.returns_doubling_token,
            "punten": self.points.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Variant:
        return cls(
            variant_id=str(d["id"]),
            name=d["naam"],
            kind=d.get("kind", KIND_TEAM),
            requires_partner=bool(d.get("metMaat", False)),
            minimum_tricks=int(d.get("minimaalSlagen", 0) or 0),
            doubling_allowed=bool(d.get("verdubbelbaar", True)),
            returns_doubling_token=bool(d.get("verdubbelaarTerug", False)),
            points=PointTable.from_dict(d.get("punten", {})),
        )


@dataclass
class Seat:
    """A player's position at the table for one night.

    `spans` lists the rounds during which the seat was active as
    [first_round, last_round] pairs; an open span has last_round None.
    """

    seat_id: str
    name: str
    ordinal: int
    has_doubling_token: bool = True
    spans: list[list[int | None]] = field(default_factory=lambda: [[1, None]])

    @property
    def active(self) -> bool:
        return bool(self.spans) and self.spans[-1][1] is None

    def is_active_in(self, round_number: int) -> bool:
        for first, last in self.spans:
            if first <= round_number and (last is None or round_number <= last):
                return True
        return False

    def to_dict(self) -> dict:
        return {
            "seatId": self.seat_id,
            "naam": self.name,
            "volgorde": self.ordinal,
            "verdubbelaar": self.has_doubling_token,
            "spans": [list(s) for s in self.spans],
        }

    @classmethod
    def from_dict(cls, d: dict) -> Seat:
        return cls(
            seat_id=d["seatId"],
            name=d.get("naam", d["seatId"]),
            ordinal=int(d["volgorde"]),
            has_doubling_token=d.get("verdubbelaar", True),
            spans=[
                [int(first), int(last) if last is not None else None]
                for first, last in d.get("spans", [[1, None]])
            ],
        )


@dataclass(frozen=True)
class Declaration:
    """Everything entered for one round before it is resolved.

    `outcomes` holds per-seat made/failed flags for Allemaal Piek and
    Meerdere; for Meerdere its keys are the declarants.
    """

    variant_id: str
    challenger_id: str | None = None
    partner_id: str | None = None
    tricks: int | None = None
    made: bool | None = None
    doubled: bool = False
    doubling_seat_id: str | None = None
    outcomes: tuple[tuple[str, bool | None], ...] = ()
    marked_card_seat_id: str | None = None
    last_trick_seat_id: str | None = None

    @property
    def outcome_map(self) -> dict[str, bool | None]:
        return dict(self.outcomes)

    def to_dict(self) -> dict:
        return {
            "variantId": self.variant_id,
            "uitdagerId": self.challenger_id,
            "maatId": self.partner_id,
            "slagen": self.tricks,
            "gemaakt": self.made,
            "verdubbeld": self.doubled,
            "verdubbelaarId": self.doubling_seat_id,
            "resultaten": [[sid, ok] for sid, ok in self.outcomes],
            "schoppenVrouwId": self.marked_card_seat_id,
            "laatsteSlagId": self.last_trick_seat_id,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Declaration:
        return cls(
            variant_id=str(d["variantId"]),
            challenger_id=d.get("uitdagerId"),
            partner_id=d.get("maatId"),
            tricks=int(d["slagen"]) if d.get("slagen") is not None else None,
            made=d.get("gemaakt"),
            doubled=bool(d.get("verdubbeld", False)),
            doubling_seat_id=d.get("verdubbelaarId"),
            outcomes=tuple((sid, ok) for sid, ok in d.get("resultaten", [])),
            marked_card_seat_id=d.get("schoppenVrouwId"),
            last_trick_seat_id=d.get("laatsteSlagId"),
        )


@dataclass(frozen=True)
class RoundResult:
    """Output of the resolver for one round."""

    deltas: dict[str, int]
    winners: tuple[str, ...] = ()
    token_consumed: str | None = None
    token_restored: str | None = None


@dataclass(frozen=True)
class RoundRecord:
    """A resolved round as stored in the night's round log.

    `variant` is the variant as it was when the round was resolved, so a
    replay pays the same points even after the catalog changed.
    """

    round_number: int
    variant_name: str
    declaration: Declaration
    deltas: dict[str, int]
    dealer_id: str
    sitter_ids: tuple[str, ...] = ()
    token_consumed: str | None = None
    token_restored: str | None = None
    closing: bool = False
    variant: Variant | None = None

    @property
    def doubled(self) -> bool:
        return self.declaration.doubled

    def to_dict(self) -> dict:
        return {
            "rondeNummer": self.round_number,
            "spelNaam": self.variant_name,
            "declaratie": self.declaration.to_dict(),
            "punten": dict(self.deltas),
            "delerId": self.dealer_id,
            "stilzitters": list(self.sitter_ids),
            "tokenGebruikt": self.token_consumed,
            "tokenTerug": self.token_restored,
            "afsluitronde": self.closing,
            "spelvorm": self.variant.to_dict() if self.variant else None,
        }

    @classmethod
    def from_dict(cls, d: dict) -> RoundRecord:
        return cls(
            round_number=int(d["rondeNummer"]),
            variant_name=d["spelNaam"],
            declaration=Declaration.from_dict(d["declaratie"]),
            deltas={sid: int(p) for sid, p in d["punten"].items()},
            dealer_id=d["delerId"],
            sitter_ids=tuple(d.get("stilzitters", [])),
            token_consumed=d.get("tokenGebruikt"),
            token_restored=d.get("tokenTerug"),
            closing=bool(d.get("afsluitronde", False)),
            variant=Variant.from_dict(d["spelvorm"]) if d.get("spelvorm") else None,
        )


@dataclass
class Night:
    """Complete state of one game night (maps to one DynamoDB row)."""

    night_id: str
    date: str
    location: str
    seats: list[Seat]
    start_dealer_id: str | None
    rounds: list[RoundRecord]
    status: str
    settings: dict
    updated_at: str
    version: int = 1

    def get_seat(self, seat_id: str) -> Seat | None:
        for seat in self.seats:
            if seat.seat_id == seat_id:
                return seat
        return None

    def seats_in_order(self) -> list[Seat]:
        return sorted(self.seats, key=lambda s: s.ordinal)

    def get_active_seats(self) -> list[Seat]:
        return [s for s in self.seats_in_order() if s.active]

    @property
    def next_round_number(self) -> int:
        return len(self.rounds) + 1

    @property
    def is_closed(self) -> bool:
        return self.status != STATUS_PLAYING

    def to_dict(self) -> dict:
        return {
            "nightId": self.night_id,
            "datum": self.date,
            "locatie": self.location,
            "seats": [s.to_dict() for s in self.seats],
            "startDeler": self.start_dealer_id,
            "rondes": [r.to_dict() for r in self.rounds],
            "status": self.status,
            "settings": self.settings,
            "updatedAt": self.updated_at,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Night:
        return cls(
            night_id=d["nightId"],
            date=d.get("datum", ""),
            location=d.get("locatie", ""),
            seats=[Seat.from_dict(s) for s in d["seats"]],
            start_dealer_id=d.get("startDeler"),
            rounds=[RoundRecord.from_dict(r) for r in d.get("rondes", [])],
            status=d.get("status", STATUS_PLAYING),
            settings=d.get("settings") or dict(DEFAULT_SETTINGS),
            updated_at=d.get("updatedAt", ""),
            version=int(d.get("version", 1)),
        )

    @staticmethod
    def new_night_id() -> str:
        return str(uuid.uuid4())
