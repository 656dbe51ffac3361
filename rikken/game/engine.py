"""Night engine for Rikken: runs a game night on top of a repository."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rikken.db.repository import NightRepository, SettingsRepository
from rikken.game.closing import resolve_closing
from rikken.game.errors import (
    IncompleteDeclaration,
    RoundAlreadyClosed,
    RoundError,
    VariantUnavailable,
)
from rikken.game.models import Declaration, Night, RoundRecord, Seat, Variant
from rikken.game.resolver import ResolverConfig, RoundContext, RoundResolver
from rikken.game.rotation import Rotation, rotation_for_round
from rikken.game.scoring import Aggregation, aggregate, night_summary, replay_tokens
from rikken.utils.constants import (
    DEFAULT_SETTINGS,
    KIND_ALL_DECLARE,
    MAX_SEATS,
    MIN_SEATS,
    STATUS_CLOSED,
    STATUS_PLAYING,
)

logger = logging.getLogger("rikken.engine")


@dataclass
class ActionResult:
    success: bool
    night: Night | None
    error: str | None = None
    error_code: str | None = None
    events: list[dict] = field(default_factory=list)


class NightEngine:
    """Stateless engine. All state lives in Night / repository."""

    def __init__(
        self, repo: NightRepository, settings_repo: SettingsRepository
    ) -> None:
        self._repo = repo
        self._settings = settings_repo

    def create_night(
        self,
        player_ids: list[str],
        date: str = "",
        location: str = "",
        settings: dict | None = None,
        names: dict[str, str] | None = None,
    ) -> ActionResult:
        """Create a night with its players seated in the given order."""
        if len(player_ids) < MIN_SEATS:
            return ActionResult(
                success=False, night=None,
                error=f"Minimaal {MIN_SEATS} spelers vereist",
            )
        if len(player_ids) > MAX_SEATS:
            return ActionResult(
                success=False, night=None,
                error=f"Maximaal {MAX_SEATS} spelers toegestaan",
            )
        if len(set(player_ids)) != len(player_ids):
            return ActionResult(
                success=False, night=None, error="Speler staat dubbel in de lijst"
            )

        merged = {**DEFAULT_SETTINGS, **(settings or {})}
        try:
            ResolverConfig.from_settings(merged)
        except ValueError as e:
            return ActionResult(success=False, night=None, error=str(e))

        names = names or {}
        night = Night(
            night_id=Night.new_night_id(),
            date=date,
            location=location,
            seats=[
                Seat(seat_id=sid, name=names.get(sid, sid), ordinal=i)
                for i, sid in enumerate(player_ids, 1)
            ],
            start_dealer_id=None,
            rounds=[],
            status=STATUS_PLAYING,
            settings=merged,
            updated_at=self._now(),
        )
        self._repo.save_night(night)
        night = self._repo.get_night(night.night_id)

        event = {
            "event": "night_created",
            "night_id": night.night_id,
            "seats": player_ids,
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, night=night, events=[event])

    def set_start_dealer(self, night_id: str, seat_id: str) -> ActionResult:
        night = self._repo.get_night(night_id)
        if night is None:
            return self._not_found()
        if night.rounds:
            return self._order_locked(night)

        seat = night.get_seat(seat_id)
        if seat is None or not seat.active:
            return ActionResult(
                success=False, night=night,
                error="Deler moet een actieve speler zijn",
            )

        night.start_dealer_id = seat_id
        return self._save(night, {"event": "start_dealer", "seat_id": seat_id})

    def reorder_seats(self, night_id: str, seat_ids: list[str]) -> ActionResult:
        """Set the table order of the active seats. Inactive seats go last.

        Only before the first round: past rotations are derived from it.
        """
        night = self._repo.get_night(night_id)
        if night is None:
            return self._not_found()
        if night.rounds:
            return self._order_locked(night)

        active_ids = [s.seat_id for s in night.get_active_seats()]
        if sorted(seat_ids) != sorted(active_ids):
            return ActionResult(
                success=False, night=night,
                error="Volgorde moet alle actieve spelers precies één keer bevatten",
            )

        inactive = [s for s in night.seats_in_order() if not s.active]
        for ordinal, sid in enumerate(seat_ids, 1):
            night.get_seat(sid).ordinal = ordinal
        for ordinal, seat in enumerate(inactive, len(seat_ids) + 1):
            seat.ordinal = ordinal

        return self._save(night, {"event": "reorder", "order": seat_ids})

    def add_seat(self, night_id: str, seat_id: str, name: str = "") -> ActionResult:
        """Seat a new player. They join from the next round."""
        night = self._repo.get_night(night_id)
        if night is None:
            return self._not_found()
        if night.is_closed:
            return ActionResult(success=False, night=night, error="De avond is afgesloten")
        if night.get_seat(seat_id) is not None:
            return ActionResult(
                success=False, night=night, error="Speler zit al aan tafel"
            )
        if len(night.get_active_seats()) >= MAX_SEATS:
            return ActionResult(
                success=False, night=night,
                error=f"Maximaal {MAX_SEATS} spelers toegestaan",
            )

        ordinal = max((s.ordinal for s in night.seats), default=0) + 1
        night.seats.append(
            Seat(
                seat_id=seat_id,
                name=name or seat_id,
                ordinal=ordinal,
                spans=[[night.next_round_number, None]],
            )
        )
        return self._save(
            night,
            {"event": "seat_added", "seat_id": seat_id, "from_round": night.next_round_number},
        )

    def set_seat_active(self, night_id: str, seat_id: str, active: bool) -> ActionResult:
        """Take a seat out of, or back into, play from the next round on."""
        night = self._repo.get_night(night_id)
        if night is None:
            return self._not_found()

        seat = night.get_seat(seat_id)
        if seat is None:
            return ActionResult(success=False, night=night, error="Speler niet gevonden")
        if seat.active == active:
            return ActionResult(success=True, night=night)

        next_round = night.next_round_number
        if active:
            if len(night.get_active_seats()) >= MAX_SEATS:
                return ActionResult(
                    success=False, night=night,
                    error=f"Maximaal {MAX_SEATS} spelers toegestaan",
                )
            seat.spans.append([next_round, None])
        else:
            if seat_id == night.start_dealer_id:
                return ActionResult(
                    success=False, night=night,
                    error="Kies eerst een andere startdeler",
                )
            if seat.spans[-1][0] >= next_round:
                seat.spans.pop()
            else:
                seat.spans[-1][1] = next_round - 1

        return self._save(
            night,
            {"event": "seat_active", "seat_id": seat_id, "active": active,
             "from_round": next_round},
        )

    def get_rotation(self, night_id: str, round_number: int | None = None) -> Rotation | None:
        """Dealer and sitters for a round (default: the next one)."""
        night = self._repo.get_night(night_id)
        if night is None or night.start_dealer_id is None:
            return None
        n = night.next_round_number if round_number is None else round_number
        if n < 1:
            return None
        try:
            return rotation_for_round(night.seats, night.start_dealer_id, n)
        except RoundError:
            return None

    def submit_round(self, night_id: str, declaration: Declaration) -> ActionResult:
        """Resolve and record the next round."""
        return self._submit(night_id, declaration, closing=False)

    def submit_closing(self, night_id: str, declaration: Declaration) -> ActionResult:
        """Resolve Schoppen Mie and close the night."""
        return self._submit(night_id, declaration, closing=True)

    def delete_round(self, night_id: str, round_number: int) -> ActionResult:
        """Delete a round and re-resolve every later round under its new number.

        Either every later round still resolves and the whole change is
        saved, or nothing changes.
        """
        night = self._repo.get_night(night_id)
        if night is None:
            return self._not_found()
        if not 1 <= round_number <= len(night.rounds):
            return ActionResult(
                success=False, night=night, error=f"Ronde {round_number} bestaat niet"
            )

        later = night.rounds[round_number:]
        night.rounds = night.rounds[: round_number - 1]
        night.status = STATUS_PLAYING
        tokens = replay_tokens(night.seats, night.rounds)
        for seat in night.seats:
            seat.has_doubling_token = tokens[seat.seat_id]

        for old in later:
            try:
                record = self._resolve(
                    night, old.declaration, closing=old.closing, variant=old.variant
                )
            except RoundError as e:
                return self._rejected(self._repo.get_night(night_id), e)
            self._apply(night, record)

        return self._save(
            night,
            {"event": "round_deleted", "round_number": round_number,
             "replayed": len(later)},
        )

    def get_night(self, night_id: str) -> Night | None:
        return self._repo.get_night(night_id)

    def get_scoreboard(self, night_id: str, as_of: int | None = None) -> Aggregation | None:
        night = self._repo.get_night(night_id)
        if night is None:
            return None
        return aggregate(night.rounds, night.seats_in_order(), as_of=as_of)

    def get_final_standings(self, night_id: str) -> dict | None:
        night = self._repo.get_night(night_id)
        if night is None:
            return None
        return night_summary(night)

    # --- Private helpers ---

    def _submit(self, night_id: str, declaration: Declaration, closing: bool) -> ActionResult:
        night = self._repo.get_night(night_id)
        if night is None:
            return self._not_found()

        try:
            record = self._resolve(night, declaration, closing=closing)
        except RoundError as e:
            return self._rejected(night, e)

        self._apply(night, record)
        night.updated_at = self._now()
        self._repo.save_night(night)
        night = self._repo.get_night(night_id)

        events = [{
            "event": "closing_resolved" if closing else "round_resolved",
            "night_id": night_id,
            "round_number": record.round_number,
            "variant": record.variant_name,
            "dealer": record.dealer_id,
            "sitters": list(record.sitter_ids),
            "deltas": record.deltas,
            "doubled": record.doubled,
        }]
        logger.info(json.dumps(events[0]))
        if night.is_closed:
            end_event = {
                "event": "night_closed",
                "night_id": night_id,
                "ranking": aggregate(night.rounds, night.seats_in_order()).ranking,
            }
            events.append(end_event)
            logger.info(json.dumps(end_event))
        return ActionResult(success=True, night=night, events=events)

    def _resolve(
        self,
        night: Night,
        declaration: Declaration,
        closing: bool,
        variant: Variant | None = None,
    ) -> RoundRecord:
        """Resolve a declaration as the next round of `night`. Raises RoundError.

        `variant` replays a stored round with the variant it was played under;
        without it the variant is looked up in the settings repository.
        """
        round_number = night.next_round_number
        if night.is_closed:
            raise RoundAlreadyClosed(
                "De avond is al afgesloten", round_number=round_number
            )
        if night.start_dealer_id is None:
            raise IncompleteDeclaration(
                "Kies eerst wie er begint met delen", round_number=round_number
            )
        if variant is None:
            variant = self._settings.get_variant(declaration.variant_id)
        if variant is None:
            raise VariantUnavailable(
                f"Spelvorm {declaration.variant_id} niet gevonden",
                round_number=round_number,
            )

        rotation = rotation_for_round(night.seats, night.start_dealer_id, round_number)
        context = RoundContext(
            round_number=round_number,
            variant=variant,
            playing_seats=rotation.playing,
        )

        if closing:
            result = resolve_closing(declaration, context)
        else:
            if variant.kind == KIND_ALL_DECLARE and declaration.challenger_id:
                self._check_all_declare_once(night, declaration, context)
            try:
                config = ResolverConfig.from_settings(night.settings)
            except ValueError as e:
                raise VariantUnavailable(str(e), **context.error_kwargs()) from e
            result = RoundResolver(config).resolve(declaration, context)

        return RoundRecord(
            round_number=round_number,
            variant_name=variant.name,
            declaration=declaration,
            deltas=result.deltas,
            dealer_id=rotation.dealer.seat_id,
            sitter_ids=rotation.sitter_ids,
            token_consumed=result.token_consumed,
            token_restored=result.token_restored,
            closing=closing,
            variant=variant,
        )

    @staticmethod
    def _check_all_declare_once(
        night: Night, declaration: Declaration, context: RoundContext
    ) -> None:
        for record in night.rounds:
            if (
                record.declaration.variant_id == declaration.variant_id
                and record.declaration.challenger_id == declaration.challenger_id
            ):
                raise VariantUnavailable(
                    f"{declaration.challenger_id} heeft al {context.variant.name} gedaan",
                    **context.error_kwargs(declaration.challenger_id),
                )

    @staticmethod
    def _apply(night: Night, record: RoundRecord) -> None:
        """Append a resolved round and its token changes in one step."""
        night.rounds.append(record)
        if record.token_consumed is not None:
            night.get_seat(record.token_consumed).has_doubling_token = False
        if record.token_restored is not None:
            night.get_seat(record.token_restored).has_doubling_token = True
        if record.closing:
            night.status = STATUS_CLOSED

    def _save(self, night: Night, event: dict) -> ActionResult:
        night.updated_at = self._now()
        self._repo.save_night(night)
        night = self._repo.get_night(night.night_id)
        event = {**event, "night_id": night.night_id}
        logger.info(json.dumps(event))
        return ActionResult(success=True, night=night, events=[event])

    @staticmethod
    def _rejected(night: Night | None, error: RoundError) -> ActionResult:
        logger.warning(json.dumps({"event": "round_rejected", **error.to_dict()}))
        return ActionResult(
            success=False, night=night, error=error.message, error_code=error.code
        )

    @staticmethod
    def _order_locked(night: Night) -> ActionResult:
        return ActionResult(
            success=False, night=night,
            error="Deler en volgorde liggen vast zodra er een ronde is gespeeld",
        )

    @staticmethod
    def _not_found() -> ActionResult:
        return ActionResult(success=False, night=None, error="Avond niet gevonden")

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
