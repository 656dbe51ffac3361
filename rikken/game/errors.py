"""Round resolution errors.

All of these are recoverable: the caller decides whether to ask for a
corrected declaration or to abandon the round.
"""

from __future__ import annotations


class RoundError(Exception):
    """Base class for rejected declarations."""

    code = "round_error"

    def __init__(
        self,
        message: str,
        seat_id: str | None = None,
        round_number: int | None = None,
        variant_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.seat_id = seat_id
        self.round_number = round_number
        self.variant_name = variant_name

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "seatId": self.seat_id,
            "roundNumber": self.round_number,
            "variantName": self.variant_name,
        }


class InvalidSeatReference(RoundError):
    code = "invalid_seat_reference"


class IncompleteDeclaration(RoundError):
    code = "incomplete_declaration"


class InvalidParticipantCount(RoundError):
    code = "invalid_participant_count"


class NoDoublingTokenAvailable(RoundError):
    code = "no_doubling_token"


class RoundAlreadyClosed(RoundError):
    code = "round_already_closed"


class VariantUnavailable(RoundError):
    code = "variant_unavailable"
