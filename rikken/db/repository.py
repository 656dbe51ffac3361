"""Repository protocol interfaces for Rikken persistence."""

from __future__ import annotations

from typing import Protocol

from rikken.game.models import Night, Variant


class NightRepository(Protocol):
    def get_night(self, night_id: str) -> Night | None:
        ...

    def save_night(self, night: Night) -> None:
        ...

    def delete_night(self, night_id: str) -> None:
        ...


class SettingsRepository(Protocol):
    def get_variant(self, variant_id: str) -> Variant | None:
        ...

    def list_variants(self) -> list[Variant]:
        ...

    def save_variant(self, variant: Variant) -> None:
        ...
