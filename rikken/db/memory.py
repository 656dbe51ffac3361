"""In-memory repository implementations for testing and local CLI."""

from __future__ import annotations

import copy

from rikken.game.catalog import DEFAULT_VARIANTS
from rikken.game.models import Night, Variant


class InMemoryNightRepository:
    def __init__(self) -> None:
        self._nights: dict[str, Night] = {}

    def get_night(self, night_id: str) -> Night | None:
        night = self._nights.get(night_id)
        if night is None:
            return None
        return copy.deepcopy(night)

    def save_night(self, night: Night) -> None:
        existing = self._nights.get(night.night_id)
        if existing is not None and existing.version != night.version:
            raise ValueError(
                f"Version conflict: expected {night.version}, found {existing.version}"
            )
        saved = copy.deepcopy(night)
        saved.version = night.version + 1
        self._nights[night.night_id] = saved

    def delete_night(self, night_id: str) -> None:
        self._nights.pop(night_id, None)


class InMemorySettingsRepository:
    def __init__(self, variants: list[Variant] | None = None) -> None:
        source = DEFAULT_VARIANTS if variants is None else variants
        self._variants: dict[str, Variant] = {v.variant_id: v for v in source}

    def get_variant(self, variant_id: str) -> Variant | None:
        return self._variants.get(variant_id)

    def list_variants(self) -> list[Variant]:
        return sorted(self._variants.values(), key=lambda v: v.name)

    def save_variant(self, variant: Variant) -> None:
        self._variants[variant.variant_id] = variant
