"""Default variant catalog and loaders for stored settings rows.

The kind of a variant is decided here, once, when settings are loaded.
Nothing downstream looks at variant names to decide behaviour.
"""

from __future__ import annotations

from rikken.game.models import PointTable, Variant
from rikken.utils.constants import (
    KIND_ALL_DECLARE,
    KIND_CLOSING,
    KIND_MULTIPLE,
    KIND_SOLO,
    KIND_STANDARD,
    KIND_TEAM,
    VARIANT_ALLEMAAL_PIEK,
    VARIANT_KINDS,
    VARIANT_SCHOPPEN_MIE,
)


def _team(variant_id: str, name: str, minimum: int, made: int) -> Variant:
    return Variant(
        variant_id=variant_id,
        name=name,
        kind=KIND_TEAM,
        requires_partner=True,
        minimum_tricks=minimum,
        returns_doubling_token=True,
        points=PointTable(made=made, overtrick=1, failed=made, undertrick=1),
    )


def _solo(tricks: int) -> Variant:
    made = 5 + 2 * (tricks - 8)
    return Variant(
        variant_id=f"alleen-{tricks}",
        name=f"{tricks} alleen",
        kind=KIND_SOLO,
        minimum_tricks=tricks,
        returns_doubling_token=True,
        points=PointTable(made=made, overtrick=1, failed=2 * made, undertrick=1),
    )


def _flag(variant_id: str, name: str, kind: str, made: int, **kwargs) -> Variant:
    return Variant(
        variant_id=variant_id,
        name=name,
        kind=kind,
        points=PointTable(made=made),
        **kwargs,
    )


DEFAULT_VARIANTS: tuple[Variant, ...] = (
    _team("rik", "Rik", 7, 5),
    _team("rik-2", "Rik 2", 8, 6),
    _team("rik-3", "Rik 3", 9, 7),
    *(_solo(n) for n in range(8, 14)),
    _flag("piek", "Piek", KIND_STANDARD, 10),
    _flag("misere", "Misère", KIND_STANDARD, 15),
    _flag("open-piek", "Open Piek", KIND_STANDARD, 20),
    _flag("open-misere", "Open Misère", KIND_STANDARD, 30),
    _flag("allemaal-piek", VARIANT_ALLEMAAL_PIEK, KIND_ALL_DECLARE, 5),
    _flag("meerdere-piek", "Meerdere Piek", KIND_MULTIPLE, 10),
    _flag("meerdere-misere", "Meerdere Misère", KIND_MULTIPLE, 15),
    _flag(
        "schoppen-mie", VARIANT_SCHOPPEN_MIE, KIND_CLOSING, 5,
        minimum_tricks=0,
    ),
)


def default_variants() -> dict[str, Variant]:
    return {v.variant_id: v for v in DEFAULT_VARIANTS}


def classify_row(row: dict) -> str:
    """Pick the kind for a settings row that predates the explicit kind column.

    Rows written by the old settings pages only carry a name and the
    with-partner flag, so the naming convention of those pages is the
    only information available.
    """
    if row.get("kind"):
        return row["kind"]
    name = row.get("naam", "")
    if row.get("met_maat"):
        return KIND_TEAM
    if name == VARIANT_SCHOPPEN_MIE:
        return KIND_CLOSING
    if name == VARIANT_ALLEMAAL_PIEK:
        return KIND_ALL_DECLARE
    if name.startswith("Meerdere"):
        return KIND_MULTIPLE
    if "alleen" in name:
        return KIND_SOLO
    if "Rik" in name:
        return KIND_TEAM
    return KIND_STANDARD


def variant_from_row(row: dict) -> Variant:
    """Build a Variant from a joined spel_settings + punten_settings row."""
    kind = classify_row(row)
    if kind not in VARIANT_KINDS:
        raise ValueError(f"Onbekende spelvorm-soort: {kind}")
    return Variant(
        variant_id=str(row["id"]),
        name=row["naam"],
        kind=kind,
        requires_partner=bool(row.get("met_maat", False)),
        minimum_tricks=int(row.get("minimaal_slagen") or 0),
        doubling_allowed=bool(row.get("verdubbelbaar", True)),
        returns_doubling_token=bool(
            row.get("verdubbelaar_terug", kind in (KIND_TEAM, KIND_SOLO))
        ),
        points=PointTable(
            made=row.get("gemaakt") or 0,
            overtrick=row.get("overslag") or 0,
            failed=row.get("nat") or 0,
            undertrick=row.get("onderslag") or 0,
        ),
    )


def variants_from_rows(rows: list[dict]) -> dict[str, Variant]:
    variants = [variant_from_row(r) for r in rows]
    return {v.variant_id: v for v in variants}
