from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..data import tables
from ..models import EffectiveUnit, MagicItem, OverrideRecord, UnitDefinition
from .overrides import resolve_all


def slot_key(raw_slot: str | None) -> str:
    text = (raw_slot or "").strip()
    if not text:
        return "weapons"
    return tables.SLOT_ALIASES.get(text.casefold(), text.casefold())


def merge_units(
    base: Mapping[str, list[UnitDefinition]],
    custom: Iterable[Mapping[str, Any]] | None,
    default_faction: str = "eonir",
) -> dict[str, list[UnitDefinition]]:
    """Add user-made units to the by-faction catalogue, flagged as custom."""

    merged = {faction: list(units) for faction, units in base.items()}
    for raw in custom or []:
        faction = raw.get("factionId") or raw.get("faction_id") or default_faction
        data = {key: value for key, value in raw.items() if key not in {"factionId", "faction_id"}}
        data["isCustom"] = True
        merged.setdefault(str(faction), []).append(UnitDefinition.model_validate(data))
    return merged


def merge_items(
    base: Mapping[str, list[MagicItem]],
    custom: Iterable[Mapping[str, Any]] | None,
) -> dict[str, list[MagicItem]]:
    merged = {slot: [item.model_copy(deep=True) for item in items] for slot, items in base.items()}
    for raw in custom or []:
        name = raw.get("name")
        if not name:
            continue
        pts = raw.get("pts")
        if pts is None:
            pts = raw.get("ptsCost", 0)
        key = slot_key(raw.get("slot"))
        merged.setdefault(key, []).append(MagicItem(name=str(name), pts=pts or 0))
    return merged


def faction_items_catalog(
    common: Mapping[str, list[MagicItem]] | None,
    army_items: Mapping[str, Mapping[str, list[MagicItem]]] | None,
    faction: str,
    faction_keys: Mapping[str, Iterable[str]] | None = None,
) -> dict[str, list[MagicItem]]:
    """Common items followed by the faction's army items, deduplicated by name per slot."""

    keys = list((faction_keys or tables.FACTION_ARMY_ITEM_KEYS).get(faction, ()))
    catalog: dict[str, list[MagicItem]] = {}
    for slot in tables.MAGIC_ITEM_SLOTS:
        candidates = list((common or {}).get(slot, []))
        for key in keys:
            candidates.extend((army_items or {}).get(key, {}).get(slot, []))
        seen: set[str] = set()
        merged: list[MagicItem] = []
        for item in candidates:
            if item.name in seen:
                continue
            seen.add(item.name)
            merged.append(item)
        catalog[slot] = merged
    return catalog


def faction_units(
    base: Mapping[str, list[UnitDefinition]],
    custom: Mapping[str, list[UnitDefinition]] | None,
    faction: str,
    overrides: Mapping[str, OverrideRecord] | None = None,
) -> list[EffectiveUnit]:
    raw_units = [*base.get(faction, []), *(custom or {}).get(faction, [])]
    return resolve_all(raw_units, overrides)
