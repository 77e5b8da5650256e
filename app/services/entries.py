from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from .. import config
from ..data import tables
from ..models import (
    Ammunition,
    ArmyList,
    ArmyListEntry,
    MagicItem,
    RelicForm,
    UnitDefinition,
    UpgradeType,
)
from . import costs
from .policy import BuilderPolicy, resolve_policy
from .slots import sprites_spent

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def _recosted(
    entry: ArmyListEntry,
    unit: UnitDefinition | None,
    policy: BuilderPolicy | None,
) -> ArmyListEntry:
    if unit is None:
        logger.debug("Unit %s not found, keeping cost of %s", entry.unit_id, entry.entry_id)
        return entry
    entry.pts_cost = costs.compute_entry_cost(unit, entry, policy)
    return entry


def new_entry(
    unit: UnitDefinition,
    model_count: int | None = None,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    count = model_count or unit.min_size or 1
    entry = ArmyListEntry(
        entry_id=_new_id("entry"),
        unit_id=unit.id,
        unit_name=unit.name,
        model_count=count,
        is_character=unit.is_character,
        category=unit.category,
        active_upgrades=[upgrade.id for upgrade in unit.upgrades if upgrade.default],
        magic_items={} if unit.is_character else None,
        command_magic_items={},
        relic_form="basic" if unit.relic is not None else None,
    )
    return _recosted(entry, unit, policy)


def update_entry(
    entry: ArmyListEntry,
    unit: UnitDefinition | None,
    policy: BuilderPolicy | None = None,
    **changes: Any,
) -> ArmyListEntry:
    """Return a copy of ``entry`` with ``changes`` applied and its cost recomputed."""

    data = entry.model_dump()
    data.update(changes)
    updated = ArmyListEntry.model_validate(data)
    return _recosted(updated, unit, policy)


def set_model_count(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    model_count: int,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    return update_entry(entry, unit, policy, model_count=max(int(model_count), 1))


def toggle_upgrade(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    upgrade_id: str,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    """Switch one upgrade on or off.

    Turning an upgrade off also drops the command items bought through it.
    Turning one on is refused when it would overflow the sprites pool, and
    deselects exclusive siblings of the same type.
    """

    upgrade = next((item for item in unit.upgrades if item.id == upgrade_id), None)
    if upgrade is None:
        return entry
    active = list(entry.active_upgrades)

    if upgrade_id in active:
        changes: dict[str, Any] = {"active_upgrades": [item for item in active if item != upgrade_id]}
        if upgrade.magic is not None and upgrade_id in entry.command_magic_items:
            command_items = {
                key: value
                for key, value in entry.command_magic_items.items()
                if key != upgrade_id
            }
            changes["command_magic_items"] = command_items
        return update_entry(entry, unit, policy, **changes)

    if upgrade.type == UpgradeType.SPRITES:
        pool = resolve_policy(policy).sprites_budget
        if sprites_spent(unit, active) + (upgrade.pts or 0) > pool:
            return entry

    next_active = active + [upgrade_id]
    if upgrade.exclusive:
        siblings = {
            item.id
            for item in unit.upgrades
            if item.exclusive and item.type == upgrade.type and item.id != upgrade_id
        }
        next_active = [item for item in next_active if item not in siblings]
    return update_entry(entry, unit, policy, active_upgrades=next_active)


def equip_magic_item(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    slot: str,
    item: MagicItem,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    items = dict(entry.magic_items or {})
    items[slot] = item
    return update_entry(entry, unit, policy, magic_items=items)


def remove_magic_item(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    slot: str,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    items = dict(entry.magic_items or {})
    items.pop(slot, None)
    return update_entry(entry, unit, policy, magic_items=items)


def set_command_item(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    upgrade_id: str,
    slot: str,
    item: MagicItem | None,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    command_items = {key: dict(value) for key, value in entry.command_magic_items.items()}
    bucket = command_items.setdefault(upgrade_id, {})
    if item is None:
        bucket.pop(slot, None)
    else:
        bucket[slot] = item
    return update_entry(entry, unit, policy, command_magic_items=command_items)


def set_ammo(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    ammo: Ammunition | None,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    return update_entry(entry, unit, policy, ammo=ammo)


def set_arrows(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    arrow_name: str | None,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    """Pick one of the enchanted arrows by name; unknown names clear the choice."""

    arrow = tables.arrow_by_name(arrow_name)
    ammo = Ammunition.model_validate(arrow.payload()) if arrow is not None else None
    return set_ammo(entry, unit, ammo, policy)


def set_relic_form(
    entry: ArmyListEntry,
    unit: UnitDefinition,
    relic_form: RelicForm | None,
    policy: BuilderPolicy | None = None,
) -> ArmyListEntry:
    return update_entry(entry, unit, policy, relic_form=relic_form)


def create_list(
    name: str,
    faction: str,
    points_limit: Any = None,
) -> ArmyList:
    try:
        limit = int(points_limit)
    except (TypeError, ValueError):
        limit = 0
    return ArmyList(
        id=_new_id("list"),
        name=name,
        faction=faction,
        points_limit=limit or config.DEFAULT_POINTS_LIMIT,
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def add_unit(
    army_list: ArmyList,
    unit: UnitDefinition,
    model_count: int | None = None,
    policy: BuilderPolicy | None = None,
) -> ArmyList:
    entry = new_entry(unit, model_count, policy)
    return army_list.model_copy(update={"entries": [*army_list.entries, entry]})


def replace_entry(army_list: ArmyList, entry: ArmyListEntry) -> ArmyList:
    entries = [entry if item.entry_id == entry.entry_id else item for item in army_list.entries]
    return army_list.model_copy(update={"entries": entries})


def remove_entry(army_list: ArmyList, entry_id: str) -> ArmyList:
    entries = [item for item in army_list.entries if item.entry_id != entry_id]
    return army_list.model_copy(update={"entries": entries})


def units_by_id(units: Iterable[UnitDefinition]) -> dict[str, UnitDefinition]:
    return {unit.id: unit for unit in units}


def refresh_list(
    army_list: ArmyList,
    units: Mapping[str, UnitDefinition],
    policy: BuilderPolicy | None = None,
) -> ArmyList:
    """Recompute every entry against the current units and sync stale names."""

    entries: list[ArmyListEntry] = []
    for entry in army_list.entries:
        unit = units.get(entry.unit_id)
        refreshed = entry.model_copy(deep=True)
        if unit is not None and unit.name and refreshed.unit_name != unit.name:
            refreshed.unit_name = unit.name
        entries.append(_recosted(refreshed, unit, policy))
    return army_list.model_copy(update={"entries": entries})


def grouped_entries(army_list: ArmyList) -> list[tuple[str, list[ArmyListEntry]]]:
    groups: dict[str, list[ArmyListEntry]] = {}
    for entry in sorted(army_list.entries, key=lambda item: item.category.position):
        groups.setdefault(entry.category.value, []).append(entry)
    return list(groups.items())
