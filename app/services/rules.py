from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import List

from ..models import ArmyList, ArmyListEntry, Points, UnitDefinition
from . import costs, slots
from .policy import BuilderPolicy, resolve_policy


@dataclass
class EntrySummary:
    """Light-weight snapshot of a list entry used for soft validation."""

    name: str
    models: int
    magic_spent: Points
    magic_budget: Points


def _fmt(value: Points) -> str:
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.1f}"
    return str(int(value))


def _summary(
    entry: ArmyListEntry, unit: UnitDefinition, policy: BuilderPolicy | None
) -> EntrySummary:
    return EntrySummary(
        name=entry.unit_name or unit.name or entry.unit_id,
        models=entry.model_count,
        magic_spent=slots.items_cost(entry.magic_items) if unit.is_character else 0,
        magic_budget=slots.magic_item_budget(unit, policy),
    )


def _entry_warnings(
    entry: ArmyListEntry, unit: UnitDefinition, policy: BuilderPolicy | None
) -> List[str]:
    summary = _summary(entry, unit, policy)
    warnings: List[str] = []

    if not unit.is_character:
        if unit.min_size is not None and summary.models < unit.min_size:
            warnings.append(
                f"[SIZE] '{summary.name}' has {summary.models} models (< {unit.min_size})."
            )
        if unit.max_size is not None and summary.models > unit.max_size:
            warnings.append(
                f"[SIZE] '{summary.name}' has {summary.models} models (> {unit.max_size})."
            )

    if summary.magic_spent > summary.magic_budget:
        warnings.append(
            f"[ITEMS] '{summary.name}' carries {_fmt(summary.magic_spent)} pts of magic items "
            f"(budget {_fmt(summary.magic_budget)} pts)."
        )

    for upgrade in unit.upgrades:
        if upgrade.magic is None:
            continue
        spent = slots.items_cost(entry.command_magic_items.get(upgrade.id))
        budget, _ = slots.command_item_budget(upgrade)
        if spent > budget:
            warnings.append(
                f"[ITEMS] '{summary.name}' {upgrade.name or upgrade.id} carries "
                f"{_fmt(spent)} pts of magic items (budget {_fmt(budget)} pts)."
            )

    pool = resolve_policy(policy).sprites_budget
    spent_sprites = slots.sprites_spent(unit, entry.active_upgrades)
    if spent_sprites > pool:
        warnings.append(
            f"[SPRITES] '{summary.name}' spends {_fmt(spent_sprites)} pts on sprites (> {pool})."
        )
    return warnings


def collect_list_warnings(
    army_list: ArmyList,
    units: Mapping[str, UnitDefinition],
    total_cost: Points | None = None,
    policy: BuilderPolicy | None = None,
) -> List[str]:
    """Advisory checks; nothing here changes a cost."""

    warnings: List[str] = []
    for entry in army_list.entries:
        unit = units.get(entry.unit_id)
        if unit is None:
            warnings.append(
                f"[MISSING] '{entry.unit_name or entry.unit_id}' is not in the catalogue."
            )
            continue
        warnings.extend(_entry_warnings(entry, unit, policy))

    if total_cost is None:
        total_cost = costs.list_total(army_list)
    if army_list.points_limit and total_cost > army_list.points_limit:
        warnings.append(
            f"[LIMIT] List costs {_fmt(total_cost)} pts (> {army_list.points_limit} pts)."
        )
    return warnings
