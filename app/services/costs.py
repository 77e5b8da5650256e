"""Point cost of army list entries."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ..models import ArmyList, ArmyListEntry, MagicItem, Points, UnitDefinition
from .policy import BuilderPolicy, resolve_policy
from .slots import items_cost

logger = logging.getLogger(__name__)


def _points(value: Points | None) -> Points:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        if value.is_integer():
            return int(value)
    return value


def _model_count(entry: ArmyListEntry) -> int:
    try:
        count = int(entry.model_count or 0)
    except (TypeError, ValueError):
        count = 0
    return count if count > 0 else 1


@dataclass
class EntryCostBreakdown:
    base: Points = 0
    magic_items: Points = 0
    ammo: Points = 0
    upgrades: Points = 0
    command_items: Points = 0

    @property
    def total(self) -> Points:
        return _points(
            self.base + self.magic_items + self.ammo + self.upgrades + self.command_items
        )

    def payload(self) -> dict[str, Points]:
        return {
            "base": self.base,
            "magicItems": self.magic_items,
            "ammo": self.ammo,
            "upgrades": self.upgrades,
            "commandItems": self.command_items,
            "total": self.total,
        }


def base_cost(unit: UnitDefinition, model_count: int) -> Points:
    if unit.is_character:
        return _points(unit.pts_cost)
    return _points(_points(unit.pts_per_model) * model_count)


def ammo_cost(
    unit: UnitDefinition,
    entry: ArmyListEntry,
    policy: BuilderPolicy | None = None,
) -> Points:
    if entry.ammo is None:
        return 0
    if unit.id in resolve_policy(policy).ammo_per_model_units:
        return _points(_points(entry.ammo.pts_per_model) * _model_count(entry))
    return _points(entry.ammo.pts_flat)


def upgrades_cost(unit: UnitDefinition, active_upgrades: Iterable[str], model_count: int) -> Points:
    active = set(active_upgrades)
    total: Points = 0
    matched: set[str] = set()
    for upgrade in unit.upgrades:
        if upgrade.id not in active:
            continue
        matched.add(upgrade.id)
        pts = _points(upgrade.pts)
        total += pts * model_count if upgrade.per_model else pts
    stale = active - matched
    if stale:
        logger.debug("Ignoring unknown upgrades %s on %s", sorted(stale), unit.id)
    return _points(total)


def command_items_cost(
    command_items: Mapping[str, Mapping[str, MagicItem | None] | None] | None,
) -> Points:
    if not command_items:
        return 0
    return _points(sum(items_cost(items) for items in command_items.values()))


def entry_cost_breakdown(
    unit: UnitDefinition,
    entry: ArmyListEntry,
    policy: BuilderPolicy | None = None,
) -> EntryCostBreakdown:
    model_count = _model_count(entry)
    return EntryCostBreakdown(
        base=base_cost(unit, model_count),
        magic_items=_points(items_cost(entry.magic_items)) if unit.is_character else 0,
        ammo=ammo_cost(unit, entry, policy),
        upgrades=upgrades_cost(unit, entry.active_upgrades, model_count),
        command_items=command_items_cost(entry.command_magic_items),
    )


def compute_entry_cost(
    unit: UnitDefinition,
    entry: ArmyListEntry,
    policy: BuilderPolicy | None = None,
) -> Points:
    """Total points for ``entry`` given the (possibly overridden) ``unit``.

    Budgets are not enforced here: whatever is selected is priced.
    """

    return entry_cost_breakdown(unit, entry, policy).total


def list_total(army_list: ArmyList) -> Points:
    total: Points = 0
    for entry in army_list.entries:
        total += _points(entry.pts_cost)
    return _points(total)
