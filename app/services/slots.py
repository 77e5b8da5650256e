from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from ..data import tables
from ..models import (
    ArmyListEntry,
    MagicItem,
    Points,
    Relic,
    UnitCategory,
    UnitDefinition,
    UpgradeDefinition,
    UpgradeType,
)
from .policy import BuilderPolicy, resolve_policy

_MAGIC_BUDGET_PATTERN = re.compile(r"Magic Items?\s*\((\d+)\s*pts?\)", re.IGNORECASE)

_RELIC_SLOT_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"weapon|sword|axe|blade|lance|spear|dagger|bow"), "weapons"),
    (re.compile(r"armou?r|armor|shield|plate|helm"), "armour"),
    (re.compile(r"talisman|pendant|locket|charm|amulet"), "talismans"),
    (re.compile(r"enchanted"), "enchanted"),
    (re.compile(r"arcane|scroll|wand|staff|rod|orb"), "arcane"),
    (re.compile(r"banner|standard"), "banners"),
]

RELIC_PLACEHOLDER = "TBD"


def _rules_text(unit: UnitDefinition) -> str:
    return " ".join(unit.special_rules or []).casefold()


def _notes_text(unit: UnitDefinition) -> str:
    return (unit.notes or "").casefold()


def is_named_character(unit: UnitDefinition) -> bool:
    if unit.category == UnitCategory.NAMED_CHARACTERS:
        return True
    return "named" in (unit.troop_type or "").casefold()


def is_spellcaster(unit: UnitDefinition) -> bool:
    notes = _notes_text(unit)
    return "wizard" in _rules_text(unit) or "wizard" in notes or "lore" in notes


def is_tree_spirit(unit: UnitDefinition) -> bool:
    return "tree spirit" in _rules_text(unit)


def is_battle_standard_capable(unit: UnitDefinition) -> bool:
    notes = _notes_text(unit)
    return "bsb" in notes or "battle standard" in notes


def named_character_budget(
    unit: UnitDefinition, policy: BuilderPolicy | None = None
) -> int | None:
    return resolve_policy(policy).named_budget(unit.name)


def allowed_magic_slots(
    unit: UnitDefinition, policy: BuilderPolicy | None = None
) -> list[str]:
    if not unit.is_character:
        return []
    if unit.allowed_slots is not None:
        return list(unit.allowed_slots)
    if is_named_character(unit):
        if named_character_budget(unit, policy) == 0:
            return []

    spellcaster = is_spellcaster(unit)
    slots = ["weapons", "talismans", "enchanted"]
    if not spellcaster and not is_tree_spirit(unit):
        slots.append("armour")
    if spellcaster:
        slots.append("arcane")
    if is_battle_standard_capable(unit):
        slots.append("banners")
    return slots


def magic_item_budget(unit: UnitDefinition, policy: BuilderPolicy | None = None) -> Points:
    if not unit.is_character:
        return 0
    if unit.magic_item_budget is not None:
        return unit.magic_item_budget
    match = _MAGIC_BUDGET_PATTERN.search(unit.notes or "")
    if match:
        return int(match.group(1))
    active_policy = resolve_policy(policy)
    if is_named_character(unit):
        budget = active_policy.named_budget(unit.name)
        return budget if budget is not None else active_policy.hero_budget
    if unit.category == UnitCategory.LORDS:
        return active_policy.lord_budget
    if unit.category == UnitCategory.HEROES:
        return active_policy.hero_budget
    return 0


def relic_slot(relic: Relic | None) -> str | None:
    if relic is None or relic.name == RELIC_PLACEHOLDER:
        return None
    if relic.slot:
        return relic.slot
    relic_type = (relic.type or "").casefold()
    for pattern, slot in _RELIC_SLOT_PATTERNS:
        if pattern.search(relic_type):
            return slot
    return "enchanted"


def has_active_relic(unit: UnitDefinition, entry: ArmyListEntry) -> bool:
    return bool(entry.relic_form) and relic_slot(unit.relic) is not None


def equippable_slots(
    unit: UnitDefinition,
    entry: ArmyListEntry,
    policy: BuilderPolicy | None = None,
) -> list[str]:
    """Allowed slots in display order, minus the one an active relic occupies."""

    if magic_item_budget(unit, policy) == 0:
        return []
    allowed = set(allowed_magic_slots(unit, policy))
    locked = relic_slot(unit.relic) if has_active_relic(unit, entry) else None
    ordered = [slot for slot in tables.MAGIC_ITEM_SLOTS if slot in allowed]
    ordered.extend(sorted(allowed.difference(tables.MAGIC_ITEM_SLOTS)))
    return [slot for slot in ordered if slot != locked]


def items_cost(items: Mapping[str, MagicItem | None] | None) -> Points:
    if not items:
        return 0
    return sum((item.pts or 0) for item in items.values() if item is not None)


def remaining_magic_budget(
    unit: UnitDefinition,
    entry: ArmyListEntry,
    policy: BuilderPolicy | None = None,
) -> Points:
    return magic_item_budget(unit, policy) - items_cost(entry.magic_items)


def can_afford(
    unit: UnitDefinition,
    entry: ArmyListEntry,
    item: MagicItem,
    slot: str | None = None,
    policy: BuilderPolicy | None = None,
) -> bool:
    remaining = remaining_magic_budget(unit, entry, policy)
    if slot and entry.magic_items and entry.magic_items.get(slot) is not None:
        remaining += entry.magic_items[slot].pts or 0
    return (item.pts or 0) <= remaining


def command_item_budget(upgrade: UpgradeDefinition) -> tuple[Points, list[str]]:
    if upgrade.magic is None:
        return 0, []
    return upgrade.magic.max_points or 0, list(upgrade.magic.slots)


def remaining_command_budget(upgrade: UpgradeDefinition, entry: ArmyListEntry) -> Points:
    budget, _ = command_item_budget(upgrade)
    return budget - items_cost(entry.command_magic_items.get(upgrade.id))


def sprites_spent(unit: UnitDefinition, active_upgrades: Iterable[str]) -> Points:
    active = set(active_upgrades)
    return sum(
        upgrade.pts or 0
        for upgrade in unit.upgrades
        if upgrade.type == UpgradeType.SPRITES and upgrade.id in active
    )


def can_take_enchanted_arrows(unit: UnitDefinition) -> bool:
    equipment = " ".join(unit.equipment or []).casefold()
    notes = _notes_text(unit)
    return (
        "asrai longbow" in equipment
        or "asrai bow" in equipment
        or "enchanted arrows" in notes
    )


def has_dataset_arrow_options(unit: UnitDefinition) -> bool:
    """Dataset units that already list arrow choices as exclusive upgrades."""

    extra = unit.model_extra or {}
    if not (extra.get("fromDataset") or extra.get("from_dataset")):
        return False
    return any(
        upgrade.exclusive and upgrade.name.casefold() in tables.ARROW_OPTION_NAMES
        for upgrade in unit.upgrades
    )
