"""House-rule overrides applied on top of catalogue unit definitions."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic.alias_generators import to_camel

from ..models import (
    EFFECTIVE_MARKERS,
    EffectiveUnit,
    OverrideRecord,
    Points,
    StatChange,
    UnitDefinition,
)

logger = logging.getLogger(__name__)


def _override_number(value: Any) -> Points | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float):
            if not math.isfinite(value):
                return None
            if value.is_integer():
                return int(value)
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        numeric = float(text)
    except ValueError:
        return None
    if not math.isfinite(numeric):
        return None
    return int(numeric) if numeric.is_integer() else numeric


def stat_text(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _normalized(text: str) -> str:
    return text.strip().casefold()


def _rule_matches(rule: str, targets: set[str]) -> bool:
    if _normalized(rule) in targets:
        return True
    head = rule.split(":", 1)[0]
    return _normalized(head) in targets


def effective_copy(unit: UnitDefinition) -> EffectiveUnit:
    """Return a structural copy of ``unit`` with cleared override markers."""

    data = unit.model_dump(exclude=set(EFFECTIVE_MARKERS))
    # Markers posted back in JSON land in the extras under their camelCase names.
    for marker in EFFECTIVE_MARKERS:
        data.pop(to_camel(marker), None)
    return EffectiveUnit.model_validate(data)


def _apply_points(result: EffectiveUnit, override: OverrideRecord) -> None:
    new_pts = _override_number(override.pts_override)
    if new_pts is None:
        return
    if result.is_character:
        if result.pts_cost != new_pts:
            result.override_changes.append(f"Points: {stat_text(result.pts_cost)} → {new_pts}")
            result.pts_cost = new_pts
    elif result.pts_per_model != new_pts:
        result.override_changes.append(
            f"Pts/model: {stat_text(result.pts_per_model)} → {new_pts}"
        )
        result.pts_per_model = new_pts


def _size_override(value: Any, unit_id: str) -> int | None:
    size = _override_number(value)
    if size is None:
        return None
    if not isinstance(size, int):
        logger.debug("Ignoring non-integral size override %s for %s", size, unit_id)
        return None
    return size


def _apply_sizes(result: EffectiveUnit, override: OverrideRecord) -> None:
    if result.is_character:
        return
    min_size = _size_override(override.min_size_override, result.id)
    if min_size is not None and result.min_size != min_size:
        result.override_changes.append(f"Min size: {stat_text(result.min_size)} → {min_size}")
        result.min_size = min_size
    max_size = _size_override(override.max_size_override, result.id)
    if max_size is not None and result.max_size != max_size:
        result.override_changes.append(f"Max size: {stat_text(result.max_size)} → {max_size}")
        result.max_size = max_size


def _apply_stats(result: EffectiveUnit, override: OverrideRecord) -> None:
    for index in sorted(override.stat_overrides):
        stats = override.stat_overrides[index] or {}
        if index < 0 or index >= len(result.profiles):
            logger.debug("Skipping stat override for missing profile %s of %s", index, result.id)
            continue
        profile = result.profiles[index]
        for stat, value in stats.items():
            if value is None or (isinstance(value, str) and value == ""):
                continue
            current = profile.get(stat)
            if stat_text(current) == stat_text(value):
                continue
            label = profile.get("name") or "Profile"
            result.override_changes.append(
                f"{label} {stat}: {stat_text(current)} → {stat_text(value)}"
            )
            result.overridden_stats.setdefault(index, {})[stat] = StatChange(
                from_value=current, to=value
            )
            profile[stat] = value


def _apply_rules(result: EffectiveUnit, override: OverrideRecord) -> None:
    if override.remove_special_rules and result.special_rules:
        targets = {_normalized(rule) for rule in override.remove_special_rules}
        kept: list[str] = []
        for rule in result.special_rules:
            if _rule_matches(rule, targets):
                if rule not in result.removed_rules:
                    result.removed_rules.append(rule)
            else:
                kept.append(rule)
        removed = len(result.special_rules) - len(kept)
        result.special_rules = kept
        if removed:
            result.override_changes.append(f"Removed {removed} special rule(s)")

    if override.add_special_rules:
        existing = {_normalized(rule) for rule in result.special_rules}
        added: list[str] = []
        for rule in override.add_special_rules:
            key = _normalized(rule)
            if not key or key in existing:
                continue
            added.append(rule)
        if added:
            result.special_rules.extend(added)
            for rule in added:
                if rule not in result.added_rules:
                    result.added_rules.append(rule)
            result.override_changes.append(f"Added {len(added)} special rule(s)")


def _apply_equipment(result: EffectiveUnit, override: OverrideRecord) -> None:
    if override.remove_equipment and result.equipment:
        targets = {_normalized(item) for item in override.remove_equipment}
        kept = [item for item in result.equipment if _normalized(item) not in targets]
        removed = len(result.equipment) - len(kept)
        result.equipment = kept
        if removed:
            result.override_changes.append(f"Removed {removed} equipment")

    if override.add_equipment:
        existing = {_normalized(item) for item in result.equipment}
        added: list[str] = []
        for item in override.add_equipment:
            key = _normalized(item)
            if not key or key in existing:
                continue
            added.append(item)
        if added:
            result.equipment.extend(added)
            result.override_changes.append(f"Added {len(added)} equipment")


def _apply_upgrades(result: EffectiveUnit, override: OverrideRecord) -> None:
    if override.remove_upgrades and result.upgrades:
        removed_ids = set(override.remove_upgrades)
        kept = [upgrade for upgrade in result.upgrades if upgrade.id not in removed_ids]
        removed = len(result.upgrades) - len(kept)
        result.upgrades = kept
        if removed:
            result.override_changes.append(f"Removed {removed} upgrade(s)")

    if override.add_upgrades:
        # Duplicate ids are appended as-is.
        result.upgrades.extend(
            upgrade.model_copy(deep=True) for upgrade in override.add_upgrades
        )
        result.override_changes.append(f"Added {len(override.add_upgrades)} upgrade(s)")


def resolve(unit: UnitDefinition, override: OverrideRecord | None) -> EffectiveUnit:
    """Apply ``override`` to a copy of ``unit``.

    Deltas are applied in a fixed order (points, sizes, stats, special rules,
    equipment, upgrades, note) and each one that changes something appends a
    line to ``override_changes``. Neither argument is modified.
    """

    result = effective_copy(unit)
    if override is None or override.is_empty():
        return result

    result.has_override = True
    _apply_points(result, override)
    _apply_sizes(result, override)
    _apply_stats(result, override)
    _apply_rules(result, override)
    _apply_equipment(result, override)
    _apply_upgrades(result, override)
    if override.house_rule_note:
        result.house_rule_note = override.house_rule_note
    return result


def resolve_all(
    units: Iterable[UnitDefinition],
    overrides: Mapping[str, OverrideRecord] | None,
) -> list[EffectiveUnit]:
    table = overrides or {}
    return [resolve(unit, table.get(unit.id)) for unit in units]


def save_override(
    table: Mapping[str, OverrideRecord],
    unit_id: str,
    record: OverrideRecord | None,
) -> dict[str, OverrideRecord]:
    """Return a copy of ``table`` with ``record`` stored under ``unit_id``.

    Empty records remove the key instead of being stored.
    """

    updated = dict(table)
    if record is None or record.is_empty():
        if updated.pop(unit_id, None) is not None:
            logger.debug("Dropped empty override for %s", unit_id)
        return updated
    updated[unit_id] = record
    return updated


def parse_override_table(raw: Any) -> dict[str, OverrideRecord]:
    if not isinstance(raw, Mapping):
        return {}
    table: dict[str, OverrideRecord] = {}
    for unit_id, value in raw.items():
        if isinstance(value, OverrideRecord):
            table[str(unit_id)] = value
        elif isinstance(value, Mapping):
            table[str(unit_id)] = OverrideRecord.model_validate(value)
    return table
