from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from .. import config
from ..data import tables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuilderPolicy:
    """Tables the slot, budget and cost helpers consult."""

    named_character_budgets: Mapping[str, int] = field(
        default_factory=lambda: dict(tables.NAMED_CHARACTER_BUDGETS)
    )
    ammo_per_model_units: frozenset[str] = field(
        default_factory=lambda: frozenset(tables.AMMO_PER_MODEL_UNITS)
    )
    hero_budget: int = tables.HERO_MAGIC_BUDGET
    lord_budget: int = tables.LORD_MAGIC_BUDGET
    sprites_budget: int = tables.SPRITES_BUDGET

    def named_budget(self, name: str | None) -> int | None:
        name_text = (name or "").casefold()
        for key, budget in self.named_character_budgets.items():
            if name_text.startswith(key.casefold()):
                return budget
        return None


def _read_policy_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError):
        logger.warning("Could not read builder policy from %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def _int_setting(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 0 else default


def policy_from_config(data: Mapping[str, Any] | None) -> BuilderPolicy:
    data = data or {}
    budgets = dict(tables.NAMED_CHARACTER_BUDGETS)
    raw_budgets = data.get("named_character_budgets")
    if isinstance(raw_budgets, dict):
        for key, value in raw_budgets.items():
            key_text = str(key).strip().casefold()
            if not key_text:
                continue
            try:
                budgets[key_text] = int(value)
            except (TypeError, ValueError):
                continue

    ammo_units = set(tables.AMMO_PER_MODEL_UNITS)
    raw_units = data.get("ammo_per_model_units")
    if isinstance(raw_units, list):
        ammo_units.update(str(item) for item in raw_units if item)
    ammo_units.update(str(item) for item in config.EXTRA_AMMO_PER_MODEL_UNITS if item)

    return BuilderPolicy(
        named_character_budgets=budgets,
        ammo_per_model_units=frozenset(ammo_units),
        hero_budget=_int_setting(data, "hero_budget", tables.HERO_MAGIC_BUDGET),
        lord_budget=_int_setting(data, "lord_budget", tables.LORD_MAGIC_BUDGET),
        sprites_budget=_int_setting(data, "sprites_budget", tables.SPRITES_BUDGET),
    )


@lru_cache()
def default_policy() -> BuilderPolicy:
    return policy_from_config(_read_policy_file(config.POLICY_FILE))


def resolve_policy(policy: BuilderPolicy | None) -> BuilderPolicy:
    return policy if policy is not None else default_policy()
