from __future__ import annotations

import math
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Points = Union[int, float]
RelicForm = Literal["basic", "upgraded"]


class UnitCategory(str, Enum):
    NAMED_CHARACTERS = "Named Characters"
    CHARACTERS = "Characters"
    LORDS = "Lords"
    HEROES = "Heroes"
    CORE = "Core"
    SPECIAL = "Special"
    RARE = "Rare"
    MERCENARIES = "Mercenaries"
    ALLIES = "Allies"
    CUSTOM = "Custom"

    @property
    def position(self) -> int:
        return list(UnitCategory).index(self)


class UpgradeType(str, Enum):
    COMMAND = "command"
    EQUIPMENT = "equipment"
    SPECIAL = "special"
    MOUNT = "mount"
    SPRITES = "sprites"
    KINDRED = "kindred"
    LORE = "lore"


class Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        protected_namespaces=(),
    )

    def payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class MagicItem(Record):
    name: str
    pts: Points = 0
    type: Optional[str] = None
    description: str = ""
    slot: Optional[str] = None


class CommandMagicBudget(Record):
    max_points: Points = 0
    slots: list[str] = Field(default_factory=list)


class UpgradeDefinition(Record):
    id: str
    name: str = ""
    pts: Points = 0
    per_model: bool = False
    exclusive: bool = False
    type: UpgradeType = UpgradeType.EQUIPMENT
    note: Optional[str] = None
    default: bool = False
    magic: Optional[CommandMagicBudget] = None


class Relic(Record):
    name: str
    type: str = ""
    slot: Optional[str] = None
    basic_form: str = ""
    upgraded_form: str = ""


class Ammunition(Record):
    name: str
    pts_per_model: Points = 0
    pts_flat: Points = 0


class UnitDefinition(Record):
    id: str
    name: str = ""
    category: UnitCategory = UnitCategory.CUSTOM
    is_character: bool = False
    troop_type: Optional[str] = None
    pts_cost: Optional[Points] = None
    pts_per_model: Optional[Points] = None
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    profiles: list[dict[str, Any]] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    special_rules: list[str] = Field(default_factory=list)
    upgrades: list[UpgradeDefinition] = Field(default_factory=list)
    relic: Optional[Relic] = None
    allowed_slots: Optional[list[str]] = None
    magic_item_budget: Optional[Points] = None
    notes: str = ""

    @model_validator(mode="after")
    def _size_bounds(self) -> "UnitDefinition":
        if self.is_character:
            self.min_size = None
            self.max_size = None
        elif self.min_size is None:
            self.min_size = 1
        return self


class StatChange(Record):
    from_value: Any = Field(default=None, alias="from")
    to: Any = None


EFFECTIVE_MARKERS: frozenset[str] = frozenset(
    {
        "has_override",
        "override_changes",
        "overridden_stats",
        "added_rules",
        "removed_rules",
        "house_rule_note",
    }
)


class EffectiveUnit(UnitDefinition):
    has_override: bool = False
    override_changes: list[str] = Field(default_factory=list)
    overridden_stats: dict[int, dict[str, StatChange]] = Field(default_factory=dict)
    added_rules: list[str] = Field(default_factory=list)
    removed_rules: list[str] = Field(default_factory=list)
    house_rule_note: Optional[str] = None

    def base_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude=set(EFFECTIVE_MARKERS))


class OverrideRecord(Record):
    house_rule_note: Optional[str] = None
    pts_override: Optional[Union[int, float, str]] = None
    min_size_override: Optional[Union[int, float, str]] = None
    max_size_override: Optional[Union[int, float, str]] = None
    stat_overrides: dict[int, dict[str, Any]] = Field(default_factory=dict)
    add_special_rules: list[str] = Field(default_factory=list)
    remove_special_rules: list[str] = Field(default_factory=list)
    add_equipment: list[str] = Field(default_factory=list)
    remove_equipment: list[str] = Field(default_factory=list)
    add_upgrades: list[UpgradeDefinition] = Field(default_factory=list)
    remove_upgrades: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            not self.house_rule_note
            and _is_unset(self.pts_override)
            and _is_unset(self.min_size_override)
            and _is_unset(self.max_size_override)
            and not self.add_special_rules
            and not self.remove_special_rules
            and not self.add_equipment
            and not self.remove_equipment
            and not self.add_upgrades
            and not self.remove_upgrades
            and not self.stat_overrides
        )


def _is_unset(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


class ArmyListEntry(Record):
    entry_id: str
    unit_id: str
    unit_name: str = ""
    model_count: int = 1
    is_character: bool = False
    pts_cost: Points = 0
    category: UnitCategory = UnitCategory.CUSTOM
    active_upgrades: list[str] = Field(default_factory=list)
    magic_items: Optional[dict[str, MagicItem]] = None
    command_magic_items: dict[str, dict[str, MagicItem]] = Field(default_factory=dict)
    ammo: Optional[Ammunition] = Field(
        default=None, validation_alias=AliasChoices("ammo", "arrows")
    )
    relic_form: Optional[RelicForm] = None
    assigned_traits: list[str] = Field(default_factory=list)
    notes: str = ""


class ArmyList(Record):
    id: str
    name: str
    faction: str
    points_limit: int = 2000
    entries: list[ArmyListEntry] = Field(default_factory=list)
    traits: list[str] = Field(default_factory=list)
    notes: str = ""
    created_at: Optional[str] = None
