from typing import Any, Optional

from pydantic import Field

from .models import (
    ArmyList,
    ArmyListEntry,
    OverrideRecord,
    Record,
    UnitDefinition,
)


class ResolveRequest(Record):
    unit: UnitDefinition
    override: Optional[OverrideRecord] = None


class PolicyRequest(Record):
    unit: UnitDefinition
    override: Optional[OverrideRecord] = None
    entry: Optional[ArmyListEntry] = None


class SaveOverrideRequest(Record):
    overrides: dict[str, Any] = Field(default_factory=dict)
    unit_id: str
    record: Optional[OverrideRecord] = None


class NewEntryRequest(Record):
    unit: UnitDefinition
    override: Optional[OverrideRecord] = None
    model_count: Optional[int] = Field(None, ge=1)


class EntryCostRequest(Record):
    unit: UnitDefinition
    override: Optional[OverrideRecord] = None
    entry: ArmyListEntry


class ToggleUpgradeRequest(Record):
    unit: UnitDefinition
    override: Optional[OverrideRecord] = None
    entry: ArmyListEntry
    upgrade_id: str


class ListRequest(Record):
    army_list: ArmyList
    units: list[UnitDefinition] = Field(default_factory=list)
    overrides: dict[str, Any] = Field(default_factory=dict)
