from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from .. import schemas
from ..models import ArmyList, EffectiveUnit
from ..services import costs, entries, overrides, rules

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["rosters"])


def _effective_units(payload: schemas.ListRequest) -> dict[str, EffectiveUnit]:
    table = overrides.parse_override_table(payload.overrides)
    return entries.units_by_id(overrides.resolve_all(payload.units, table))


def list_view(army_list: ArmyList, units: dict[str, EffectiveUnit]) -> dict[str, Any]:
    refreshed = entries.refresh_list(army_list, units)
    total = costs.list_total(refreshed)
    return {
        "armyList": refreshed.payload(),
        "total": total,
        "warnings": rules.collect_list_warnings(refreshed, units, total),
    }


@router.post("/entries/new")
def new_entry(payload: schemas.NewEntryRequest):
    unit = overrides.resolve(payload.unit, payload.override)
    entry = entries.new_entry(unit, payload.model_count)
    return entry.payload()


@router.post("/entries/cost")
def entry_cost(payload: schemas.EntryCostRequest):
    unit = overrides.resolve(payload.unit, payload.override)
    breakdown = costs.entry_cost_breakdown(unit, payload.entry)
    return {"entryId": payload.entry.entry_id, **breakdown.payload()}


@router.post("/entries/toggle-upgrade")
def toggle_upgrade(payload: schemas.ToggleUpgradeRequest):
    unit = overrides.resolve(payload.unit, payload.override)
    if not any(upgrade.id == payload.upgrade_id for upgrade in unit.upgrades):
        logger.debug("Upgrade %s not offered by %s", payload.upgrade_id, unit.id)
        raise HTTPException(status_code=404, detail="Unknown upgrade")
    entry = entries.toggle_upgrade(payload.entry, unit, payload.upgrade_id)
    return entry.payload()


@router.post("/lists/refresh")
def refresh_list(payload: schemas.ListRequest):
    return list_view(payload.army_list, _effective_units(payload))
