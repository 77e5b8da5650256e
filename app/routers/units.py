from __future__ import annotations

from fastapi import APIRouter

from .. import schemas
from ..data import tables
from ..services import overrides, slots

router = APIRouter(prefix="/api", tags=["units"])


@router.post("/units/resolve")
def resolve_unit(payload: schemas.ResolveRequest):
    effective = overrides.resolve(payload.unit, payload.override)
    return effective.payload()


@router.post("/units/policy")
def unit_policy(payload: schemas.PolicyRequest):
    unit = overrides.resolve(payload.unit, payload.override)
    result = {
        "unitId": unit.id,
        "allowedSlots": slots.allowed_magic_slots(unit),
        "magicItemBudget": slots.magic_item_budget(unit),
        "relicSlot": slots.relic_slot(unit.relic),
        "canTakeEnchantedArrows": slots.can_take_enchanted_arrows(unit),
    }
    if result["canTakeEnchantedArrows"] and not slots.has_dataset_arrow_options(unit):
        result["arrowOptions"] = [arrow.payload() for arrow in tables.ENCHANTED_ARROWS]
    if payload.entry is not None:
        result["equippableSlots"] = slots.equippable_slots(unit, payload.entry)
        result["remainingBudget"] = slots.remaining_magic_budget(unit, payload.entry)
    return result


@router.post("/overrides/save")
def save_override(payload: schemas.SaveOverrideRequest):
    table = overrides.parse_override_table(payload.overrides)
    updated = overrides.save_override(table, payload.unit_id, payload.record)
    return {unit_id: record.payload() for unit_id, record in updated.items()}
