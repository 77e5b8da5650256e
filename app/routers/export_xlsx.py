from __future__ import annotations

from collections.abc import Mapping
from io import BytesIO

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from openpyxl import Workbook

from .. import schemas
from ..data import tables
from ..models import ArmyList, ArmyListEntry, EffectiveUnit, Points
from ..services import costs, entries
from .rosters import _effective_units


router = APIRouter(prefix="/export", tags=["export"])


def _upgrades_text(entry: ArmyListEntry, unit: EffectiveUnit | None) -> str:
    if unit is None:
        return ", ".join(entry.active_upgrades) or "-"
    active = set(entry.active_upgrades)
    names = [upgrade.name or upgrade.id for upgrade in unit.upgrades if upgrade.id in active]
    return ", ".join(names) if names else "-"


def _items_text(entry: ArmyListEntry) -> str:
    parts: list[str] = []
    for slot, item in (entry.magic_items or {}).items():
        label = tables.MAGIC_SLOT_LABELS.get(slot, slot)
        parts.append(f"{label}: {item.name}")
    for upgrade_id, items in entry.command_magic_items.items():
        for item in items.values():
            parts.append(f"{upgrade_id}: {item.name}")
    if entry.ammo is not None:
        parts.append(entry.ammo.name)
    return "\n".join(parts) if parts else "-"


def _fit_columns(sheet, limit: int) -> None:
    for column_cells in sheet.columns:
        max_length = max(len(str(cell.value or "")) for cell in column_cells)
        adjusted = max_length + 2
        column_letter = column_cells[0].column_letter
        sheet.column_dimensions[column_letter].width = min(adjusted, limit)


def _append_list_sheet(
    workbook: Workbook,
    army_list: ArmyList,
    units: Mapping[str, EffectiveUnit],
) -> Points:
    sheet = workbook.active
    sheet.title = "List"
    sheet.append(["Category", "Unit", "Models", "Upgrades", "Magic items", "House rule", "Points"])

    for category, group in entries.grouped_entries(army_list):
        for entry in group:
            unit = units.get(entry.unit_id)
            house_rule = "-"
            if unit is not None and unit.has_override:
                house_rule = unit.house_rule_note or "; ".join(unit.override_changes)
            sheet.append(
                [
                    category,
                    entry.unit_name or entry.unit_id,
                    "" if entry.is_character else entry.model_count,
                    _upgrades_text(entry, unit),
                    _items_text(entry),
                    house_rule,
                    entry.pts_cost,
                ]
            )

    total_cost = costs.list_total(army_list)
    sheet.append(["", "", "", "", "", "Total", total_cost])
    sheet.append(["", "", "", "", "", "Limit", army_list.points_limit])
    _fit_columns(sheet, 60)
    return total_cost


def _append_items_sheet(workbook: Workbook, army_list: ArmyList) -> None:
    sheet = workbook.create_sheet("Items")
    sheet.append(["Name", "Slot", "Points", "Carried by"])
    used: dict[tuple[str, str], tuple[Points, list[str]]] = {}
    for entry in army_list.entries:
        owner = entry.unit_name or entry.unit_id
        carried = list((entry.magic_items or {}).items())
        for items in entry.command_magic_items.values():
            carried.extend(items.items())
        for slot, item in carried:
            key = (item.name, slot)
            pts, owners = used.setdefault(key, (item.pts, []))
            owners.append(owner)
    for name, slot in sorted(used):
        pts, owners = used[(name, slot)]
        sheet.append([name, tables.MAGIC_SLOT_LABELS.get(slot, slot), pts, ", ".join(owners)])
    _fit_columns(sheet, 50)


def build_workbook(
    army_list: ArmyList, units: Mapping[str, EffectiveUnit]
) -> tuple[Workbook, Points]:
    refreshed = entries.refresh_list(army_list, units)
    workbook = Workbook()
    total_cost = _append_list_sheet(workbook, refreshed, units)
    _append_items_sheet(workbook, refreshed)
    return workbook, total_cost


@router.post("/xlsx")
def export_xlsx(payload: schemas.ListRequest):
    army_list = payload.army_list
    workbook, total_cost = build_workbook(army_list, _effective_units(payload))

    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    filename = f"list_{army_list.id}_{int(round(total_cost))}.xlsx"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )
