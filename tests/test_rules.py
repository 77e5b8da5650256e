from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import models
from app.services import entries, rules
from app.services.policy import BuilderPolicy


POLICY = BuilderPolicy()


def _units() -> dict[str, models.UnitDefinition]:
    return entries.units_by_id(
        [
            models.UnitDefinition(
                id="we_glade_guard",
                name="Glade Guard",
                category="Core",
                pts_per_model=11,
                min_size=10,
                max_size=20,
            ),
            models.UnitDefinition(
                id="we_glade_captain",
                name="Glade Captain",
                category="Heroes",
                is_character=True,
                pts_cost=80,
                upgrades=[
                    models.UpgradeDefinition(id="dryad", name="Dryad sprite", pts=30, type="sprites"),
                    models.UpgradeDefinition(id="wood", name="Wood sprite", pts=25, type="sprites"),
                    models.UpgradeDefinition(
                        id="bsb",
                        name="Battle standard",
                        pts=25,
                        type="command",
                        magic={"maxPoints": 50, "slots": ["banners"]},
                    ),
                ],
            ),
        ]
    )


def _list(*entry_values: dict, points_limit: int = 2000) -> models.ArmyList:
    return models.ArmyList(
        id="list_1",
        name="Warhost",
        faction="eonir",
        points_limit=points_limit,
        entries=[models.ArmyListEntry(**values) for values in entry_values],
    )


def test_clean_list_has_no_warnings() -> None:
    army_list = _list({"entry_id": "a", "unit_id": "we_glade_guard", "model_count": 10, "pts_cost": 110})

    assert rules.collect_list_warnings(army_list, _units(), policy=POLICY) == []


def test_points_limit_and_size_warnings() -> None:
    army_list = _list(
        {"entry_id": "a", "unit_id": "we_glade_guard", "model_count": 25, "pts_cost": 275},
        points_limit=200,
    )

    warnings = rules.collect_list_warnings(army_list, _units(), policy=POLICY)

    assert warnings == [
        "[SIZE] 'Glade Guard' has 25 models (> 20).",
        "[LIMIT] List costs 275 pts (> 200 pts).",
    ]


def test_budget_and_sprites_warnings() -> None:
    army_list = _list(
        {
            "entry_id": "c",
            "unit_id": "we_glade_captain",
            "unit_name": "Glade Captain",
            "is_character": True,
            "active_upgrades": ["dryad", "wood", "bsb"],
            "magic_items": {"weapons": {"name": "Ogre Blade", "pts": 65}},
            "command_magic_items": {"bsb": {"banners": {"name": "Big banner", "pts": 60}}},
        }
    )

    warnings = rules.collect_list_warnings(army_list, _units(), policy=POLICY)

    assert [warning.split(" ", 1)[0] for warning in warnings] == ["[ITEMS]", "[ITEMS]", "[SPRITES]"]
    assert "budget 50 pts" in warnings[0]
    assert "Battle standard" in warnings[1]


def test_unknown_unit_is_reported_not_fatal() -> None:
    army_list = _list({"entry_id": "x", "unit_id": "we_gone", "unit_name": "Old unit", "pts_cost": 40})

    warnings = rules.collect_list_warnings(army_list, _units(), policy=POLICY)

    assert warnings == ["[MISSING] 'Old unit' is not in the catalogue."]
