from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import models
from app.services import catalogue


def test_slot_key_normalises_custom_sheet_names() -> None:
    assert catalogue.slot_key("Armor") == "armour"
    assert catalogue.slot_key(" Banner ") == "banners"
    assert catalogue.slot_key(None) == "weapons"
    assert catalogue.slot_key("Runes") == "runes"


def test_merge_units_flags_custom_units() -> None:
    base = {"eonir": [models.UnitDefinition(id="we_glade_guard", name="Glade Guard")]}
    custom = [
        {"id": "custom_1", "name": "Forest Wardens", "factionId": "eonir"},
        {"id": "custom_2", "name": "Mercenary Ogres"},
        {"id": "custom_3", "name": "Skeletons", "factionId": "tombKings"},
    ]

    merged = catalogue.merge_units(base, custom)

    assert [unit.id for unit in merged["eonir"]] == ["we_glade_guard", "custom_1", "custom_2"]
    assert merged["eonir"][1].model_extra["isCustom"] is True
    assert merged["tombKings"][0].name == "Skeletons"
    assert len(base["eonir"]) == 1


def test_merge_items_uses_slot_aliases() -> None:
    base = {"weapons": [models.MagicItem(name="Ogre Blade", pts=65)]}
    custom = [
        {"name": "Bark Plate", "ptsCost": 20, "slot": "Armor"},
        {"name": "", "pts": 5},
        {"name": "Thorn Knife", "pts": 5},
    ]

    merged = catalogue.merge_items(base, custom)

    assert [item.name for item in merged["weapons"]] == ["Ogre Blade", "Thorn Knife"]
    assert merged["armour"][0].pts == 20


def test_faction_items_catalog_deduplicates_by_name() -> None:
    common = {"weapons": [models.MagicItem(name="Ogre Blade", pts=65)]}
    army_items = {
        "woodElves": {
            "weapons": [
                models.MagicItem(name="Ogre Blade", pts=60),
                models.MagicItem(name="Spirit Sword", pts=45),
            ]
        },
        "highElves": {"talismans": [models.MagicItem(name="Golden Crown", pts=30)]},
        "empire": {"talismans": [models.MagicItem(name="Laurels", pts=20)]},
    }

    catalog = catalogue.faction_items_catalog(common, army_items, "eonir")

    assert [(item.name, item.pts) for item in catalog["weapons"]] == [
        ("Ogre Blade", 65),
        ("Spirit Sword", 45),
    ]
    assert [item.name for item in catalog["talismans"]] == ["Golden Crown"]
    assert catalog["banners"] == []


def test_faction_units_apply_overrides() -> None:
    base = {"eonir": [models.UnitDefinition(id="we_wardancers", name="Wardancers", pts_per_model=14)]}
    custom = {"eonir": [models.UnitDefinition(id="custom_1", name="Wardens", pts_per_model=9)]}
    overrides = {"custom_1": models.OverrideRecord(pts_override=10)}

    units = catalogue.faction_units(base, custom, "eonir", overrides)

    assert [unit.pts_per_model for unit in units] == [14, 10]
    assert units[1].has_override
