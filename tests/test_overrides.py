from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import models
from app.services import overrides


def _glade_guard() -> models.UnitDefinition:
    return models.UnitDefinition(
        id="we_glade_guard",
        name="Glade Guard",
        category="Core",
        pts_per_model=11,
        min_size=10,
        max_size=30,
        profiles=[{"name": "Glade Guard", "M": 5, "WS": 4, "BS": 4, "Ld": 8}],
        equipment=["Hand weapon", "Asrai longbow"],
        special_rules=["Hatred: Beastmen", "Scouts", "Skirmishers"],
        upgrades=[
            models.UpgradeDefinition(id="musician", name="Musician", pts=5, type="command"),
        ],
    )


def test_resolve_without_override_returns_untouched_copy() -> None:
    unit = _glade_guard()

    effective = overrides.resolve(unit, None)

    assert effective.has_override is False
    assert effective.override_changes == []
    assert effective.base_payload() == unit.payload()
    assert effective is not unit


def test_empty_override_is_not_an_override() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(pts_override="", min_size_override=None, add_special_rules=[])

    assert record.is_empty()
    effective = overrides.resolve(unit, record)

    assert effective.has_override is False
    assert effective.pts_per_model == 11


def test_points_and_sizes_are_recorded_in_order() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(pts_override="12", min_size_override=5, max_size_override=30)

    effective = overrides.resolve(unit, record)

    assert effective.has_override is True
    assert effective.pts_per_model == 12
    assert effective.min_size == 5
    assert effective.max_size == 30
    assert effective.override_changes == ["Pts/model: 11 → 12", "Min size: 10 → 5"]


def test_character_points_override_changes_flat_cost() -> None:
    unit = models.UnitDefinition(
        id="we_glade_lord",
        name="Glade Lord",
        category="Lords",
        is_character=True,
        pts_cost=150,
        min_size=1,
    )
    record = models.OverrideRecord(pts_override=140, min_size_override=3)

    effective = overrides.resolve(unit, record)

    assert effective.pts_cost == 140
    assert effective.min_size is None
    assert effective.override_changes == ["Points: 150 → 140"]


def test_stat_override_round_trip() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord.model_validate({"statOverrides": {"0": {"WS": 5, "BS": 4}}})

    effective = overrides.resolve(unit, record)

    assert effective.profiles[0]["WS"] == 5
    change = effective.overridden_stats[0]["WS"]
    assert change.from_value == 4
    assert change.to == 5
    assert "BS" not in effective.overridden_stats[0]
    assert effective.override_changes == ["Glade Guard WS: 4 → 5"]
    assert unit.profiles[0]["WS"] == 4


def test_stat_override_for_missing_profile_is_skipped() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(stat_overrides={3: {"WS": 9}})

    effective = overrides.resolve(unit, record)

    assert effective.has_override is True
    assert effective.overridden_stats == {}
    assert effective.override_changes == []


def test_rule_removal_matches_prefix_and_readdition_is_tracked() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(
        remove_special_rules=["hatred"],
        add_special_rules=["Hatred (all enemies)", "scouts", "Vanguard"],
    )

    effective = overrides.resolve(unit, record)

    assert effective.special_rules == [
        "Scouts",
        "Skirmishers",
        "Hatred (all enemies)",
        "Vanguard",
    ]
    assert effective.removed_rules == ["Hatred: Beastmen"]
    assert effective.added_rules == ["Hatred (all enemies)", "Vanguard"]
    assert effective.override_changes == [
        "Removed 1 special rule(s)",
        "Added 2 special rule(s)",
    ]


def test_equipment_and_upgrades() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(
        remove_equipment=["asrai longbow"],
        add_equipment=["Shield"],
        remove_upgrades=["musician"],
        add_upgrades=[{"id": "standard", "name": "Standard bearer", "pts": 5, "type": "command"}],
    )

    effective = overrides.resolve(unit, record)

    assert effective.equipment == ["Hand weapon", "Shield"]
    assert [upgrade.id for upgrade in effective.upgrades] == ["standard"]
    assert effective.override_changes == [
        "Removed 1 equipment",
        "Added 1 equipment",
        "Removed 1 upgrade(s)",
        "Added 1 upgrade(s)",
    ]


def test_resolution_is_idempotent_and_pure() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(
        pts_override=12,
        stat_overrides={0: {"Ld": 9}},
        add_special_rules=["Vanguard"],
        house_rule_note="Campaign veterans",
    )
    before_unit = unit.payload()
    before_record = record.payload()

    first = overrides.resolve(unit, record)
    second = overrides.resolve(unit, record)

    assert first.payload() == second.payload()
    assert first.house_rule_note == "Campaign veterans"
    assert unit.payload() == before_unit
    assert record.payload() == before_record


def test_save_override_drops_empty_records() -> None:
    table = {"we_glade_guard": models.OverrideRecord(pts_override=12)}

    cleared = overrides.save_override(table, "we_glade_guard", models.OverrideRecord())
    stored = overrides.save_override({}, "we_glade_guard", models.OverrideRecord(pts_override=12))

    assert cleared == {}
    assert "we_glade_guard" in table
    assert stored["we_glade_guard"].pts_override == 12


def test_resolve_all_uses_table_by_unit_id() -> None:
    unit = _glade_guard()
    other = models.UnitDefinition(id="we_wardancers", name="Wardancers", pts_per_model=14)
    table = overrides.parse_override_table({"we_wardancers": {"ptsOverride": 15}, "bad": 3})

    resolved = overrides.resolve_all([unit, other], table)

    assert [item.has_override for item in resolved] == [False, True]
    assert resolved[1].pts_per_model == 15


def test_resolving_a_posted_back_effective_unit_starts_clean() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(
        pts_override=12,
        add_special_rules=["Vanguard"],
        add_upgrades=[{"id": "standard", "name": "Standard bearer", "pts": 5, "type": "command"}],
        house_rule_note="Campaign veterans",
    )
    posted = models.UnitDefinition.model_validate(overrides.resolve(unit, record).payload())
    assert posted.model_extra["hasOverride"] is True

    plain = overrides.resolve(posted, None)

    assert plain.has_override is False
    assert plain.override_changes == []
    assert plain.added_rules == []
    assert plain.house_rule_note is None
    assert "hasOverride" not in plain.model_extra
    assert [upgrade.id for upgrade in plain.upgrades] == ["musician", "standard"]

    again = overrides.resolve(posted, models.OverrideRecord(pts_override=13))

    assert again.override_changes == ["Pts/model: 12 → 13"]


def test_fractional_size_overrides_are_ignored() -> None:
    unit = _glade_guard()

    fractional = overrides.resolve(unit, models.OverrideRecord(min_size_override="7.5"))
    whole = overrides.resolve(unit, models.OverrideRecord(min_size_override="7.0"))

    assert fractional.min_size == 10
    assert fractional.override_changes == []
    assert whole.min_size == 7
    assert whole.override_changes == ["Min size: 10 → 7"]


def test_additions_only_dedupe_against_the_unit() -> None:
    unit = _glade_guard()
    record = models.OverrideRecord(
        add_special_rules=["Stubborn", "stubborn", "SCOUTS"],
        add_equipment=["Shield", "shield"],
    )

    effective = overrides.resolve(unit, record)

    assert effective.special_rules[-2:] == ["Stubborn", "stubborn"]
    assert effective.added_rules == ["Stubborn", "stubborn"]
    assert effective.equipment == ["Hand weapon", "Asrai longbow", "Shield", "shield"]
    assert effective.override_changes == [
        "Added 2 special rule(s)",
        "Added 2 equipment",
    ]
