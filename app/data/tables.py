from __future__ import annotations

from dataclasses import dataclass
from typing import List

MAGIC_ITEM_SLOTS: tuple[str, ...] = (
    "weapons",
    "armour",
    "talismans",
    "enchanted",
    "arcane",
    "banners",
)

MAGIC_SLOT_LABELS: dict[str, str] = {
    "weapons": "Weapon",
    "armour": "Armour",
    "talismans": "Talisman",
    "enchanted": "Enchanted",
    "arcane": "Arcane",
    "banners": "Banner",
}

# Free-form slot names used by custom item sheets.
SLOT_ALIASES: dict[str, str] = {
    "weapon": "weapons",
    "weapons": "weapons",
    "armour": "armour",
    "armor": "armour",
    "talisman": "talismans",
    "talismans": "talismans",
    "enchanted": "enchanted",
    "arcane": "arcane",
    "banner": "banners",
    "banners": "banners",
}

# Budget 0 marks a relic-only character.
NAMED_CHARACTER_BUDGETS: dict[str, int] = {
    "gareth": 100,
    "daedilae": 100,
    "caerwynne": 100,
    "rephal": 50,
    "dûgalathir": 0,
    "dugalathir": 0,
    "elenornath": 0,
}

AMMO_PER_MODEL_UNITS: tuple[str, ...] = (
    "we_glade_riders",
    "we_glade_guard",
    "we_deepwood_scouts",
    "we_waywatchers",
)

HERO_MAGIC_BUDGET = 50
LORD_MAGIC_BUDGET = 100
SPRITES_BUDGET = 50

FACTION_ARMY_ITEM_KEYS: dict[str, tuple[str, ...]] = {
    "eonir": ("woodElves", "darkElves", "highElves"),
    "tombKings": ("tombKings",),
    "lizardmen": ("lizardmen",),
    "borderPrinces": ("bretonnia", "empire"),
}


@dataclass(frozen=True)
class AmmunitionDefinition:
    name: str
    pts_per_model: int
    pts_flat: int

    def payload(self) -> dict[str, object]:
        return {
            "name": self.name,
            "ptsPerModel": self.pts_per_model,
            "ptsFlat": self.pts_flat,
        }


ENCHANTED_ARROWS: List[AmmunitionDefinition] = [
    AmmunitionDefinition(name="Moonfire Shot", pts_per_model=1, pts_flat=3),
    AmmunitionDefinition(name="Trueflight Arrows", pts_per_model=1, pts_flat=3),
    AmmunitionDefinition(name="Arcane Bodkins", pts_per_model=2, pts_flat=6),
    AmmunitionDefinition(name="Hagbane Tips", pts_per_model=2, pts_flat=6),
    AmmunitionDefinition(name="Swiftshiver Shards", pts_per_model=2, pts_flat=6),
]

ARROW_OPTION_NAMES: frozenset[str] = frozenset(
    arrow.name.casefold() for arrow in ENCHANTED_ARROWS
)


def arrow_by_name(name: str | None) -> AmmunitionDefinition | None:
    if not name:
        return None
    key = name.strip().casefold()
    for arrow in ENCHANTED_ARROWS:
        if arrow.name.casefold() == key:
            return arrow
    return None
