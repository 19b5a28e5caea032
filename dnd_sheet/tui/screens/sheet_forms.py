"""Sheet input modes, modal field sets and value parsing."""
from __future__ import annotations

import re
from enum import Enum

from ...models import Action, Attack, CharacterDetails, InventoryItem, MagicItem, Spell
from ...rules import ALIGNMENTS, SIZES
from ..modal import TRUTHY, Field, FieldType


class SheetMode(str, Enum):
    VIEW = "view"
    EDIT_HP = "edit-hp"
    EDIT_DAMAGE = "edit-damage"
    EDIT_HEAL = "edit-heal"
    EDIT_NOTES = "edit-notes"
    EDIT_FEATURES = "edit-features"
    EDIT_BACKGROUND = "edit-background"
    ADD_ATTACK = "add-attack"
    ADD_ACTION = "add-action"
    ADD_SPELL = "add-spell"
    ADD_ITEM = "add-item"
    ADD_MAGIC_ITEM = "add-magic-item"
    HELP = "help"


NUMERIC_MODES = (SheetMode.EDIT_HP, SheetMode.EDIT_DAMAGE, SheetMode.EDIT_HEAL)
TEXTAREA_MODES = (SheetMode.EDIT_NOTES, SheetMode.EDIT_FEATURES)
MODAL_MODES = (
    SheetMode.EDIT_BACKGROUND,
    SheetMode.ADD_ATTACK,
    SheetMode.ADD_ACTION,
    SheetMode.ADD_SPELL,
    SheetMode.ADD_ITEM,
    SheetMode.ADD_MAGIC_ITEM,
)

DAMAGE_TYPES = [
    "Slashing", "Piercing", "Bludgeoning", "Fire", "Cold", "Lightning", "Acid",
    "Poison", "Necrotic", "Radiant", "Force", "Psychic", "Thunder",
]
ACTION_TYPES = ["action", "bonus action", "reaction", "free", "movement", "other"]
RECHARGE = ["", "short rest", "long rest", "dawn", "dusk"]
SPELL_LEVELS = [str(n) for n in range(10)]
SPELL_SCHOOLS = [
    "Abjuration", "Conjuration", "Divination", "Enchantment",
    "Evocation", "Illusion", "Necromancy", "Transmutation",
]
RARITIES = ["Common", "Uncommon", "Rare", "Very Rare", "Legendary", "Artifact"]

# Background modal keys mapped onto CharacterDetails attributes.
DETAIL_KEYS = {
    "size": "size",
    "gender": "gender",
    "height": "height",
    "weight": "weight",
    "age": "age",
    "faith": "faith_deity",
    "hair": "hair",
    "eyes": "eyes",
    "skin": "skin",
    "traits": "personality_traits",
    "ideals": "ideals",
    "bonds": "bonds",
    "flaws": "flaws",
    "backstory": "backstory",
    "allies": "allies_organizations",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ═══════════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════════

def parse_int(text: str, default: int = 0) -> int:
    """Leading integer of ``text`` ("12abc" -> 12), else ``default``."""
    m = _LEADING_INT.match(text or "")
    return int(m.group(1)) if m else default


def parse_optional_int(text: str) -> int | None:
    m = _LEADING_INT.match(text or "")
    return int(m.group(1)) if m else None


def parse_bonus(text: str) -> int | None:
    """Attack bonus accepting both "+5" and "5"."""
    if not text:
        return None
    return parse_optional_int(text.strip().removeprefix("+"))


def parse_float(text: str) -> float | None:
    try:
        return float(text.strip())
    except (AttributeError, ValueError):
        return None


def is_checked(value: str | None) -> bool:
    return (value or "") in TRUTHY


def _text(values: dict[str, str], key: str) -> str | None:
    return values.get(key) or None


# ═══════════════════════════════════════════════════════════════════════════════
# FIELD SETS
# ═══════════════════════════════════════════════════════════════════════════════

def background_fields(details: CharacterDetails | None, alignment: str | None) -> list[Field]:
    def current(key: str) -> str:
        if details is None:
            return ""
        return getattr(details, DETAIL_KEYS[key]) or ""

    return [
        Field("size", "Size", FieldType.SELECT, current("size"), options=list(SIZES)),
        Field("alignment", "Alignment", FieldType.SELECT, alignment or "", options=list(ALIGNMENTS)),
        Field("gender", "Gender", value=current("gender"), placeholder="Gender"),
        Field("height", "Height", value=current("height"), placeholder="5'10\""),
        Field("weight", "Weight", value=current("weight"), placeholder="180 lbs"),
        Field("age", "Age", value=current("age"), placeholder="25"),
        Field("faith", "Faith/Deity", value=current("faith"), placeholder="Deity or faith"),
        Field("hair", "Hair", value=current("hair"), placeholder="Hair color/style"),
        Field("eyes", "Eyes", value=current("eyes"), placeholder="Eye color"),
        Field("skin", "Skin", value=current("skin"), placeholder="Skin tone"),
        Field("traits", "Personality", value=current("traits"), placeholder="Personality traits"),
        Field("ideals", "Ideals", value=current("ideals"), placeholder="Ideals"),
        Field("bonds", "Bonds", value=current("bonds"), placeholder="Bonds"),
        Field("flaws", "Flaws", value=current("flaws"), placeholder="Flaws"),
        Field("backstory", "Backstory", value=current("backstory"), placeholder="Character backstory"),
        Field("allies", "Allies", value=current("allies"), placeholder="Allies & organizations"),
    ]


def attack_fields() -> list[Field]:
    return [
        Field("name", "Weapon Name", required=True, placeholder="Longsword"),
        Field("attack_bonus", "Attack Bonus", FieldType.NUMBER, placeholder="+5"),
        Field("damage", "Damage", placeholder="1d8+3"),
        Field("damage_type", "Damage Type", FieldType.SELECT, options=list(DAMAGE_TYPES)),
        Field("range", "Range", placeholder="5 ft or 20/60 ft"),
        Field("properties", "Properties", placeholder="Versatile, Finesse"),
        Field("notes", "Notes", placeholder="Additional notes"),
    ]


def action_fields() -> list[Field]:
    return [
        Field("name", "Action Name", required=True, placeholder="Second Wind"),
        Field("action_type", "Type", FieldType.SELECT, options=list(ACTION_TYPES)),
        Field("source", "Source", placeholder="Fighter 1"),
        Field("uses_max", "Max Uses", FieldType.NUMBER, placeholder="1"),
        Field("uses_per", "Recharge", FieldType.SELECT, options=list(RECHARGE)),
        Field("description", "Description", placeholder="Regain 1d10 + level HP"),
    ]


def spell_fields(default_level: int | None) -> list[Field]:
    level = str(default_level) if default_level is not None else "0"
    return [
        Field("name", "Spell Name", required=True, placeholder="Fireball"),
        Field("level", "Level", FieldType.SELECT, level, options=list(SPELL_LEVELS)),
        Field("school", "School", FieldType.SELECT, options=list(SPELL_SCHOOLS)),
        Field("casting_time", "Casting Time", placeholder="1 action"),
        Field("range", "Range", placeholder="150 feet"),
        Field("components", "Components", placeholder="V, S, M"),
        Field("duration", "Duration", placeholder="Instantaneous"),
        Field("is_ritual", "Ritual", FieldType.CHECKBOX),
        Field("is_prepared", "Prepared", FieldType.CHECKBOX),
        Field("source", "Source", placeholder="PHB"),
    ]


def item_fields() -> list[Field]:
    return [
        Field("name", "Item Name", required=True, placeholder="Rope, hempen (50 feet)"),
        Field("quantity", "Quantity", FieldType.NUMBER, "1", placeholder="1"),
        Field("weight", "Weight", FieldType.NUMBER, placeholder="10"),
        Field("location", "Location", placeholder="Backpack"),
        Field("is_equipped", "Equipped", FieldType.CHECKBOX),
        Field("notes", "Notes", placeholder="Additional notes"),
    ]


def magic_item_fields() -> list[Field]:
    return [
        Field("name", "Item Name", required=True, placeholder="Bag of Holding"),
        Field("rarity", "Rarity", FieldType.SELECT, options=list(RARITIES)),
        Field("attunement_required", "Attunement", FieldType.CHECKBOX),
        Field("weight", "Weight", FieldType.NUMBER, placeholder="15"),
        Field("description", "Description", placeholder="What it does"),
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# RECORDS FROM FORM VALUES
# ═══════════════════════════════════════════════════════════════════════════════

def attack_from_values(character_id: str, values: dict[str, str], sort_order: int) -> Attack:
    return Attack(
        character_id=character_id,
        sort_order=sort_order,
        name=values["name"],
        attack_bonus=parse_bonus(values.get("attack_bonus", "")) or 0,
        damage=_text(values, "damage"),
        damage_type=_text(values, "damage_type"),
        range=_text(values, "range"),
        properties=_text(values, "properties"),
        notes=_text(values, "notes"),
    )


def action_from_values(character_id: str, values: dict[str, str], sort_order: int) -> Action:
    uses_max = parse_optional_int(values.get("uses_max", ""))
    return Action(
        character_id=character_id,
        sort_order=sort_order,
        name=values["name"],
        action_type=values.get("action_type") or "action",
        source=_text(values, "source"),
        description=_text(values, "description"),
        uses_per=_text(values, "uses_per"),
        uses_max=uses_max,
        # Start with full uses.
        uses_current=uses_max,
    )


def spell_from_values(character_id: str, values: dict[str, str]) -> Spell:
    level = min(9, max(0, parse_int(values.get("level", ""))))
    return Spell(
        character_id=character_id,
        name=values["name"],
        level=level,
        school=_text(values, "school"),
        is_prepared=is_checked(values.get("is_prepared")),
        is_ritual=is_checked(values.get("is_ritual")),
        casting_time=_text(values, "casting_time"),
        range=_text(values, "range"),
        components=_text(values, "components"),
        duration=_text(values, "duration"),
        source=_text(values, "source"),
    )


def item_from_values(character_id: str, values: dict[str, str], sort_order: int) -> InventoryItem:
    return InventoryItem(
        character_id=character_id,
        sort_order=sort_order,
        name=values["name"],
        quantity=max(1, parse_int(values.get("quantity", ""), default=1)),
        weight=parse_float(values.get("weight", "")),
        location=_text(values, "location"),
        notes=_text(values, "notes"),
        is_equipped=is_checked(values.get("is_equipped")),
    )


def magic_item_from_values(character_id: str, values: dict[str, str], sort_order: int) -> MagicItem:
    return MagicItem(
        character_id=character_id,
        sort_order=sort_order,
        name=values["name"],
        rarity=_text(values, "rarity"),
        attunement_required=is_checked(values.get("attunement_required")),
        weight=parse_float(values.get("weight", "")),
        description=_text(values, "description"),
    )


def details_from_values(details: CharacterDetails, values: dict[str, str]) -> CharacterDetails:
    """Copy of ``details`` with every background field replaced; blanks become None."""
    update = {attr: _text(values, key) for key, attr in DETAIL_KEYS.items()}
    return details.model_copy(update=update)
