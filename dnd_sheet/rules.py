"""D&D 5e reference tables and the small formulas the sheet displays."""
from __future__ import annotations

from typing import NamedTuple

# ═══════════════════════════════════════════════════════════════════════════════
# REFERENCE TABLES
# ═══════════════════════════════════════════════════════════════════════════════

SKILLS: dict[str, str] = {
    "Acrobatics": "dexterity",
    "Animal Handling": "wisdom",
    "Arcana": "intelligence",
    "Athletics": "strength",
    "Deception": "charisma",
    "History": "intelligence",
    "Insight": "wisdom",
    "Intimidation": "charisma",
    "Investigation": "intelligence",
    "Medicine": "wisdom",
    "Nature": "intelligence",
    "Perception": "wisdom",
    "Performance": "charisma",
    "Persuasion": "charisma",
    "Religion": "intelligence",
    "Sleight of Hand": "dexterity",
    "Stealth": "dexterity",
    "Survival": "wisdom",
}

SKILL_LIST: list[str] = list(SKILLS)

ABILITIES: list[str] = [
    "Strength", "Dexterity", "Constitution",
    "Intelligence", "Wisdom", "Charisma",
]

CLASSES: list[str] = [
    "Barbarian", "Bard", "Cleric", "Druid", "Fighter",
    "Monk", "Paladin", "Ranger", "Rogue", "Sorcerer",
    "Warlock", "Wizard",
]

RACES: list[str] = [
    "Dragonborn", "Dwarf", "Elf", "Gnome", "Half-Elf",
    "Half-Orc", "Halfling", "Human", "Tiefling",
]

BACKGROUNDS: list[str] = [
    "Acolyte", "Charlatan", "Criminal", "Entertainer",
    "Folk Hero", "Guild Artisan", "Hermit", "Noble",
    "Outlander", "Sage", "Sailor", "Soldier", "Urchin",
]

ALIGNMENTS: list[str] = [
    "Lawful Good", "Neutral Good", "Chaotic Good",
    "Lawful Neutral", "Neutral", "Chaotic Neutral",
    "Lawful Evil", "Neutral Evil", "Chaotic Evil",
]

SIZES: list[str] = ["Tiny", "Small", "Medium", "Large", "Huge", "Gargantuan"]

CLASS_HIT_DICE: dict[str, int] = {
    "Barbarian": 12,
    "Bard": 8,
    "Cleric": 8,
    "Druid": 8,
    "Fighter": 10,
    "Monk": 8,
    "Paladin": 10,
    "Ranger": 10,
    "Rogue": 8,
    "Sorcerer": 6,
    "Warlock": 8,
    "Wizard": 6,
}

CLASS_SAVING_THROWS: dict[str, list[str]] = {
    "Barbarian": ["Strength", "Constitution"],
    "Bard": ["Dexterity", "Charisma"],
    "Cleric": ["Wisdom", "Charisma"],
    "Druid": ["Intelligence", "Wisdom"],
    "Fighter": ["Strength", "Constitution"],
    "Monk": ["Strength", "Dexterity"],
    "Paladin": ["Wisdom", "Charisma"],
    "Ranger": ["Strength", "Dexterity"],
    "Rogue": ["Dexterity", "Intelligence"],
    "Sorcerer": ["Constitution", "Charisma"],
    "Warlock": ["Wisdom", "Charisma"],
    "Wizard": ["Intelligence", "Wisdom"],
}


class SkillChoice(NamedTuple):
    options: list[str]
    count: int


CLASS_SKILL_CHOICES: dict[str, SkillChoice] = {
    "Barbarian": SkillChoice(
        ["Animal Handling", "Athletics", "Intimidation", "Nature", "Perception", "Survival"], 2
    ),
    "Bard": SkillChoice(SKILL_LIST, 3),
    "Cleric": SkillChoice(["History", "Insight", "Medicine", "Persuasion", "Religion"], 2),
    "Druid": SkillChoice(
        ["Arcana", "Animal Handling", "Insight", "Medicine", "Nature", "Perception",
         "Religion", "Survival"],
        2,
    ),
    "Fighter": SkillChoice(
        ["Acrobatics", "Animal Handling", "Athletics", "History", "Insight",
         "Intimidation", "Perception", "Survival"],
        2,
    ),
    "Monk": SkillChoice(
        ["Acrobatics", "Athletics", "History", "Insight", "Religion", "Stealth"], 2
    ),
    "Paladin": SkillChoice(
        ["Athletics", "Insight", "Intimidation", "Medicine", "Persuasion", "Religion"], 2
    ),
    "Ranger": SkillChoice(
        ["Animal Handling", "Athletics", "Insight", "Investigation", "Nature",
         "Perception", "Stealth", "Survival"],
        3,
    ),
    "Rogue": SkillChoice(
        ["Acrobatics", "Athletics", "Deception", "Insight", "Intimidation",
         "Investigation", "Perception", "Performance", "Persuasion",
         "Sleight of Hand", "Stealth"],
        4,
    ),
    "Sorcerer": SkillChoice(
        ["Arcana", "Deception", "Insight", "Intimidation", "Persuasion", "Religion"], 2
    ),
    "Warlock": SkillChoice(
        ["Arcana", "Deception", "History", "Intimidation", "Investigation", "Nature",
         "Religion"],
        2,
    ),
    "Wizard": SkillChoice(
        ["Arcana", "History", "Insight", "Investigation", "Medicine", "Religion"], 2
    ),
}

RACE_SPEED: dict[str, int] = {
    "Dragonborn": 30,
    "Dwarf": 25,
    "Elf": 30,
    "Gnome": 25,
    "Half-Elf": 30,
    "Half-Orc": 30,
    "Halfling": 25,
    "Human": 30,
    "Tiefling": 30,
}

XP_THRESHOLDS: dict[int, int] = {
    1: 0,
    2: 300,
    3: 900,
    4: 2700,
    5: 6500,
    6: 14000,
    7: 23000,
    8: 34000,
    9: 48000,
    10: 64000,
    11: 85000,
    12: 100000,
    13: 120000,
    14: 140000,
    15: 165000,
    16: 195000,
    17: 225000,
    18: 265000,
    19: 305000,
    20: 355000,
}


# ═══════════════════════════════════════════════════════════════════════════════
# FORMULAS
# ═══════════════════════════════════════════════════════════════════════════════

def ability_modifier(score: int) -> int:
    return (score - 10) // 2


def proficiency_bonus(level: int) -> int:
    if level < 1:
        return 2
    return (level - 1) // 4 + 2


def skill_bonus(ability_score: int, level: int, proficient: bool) -> int:
    bonus = ability_modifier(ability_score)
    if proficient:
        bonus += proficiency_bonus(level)
    return bonus


# Saving throws use the same arithmetic as skills.
saving_throw = skill_bonus


def initiative(dexterity: int) -> int:
    return ability_modifier(dexterity)


def passive_perception(wisdom: int, level: int, proficient: bool) -> int:
    return 10 + skill_bonus(wisdom, level, proficient)


def format_modifier(mod: int) -> str:
    """Signed modifier: ``+3``, ``+0``, ``-1``."""
    return f"+{mod}" if mod >= 0 else str(mod)


def has_proficiency(proficiencies: list[str], name: str) -> bool:
    return any(p.lower() == name.lower() for p in proficiencies)


def level_from_xp(xp: int) -> int:
    for level in range(20, 0, -1):
        if xp >= XP_THRESHOLDS[level]:
            return level
    return 1


def xp_to_next_level(xp: int) -> int:
    level = level_from_xp(xp)
    if level >= 20:
        return 0
    return XP_THRESHOLDS[level + 1] - xp


def next_level_threshold(level: int) -> int:
    """XP shown as the target on the background tab."""
    return XP_THRESHOLDS[min(level + 1, 20)]


def hit_die(class_name: str) -> int:
    return CLASS_HIT_DICE.get(class_name, 8)


def starting_hit_points(class_name: str, constitution: int) -> int:
    """Level-one maximum: full hit die plus CON modifier, never below 1."""
    return max(1, hit_die(class_name) + ability_modifier(constitution))
