"""Typed records exchanged with the persistence collaborator.

One model per relational table: users, characters, and the character-owned
child tables (details, attacks, actions, inventory, currency, magic items,
spellcasting, spells, features).
"""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str | None = None
    password_hash: str | None = None
    public_key: str | None = None
    created_at: datetime = Field(default_factory=_now)


class Character(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    class_: str = Field(alias="class")
    level: int = 1
    race: str
    background: str | None = None
    alignment: str | None = None
    experience_points: int = 0

    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    wisdom: int = 10
    charisma: int = 10

    max_hit_points: int = 1
    current_hit_points: int = 1
    temporary_hit_points: int = 0
    armor_class: int = 10
    speed: int = 30

    saving_throw_proficiencies: list[str] = Field(default_factory=list)
    skill_proficiencies: list[str] = Field(default_factory=list)

    features_traits: str = ""
    notes: str = ""

    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    model_config = ConfigDict(populate_by_name=True)

    def ability_scores(self) -> dict[str, int]:
        return {
            "strength": self.strength,
            "dexterity": self.dexterity,
            "constitution": self.constitution,
            "intelligence": self.intelligence,
            "wisdom": self.wisdom,
            "charisma": self.charisma,
        }


class CharacterDetails(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str

    age: str | None = None
    height: str | None = None
    weight: str | None = None
    eyes: str | None = None
    skin: str | None = None
    hair: str | None = None
    size: str | None = None
    gender: str | None = None

    faith_deity: str | None = None
    personality_traits: str | None = None
    ideals: str | None = None
    bonds: str | None = None
    flaws: str | None = None
    backstory: str | None = None
    allies_organizations: str | None = None

    inspiration: bool = False
    death_save_successes: int = 0
    death_save_failures: int = 0
    hit_dice_used: int = 0


class Attack(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    sort_order: int = 0
    name: str
    attack_bonus: int = 0
    damage: str | None = None
    damage_type: str | None = None
    range: str | None = None
    properties: str | None = None
    notes: str | None = None


class Action(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    sort_order: int = 0
    name: str
    action_type: str = "action"
    source: str | None = None
    description: str | None = None
    uses_per: str | None = None
    uses_max: int | None = None
    uses_current: int | None = None


class InventoryItem(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    sort_order: int = 0
    name: str
    quantity: int = 1
    weight: float | None = None
    location: str | None = None
    notes: str | None = None
    is_equipped: bool = False


class Currency(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    copper: int = 0
    silver: int = 0
    electrum: int = 0
    gold: int = 0
    platinum: int = 0


class MagicItem(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    sort_order: int = 0
    name: str
    rarity: str | None = None
    attunement_required: bool = False
    is_attuned: bool = False
    weight: float | None = None
    description: str | None = None


class Spellcasting(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    spellcasting_class: str | None = None
    spellcasting_ability: str | None = None
    spell_save_dc: int | None = None
    spell_attack_bonus: int | None = None
    # Index 0 is level 1.
    slots_max: list[int] = Field(default_factory=lambda: [0] * 9)
    slots_used: list[int] = Field(default_factory=lambda: [0] * 9)


class Spell(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    name: str
    level: int = Field(default=0, ge=0, le=9)
    school: str | None = None
    is_prepared: bool = False
    is_ritual: bool = False
    casting_time: str | None = None
    range: str | None = None
    components: str | None = None
    duration: str | None = None
    description: str | None = None
    source: str | None = None


class Feature(BaseModel):
    id: str = Field(default_factory=new_id)
    character_id: str
    sort_order: int = 0
    name: str
    source: str | None = None
    source_type: str | None = None
    description: str | None = None
