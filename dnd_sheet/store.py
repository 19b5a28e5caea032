"""Persistence collaborator: the CharacterStore protocol and an in-memory store.

The UI only ever talks to ``CharacterStore``. ``MemoryStore`` backs the local
``play`` command and the test-suite; a database-backed implementation only has
to satisfy the same protocol.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Protocol, TypeVar

from pydantic import BaseModel

from .models import (
    Action,
    Attack,
    Character,
    CharacterDetails,
    Currency,
    Feature,
    InventoryItem,
    MagicItem,
    Spell,
    Spellcasting,
    User,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class StoreError(Exception):
    """A persistence call failed."""


class RecordNotFound(StoreError):
    """The requested row does not exist."""


class CharacterStore(Protocol):
    backend_name: str

    # Users
    def get_user(self, user_id: str) -> User: ...

    def get_user_by_email(self, email: str) -> User: ...

    def get_user_by_public_key(self, public_key: str) -> User: ...

    def create_user(
        self,
        *,
        email: str | None = None,
        password_hash: str | None = None,
        public_key: str | None = None,
    ) -> User: ...

    # Characters
    def get_character(self, character_id: str) -> Character: ...

    def list_characters(self, user_id: str) -> list[Character]: ...

    def create_character(self, character: Character) -> Character: ...

    def update_hit_points(self, character_id: str, current: int, temporary: int) -> Character: ...

    def update_notes(self, character_id: str, features_traits: str, notes: str) -> Character: ...

    def update_alignment(self, character_id: str, alignment: str) -> Character: ...

    def delete_character(self, character_id: str) -> None: ...

    # Details
    def get_details(self, character_id: str) -> CharacterDetails: ...

    def create_details(self, character_id: str) -> CharacterDetails: ...

    def update_details(self, details: CharacterDetails) -> CharacterDetails: ...

    # Child lists
    def list_attacks(self, character_id: str) -> list[Attack]: ...

    def create_attack(self, attack: Attack) -> Attack: ...

    def delete_attack(self, attack_id: str) -> None: ...

    def list_actions(self, character_id: str) -> list[Action]: ...

    def create_action(self, action: Action) -> Action: ...

    def delete_action(self, action_id: str) -> None: ...

    def list_inventory(self, character_id: str) -> list[InventoryItem]: ...

    def create_inventory_item(self, item: InventoryItem) -> InventoryItem: ...

    def delete_inventory_item(self, item_id: str) -> None: ...

    def toggle_item_equipped(self, item_id: str) -> InventoryItem: ...

    def get_currency(self, character_id: str) -> Currency: ...

    def list_magic_items(self, character_id: str) -> list[MagicItem]: ...

    def create_magic_item(self, item: MagicItem) -> MagicItem: ...

    def delete_magic_item(self, item_id: str) -> None: ...

    def toggle_magic_item_attunement(self, item_id: str) -> MagicItem: ...

    def get_spellcasting(self, character_id: str) -> Spellcasting: ...

    def list_spells(self, character_id: str, level: int | None = None) -> list[Spell]: ...

    def create_spell(self, spell: Spell) -> Spell: ...

    def delete_spell(self, spell_id: str) -> None: ...

    def toggle_spell_prepared(self, spell_id: str) -> Spell: ...

    def list_features(self, character_id: str, source_type: str | None = None) -> list[Feature]: ...

    def create_feature(self, feature: Feature) -> Feature: ...

    def delete_feature(self, feature_id: str) -> None: ...


def _copy(record: M) -> M:
    return record.model_copy(deep=True)


class MemoryStore:
    """Thread-safe in-process store.

    Commands run on worker threads, so every access goes through one lock.
    Records are copied in and out; callers never share instances with the
    store.
    """

    backend_name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self.users: dict[str, User] = {}
        self.characters: dict[str, Character] = {}
        self.details: dict[str, CharacterDetails] = {}
        self.attacks: dict[str, Attack] = {}
        self.actions: dict[str, Action] = {}
        self.inventory: dict[str, InventoryItem] = {}
        self.currency: dict[str, Currency] = {}
        self.magic_items: dict[str, MagicItem] = {}
        self.spellcasting: dict[str, Spellcasting] = {}
        self.spells: dict[str, Spell] = {}
        self.features: dict[str, Feature] = {}

    # ── helpers ────────────────────────────────────────────────────

    @staticmethod
    def _get(table: dict[str, M], key: str, what: str) -> M:
        try:
            return table[key]
        except KeyError:
            raise RecordNotFound(f"{what} not found: {key}") from None

    @staticmethod
    def _owned(table: dict[str, M], character_id: str) -> list[M]:
        return [r for r in table.values() if getattr(r, "character_id") == character_id]

    def _by_character(self, table: dict[str, M], character_id: str, what: str) -> M:
        for record in table.values():
            if getattr(record, "character_id") == character_id:
                return record
        raise RecordNotFound(f"{what} not found for character {character_id}")

    def _touch(self, character: Character) -> None:
        character.updated_at = datetime.now(timezone.utc)

    def _insert(self, table: dict[str, M], record: M, character_id: str | None = None) -> M:
        if character_id is not None and character_id not in self.characters:
            raise RecordNotFound(f"character not found: {character_id}")
        stored = _copy(record)
        table[stored.id] = stored  # type: ignore[attr-defined]
        return _copy(stored)

    def _delete(self, table: dict[str, M], key: str, what: str) -> None:
        if table.pop(key, None) is None:
            raise RecordNotFound(f"{what} not found: {key}")

    # ── users ──────────────────────────────────────────────────────

    def get_user(self, user_id: str) -> User:
        with self._lock:
            return _copy(self._get(self.users, user_id, "user"))

    def get_user_by_email(self, email: str) -> User:
        with self._lock:
            for user in self.users.values():
                if user.email == email:
                    return _copy(user)
        raise RecordNotFound(f"user not found: {email}")

    def get_user_by_public_key(self, public_key: str) -> User:
        with self._lock:
            for user in self.users.values():
                if user.public_key == public_key:
                    return _copy(user)
        raise RecordNotFound("user not found for public key")

    def create_user(
        self,
        *,
        email: str | None = None,
        password_hash: str | None = None,
        public_key: str | None = None,
    ) -> User:
        if not ((email and password_hash) or public_key):
            raise StoreError("a user needs email+password or a public key")
        with self._lock:
            for user in self.users.values():
                if email and user.email == email:
                    raise StoreError(f"email already registered: {email}")
                if public_key and user.public_key == public_key:
                    raise StoreError("public key already registered")
            user = User(email=email, password_hash=password_hash, public_key=public_key)
            return self._insert(self.users, user)

    # ── characters ─────────────────────────────────────────────────

    def get_character(self, character_id: str) -> Character:
        with self._lock:
            return _copy(self._get(self.characters, character_id, "character"))

    def list_characters(self, user_id: str) -> list[Character]:
        with self._lock:
            owned = [c for c in self.characters.values() if c.user_id == user_id]
            owned.sort(key=lambda c: c.updated_at, reverse=True)
            return [_copy(c) for c in owned]

    def create_character(self, character: Character) -> Character:
        with self._lock:
            if character.user_id not in self.users:
                raise RecordNotFound(f"user not found: {character.user_id}")
            created = self._insert(self.characters, character)
        logger.info("Created character %s (%s)", created.name, created.id)
        return created

    def _update_character(self, character_id: str, **changes) -> Character:
        with self._lock:
            character = self._get(self.characters, character_id, "character")
            for key, value in changes.items():
                setattr(character, key, value)
            self._touch(character)
            return _copy(character)

    def update_hit_points(self, character_id: str, current: int, temporary: int) -> Character:
        return self._update_character(
            character_id, current_hit_points=current, temporary_hit_points=temporary
        )

    def update_notes(self, character_id: str, features_traits: str, notes: str) -> Character:
        return self._update_character(character_id, features_traits=features_traits, notes=notes)

    def update_alignment(self, character_id: str, alignment: str) -> Character:
        return self._update_character(character_id, alignment=alignment)

    def delete_character(self, character_id: str) -> None:
        with self._lock:
            self._delete(self.characters, character_id, "character")
            # Cascade to every owned table.
            for table in (
                self.details,
                self.attacks,
                self.actions,
                self.inventory,
                self.currency,
                self.magic_items,
                self.spellcasting,
                self.spells,
                self.features,
            ):
                for key in [k for k, r in table.items() if r.character_id == character_id]:
                    del table[key]
        logger.info("Deleted character %s", character_id)

    # ── details ────────────────────────────────────────────────────

    def get_details(self, character_id: str) -> CharacterDetails:
        with self._lock:
            return _copy(self._by_character(self.details, character_id, "details"))

    def create_details(self, character_id: str) -> CharacterDetails:
        with self._lock:
            if self._owned(self.details, character_id):
                raise StoreError(f"details already exist for character {character_id}")
            return self._insert(self.details, CharacterDetails(character_id=character_id), character_id)

    def update_details(self, details: CharacterDetails) -> CharacterDetails:
        with self._lock:
            current = self._by_character(self.details, details.character_id, "details")
            stored = details.model_copy(update={"id": current.id}, deep=True)
            self.details[current.id] = stored
            return _copy(stored)

    # ── attacks / actions ──────────────────────────────────────────

    def list_attacks(self, character_id: str) -> list[Attack]:
        with self._lock:
            rows = sorted(self._owned(self.attacks, character_id), key=lambda r: r.sort_order)
            return [_copy(r) for r in rows]

    def create_attack(self, attack: Attack) -> Attack:
        with self._lock:
            return self._insert(self.attacks, attack, attack.character_id)

    def delete_attack(self, attack_id: str) -> None:
        with self._lock:
            self._delete(self.attacks, attack_id, "attack")

    def list_actions(self, character_id: str) -> list[Action]:
        with self._lock:
            rows = sorted(self._owned(self.actions, character_id), key=lambda r: r.sort_order)
            return [_copy(r) for r in rows]

    def create_action(self, action: Action) -> Action:
        with self._lock:
            return self._insert(self.actions, action, action.character_id)

    def delete_action(self, action_id: str) -> None:
        with self._lock:
            self._delete(self.actions, action_id, "action")

    # ── inventory / currency / magic items ─────────────────────────

    def list_inventory(self, character_id: str) -> list[InventoryItem]:
        with self._lock:
            rows = sorted(self._owned(self.inventory, character_id), key=lambda r: r.sort_order)
            return [_copy(r) for r in rows]

    def create_inventory_item(self, item: InventoryItem) -> InventoryItem:
        with self._lock:
            return self._insert(self.inventory, item, item.character_id)

    def delete_inventory_item(self, item_id: str) -> None:
        with self._lock:
            self._delete(self.inventory, item_id, "inventory item")

    def toggle_item_equipped(self, item_id: str) -> InventoryItem:
        with self._lock:
            item = self._get(self.inventory, item_id, "inventory item")
            item.is_equipped = not item.is_equipped
            return _copy(item)

    def get_currency(self, character_id: str) -> Currency:
        with self._lock:
            return _copy(self._by_character(self.currency, character_id, "currency"))

    def set_currency(self, currency: Currency) -> Currency:
        with self._lock:
            for key in [k for k, r in self.currency.items() if r.character_id == currency.character_id]:
                del self.currency[key]
            return self._insert(self.currency, currency, currency.character_id)

    def list_magic_items(self, character_id: str) -> list[MagicItem]:
        with self._lock:
            rows = sorted(self._owned(self.magic_items, character_id), key=lambda r: r.sort_order)
            return [_copy(r) for r in rows]

    def create_magic_item(self, item: MagicItem) -> MagicItem:
        with self._lock:
            return self._insert(self.magic_items, item, item.character_id)

    def delete_magic_item(self, item_id: str) -> None:
        with self._lock:
            self._delete(self.magic_items, item_id, "magic item")

    def toggle_magic_item_attunement(self, item_id: str) -> MagicItem:
        with self._lock:
            item = self._get(self.magic_items, item_id, "magic item")
            item.is_attuned = not item.is_attuned
            return _copy(item)

    # ── spellcasting / spells ──────────────────────────────────────

    def get_spellcasting(self, character_id: str) -> Spellcasting:
        with self._lock:
            return _copy(self._by_character(self.spellcasting, character_id, "spellcasting"))

    def set_spellcasting(self, spellcasting: Spellcasting) -> Spellcasting:
        with self._lock:
            for key in [
                k for k, r in self.spellcasting.items() if r.character_id == spellcasting.character_id
            ]:
                del self.spellcasting[key]
            return self._insert(self.spellcasting, spellcasting, spellcasting.character_id)

    def list_spells(self, character_id: str, level: int | None = None) -> list[Spell]:
        with self._lock:
            rows = [
                s for s in self._owned(self.spells, character_id) if level is None or s.level == level
            ]
            rows.sort(key=lambda s: (s.level, s.name))
            return [_copy(r) for r in rows]

    def create_spell(self, spell: Spell) -> Spell:
        with self._lock:
            return self._insert(self.spells, spell, spell.character_id)

    def delete_spell(self, spell_id: str) -> None:
        with self._lock:
            self._delete(self.spells, spell_id, "spell")

    def toggle_spell_prepared(self, spell_id: str) -> Spell:
        with self._lock:
            spell = self._get(self.spells, spell_id, "spell")
            spell.is_prepared = not spell.is_prepared
            return _copy(spell)

    # ── features ───────────────────────────────────────────────────

    def list_features(self, character_id: str, source_type: str | None = None) -> list[Feature]:
        with self._lock:
            rows = [
                f
                for f in self._owned(self.features, character_id)
                if source_type is None or f.source_type == source_type
            ]
            rows.sort(key=lambda f: f.sort_order)
            return [_copy(r) for r in rows]

    def create_feature(self, feature: Feature) -> Feature:
        with self._lock:
            return self._insert(self.features, feature, feature.character_id)

    def delete_feature(self, feature_id: str) -> None:
        with self._lock:
            self._delete(self.features, feature_id, "feature")


def seed_demo(store: MemoryStore, user: User) -> Character:
    """Give ``user`` a fully populated sample character.

    Used by ``dnd-sheet play --demo`` so every tab has something to show.
    """
    hero = store.create_character(
        Character(
            user_id=user.id,
            name="Elara Moonwhisper",
            class_="Wizard",
            level=5,
            race="Elf",
            background="Sage",
            alignment="Neutral Good",
            experience_points=6500,
            strength=8,
            dexterity=14,
            constitution=13,
            intelligence=17,
            wisdom=12,
            charisma=10,
            max_hit_points=27,
            current_hit_points=27,
            armor_class=12,
            speed=30,
            saving_throw_proficiencies=["Intelligence", "Wisdom"],
            skill_proficiencies=["Arcana", "History", "Investigation", "Insight"],
            features_traits="Darkvision 60 ft.\nFey Ancestry",
            notes="Owes the Candlekeep librarian three books.",
        )
    )
    cid = hero.id

    details = store.create_details(cid)
    store.update_details(
        details.model_copy(
            update={
                "size": "Medium",
                "age": "142",
                "eyes": "Silver",
                "hair": "Black",
                "ideals": "Knowledge is the path to power.",
                "backstory": "Raised among the archives of a forgotten library.",
            }
        )
    )

    store.create_attack(
        Attack(character_id=cid, sort_order=0, name="Quarterstaff", attack_bonus=1,
               damage="1d6-1", damage_type="Bludgeoning", range="5 ft")
    )
    store.create_attack(
        Attack(character_id=cid, sort_order=1, name="Fire Bolt", attack_bonus=6,
               damage="2d10", damage_type="Fire", range="120 ft")
    )
    store.create_action(
        Action(character_id=cid, name="Arcane Recovery", action_type="other",
               source="Wizard 1", uses_max=1, uses_current=1, uses_per="long rest")
    )

    store.create_inventory_item(
        InventoryItem(character_id=cid, sort_order=0, name="Spellbook", weight=3.0,
                      location="Backpack")
    )
    store.create_inventory_item(
        InventoryItem(character_id=cid, sort_order=1, name="Quarterstaff", weight=4.0,
                      location="Hand", is_equipped=True)
    )
    store.set_currency(Currency(character_id=cid, gold=45, silver=12, copper=30))
    store.create_magic_item(
        MagicItem(character_id=cid, name="Cloak of Protection", rarity="Uncommon",
                  attunement_required=True, is_attuned=True, weight=1.0)
    )

    store.set_spellcasting(
        Spellcasting(
            character_id=cid,
            spellcasting_class="Wizard",
            spellcasting_ability="intelligence",
            spell_save_dc=14,
            spell_attack_bonus=6,
            slots_max=[4, 3, 2, 0, 0, 0, 0, 0, 0],
            slots_used=[1, 0, 0, 0, 0, 0, 0, 0, 0],
        )
    )
    for name, level, school, prepared in (
        ("Fire Bolt", 0, "Evocation", False),
        ("Mage Hand", 0, "Conjuration", False),
        ("Magic Missile", 1, "Evocation", True),
        ("Shield", 1, "Abjuration", True),
        ("Misty Step", 2, "Conjuration", True),
        ("Fireball", 3, "Evocation", True),
    ):
        store.create_spell(
            Spell(character_id=cid, name=name, level=level, school=school,
                  is_prepared=prepared, casting_time="1 action", range="120 feet")
        )

    for order, (name, source, source_type) in enumerate((
        ("Arcane Recovery", "Wizard 1", "class"),
        ("Arcane Tradition", "Wizard 2", "class"),
        ("Darkvision", "Elf", "race"),
        ("Researcher", "Sage", "background"),
    )):
        store.create_feature(
            Feature(character_id=cid, sort_order=order, name=name, source=source,
                    source_type=source_type)
        )
    return hero
