from __future__ import annotations

from datetime import datetime, timezone

import pytest

from dnd_sheet.models import Attack, Character, Feature, InventoryItem, Spell
from dnd_sheet.store import RecordNotFound, StoreError, seed_demo


def test_create_user_requires_credentials(store):
    with pytest.raises(StoreError):
        store.create_user(email="a@b.c")
    store.create_user(email="a@b.c", password_hash="h")
    with pytest.raises(StoreError):
        store.create_user(email="a@b.c", password_hash="other")


def test_user_lookup(store):
    user = store.create_user(public_key="ssh-ed25519 AAAA")
    assert store.get_user(user.id) == user
    assert store.get_user_by_public_key("ssh-ed25519 AAAA").id == user.id
    with pytest.raises(RecordNotFound):
        store.get_user_by_email("nobody@example.com")


def test_records_are_copied(store, user):
    hero = store.create_character(Character(user_id=user.id, name="Brom", class_="Fighter", race="Dwarf"))
    hero.name = "Changed"
    assert store.get_character(hero.id).name == "Brom"


def test_character_needs_existing_user(store):
    with pytest.raises(RecordNotFound):
        store.create_character(Character(user_id="missing", name="X", class_="Bard", race="Elf"))


def test_list_characters_most_recent_first(store, user):
    def make(name, day):
        return store.create_character(
            Character(
                user_id=user.id,
                name=name,
                class_="Bard",
                race="Elf",
                updated_at=datetime(2024, 1, day, tzinfo=timezone.utc),
            )
        )

    older = make("Old", 1)
    make("New", 2)
    assert [c.name for c in store.list_characters(user.id)] == ["New", "Old"]

    store.update_alignment(older.id, "Chaotic Good")
    assert [c.name for c in store.list_characters(user.id)] == ["Old", "New"]


def test_update_hit_points_and_notes(store, character):
    updated = store.update_hit_points(character.id, 10, 5)
    assert (updated.current_hit_points, updated.temporary_hit_points) == (10, 5)
    assert updated.updated_at >= character.updated_at

    updated = store.update_notes(character.id, "Keen Senses", "Remember the password")
    assert updated.features_traits == "Keen Senses"
    assert updated.notes == "Remember the password"


def test_delete_character_cascades(store, character):
    cid = character.id
    store.delete_character(cid)
    with pytest.raises(RecordNotFound):
        store.get_character(cid)
    assert store.list_attacks(cid) == []
    assert store.list_spells(cid) == []
    with pytest.raises(RecordNotFound):
        store.get_details(cid)
    with pytest.raises(RecordNotFound):
        store.delete_character(cid)


def test_details_created_once(store, character):
    with pytest.raises(StoreError):
        store.create_details(character.id)
    details = store.get_details(character.id)
    saved = store.update_details(details.model_copy(update={"eyes": "Green"}))
    assert saved.id == details.id
    assert store.get_details(character.id).eyes == "Green"


def test_child_rows_need_character(store):
    with pytest.raises(RecordNotFound):
        store.create_attack(Attack(character_id="missing", name="Claw"))


def test_attacks_sorted_and_deleted(store, character):
    cid = character.id
    store.create_attack(Attack(character_id=cid, sort_order=-1, name="Dagger"))
    names = [a.name for a in store.list_attacks(cid)]
    assert names == ["Dagger", "Quarterstaff", "Fire Bolt"]

    first = store.list_attacks(cid)[0]
    store.delete_attack(first.id)
    assert [a.name for a in store.list_attacks(cid)] == ["Quarterstaff", "Fire Bolt"]


def test_toggles(store, character):
    cid = character.id
    spellbook = store.list_inventory(cid)[0]
    assert store.toggle_item_equipped(spellbook.id).is_equipped

    cloak = store.list_magic_items(cid)[0]
    assert not store.toggle_magic_item_attunement(cloak.id).is_attuned

    shield = next(s for s in store.list_spells(cid) if s.name == "Shield")
    assert store.toggle_spell_prepared(shield.id).is_prepared != shield.is_prepared


def test_spells_filtered_by_level(store, character):
    cid = character.id
    assert [s.name for s in store.list_spells(cid, level=0)] == ["Fire Bolt", "Mage Hand"]
    assert [s.level for s in store.list_spells(cid)] == sorted(s.level for s in store.list_spells(cid))
    store.create_spell(Spell(character_id=cid, name="Wish", level=9))
    assert store.list_spells(cid)[-1].name == "Wish"


def test_features_filtered_by_source(store, character):
    cid = character.id
    assert [f.name for f in store.list_features(cid, "race")] == ["Darkvision"]
    store.create_feature(Feature(character_id=cid, name="Lucky", source_type="feat"))
    assert [f.name for f in store.list_features(cid, "feat")] == ["Lucky"]


def test_inventory_rows_need_real_ids(store, character):
    store.create_inventory_item(InventoryItem(character_id=character.id, name="Rope"))
    with pytest.raises(RecordNotFound):
        store.delete_inventory_item("missing")


def test_seed_demo_populates_every_table(store, user):
    hero = seed_demo(store, user)
    assert hero.name == "Elara Moonwhisper"
    assert store.get_spellcasting(hero.id).spellcasting_class == "Wizard"
    assert store.get_currency(hero.id).gold == 45
    assert len(store.list_spells(hero.id)) == 6
    assert len(store.list_features(hero.id)) == 4
