"""Character sheet: seven tabs behind an exclusive input mode."""
from __future__ import annotations

import logging
from typing import Any, Callable

from rich.console import Group, RenderableType
from rich.text import Text

from ...dice import roll_d20
from ...models import (
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
)
from ...store import RecordNotFound, StoreError
from ..commands import Command, message
from ..components import render_help, render_status
from ..events import (
    CharacterUpdated,
    ClearStatus,
    Key,
    ModalCancel,
    ModalSave,
    NavigateBack,
    Resize,
    SheetDataChanged,
    StatusMessage,
    TableDelete,
    Tick,
)
from ..modal import ModalForm
from ..router import register_screen
from ..table import ScrollableTable, TableColumn, TableRow
from ..textinput import TextArea, TextInput
from . import sheet_forms as forms
from . import sheet_views as views
from .base import Screen
from .sheet_forms import MODAL_MODES, NUMERIC_MODES, TEXTAREA_MODES, SheetMode
from .sheet_views import BACKGROUND, COMBAT, CORE, FEATURES, INVENTORY, NOTES, SPELLS, TABS

logger = logging.getLogger(__name__)

NAV_KEYS = {"up", "down", "j", "k", "pgup", "pgdown", "home", "end", "g", "G"}
HELP_CLOSE_KEYS = {"?", "esc", "q", "enter", " "}
SPELL_FILTER_KEYS = {str(n) for n in range(10)}

# Store listing used to refresh each cached list after a write.
LISTERS = {
    "attacks": "list_attacks",
    "actions": "list_actions",
    "inventory": "list_inventory",
    "magic_items": "list_magic_items",
    "spells": "list_spells",
}


def _then(action: Callable[[Any], Any], arg: Any, done: str) -> Callable[[], str]:
    """Store write that reports ``done`` once ``action(arg)`` succeeds."""
    def write() -> str:
        action(arg)
        return done
    return write


@register_screen("sheet")
class SheetScreen(Screen):
    """Tabbed editor for one character.

    Reads are synchronous against the store; every write is a Command whose
    result (``SheetDataChanged``, ``CharacterUpdated`` or an error
    ``StatusMessage``) comes back through ``update``.
    """

    def __init__(self, router, character: Character):
        super().__init__(router)
        self.character = character
        self.tab = CORE
        self.mode = SheetMode.VIEW
        self.combat_focus = 1
        self.inventory_focus = 1
        self.spell_filter: int | None = None
        self.feature_filter: str | None = None
        self.pending = False
        self.status = ""
        self.status_error = False
        self.modal: ModalForm | None = None

        self.hp_input = TextInput(placeholder="HP", width=5, char_limit=4)
        self.damage_input = TextInput(placeholder="0", width=5, char_limit=4)
        self.heal_input = TextInput(placeholder="0", width=5, char_limit=4)
        self.notes_area = TextArea(placeholder="Notes...", width=60, height=8)
        self.features_area = TextArea(placeholder="Features & traits...", width=60, height=8)

        self.skills_table = self._table(views.SKILL_COLUMNS, 12, "No skills available")
        self.attacks_table = self._table(views.ATTACK_COLUMNS, 5, "No attacks - press 'a' to add")
        self.actions_table = self._table(views.ACTION_COLUMNS, 5, "No actions - press 'a' to add")
        self.inventory_table = self._table(views.INVENTORY_COLUMNS, 8, "No items - press 'a' to add")
        self.magic_items_table = self._table(views.MAGIC_ITEM_COLUMNS, 5, "No magic items - press 'a' to add")
        self.spells_table = self._table(views.SPELL_COLUMNS, 10, "No spells known")
        self.features_table = self._table(views.FEATURE_COLUMNS, 12, "No features")

        self.attacks: list[Attack] = []
        self.actions: list[Action] = []
        self.inventory: list[InventoryItem] = []
        self.magic_items: list[MagicItem] = []
        self.spells: list[Spell] = []
        self.features: list[Feature] = []
        self.details: CharacterDetails | None = None
        self.currency: Currency | None = None
        self.spellcasting: Spellcasting | None = None

        self.load()
        self._fit_tables()
        self._update_table_focus()

    def _table(self, columns: list[TableColumn], visible_rows: int, empty: str) -> ScrollableTable:
        return ScrollableTable(
            columns,
            self.theme,
            visible_rows=visible_rows,
            width=self.width,
            empty_message=empty,
        )

    # ── Loading ────────────────────────────────────────────────────

    def _load_list(self, fetch: Callable[[str], list], what: str) -> list:
        try:
            return fetch(self.character.id)
        except StoreError:
            logger.warning("Loading %s for %s failed", what, self.character.id, exc_info=True)
            return []

    def _load_optional(self, fetch: Callable[[str], Any], what: str) -> Any:
        try:
            return fetch(self.character.id)
        except RecordNotFound:
            return None
        except StoreError:
            logger.warning("Loading %s for %s failed", what, self.character.id, exc_info=True)
            return None

    def load(self) -> None:
        """Reload every cached list for the current character."""
        store = self.store
        self.attacks = self._load_list(store.list_attacks, "attacks")
        self.actions = self._load_list(store.list_actions, "actions")
        self.inventory = self._load_list(store.list_inventory, "inventory")
        self.magic_items = self._load_list(store.list_magic_items, "magic items")
        self.details = self._load_optional(store.get_details, "details")
        self.currency = self._load_optional(store.get_currency, "currency")
        self.spellcasting = self._load_optional(store.get_spellcasting, "spellcasting")
        self._reload_spells()
        self._reload_features()
        self._refresh_tables()

    def _reload_spells(self) -> None:
        self.spells = self._load_list(lambda cid: self.store.list_spells(cid, self.spell_filter), "spells")
        self.spells_table.set_rows(views.spell_rows(self.spells))

    def _reload_features(self) -> None:
        self.features = self._load_list(
            lambda cid: self.store.list_features(cid, self.feature_filter), "features"
        )
        self.features_table.set_rows(views.feature_rows(self.features))

    def _refresh_tables(self) -> None:
        self.skills_table.set_rows(views.skill_rows(self.character))
        self.attacks_table.set_rows(views.attack_rows(self.attacks))
        self.actions_table.set_rows(views.action_rows(self.actions))
        self.inventory_table.set_rows(views.inventory_rows(self.inventory))
        self.magic_items_table.set_rows(views.magic_item_rows(self.magic_items))
        self.spells_table.set_rows(views.spell_rows(self.spells))
        self.features_table.set_rows(views.feature_rows(self.features))

    def set_character(self, character: Character) -> None:
        """Swap in a fresh snapshot; tab and focus survive, a pending edit completes."""
        self.character = character
        self.load()
        if self.pending:
            self.pending = False
            self._leave_mode()

    # ── Focus / geometry ───────────────────────────────────────────

    def _focused_table(self) -> ScrollableTable | None:
        if self.tab == CORE:
            return self.skills_table
        if self.tab == COMBAT:
            return self.actions_table if self.combat_focus == 2 else self.attacks_table
        if self.tab == SPELLS:
            return self.spells_table
        if self.tab == INVENTORY:
            return self.magic_items_table if self.inventory_focus == 2 else self.inventory_table
        if self.tab == FEATURES:
            return self.features_table
        return None

    def _update_table_focus(self) -> None:
        focused = self._focused_table()
        for table in self._tables():
            table.set_focused(table is focused)

    def _tables(self) -> list[ScrollableTable]:
        return [
            self.skills_table,
            self.attacks_table,
            self.actions_table,
            self.inventory_table,
            self.magic_items_table,
            self.spells_table,
            self.features_table,
        ]

    def _fit_tables(self) -> None:
        """Shrink table windows so each tab fits the terminal height."""
        h = self.height
        slot_lines = 0
        if self.spellcasting is not None:
            slot_lines = sum(1 for n in self.spellcasting.slots_max if n > 0)
        self.skills_table.set_visible_rows(max(3, min(self.skills_table.row_count, h - 12)))
        self.attacks_table.set_visible_rows(max(3, min(5, h - 18)))
        self.actions_table.set_visible_rows(max(3, min(5, h - 18)))
        self.inventory_table.set_visible_rows(max(3, min(8, h - 19)))
        self.magic_items_table.set_visible_rows(max(3, min(5, h - 19)))
        self.spells_table.set_visible_rows(max(3, min(10, h - 17 - slot_lines)))
        self.features_table.set_visible_rows(max(3, min(12, h - 15)))
        for table in self._tables():
            table.set_width(self.width)

    # ── Update ─────────────────────────────────────────────────────

    def update(self, event: object) -> list[Any]:
        if isinstance(event, Resize):
            self._fit_tables()
            if self.modal is not None:
                self.modal.set_size(event.width, event.height)
            return []
        if isinstance(event, Tick):
            self._tick(event)
            return []
        if isinstance(event, CharacterUpdated):
            self.set_character(event.character)
            return []
        if isinstance(event, SheetDataChanged):
            return self._apply_change(event)
        if isinstance(event, StatusMessage):
            return self._set_status(event.message, event.is_error)
        if isinstance(event, ClearStatus):
            self.status = ""
            self.status_error = False
            return []
        if isinstance(event, ModalSave):
            return self._save_modal(event.values)
        if isinstance(event, ModalCancel):
            self.modal = None
            self.mode = SheetMode.VIEW
            return []
        if isinstance(event, TableDelete):
            return self._delete_row(event.row)
        if not isinstance(event, Key):
            return []

        if self.mode is SheetMode.VIEW:
            return self._update_view(event)
        if self.mode is SheetMode.HELP:
            if event.name in HELP_CLOSE_KEYS:
                self.mode = SheetMode.VIEW
            return []
        if self.mode in NUMERIC_MODES:
            return self._update_numeric(event)
        if self.mode in TEXTAREA_MODES:
            return self._update_textarea(event)
        return self._update_modal(event)

    def _tick(self, event: Tick) -> None:
        if self.mode in MODAL_MODES and self.modal is not None:
            self.modal.update(event)
        elif self.mode in NUMERIC_MODES:
            self._numeric_input().update(event)
        elif self.mode in TEXTAREA_MODES:
            self._textarea().update(event)

    def _set_status(self, text: str, is_error: bool) -> list[Any]:
        self.status = text
        self.status_error = is_error
        if is_error and self.pending:
            self.pending = False
            self._leave_mode()
        # One clear per message; an older clear may wipe a newer message.
        return [message("clear-status", ClearStatus(), delay=self.settings.DND_STATUS_CLEAR_SECONDS)]

    def _leave_mode(self) -> None:
        for field in (self.hp_input, self.damage_input, self.heal_input):
            field.blur()
        self.notes_area.blur()
        self.features_area.blur()
        self.mode = SheetMode.VIEW

    def _apply_change(self, event: SheetDataChanged) -> list[Any]:
        kind = event.kind
        if kind == "details":
            self.details = event.records
            if event.character is not None:
                self.character = event.character
        elif kind == "spells":
            self.spells = [s for s in event.records if self.spell_filter is None or s.level == self.spell_filter]
        else:
            setattr(self, kind, list(event.records))
        self._refresh_tables()
        return [StatusMessage(message=event.message)]

    # ── View mode ──────────────────────────────────────────────────

    def _update_view(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("tab", "right", "l"):
            self.tab = (self.tab + 1) % len(TABS)
            self._update_table_focus()
            return []
        if name in ("shift+tab", "left", "h"):
            self.tab = (self.tab - 1) % len(TABS)
            self._update_table_focus()
            return []
        if name == "?":
            self.mode = SheetMode.HELP
            return []
        if name in ("q", "esc"):
            return [NavigateBack()]
        if name == "r":
            roll = roll_d20()
            return [StatusMessage(message=f"Rolled d20: {roll}")]

        handler = {
            CORE: self._update_core,
            COMBAT: self._update_combat,
            SPELLS: self._update_spells,
            INVENTORY: self._update_inventory,
            FEATURES: self._update_features,
            BACKGROUND: self._update_background,
            NOTES: self._update_notes,
        }[self.tab]
        return handler(key)

    def _navigate(self, key: Key) -> list[Any]:
        table = self._focused_table()
        if table is not None and key.name in NAV_KEYS:
            table.update(key)
        return []

    def _delete_selected(self, key: Key) -> list[Any]:
        table = self._focused_table()
        intent = table.update(key) if table is not None else None
        return [intent] if isinstance(intent, TableDelete) else []

    def _update_core(self, key: Key) -> list[Any]:
        return self._navigate(key)

    def _update_combat(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("1", "2"):
            self.combat_focus = int(name)
            self._update_table_focus()
        elif name == "a":
            if self.combat_focus == 2:
                self._open_modal(SheetMode.ADD_ACTION, "Add Action", forms.action_fields())
            else:
                self._open_modal(SheetMode.ADD_ATTACK, "Add Attack", forms.attack_fields())
        elif name in ("d", "delete"):
            return self._delete_selected(key)
        elif name == "e":
            self._enter_numeric(SheetMode.EDIT_HP, str(self.character.current_hit_points))
        elif name == "-":
            self._enter_numeric(SheetMode.EDIT_DAMAGE, "")
        elif name in ("+", "="):
            self._enter_numeric(SheetMode.EDIT_HEAL, "")
        else:
            return self._navigate(key)
        return []

    def _update_spells(self, key: Key) -> list[Any]:
        name = key.name
        if name in SPELL_FILTER_KEYS:
            level = int(name)
            self.spell_filter = None if self.spell_filter == level else level
            self._reload_spells()
        elif name == "a":
            self._open_modal(SheetMode.ADD_SPELL, "Add Spell", forms.spell_fields(self.spell_filter))
        elif name in ("d", "x", "delete"):
            row = self.spells_table.selected_row()
            if row is not None:
                return [TableDelete(row=row)]
        elif name in ("p", " "):
            row = self.spells_table.selected_row()
            if row is not None:
                return [self._toggle_prepared(row.data)]
        else:
            return self._navigate(key)
        return []

    def _update_inventory(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("1", "2"):
            self.inventory_focus = int(name)
            self._update_table_focus()
        elif name == "a":
            if self.inventory_focus == 2:
                self._open_modal(SheetMode.ADD_MAGIC_ITEM, "Add Magic Item", forms.magic_item_fields())
            else:
                self._open_modal(SheetMode.ADD_ITEM, "Add Item", forms.item_fields())
        elif name in ("d", "delete"):
            return self._delete_selected(key)
        elif name == " ":
            row = self._focused_table().selected_row()
            if row is None:
                return []
            if isinstance(row.data, MagicItem):
                return [self._toggle_attunement(row.data)]
            return [self._toggle_equipped(row.data)]
        else:
            return self._navigate(key)
        return []

    def _update_features(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("1", "2", "3", "4"):
            value = views.FEATURE_FILTERS[int(name)][0]
            self.feature_filter = None if self.feature_filter == value else value
            self._reload_features()
            return []
        return self._navigate(key)

    def _update_background(self, key: Key) -> list[Any]:
        if key.name == "e":
            fields = forms.background_fields(self.details, self.character.alignment)
            self._open_modal(SheetMode.EDIT_BACKGROUND, "Edit Background", fields)
        return []

    def _update_notes(self, key: Key) -> list[Any]:
        if key.name == "e":
            self.notes_area.set_value(self.character.notes)
            self.notes_area.focus()
            self.mode = SheetMode.EDIT_NOTES
        elif key.name == "f":
            self.features_area.set_value(self.character.features_traits)
            self.features_area.focus()
            self.mode = SheetMode.EDIT_FEATURES
        return []

    # ── Edit modes ─────────────────────────────────────────────────

    def _numeric_input(self) -> TextInput:
        if self.mode is SheetMode.EDIT_DAMAGE:
            return self.damage_input
        if self.mode is SheetMode.EDIT_HEAL:
            return self.heal_input
        return self.hp_input

    def _textarea(self) -> TextArea:
        return self.features_area if self.mode is SheetMode.EDIT_FEATURES else self.notes_area

    def _enter_numeric(self, mode: SheetMode, value: str) -> None:
        self.mode = mode
        field = self._numeric_input()
        field.set_value(value)
        field.focus()

    def _update_numeric(self, key: Key) -> list[Any]:
        field = self._numeric_input()
        if key.name == "esc":
            self.pending = False
            self._leave_mode()
            return []
        if key.name != "enter":
            field.update(key)
            return []
        if self.pending:
            return []

        amount = forms.parse_int(field.value)
        c = self.character
        if self.mode is SheetMode.EDIT_HP:
            hp = min(max(amount, 0), c.max_hit_points)
        elif self.mode is SheetMode.EDIT_DAMAGE:
            hp = max(0, c.current_hit_points - max(amount, 0))
        else:
            hp = min(c.max_hit_points, c.current_hit_points + max(amount, 0))
        self.pending = True
        return [self._hp_command(hp)]

    def _update_textarea(self, key: Key) -> list[Any]:
        area = self._textarea()
        if key.name == "esc":
            self.pending = False
            self._leave_mode()
            return []
        if key.name != "ctrl+s":
            area.update(key)
            return []
        if self.pending:
            return []
        self.pending = True
        c = self.character
        if self.mode is SheetMode.EDIT_NOTES:
            return [self._notes_command(c.features_traits, area.value, "Failed to save notes")]
        return [self._notes_command(area.value, c.notes, "Failed to save features")]

    def _open_modal(self, mode: SheetMode, title: str, fields: list) -> None:
        self.modal = ModalForm(title, fields, self.theme)
        self.modal.set_size(self.width, self.height)
        self.mode = mode

    def _update_modal(self, key: Key) -> list[Any]:
        if self.modal is None:
            self.mode = SheetMode.VIEW
            return []
        result = self.modal.update(key)
        return [result] if result is not None else []

    def _save_modal(self, values: dict[str, str]) -> list[Any]:
        mode = self.mode
        self.modal = None
        self.mode = SheetMode.VIEW
        cid = self.character.id
        store = self.store

        if mode is SheetMode.EDIT_BACKGROUND:
            return [self._background_command(values)]
        if mode is SheetMode.ADD_ATTACK:
            attack = forms.attack_from_values(cid, values, len(self.attacks))
            return [self._write("add-attack", "attacks", _then(store.create_attack, attack, "Attack added"),
                                "Error adding attack")]
        if mode is SheetMode.ADD_ACTION:
            action = forms.action_from_values(cid, values, len(self.actions))
            return [self._write("add-action", "actions", _then(store.create_action, action, "Action added"),
                                "Error adding action")]
        if mode is SheetMode.ADD_SPELL:
            spell = forms.spell_from_values(cid, values)
            return [self._write("add-spell", "spells", _then(store.create_spell, spell, "Spell added"),
                                "Error adding spell")]
        if mode is SheetMode.ADD_ITEM:
            item = forms.item_from_values(cid, values, len(self.inventory))
            return [self._write("add-item", "inventory",
                                _then(store.create_inventory_item, item, "Item added"),
                                "Error adding item")]
        if mode is SheetMode.ADD_MAGIC_ITEM:
            magic = forms.magic_item_from_values(cid, values, len(self.magic_items))
            return [self._write("add-magic-item", "magic_items",
                                _then(store.create_magic_item, magic, "Magic item added"),
                                "Error adding magic item")]
        logger.warning("Modal saved in unexpected mode %s", mode.value)
        return []

    # ── Commands ───────────────────────────────────────────────────

    def _write(self, label: str, kind: str, write: Callable[[], str], error_prefix: str) -> Command:
        """Command running ``write`` then re-listing ``kind``.

        ``write`` returns the success message.
        """
        store = self.store
        character_id = self.character.id
        lister = getattr(store, LISTERS[kind])

        def run():
            try:
                text = write()
                records = lister(character_id)
            except StoreError as e:
                logger.exception("%s failed for character %s", label, character_id)
                return StatusMessage(message=f"{error_prefix}: {e}", is_error=True)
            return SheetDataChanged(kind=kind, records=records, message=text)

        return Command(label, run)

    def _delete_row(self, row: TableRow) -> list[Any]:
        store = self.store
        data = row.data

        if isinstance(data, Attack):
            return [self._write("delete-attack", "attacks", _then(store.delete_attack, data.id, "Attack deleted"),
                                "Error deleting attack")]
        if isinstance(data, Action):
            return [self._write("delete-action", "actions", _then(store.delete_action, data.id, "Action deleted"),
                                "Error deleting action")]
        if isinstance(data, InventoryItem):
            return [self._write("delete-item", "inventory",
                                _then(store.delete_inventory_item, data.id, "Item deleted"), "Error deleting item")]
        if isinstance(data, MagicItem):
            return [self._write("delete-magic-item", "magic_items",
                                _then(store.delete_magic_item, data.id, "Magic item deleted"),
                                "Error deleting magic item")]
        if isinstance(data, Spell):
            return [self._write("delete-spell", "spells", _then(store.delete_spell, data.id, "Spell deleted"),
                                "Error deleting spell")]
        return []

    def _toggle_prepared(self, spell: Spell) -> Command:
        store = self.store

        def write() -> str:
            updated = store.toggle_spell_prepared(spell.id)
            return f"{updated.name} {'prepared' if updated.is_prepared else 'unprepared'}"

        return self._write("toggle-prepared", "spells", write, "Error toggling spell")

    def _toggle_equipped(self, item: InventoryItem) -> Command:
        store = self.store

        def write() -> str:
            updated = store.toggle_item_equipped(item.id)
            return f"{updated.name} {'equipped' if updated.is_equipped else 'unequipped'}"

        return self._write("toggle-equipped", "inventory", write, "Error toggling item")

    def _toggle_attunement(self, item: MagicItem) -> Command:
        store = self.store

        def write() -> str:
            updated = store.toggle_magic_item_attunement(item.id)
            return f"{updated.name} {'attuned' if updated.is_attuned else 'unattuned'}"

        return self._write("toggle-attunement", "magic_items", write, "Error toggling attunement")

    def _hp_command(self, hp: int) -> Command:
        store = self.store
        character_id = self.character.id
        temporary = self.character.temporary_hit_points

        def run():
            try:
                updated = store.update_hit_points(character_id, hp, temporary)
            except StoreError:
                logger.exception("Updating HP for %s failed", character_id)
                return StatusMessage(message="Failed to update HP", is_error=True)
            return CharacterUpdated(character=updated)

        return Command("update-hp", run)

    def _notes_command(self, features_traits: str, notes: str, failure: str) -> Command:
        store = self.store
        character_id = self.character.id

        def run():
            try:
                updated = store.update_notes(character_id, features_traits, notes)
            except StoreError:
                logger.exception("Saving notes for %s failed", character_id)
                return StatusMessage(message=failure, is_error=True)
            return CharacterUpdated(character=updated)

        return Command("update-notes", run)

    def _background_command(self, values: dict[str, str]) -> Command:
        store = self.store
        character_id = self.character.id
        details = self.details

        def run():
            current = details
            if current is None:
                try:
                    current = store.create_details(character_id)
                except StoreError as e:
                    logger.exception("Creating details for %s failed", character_id)
                    return StatusMessage(message=f"Error creating details: {e}", is_error=True)
            try:
                saved = store.update_details(forms.details_from_values(current, values))
            except StoreError as e:
                logger.exception("Saving details for %s failed", character_id)
                return StatusMessage(message=f"Error saving: {e}", is_error=True)

            character = None
            alignment = values.get("alignment", "")
            if alignment:
                try:
                    character = store.update_alignment(character_id, alignment)
                except StoreError as e:
                    logger.exception("Saving alignment for %s failed", character_id)
                    return StatusMessage(message=f"Error saving alignment: {e}", is_error=True)
            return SheetDataChanged(kind="details", records=saved, message="Background saved", character=character)

        return Command("save-background", run)

    # ── View ───────────────────────────────────────────────────────

    def view(self) -> RenderableType:
        theme = self.theme
        if self.mode is SheetMode.HELP:
            return self.place(views.help_overlay(theme))
        if self.mode in MODAL_MODES and self.modal is not None:
            return self.place(self.modal.view())

        parts: list[RenderableType] = [
            views.title_line(self.character, theme),
            Text(""),
            views.tab_bar(self.tab, theme),
            Text(""),
            views.TAB_VIEWS[self.tab](self),
            Text(""),
        ]
        if self.status:
            parts.append(render_status(self.status, self.status_error, theme))
        parts.append(render_help(views.help_line(self.mode, self.tab), theme))
        return self.place(Group(*parts))
