"""Tab renderers, row builders and help text for the character sheet."""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from ... import rules
from ...models import Action, Attack, Character, Feature, InventoryItem, MagicItem, Spell
from ..components import overlay_panel
from ..table import TableColumn, TableRow
from ..theme import Theme
from .sheet_forms import SheetMode

if TYPE_CHECKING:
    from .sheet import SheetScreen

TABS = ["Core", "Combat", "Spells", "Inventory", "Features", "Background", "Notes"]

CORE, COMBAT, SPELLS, INVENTORY, FEATURES, BACKGROUND, NOTES = range(len(TABS))

FEATURE_FILTERS: list[tuple[str | None, str]] = [
    (None, "All"),
    ("class", "Class"),
    ("race", "Race"),
    ("background", "Background"),
    ("feat", "Feats"),
]

# Column layouts of the sheet tables
SKILL_COLUMNS = [
    TableColumn("Prof", 4), TableColumn("Skill", 18), TableColumn("Mod", 5), TableColumn("Ability", 7),
]
ATTACK_COLUMNS = [
    TableColumn("Weapon", 15), TableColumn("Atk", 5), TableColumn("Damage", 12),
    TableColumn("Type", 10), TableColumn("Range", 8),
]
ACTION_COLUMNS = [
    TableColumn("Action", 18), TableColumn("Type", 8), TableColumn("Uses", 8), TableColumn("Source", 12),
]
INVENTORY_COLUMNS = [
    TableColumn("Item", 20), TableColumn("Qty", 4), TableColumn("Wt", 6),
    TableColumn("Location", 12), TableColumn("Eq", 3),
]
MAGIC_ITEM_COLUMNS = [TableColumn("Item", 22), TableColumn("Rarity", 10), TableColumn("Att", 4)]
SPELL_COLUMNS = [
    TableColumn("P", 2), TableColumn("Spell", 20), TableColumn("School", 10),
    TableColumn("Time", 8), TableColumn("Range", 8),
]
FEATURE_COLUMNS = [TableColumn("Feature", 25), TableColumn("Source", 15), TableColumn("Type", 12)]

TAB_HELP = {
    CORE: " • j/k: navigate skills • r: roll d20",
    COMBAT: " • -: damage • +: heal • e: set HP • 1: attacks • 2: actions • a: add • d: delete",
    SPELLS: " • 0-9: filter • a: add • d: delete • p: toggle prepared",
    INVENTORY: " • 1: equipment • 2: magic items • a: add • d: delete • space: equip/attune",
    FEATURES: " • 1-4: filter type • j/k: navigate",
    BACKGROUND: " • e: edit details",
    NOTES: " • e: edit notes • f: edit features",
}

MODE_HELP = {
    SheetMode.EDIT_HP: "enter: save • esc: cancel",
    SheetMode.EDIT_DAMAGE: "enter: apply damage • esc: cancel",
    SheetMode.EDIT_HEAL: "enter: apply healing • esc: cancel",
    SheetMode.EDIT_NOTES: "ctrl+s: save • esc: cancel",
    SheetMode.EDIT_FEATURES: "ctrl+s: save • esc: cancel",
}


def _abbr(ability: str) -> str:
    return ability[:3].upper()


# ═══════════════════════════════════════════════════════════════════════════════
# ROWS
# ═══════════════════════════════════════════════════════════════════════════════

def skill_rows(character: Character) -> list[TableRow]:
    scores = character.ability_scores()
    rows = []
    for skill, ability in rules.SKILLS.items():
        proficient = rules.has_proficiency(character.skill_proficiencies, skill)
        mod = rules.skill_bonus(scores[ability], character.level, proficient)
        mark = "●" if proficient else "  "
        rows.append(TableRow(skill, [mark, skill, rules.format_modifier(mod), _abbr(ability)], skill))
    return rows


def attack_rows(attacks: list[Attack]) -> list[TableRow]:
    return [
        TableRow(
            a.id,
            [a.name, rules.format_modifier(a.attack_bonus), a.damage or "", a.damage_type or "", a.range or ""],
            a,
        )
        for a in attacks
    ]


def action_rows(actions: list[Action]) -> list[TableRow]:
    rows = []
    for a in actions:
        uses = ""
        if a.uses_max:
            uses = f"{a.uses_current or 0}/{a.uses_max} {a.uses_per or ''}"
        rows.append(TableRow(a.id, [a.name, a.action_type or "action", uses, a.source or ""], a))
    return rows


def _weight(weight: float | None) -> str:
    if weight is None:
        return ""
    return f"{weight:g}"


def inventory_rows(items: list[InventoryItem]) -> list[TableRow]:
    return [
        TableRow(
            i.id,
            [i.name, str(i.quantity), _weight(i.weight), i.location or "", "●" if i.is_equipped else " "],
            i,
        )
        for i in items
    ]


def magic_item_rows(items: list[MagicItem]) -> list[TableRow]:
    rows = []
    for i in items:
        attuned = " "
        if i.is_attuned:
            attuned = "●"
        elif i.attunement_required:
            attuned = "○"
        rows.append(TableRow(i.id, [i.name, i.rarity or "", attuned], i))
    return rows


def spell_rows(spells: list[Spell]) -> list[TableRow]:
    return [
        TableRow(
            s.id,
            ["●" if s.is_prepared else " ", s.name, s.school or "", s.casting_time or "", s.range or ""],
            s,
        )
        for s in spells
    ]


def feature_rows(features: list[Feature]) -> list[TableRow]:
    return [TableRow(f.id, [f.name, f.source or "", f.source_type or ""], f) for f in features]


# ═══════════════════════════════════════════════════════════════════════════════
# CHROME
# ═══════════════════════════════════════════════════════════════════════════════

def title_line(character: Character, theme: Theme) -> Text:
    return Text(
        f"{character.name} - Level {character.level} {character.race} {character.class_}",
        style=theme.title,
    )


def tab_bar(active: int, theme: Theme) -> Text:
    out = Text()
    for i, name in enumerate(TABS):
        out.append(f" {name} ", style=theme.focused_button if i == active else theme.button)
        if i < len(TABS) - 1:
            out.append(" ")
    return out


def help_line(mode: SheetMode, tab: int) -> str:
    if mode in MODE_HELP:
        return MODE_HELP[mode]
    return "tab/←→: switch tabs • q/esc: back" + TAB_HELP.get(tab, "") + " • ?: help"


def help_overlay(theme: Theme) -> RenderableType:
    def section(title: str, lines: list[str]) -> list[Text]:
        return [Text(title, style=theme.header)] + [Text(line) for line in lines]

    body = Group(
        *section("Global", [
            "  tab / ← →     Switch tabs",
            "  q / esc       Back to character list",
            "  r             Roll a d20",
            "  ?             Show this help",
        ]),
        *section("Navigation", [
            "  j k / ↓ ↑     Move down / up in list",
            "  g G           First / last item (Home / End)",
            "  PgUp/PgDn     Page up/down",
        ]),
        *section("Tab-Specific", [
            "  Combat:     -: damage, +: heal, e: set HP, 1/2: tabs, a: add",
            "  Spells:     0-9: filter, a: add, d: delete, p: prepare",
            "  Inventory:  1/2: tabs, a: add, d: delete, space: equip",
            "  Features:   1-4: filter by type",
            "  Background: e: edit details",
            "  Notes:      e: edit notes, f: edit features",
        ]),
        *section("Editing", [
            "  Ctrl+S        Save changes",
            "  Esc           Cancel editing",
        ]),
        Text(""),
        Text("Press ? or Esc to close", style=theme.help),
    )
    # 21 body lines plus the border fit a 24-row terminal.
    return overlay_panel(body, theme, title="Keyboard Shortcuts", width=70, padding=(0, 1))


# ═══════════════════════════════════════════════════════════════════════════════
# TABS
# ═══════════════════════════════════════════════════════════════════════════════

def core_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    c = sheet.character
    scores = c.ability_scores()
    level = c.level

    left = [Text("Ability Scores", style=theme.header)]
    right = [Text("Saving Throws", style=theme.header)]
    for ability in rules.ABILITIES:
        score = scores[ability.lower()]
        abbr = _abbr(ability)
        mod = rules.format_modifier(rules.ability_modifier(score))
        left.append(Text(f"  {abbr:<3} {score:2d}  {mod:>3}"))

        proficient = rules.has_proficiency(c.saving_throw_proficiencies, ability)
        save = rules.format_modifier(rules.saving_throw(score, level, proficient))
        right.append(Text(f"  {'●' if proficient else '○'} {abbr:<3} {save:>3}"))

    stats = Table.grid()
    stats.add_column(width=18)
    stats.add_column(width=18)
    stats.add_row(Text("\n").join(left), Text("\n").join(right))

    prof = Text("Proficiency Bonus: ")
    prof.append(rules.format_modifier(rules.proficiency_bonus(level)), style=theme.stat_value)

    # Stats on the left, skills beside them.
    layout = Table.grid(padding=(0, 1))
    layout.add_column(width=36)
    layout.add_column()
    layout.add_row(
        Group(stats, Text(""), prof),
        Group(Text("Skills", style=theme.header), sheet.skills_table.view()),
    )
    return layout


def _hp_style(character: Character, theme: Theme) -> str:
    if character.max_hit_points <= 0:
        return theme.hp_current
    ratio = character.current_hit_points / character.max_hit_points
    if ratio < 0.25:
        return theme.hp_critical
    if ratio < 0.5:
        return theme.hp_low
    return theme.hp_current


def hp_line(sheet: SheetScreen) -> Text:
    theme = sheet.theme
    c = sheet.character
    init = rules.format_modifier(rules.initiative(c.dexterity))
    tail = f"  |  AC: {c.armor_class}  |  Init: {init}  |  Speed: {c.speed} ft  |  HD: {c.level}d{rules.hit_die(c.class_)}"

    hp = Text()
    hp.append(str(c.current_hit_points), style=_hp_style(c, theme))
    hp.append("/")
    hp.append(str(c.max_hit_points), style=theme.hp_max)
    if c.temporary_hit_points > 0:
        hp.append(f"+{c.temporary_hit_points}")

    line = Text("  HP: ")
    if sheet.mode is SheetMode.EDIT_HP:
        line.append_text(sheet.hp_input.view(theme))
        line.append(f"/{c.max_hit_points}")
    elif sheet.mode is SheetMode.EDIT_DAMAGE:
        line.append_text(hp)
        line.append(" -")
        line.append_text(sheet.damage_input.view(theme))
    elif sheet.mode is SheetMode.EDIT_HEAL:
        line.append_text(hp)
        line.append(" +")
        line.append_text(sheet.heal_input.view(theme))
    else:
        line.append_text(hp)
    line.append(tail)
    return line


def _sub_tab(label: str, active: bool, theme: Theme) -> Text:
    if active:
        return Text(f"[{label}]", style=theme.focused_button)
    return Text(f" {label} ", style=theme.button)


def combat_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    attacks_active = sheet.combat_focus != 2
    tabs = _sub_tab("1:Attacks", attacks_active, theme)
    tabs.append(" ")
    tabs.append_text(_sub_tab("2:Actions", not attacks_active, theme))
    table = sheet.attacks_table if attacks_active else sheet.actions_table
    return Group(
        Text("Combat Stats", style=theme.header),
        Text(""),
        hp_line(sheet),
        Text(""),
        tabs,
        Text(""),
        table.view(),
    )


def _ordinal(n: int) -> str:
    if n == 1:
        return "1st"
    if n == 2:
        return "2nd"
    if n == 3:
        return "3rd"
    return f"{n}th"


def spells_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    parts: list[RenderableType] = []
    sc = sheet.spellcasting
    if sc is not None:
        ability = _abbr(sc.spellcasting_ability) if sc.spellcasting_ability else "—"
        dc = str(sc.spell_save_dc) if sc.spell_save_dc is not None else "—"
        attack = rules.format_modifier(sc.spell_attack_bonus) if sc.spell_attack_bonus is not None else "—"
        parts.append(
            Text(f"{sc.spellcasting_class or 'Unknown'} | {ability} | Save DC: {dc} | Attack: {attack}")
        )
        parts.append(Text(""))
        slot_lines = []
        for i, max_slots in enumerate(sc.slots_max):
            if max_slots <= 0:
                continue
            used = sc.slots_used[i] if i < len(sc.slots_used) else 0
            boxes = "".join("[●]" if n < used else "[ ]" for n in range(max_slots))
            slot_lines.append(Text(f"  {_ordinal(i + 1)}: {boxes}"))
        if slot_lines:
            parts.append(Text("Spell Slots", style=theme.header))
            parts.extend(slot_lines)
            parts.append(Text(""))
    else:
        parts.append(Text("No spellcasting ability", style=theme.muted))
        parts.append(Text(""))

    filters = Text("Filter: ")
    for level in range(10):
        label = "C" if level == 0 else str(level)
        if sheet.spell_filter == level:
            filters.append(f"[{label}]", style=theme.focused_button)
        elif sheet.spell_filter is None:
            filters.append(f" {label} ", style=theme.button)
        else:
            filters.append(f" {label} ", style=theme.muted)
    if sheet.spell_filter is None:
        filters.append(" [All]", style=theme.focused_button)
    parts.append(filters)
    parts.append(Text(""))

    if sheet.spell_filter is None:
        heading = "All Spells"
    elif sheet.spell_filter == 0:
        heading = "Cantrips"
    else:
        heading = f"Level {sheet.spell_filter} Spells"
    parts.append(Text(heading, style=theme.header))
    parts.append(sheet.spells_table.view())
    return Group(*parts)


def total_weight(inventory: list[InventoryItem], magic_items: list[MagicItem]) -> float:
    total = sum((i.weight or 0.0) * i.quantity for i in inventory)
    total += sum(m.weight or 0.0 for m in magic_items)
    return total


def inventory_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    parts: list[RenderableType] = [Text("Currency", style=theme.header)]
    cur = sheet.currency
    coins = Text("  ")
    for label, amount in (
        ("CP", cur.copper if cur else 0),
        ("SP", cur.silver if cur else 0),
        ("EP", cur.electrum if cur else 0),
        ("GP", cur.gold if cur else 0),
        ("PP", cur.platinum if cur else 0),
    ):
        coins.append(f"{label}: ")
        coins.append(str(amount), style=theme.stat_value)
        coins.append("  ")
    coins.rstrip()
    parts.append(coins)

    weight = Text("  Total Weight: ")
    weight.append(f"{total_weight(sheet.inventory, sheet.magic_items):.1f}", style=theme.stat_value)
    weight.append(" lbs")
    parts += [weight, Text("")]

    # Only the focused list is expanded; the other collapses to its heading.
    if sheet.inventory_focus != 2:
        parts.append(Text("▶ Equipment", style=theme.header))
        parts.append(sheet.inventory_table.view())
        parts.append(Text(f"Magic Items ({len(sheet.magic_items)})", style=theme.muted))
    else:
        parts.append(Text(f"Equipment ({len(sheet.inventory)})", style=theme.muted))
        parts.append(Text("▶ Magic Items", style=theme.header))
        parts.append(sheet.magic_items_table.view())
    return Group(*parts)


def features_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    bar = Text()
    for i, (value, label) in enumerate(FEATURE_FILTERS):
        if i > 0:
            label = f"{i}:{label}"
        if sheet.feature_filter == value:
            bar.append(f"[{label}]", style=theme.focused_button)
        else:
            bar.append(f" {label} ", style=theme.button)
        bar.append(" ")
    bar.rstrip()
    return Group(
        bar,
        Text(""),
        Text("Features & Traits", style=theme.header),
        sheet.features_table.view(),
    )


def _info(label: str, value: object) -> Text:
    return Text(f"  {label:>12} {value}")


def background_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    c = sheet.character
    left: list[RenderableType] = [
        Text("Character Info", style=theme.header),
        _info("Name:", c.name),
        _info("Race:", c.race),
        _info("Class:", c.class_),
        _info("Level:", c.level),
        _info("Experience:", f"{c.experience_points} / {rules.next_level_threshold(c.level)}"),
    ]
    if c.background:
        left.append(_info("Background:", c.background))
    if c.alignment:
        left.append(_info("Alignment:", c.alignment))

    d = sheet.details
    if d is None:
        left += [Text(""), Text("No detailed background information available", style=theme.muted)]
        return Group(*left)

    physical = [
        (label, value)
        for label, value in (
            ("Size:", d.size),
            ("Gender:", d.gender),
            ("Age:", d.age),
            ("Height:", d.height),
            ("Weight:", d.weight),
            ("Eyes:", d.eyes),
            ("Hair:", d.hair),
            ("Skin:", d.skin),
            ("Faith/Deity:", d.faith_deity),
        )
        if value
    ]
    if physical:
        left += [Text(""), Text("Physical Traits", style=theme.header)]
        left += [_info(label, value) for label, value in physical]

    right: list[RenderableType] = []
    personality = [
        (label, value)
        for label, value in (
            ("  Traits: ", d.personality_traits),
            ("  Ideals: ", d.ideals),
            ("  Bonds: ", d.bonds),
            ("  Flaws: ", d.flaws),
        )
        if value
    ]
    if personality:
        right.append(Text("Personality", style=theme.header))
        for label, value in personality:
            line = Text(label, style=theme.muted)
            line.append(value)
            right.append(line)

    for heading, value in (("Backstory", d.backstory), ("Allies & Organizations", d.allies_organizations)):
        if value:
            if right:
                right.append(Text(""))
            right += [Text(heading, style=theme.header), Text(f"  {value}")]

    if not right:
        return Group(*left)
    layout = Table.grid(padding=(0, 2))
    layout.add_column(min_width=30)
    layout.add_column(max_width=44)
    layout.add_row(Group(*left), Group(*right))
    return layout


def notes_view(sheet: SheetScreen) -> RenderableType:
    theme = sheet.theme
    c = sheet.character
    parts: list[RenderableType] = [Text("Features & Traits", style=theme.header)]
    if sheet.mode is SheetMode.EDIT_FEATURES:
        parts.append(sheet.features_area.view(theme))
    elif c.features_traits:
        parts.append(Text(c.features_traits))
    else:
        parts.append(Text("No features or traits recorded.", style=theme.muted))

    parts += [Text(""), Text("Notes", style=theme.header)]
    if sheet.mode is SheetMode.EDIT_NOTES:
        parts.append(sheet.notes_area.view(theme))
    elif c.notes:
        parts.append(Text(c.notes))
    else:
        parts.append(Text("No notes recorded.", style=theme.muted))
    return Group(*parts)


TAB_VIEWS = {
    CORE: core_view,
    COMBAT: combat_view,
    SPELLS: spells_view,
    INVENTORY: inventory_view,
    FEATURES: features_view,
    BACKGROUND: background_view,
    NOTES: notes_view,
}
