"""Character creation wizard."""
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any

from rich.console import Group, RenderableType
from rich.text import Text

from ... import dice, rules
from ...models import Character
from ...store import StoreError
from ..commands import Command
from ..components import render_error, render_help
from ..events import CharacterCreated, Key, NavigateBack, StatusMessage, Tick
from ..router import register_screen
from ..textinput import TextInput
from .base import Screen

logger = logging.getLogger(__name__)


class Step(IntEnum):
    BASIC_INFO = 0
    RACE = 1
    CLASS = 2
    ABILITY_METHOD = 3
    ABILITY_ROLL = 4
    ABILITY_ARRAY = 5
    ABILITY_POINT_BUY = 6
    SKILLS = 7
    REVIEW = 8


PROGRESS = ["Info", "Race", "Class", "Abilities", "Skills", "Review"]

_PROGRESS_INDEX = {
    Step.BASIC_INFO: 0,
    Step.RACE: 1,
    Step.CLASS: 2,
    Step.ABILITY_METHOD: 3,
    Step.ABILITY_ROLL: 3,
    Step.ABILITY_ARRAY: 3,
    Step.ABILITY_POINT_BUY: 3,
    Step.SKILLS: 4,
    Step.REVIEW: 5,
}

# Skills goes back to the method choice, not to the assignment it came from.
_PREVIOUS = {
    Step.RACE: Step.BASIC_INFO,
    Step.CLASS: Step.RACE,
    Step.ABILITY_METHOD: Step.CLASS,
    Step.ABILITY_ROLL: Step.ABILITY_METHOD,
    Step.ABILITY_ARRAY: Step.ABILITY_METHOD,
    Step.ABILITY_POINT_BUY: Step.ABILITY_METHOD,
    Step.SKILLS: Step.ABILITY_METHOD,
    Step.REVIEW: Step.SKILLS,
}

HELP = {
    Step.BASIC_INFO: "enter: continue • esc: back",
    Step.RACE: "↑/↓: select • enter: confirm • esc: back",
    Step.CLASS: "↑/↓: select • enter: confirm • esc: back",
    Step.ABILITY_METHOD: "↑/↓: select • enter: confirm • esc: back",
    Step.ABILITY_ROLL: "↑/↓: select ability • 1-6: assign score • r: re-roll • enter: confirm • esc: back",
    Step.ABILITY_ARRAY: "↑/↓: select ability • 1-6: assign score • enter: confirm • esc: back",
    Step.ABILITY_POINT_BUY: "↑/↓: select • ←/→: adjust • enter: confirm • esc: back",
    Step.SKILLS: "↑/↓: navigate • space: toggle • enter: confirm • esc: back",
    Step.REVIEW: "y: create • n: start over • esc: back",
}


@register_screen("create")
class CreateScreen(Screen):
    def __init__(self, router):
        super().__init__(router)
        self.user = self.session.current_user
        self.step = Step.BASIC_INFO
        self.error = ""

        self.name_input = TextInput(placeholder="Character Name", width=30, char_limit=100)
        self.name_input.focus()
        self.background = rules.BACKGROUNDS[0]
        self.alignment_index = 0

        self.race_index = 0
        self.class_index = 0

        self.method_index = 0
        self.rolls: list[dice.Roll] = []
        self.rolled_scores: list[int] = []
        # ability name -> index into rolled_scores
        self.assigned: dict[str, int] = {}
        self.assign_index = 0
        self.point_buy: dice.PointBuyState | None = None

        self.available_skills: list[str] = []
        self.selected_skills: list[str] = []
        self.skills_to_select = 0
        self.skill_cursor = 0
        self.saving = False

    @property
    def race(self) -> str:
        return rules.RACES[self.race_index]

    @property
    def class_name(self) -> str:
        return rules.CLASSES[self.class_index]

    # ── Update ─────────────────────────────────────────────────────

    def update(self, event: object) -> list[Any]:
        if isinstance(event, Tick):
            if self.step is Step.BASIC_INFO:
                self.name_input.update(event)
            return []
        if isinstance(event, StatusMessage):
            if event.is_error:
                self.saving = False
                self.error = event.message
            return []
        if not isinstance(event, Key):
            return []

        self.error = ""
        if event.name == "esc":
            if self.step is Step.BASIC_INFO:
                return [NavigateBack()]
            self.previous_step()
            return []

        handler = {
            Step.BASIC_INFO: self._update_basic_info,
            Step.RACE: self._update_race,
            Step.CLASS: self._update_class,
            Step.ABILITY_METHOD: self._update_ability_method,
            Step.ABILITY_ROLL: self._update_assignment,
            Step.ABILITY_ARRAY: self._update_assignment,
            Step.ABILITY_POINT_BUY: self._update_point_buy,
            Step.SKILLS: self._update_skills,
            Step.REVIEW: self._update_review,
        }[self.step]
        return handler(event.name)

    def previous_step(self) -> None:
        self.step = _PREVIOUS.get(self.step, self.step)
        if self.step is Step.BASIC_INFO:
            self.name_input.focus()

    def _update_basic_info(self, name: str) -> list[Any]:
        if name in ("enter", "tab"):
            if not self.name_input.value.strip():
                self.error = "Name is required"
                return []
            self.step = Step.RACE
            self.name_input.blur()
            return []
        self.name_input.update(Key(name))
        return []

    def _update_race(self, name: str) -> list[Any]:
        if name in ("up", "k") and self.race_index > 0:
            self.race_index -= 1
        elif name in ("down", "j") and self.race_index < len(rules.RACES) - 1:
            self.race_index += 1
        elif name == "enter":
            self.step = Step.CLASS
        return []

    def _update_class(self, name: str) -> list[Any]:
        if name in ("up", "k") and self.class_index > 0:
            self.class_index -= 1
        elif name in ("down", "j") and self.class_index < len(rules.CLASSES) - 1:
            self.class_index += 1
        elif name == "enter":
            self.step = Step.ABILITY_METHOD
        return []

    def _roll(self) -> None:
        self.rolls = dice.roll_ability_scores()
        self.rolled_scores = [r.total for r in self.rolls]
        self.assigned = {}

    def _update_ability_method(self, name: str) -> list[Any]:
        if name in ("up", "k") and self.method_index > 0:
            self.method_index -= 1
        elif name in ("down", "j") and self.method_index < len(dice.ROLL_METHODS) - 1:
            self.method_index += 1
        elif name == "enter":
            self.assign_index = 0
            if self.method_index == 0:
                self._roll()
                self.point_buy = None
                self.step = Step.ABILITY_ROLL
            elif self.method_index == 1:
                self.rolled_scores = dice.standard_array()
                self.assigned = {}
                self.point_buy = None
                self.step = Step.ABILITY_ARRAY
            else:
                self.point_buy = dice.PointBuyState()
                self.step = Step.ABILITY_POINT_BUY
        return []

    def _update_assignment(self, name: str) -> list[Any]:
        if name in ("up", "k") and self.assign_index > 0:
            self.assign_index -= 1
        elif name in ("down", "j") and self.assign_index < len(rules.ABILITIES) - 1:
            self.assign_index += 1
        elif name in ("1", "2", "3", "4", "5", "6"):
            score_index = int(name) - 1
            if score_index < len(self.rolled_scores):
                ability = rules.ABILITIES[self.assign_index]
                # A score can back only one ability.
                for other, idx in list(self.assigned.items()):
                    if idx == score_index:
                        del self.assigned[other]
                        break
                self.assigned[ability] = score_index
        elif name == "enter":
            if len(self.assigned) == len(rules.ABILITIES):
                self._setup_skills()
                self.step = Step.SKILLS
            else:
                self.error = "Please assign all 6 ability scores"
        elif name == "r" and self.step is Step.ABILITY_ROLL:
            self._roll()
        return []

    def _update_point_buy(self, name: str) -> list[Any]:
        assert self.point_buy is not None
        ability = rules.ABILITIES[self.assign_index]
        if name in ("up", "k") and self.assign_index > 0:
            self.assign_index -= 1
        elif name in ("down", "j") and self.assign_index < len(rules.ABILITIES) - 1:
            self.assign_index += 1
        elif name in ("right", "l", "+", "="):
            self.point_buy.increase(ability)
        elif name in ("left", "h", "-"):
            self.point_buy.decrease(ability)
        elif name == "enter":
            self._setup_skills()
            self.step = Step.SKILLS
        return []

    def _setup_skills(self) -> None:
        choice = rules.CLASS_SKILL_CHOICES.get(self.class_name)
        if choice is None:
            self.available_skills, self.skills_to_select = list(rules.SKILL_LIST), 2
        else:
            self.available_skills, self.skills_to_select = list(choice.options), choice.count
        self.selected_skills = []
        self.skill_cursor = 0

    def _update_skills(self, name: str) -> list[Any]:
        if name in ("up", "k") and self.skill_cursor > 0:
            self.skill_cursor -= 1
        elif name in ("down", "j") and self.skill_cursor < len(self.available_skills) - 1:
            self.skill_cursor += 1
        elif name in (" ", "x"):
            skill = self.available_skills[self.skill_cursor]
            if skill in self.selected_skills:
                self.selected_skills.remove(skill)
            elif len(self.selected_skills) < self.skills_to_select:
                self.selected_skills.append(skill)
        elif name == "enter":
            if len(self.selected_skills) == self.skills_to_select:
                self.step = Step.REVIEW
            else:
                self.error = f"Please select {self.skills_to_select} skills"
        return []

    def _update_review(self, name: str) -> list[Any]:
        if name in ("enter", "y"):
            if self.saving:
                return []
            self.saving = True
            return [self._create_command(self.build_character())]
        if name == "n":
            self.step = Step.BASIC_INFO
            self.name_input.focus()
        return []

    # ── Result ─────────────────────────────────────────────────────

    def final_scores(self) -> dict[str, int]:
        if self.point_buy is not None:
            return dict(self.point_buy.scores)
        scores = {}
        for ability in rules.ABILITIES:
            idx = self.assigned.get(ability)
            scores[ability] = self.rolled_scores[idx] if idx is not None else 10
        return scores

    def build_character(self) -> Character:
        scores = self.final_scores()
        class_name = self.class_name
        return Character(
            user_id=self.user.id if self.user else "",
            name=self.name_input.value.strip(),
            class_=class_name,
            race=self.race,
            background=self.background,
            alignment=rules.ALIGNMENTS[self.alignment_index],
            strength=scores["Strength"],
            dexterity=scores["Dexterity"],
            constitution=scores["Constitution"],
            intelligence=scores["Intelligence"],
            wisdom=scores["Wisdom"],
            charisma=scores["Charisma"],
            max_hit_points=rules.starting_hit_points(class_name, scores["Constitution"]),
            current_hit_points=rules.starting_hit_points(class_name, scores["Constitution"]),
            speed=rules.RACE_SPEED.get(self.race, 30),
            saving_throw_proficiencies=list(rules.CLASS_SAVING_THROWS.get(class_name, [])),
            skill_proficiencies=list(self.selected_skills),
        )

    def _create_command(self, character: Character) -> Command:
        store = self.store

        def run():
            try:
                created = store.create_character(character)
            except StoreError as e:
                logger.exception("Creating character %s failed", character.name)
                return StatusMessage(message=f"Error creating character: {e}", is_error=True)
            return CharacterCreated(character=created)

        return Command("create-character", run)

    # ── View ───────────────────────────────────────────────────────

    def view(self) -> RenderableType:
        theme = self.theme
        parts: list[RenderableType] = [self._render_progress(), Text("")]

        body = {
            Step.BASIC_INFO: self._view_basic_info,
            Step.RACE: self._view_race,
            Step.CLASS: self._view_class,
            Step.ABILITY_METHOD: self._view_ability_method,
            Step.ABILITY_ROLL: self._view_assignment,
            Step.ABILITY_ARRAY: self._view_assignment,
            Step.ABILITY_POINT_BUY: self._view_point_buy,
            Step.SKILLS: self._view_skills,
            Step.REVIEW: self._view_review,
        }[self.step]()
        parts.extend(body)

        if self.error:
            parts.append(Text(""))
            parts.append(render_error(self.error, theme))
        parts.append(Text(""))
        parts.append(render_help(HELP[self.step], theme))
        return self.place(Group(*parts))

    def _render_progress(self) -> Text:
        theme = self.theme
        current = _PROGRESS_INDEX[self.step]
        out = Text()
        for i, label in enumerate(PROGRESS):
            if i == current:
                out.append(f"[{label}]", style=theme.selected)
            elif i < current:
                out.append(f"✓{label}", style=theme.success)
            else:
                out.append(f" {label} ", style=theme.muted)
            if i < len(PROGRESS) - 1:
                out.append(" → ")
        return out

    def _choice(self, selected: bool, label: str) -> Text:
        theme = self.theme
        line = Text("> " if selected else "  ", style=theme.cursor)
        line.append(label, style=theme.selected if selected else theme.unselected)
        return line

    def _view_basic_info(self) -> list[RenderableType]:
        theme = self.theme
        name = self.name_input.view(theme)
        name.stylize(theme.focused_input)
        return [Text("Create Your Character", style=theme.title), Text(""), Text("Name:"), name]

    def _view_race(self) -> list[RenderableType]:
        lines: list[RenderableType] = [Text("Choose Your Race", style=self.theme.title), Text("")]
        for i, race in enumerate(rules.RACES):
            lines.append(self._choice(i == self.race_index, f"{race:<12} (Speed: {rules.RACE_SPEED[race]})"))
        return lines

    def _view_class(self) -> list[RenderableType]:
        lines: list[RenderableType] = [Text("Choose Your Class", style=self.theme.title), Text("")]
        for i, cls in enumerate(rules.CLASSES):
            lines.append(self._choice(i == self.class_index, f"{cls:<12} (Hit Die: d{rules.hit_die(cls)})"))
        return lines

    def _view_ability_method(self) -> list[RenderableType]:
        theme = self.theme
        lines: list[RenderableType] = [Text("Choose Ability Score Method", style=theme.title), Text("")]
        for i, (name, desc) in enumerate(dice.ROLL_METHODS):
            lines.append(self._choice(i == self.method_index, name))
            lines.append(Text(f"    {desc}", style=theme.muted))
        return lines

    def _view_assignment(self) -> list[RenderableType]:
        theme = self.theme
        title = "Assign Your Rolled Scores" if self.step is Step.ABILITY_ROLL else "Assign Your Ability Scores"
        used = set(self.assigned.values())
        available = Text("Available scores: ")
        for i, score in enumerate(self.rolled_scores):
            available.append(f"[{i + 1}]={score} ", style=theme.muted if i in used else theme.success)

        lines: list[RenderableType] = [Text(title, style=theme.title), Text(""), available, Text("")]
        for i, ability in enumerate(rules.ABILITIES):
            shown = "___"
            idx = self.assigned.get(ability)
            if idx is not None:
                score = self.rolled_scores[idx]
                shown = f"{score:2d} ({rules.format_modifier(rules.ability_modifier(score))})"
            lines.append(self._choice(i == self.assign_index, f"{ability:<14}: {shown}"))
        return lines

    def _view_point_buy(self) -> list[RenderableType]:
        theme = self.theme
        state = self.point_buy
        assert state is not None
        remaining = Text("Points remaining: ")
        remaining.append(str(state.points_remaining), style=theme.stat_value)

        lines: list[RenderableType] = [Text("Point Buy", style=theme.title), Text(""), remaining, Text("")]
        for i, ability in enumerate(rules.ABILITIES):
            score = state.scores[ability]
            arrows = ("◀ " if state.can_decrease(ability) else "  ") + (" ▶" if state.can_increase(ability) else "")
            label = (
                f"{ability:<14}: {score:2d} ({rules.format_modifier(rules.ability_modifier(score))}) "
                f"cost:{dice.POINT_BUY_COSTS[score]} {arrows}"
            )
            lines.append(self._choice(i == self.assign_index, label))
        return lines

    def _view_skills(self) -> list[RenderableType]:
        theme = self.theme
        lines: list[RenderableType] = [
            Text(f"Choose {self.skills_to_select} Skills ({self.class_name})", style=theme.title),
            Text(""),
            Text(f"Selected: {len(self.selected_skills)}/{self.skills_to_select}"),
            Text(""),
        ]
        for i, skill in enumerate(self.available_skills):
            box = "[x]" if skill in self.selected_skills else "[ ]"
            lines.append(self._choice(i == self.skill_cursor, f"{box} {skill}"))
        return lines

    def _view_review(self) -> list[RenderableType]:
        theme = self.theme
        lines: list[RenderableType] = [
            Text("Review Your Character", style=theme.title),
            Text(""),
            Text("Basic Info", style=theme.header),
            Text(f"Name:       {self.name_input.value}"),
            Text(f"Race:       {self.race}"),
            Text(f"Class:      {self.class_name}"),
            Text(""),
            Text("Ability Scores", style=theme.header),
        ]
        for ability, score in self.final_scores().items():
            lines.append(Text(f"{ability:<14}: {score:2d} ({rules.format_modifier(rules.ability_modifier(score))})"))
        lines.append(Text(""))
        lines.append(Text("Skill Proficiencies", style=theme.header))
        lines.extend(Text(f"  • {skill}") for skill in self.selected_skills)
        lines.append(Text(""))
        lines.append(Text("Create this character? (y/n)", style=theme.success))
        return lines
