from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from combatcore.core.engine.rules.damage import (
    absorb_damage,
    effective_damage,
    modifier_for,
)
from combatcore.core.engine.state import (
    DEFENCE_TYPES,
    CombatantState,
    DamageModifierEntry,
    OngoingCondition,
)

logger = logging.getLogger(__name__)

_DEFENCE_LABELS = {
    "ac": "AC",
    "fortitude": "Fortitude",
    "reflex": "Reflex",
    "will": "Will",
}


# ---- коллекция ----


def add(combatant: CombatantState, condition: OngoingCondition) -> CombatantState:
    c = combatant.copy()
    if c.condition(condition.id) is None:
        c.conditions.append(condition)
    return c


def remove(
    combatant: CombatantState, condition: Union[OngoingCondition, str]
) -> CombatantState:
    # нет такого состояния -> no-op
    cid = condition if isinstance(condition, str) else condition.id
    c = combatant.copy()
    c.conditions = [oc for oc in c.conditions if oc.id != cid]
    return c


# ---- ongoing damage ----


@dataclass(frozen=True)
class OngoingDamageLine:
    condition_id: str
    label: str
    modifier: Optional[str]
    value: int


def ongoing_damage_breakdown(
    combatant: CombatantState, modifier_table: Iterable[DamageModifierEntry]
) -> List[OngoingDamageLine]:
    table = list(modifier_table)
    lines: List[OngoingDamageLine] = []
    for oc in combatant.conditions:
        if oc.effect.kind != "damage" or oc.effect.value <= 0:
            continue
        types = [oc.effect.damage_type]
        lines.append(
            OngoingDamageLine(
                condition_id=oc.id,
                label=describe_condition(oc),
                modifier=modifier_for(types, table).label,
                value=effective_damage(oc.effect.value, types, table, halve=False),
            )
        )
    return lines


def total_ongoing_damage(
    combatant: CombatantState, modifier_table: Iterable[DamageModifierEntry]
) -> int:
    return sum(line.value for line in ongoing_damage_breakdown(combatant, modifier_table))


def apply_ongoing_damage(
    combatant: CombatantState, modifier_table: Iterable[DamageModifierEntry]
) -> Tuple[CombatantState, int]:
    total = total_ongoing_damage(combatant, modifier_table)
    logger.debug("ongoing damage %s: %s", combatant.id, total)
    return absorb_damage(combatant, total), total


# ---- regeneration ----


def regeneration_value(combatant: CombatantState, base: int = 0) -> int:
    value = base
    for oc in combatant.conditions:
        if oc.effect.kind == "regeneration":
            value = max(value, oc.effect.value)
    return value


def apply_regeneration(
    combatant: CombatantState, base: int = 0
) -> Tuple[CombatantState, int]:
    # регенерация работает только если есть урон
    if combatant.damage_taken <= 0:
        return combatant.copy(), 0

    value = regeneration_value(combatant, base)
    if value <= 0:
        return combatant.copy(), 0

    c = combatant.copy()
    healed = min(value, c.damage_taken)
    c.damage_taken -= healed
    return c, healed


# ---- durations ----


def stamp_duration(
    condition: OngoingCondition, current_round: int, current_actor_id: Optional[str]
) -> OngoingCondition:
    """
    Проставляет раунд-маркер при наложении.
    Если эффект привязан к ходу того, кто сейчас ходит, он закончится
    только на его следующем ходу (следующий раунд).
    """
    rnd = current_round
    if condition.is_turn_bound:
        owner = getattr(condition.duration, "owner_id", None)
        if owner is not None and owner == current_actor_id:
            rnd += 1
    return condition.model_copy(update={"round": rnd})


def conditions_ending(
    combatants: Iterable[CombatantState],
    actor_id: str,
    current_round: int,
    at_start: bool,
) -> List[Tuple[str, OngoingCondition]]:
    kind = "until_start_of_next_turn" if at_start else "until_end_of_next_turn"
    out: List[Tuple[str, OngoingCondition]] = []
    for c in combatants:
        for oc in c.conditions:
            if oc.duration.kind != kind:
                continue
            if getattr(oc.duration, "owner_id", None) != actor_id:
                continue
            if oc.round <= current_round:
                out.append((c.id, oc))
    return out


def describe_duration(
    condition: OngoingCondition,
    current_round: int,
    names: Optional[Mapping[str, str]] = None,
) -> str:
    d = condition.duration

    if d.kind == "save_ends":
        mod = d.saving_throw_modifier
        if mod == 0:
            return "save ends"
        sign = "+" if mod > 0 else ""
        return f"save ends with {sign}{mod} mod"

    if d.kind in ("until_start_of_next_turn", "until_end_of_next_turn"):
        point = "start" if d.kind == "until_start_of_next_turn" else "end"
        owner = d.owner_id
        if owner is None:
            who = "someone else's"
        elif names is None:
            # без ростера говорим от лица носителя
            who = "my"
        elif owner in names:
            who = f"{names[owner]}'s"
        else:
            who = "someone else's"
        text = f"until the {point} of {who} next turn"
        if condition.round > current_round:
            text += f" (ends in round {condition.round})"
        return text

    return "until the end of the encounter"


def describe_condition(condition: OngoingCondition) -> str:
    e = condition.effect

    if e.kind == "damage":
        if e.damage_type == "untyped":
            return f"{e.value} ongoing damage"
        return f"{e.value} ongoing {e.damage_type} damage"

    if e.kind == "defence_modifier":
        sign = "+" if e.delta >= 0 else ""
        if set(e.defences) == set(DEFENCE_TYPES):
            target = "defences"
        else:
            target = ", ".join(_DEFENCE_LABELS[d] for d in e.defences)
        return f"{sign}{e.delta} to {target}"

    if e.kind == "damage_modifier":
        entry = e.entry
        if entry.is_immune:
            return f"Immune to {entry.damage_type}"
        if int(entry.value) < 0:
            return f"Resist {-int(entry.value)} {entry.damage_type}"
        if int(entry.value) > 0:
            return f"Vulnerable {entry.value} {entry.damage_type}"
        return f"No modifier to {entry.damage_type}"

    if e.kind == "regeneration":
        if e.details:
            return f"Regeneration {e.value} ({e.details})"
        return f"Regeneration {e.value}"

    return e.description
