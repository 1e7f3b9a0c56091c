from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from combatcore.core.engine.dice import DiceExpression, roll_die
from combatcore.core.engine.state import (
    DAMAGE_TYPES,
    CombatantState,
    DefenceModifierEffect,
    DefenceType,
    Roller,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttackResult:
    roll: int
    bonus: int
    total: int
    defence: DefenceType
    base_defence: int
    effective_defence: int
    hit: bool
    critical: bool  # нат. 20: всегда попадание, максимальный урон
    fumble: bool  # нат. 1: всегда промах


@dataclass(frozen=True)
class AttackDamage:
    dice: List[int] = field(default_factory=list)
    rolled: int = 0
    value: int = 0  # сколько применяем при попадании/крите
    miss_damage: int = 0  # половина броска, для сил с "Miss: half damage"


def defence_modifiers(combatant: CombatantState) -> List[DefenceModifierEffect]:
    return [
        oc.effect
        for oc in combatant.conditions
        if oc.effect.kind == "defence_modifier"
    ]


def effective_defence(
    base: int,
    modifiers: Iterable[DefenceModifierEffect],
    defence: DefenceType,
) -> int:
    return base + sum(m.delta for m in modifiers if defence in m.defences)


def resolve_attack(
    power_attack_bonus: int,
    target_base_defense: int,
    target_active_defense_modifiers: Iterable[DefenceModifierEffect],
    defense_type: DefenceType,
    roller: Roller,
) -> AttackResult:
    nat = roll_die(roller, 20)
    total = nat + power_attack_bonus
    eff = effective_defence(
        target_base_defense, target_active_defense_modifiers, defense_type
    )

    if nat == 20:
        hit = True
    elif nat == 1:
        hit = False
    else:
        hit = total >= eff

    result = AttackResult(
        roll=nat,
        bonus=power_attack_bonus,
        total=total,
        defence=defense_type,
        base_defence=target_base_defense,
        effective_defence=eff,
        hit=hit,
        critical=nat == 20,
        fumble=nat == 1,
    )
    logger.debug("attack vs %s: %s", defense_type, result)
    return result


def attack_damage(
    result: AttackResult, damage_expression: str, roller: Roller
) -> Optional[AttackDamage]:
    expr = DiceExpression.try_parse(damage_expression)
    if expr is None:
        return None

    dice, rolled = expr.roll(roller)
    if result.critical:
        value = expr.maximum
    elif result.hit:
        value = rolled
    else:
        value = 0
    return AttackDamage(
        dice=dice, rolled=rolled, value=max(0, value), miss_damage=max(0, rolled) // 2
    )


def damage_types_from_text(details: str) -> List[str]:
    text = (details or "").lower()
    return [
        t
        for t in DAMAGE_TYPES
        if t != "untyped" and re.search(rf"\b{t}\b", text)
    ]
