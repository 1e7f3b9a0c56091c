from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Tuple

from combatcore.core.engine.state import (
    CombatantState,
    DamageModifierEntry,
    RoleKind,
)

logger = logging.getLogger(__name__)

HealthState = Literal["active", "bloodied", "defeated"]


@dataclass(frozen=True)
class DamageModifierResult:
    immune: bool = False
    total: int = 0

    @property
    def label(self) -> Optional[str]:
        if self.immune:
            return "Immune"
        if self.total < 0:
            return f"Resist {-self.total}"
        if self.total > 0:
            return f"Vulnerable {self.total}"
        return None


def modifier_for(
    damage_types: Iterable[str], table: Iterable[DamageModifierEntry]
) -> DamageModifierResult:
    """
    Суммируем все записи таблицы, чей тип есть в damage_types.
    Иммунитет к любому из типов гасит весь урон.
    untyped никогда не совпадает.
    """
    types = {t for t in damage_types if t and t != "untyped"}
    if not types:
        return DamageModifierResult()

    total = 0
    for entry in table:
        if entry.damage_type not in types:
            continue
        if entry.is_immune:
            return DamageModifierResult(immune=True)
        total += int(entry.value)
    return DamageModifierResult(total=total)


def effective_damage(
    raw_amount: int,
    damage_types: Iterable[str],
    modifier_table: Iterable[DamageModifierEntry],
    halve: bool = False,
) -> int:
    mod = modifier_for(damage_types, modifier_table)
    if mod.immune:
        return 0

    # сопротивление не превращает урон в лечение
    value = max(0, raw_amount + mod.total)
    if halve:
        value //= 2
    return value


def effective_modifier_table(
    table: Iterable[DamageModifierEntry], combatant: CombatantState
) -> List[DamageModifierEntry]:
    """Таблица существа + временные модификаторы из состояний."""
    out = list(table)
    for oc in combatant.conditions:
        if oc.effect.kind == "damage_modifier":
            out.append(oc.effect.entry)
    return out


def absorb_damage(combatant: CombatantState, amount: int) -> CombatantState:
    # сначала temp HP, остаток -> damage_taken
    c = combatant.copy()
    remaining = max(0, amount)

    if c.temp_hp > 0 and remaining > 0:
        absorbed = min(c.temp_hp, remaining)
        c.temp_hp -= absorbed
        remaining -= absorbed

    if remaining > 0:
        c.damage_taken += remaining

    return c


def apply_damage(
    combatant: CombatantState,
    raw_amount: int,
    damage_types: Iterable[str],
    modifier_table: Iterable[DamageModifierEntry],
    halve: bool = False,
) -> Tuple[CombatantState, int]:
    types = list(damage_types)
    amount = effective_damage(raw_amount, types, modifier_table, halve)
    logger.debug(
        "damage %s: raw=%s types=%s halve=%s -> %s",
        combatant.id,
        raw_amount,
        types,
        halve,
        amount,
    )
    return absorb_damage(combatant, amount), amount


def healing_value(max_hp: int, amount: int = 0, surges: int = 0) -> int:
    # одна "surge" = четверть максимума хитов
    return max(0, surges) * (max_hp // 4) + max(0, amount)


def heal(
    combatant: CombatantState,
    max_hp: int,
    amount: int = 0,
    surges: int = 0,
    temporary: bool = False,
) -> Tuple[CombatantState, int]:
    value = healing_value(max_hp, amount, surges)
    c = combatant.copy()

    if temporary:
        # temp HP не складываются, берём большее
        c.temp_hp = max(c.temp_hp, value)
        return c, value

    # лечение всегда начинается с 0 HP
    c.damage_taken = min(c.damage_taken, max_hp)
    c.damage_taken = max(0, c.damage_taken - value)
    return c, value


def health_state(
    combatant: CombatantState, max_hp: int, role: RoleKind = "normal"
) -> HealthState:
    if role == "minion":
        # у миньона 1 HP: любой урон убивает
        return "defeated" if combatant.damage_taken > 0 else "active"

    hp = combatant.current_hp(max_hp)
    if hp <= 0:
        return "defeated"
    if hp <= max_hp // 2:
        return "bloodied"
    return "active"
