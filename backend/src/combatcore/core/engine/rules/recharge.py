from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Optional, Tuple

from combatcore.core.engine.dice import roll_die
from combatcore.core.engine.state import (
    CombatantState,
    ForcedFailure,
    ForcedSuccess,
    Pending,
    PowerDefinition,
    Rolled,
    Roller,
    RollState,
)

logger = logging.getLogger(__name__)

RechargeOutcome = Literal["pending", "recharged", "not_recharged", "not_rollable"]

PowerLookup = Callable[[str], Optional[PowerDefinition]]


def recharge_minimum(text: str) -> Optional[int]:
    """
    Минимальный бросок d6 для перезарядки.
    Цифры проверяются по порядку 6,5,4,3,2 и каждая найденная перезаписывает
    предыдущую, т.е. побеждает меньшая из присутствующих
    ("Recharge 5-6" -> 5, "Recharge 6" -> 6).
    Нет цифр -> None (бросать нечего).
    """
    minimum: Optional[int] = None
    for digit in "65432":
        if digit in (text or ""):
            minimum = int(digit)
    return minimum


def use_power(combatant: CombatantState, power_id: str) -> CombatantState:
    c = combatant.copy()
    c.mark_power_used(power_id)
    return c


@dataclass
class RechargeEntry:
    power_id: str
    power_name: str
    recharge: str
    minimum: Optional[int]
    state: RollState = field(default_factory=Pending)

    @property
    def rollable(self) -> bool:
        return self.minimum is not None

    def outcome(self) -> RechargeOutcome:
        if isinstance(self.state, ForcedSuccess):
            return "recharged"
        if isinstance(self.state, ForcedFailure):
            return "not_recharged"
        if self.minimum is None:
            return "not_rollable"
        if isinstance(self.state, Rolled):
            return "recharged" if self.state.value >= self.minimum else "not_recharged"
        return "pending"


@dataclass(frozen=True)
class RechargeResolution:
    power_id: str
    power_name: str
    minimum: Optional[int]
    state: RollState
    outcome: RechargeOutcome

    def to_dict(self) -> dict:
        return {
            "power_id": self.power_id,
            "power_name": self.power_name,
            "minimum": self.minimum,
            "state": self.state.model_dump(),
            "outcome": self.outcome,
        }


@dataclass
class RechargeBatch:
    combatant_id: str
    entries: Dict[str, RechargeEntry] = field(default_factory=dict)

    @classmethod
    def propose(
        cls,
        combatant: CombatantState,
        lookup: PowerLookup,
        roller: Optional[Roller] = None,
        auto_roll: bool = True,
    ) -> "RechargeBatch":
        batch = cls(combatant_id=combatant.id)

        for power_id in combatant.used_powers:
            power = lookup(power_id)
            # неизвестная сила или сила без перезарядки -> пропускаем
            if power is None or not power.recharge.strip():
                continue

            entry = RechargeEntry(
                power_id=power.id,
                power_name=power.name,
                recharge=power.recharge,
                minimum=recharge_minimum(power.recharge),
            )
            if auto_roll and roller is not None and entry.rollable:
                entry.state = Rolled(value=roll_die(roller, 6))
            batch.entries[power.id] = entry

        return batch

    def roll(self, power_id: str, roller: Roller) -> Optional[int]:
        entry = self.entries.get(power_id)
        if entry is None or not entry.rollable:
            return None
        value = roll_die(roller, 6)
        entry.state = Rolled(value=value)
        return value

    def force_success(self, power_id: str) -> None:
        if power_id in self.entries:
            self.entries[power_id].state = ForcedSuccess()

    def force_failure(self, power_id: str) -> None:
        if power_id in self.entries:
            self.entries[power_id].state = ForcedFailure()

    def resolve(self) -> List[RechargeResolution]:
        return [
            RechargeResolution(
                power_id=e.power_id,
                power_name=e.power_name,
                minimum=e.minimum,
                state=e.state,
                outcome=e.outcome(),
            )
            for e in self.entries.values()
        ]

    def commit(self, combatant: CombatantState) -> Tuple[CombatantState, List[str]]:
        ready = {r.power_id for r in self.resolve() if r.outcome == "recharged"}
        c = combatant.copy()
        recharged = [pid for pid in c.used_powers if pid in ready]
        c.used_powers = [pid for pid in c.used_powers if pid not in ready]
        logger.debug("recharge committed for %s: %s", combatant.id, recharged)
        return c, recharged
