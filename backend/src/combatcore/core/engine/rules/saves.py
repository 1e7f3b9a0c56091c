from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

from combatcore.core.engine.dice import roll_die
from combatcore.core.engine.rules.ongoing import describe_condition
from combatcore.core.engine.state import (
    CombatantState,
    ForcedFailure,
    ForcedSuccess,
    Pending,
    RoleKind,
    Rolled,
    Roller,
    RollState,
)

logger = logging.getLogger(__name__)

SAVE_DC = 10

SaveOutcome = Literal["pending", "saved", "failed"]

_ROLE_SAVE_BONUS = {"elite": 2, "solo": 5}


def global_save_modifier(role: RoleKind) -> int:
    return _ROLE_SAVE_BONUS.get(role, 0)


@dataclass
class SaveEntry:
    condition_id: str
    label: str
    condition_modifier: int
    state: RollState = field(default_factory=Pending)

    def total(self, global_modifier: int) -> Optional[int]:
        if isinstance(self.state, Rolled):
            return self.state.value + self.condition_modifier + global_modifier
        return None

    def outcome(self, global_modifier: int) -> SaveOutcome:
        if isinstance(self.state, ForcedSuccess):
            return "saved"
        if isinstance(self.state, ForcedFailure):
            return "failed"
        total = self.total(global_modifier)
        if total is None:
            return "pending"
        return "saved" if total >= SAVE_DC else "failed"


@dataclass(frozen=True)
class SaveResolution:
    condition_id: str
    label: str
    state: RollState
    total: Optional[int]
    outcome: SaveOutcome

    def to_dict(self) -> dict:
        return {
            "condition_id": self.condition_id,
            "label": self.label,
            "state": self.state.model_dump(),
            "total": self.total,
            "outcome": self.outcome,
        }


@dataclass
class SaveBatch:
    """
    Пакет спасбросков одного участника: сначала показываем "что будет",
    состояние меняется только на commit().
    """

    combatant_id: str
    global_modifier: int = 0
    entries: Dict[str, SaveEntry] = field(default_factory=dict)

    @classmethod
    def propose(
        cls,
        combatant: CombatantState,
        role: RoleKind,
        roller: Optional[Roller] = None,
        auto_roll: bool = True,
        global_modifier: Optional[int] = None,
    ) -> "SaveBatch":
        gm = global_save_modifier(role) if global_modifier is None else global_modifier
        batch = cls(combatant_id=combatant.id, global_modifier=gm)

        for oc in combatant.conditions:
            if oc.duration.kind != "save_ends":
                continue
            entry = SaveEntry(
                condition_id=oc.id,
                label=describe_condition(oc),
                condition_modifier=oc.duration.saving_throw_modifier,
            )
            if auto_roll and roller is not None:
                entry.state = Rolled(value=roll_die(roller, 20))
            batch.entries[oc.id] = entry

        return batch

    def roll(self, condition_id: str, roller: Roller) -> Optional[int]:
        entry = self.entries.get(condition_id)
        if entry is None:
            return None
        value = roll_die(roller, 20)
        entry.state = Rolled(value=value)
        return value

    def adjust(self, condition_id: str, delta: int) -> None:
        # только для уже брошенных, без переброса; ниже 0 не уходим
        entry = self.entries.get(condition_id)
        if entry is None or not isinstance(entry.state, Rolled):
            return
        entry.state = Rolled(value=max(0, entry.state.value + delta))

    def force_save(self, condition_id: str) -> None:
        if condition_id in self.entries:
            self.entries[condition_id].state = ForcedSuccess()

    def force_fail(self, condition_id: str) -> None:
        if condition_id in self.entries:
            self.entries[condition_id].state = ForcedFailure()

    def resolve(self) -> List[SaveResolution]:
        return [
            SaveResolution(
                condition_id=e.condition_id,
                label=e.label,
                state=e.state,
                total=e.total(self.global_modifier),
                outcome=e.outcome(self.global_modifier),
            )
            for e in self.entries.values()
        ]

    def commit(self, combatant: CombatantState) -> Tuple[CombatantState, List[str]]:
        """
        Снимает состояния с исходом saved. failed и pending остаются.
        Повторный commit ничего не делает: состояния уже нет.
        """
        saved = {r.condition_id for r in self.resolve() if r.outcome == "saved"}
        c = combatant.copy()
        removed = [oc.id for oc in c.conditions if oc.id in saved]
        c.conditions = [oc for oc in c.conditions if oc.id not in saved]
        logger.debug("saves committed for %s: removed=%s", combatant.id, removed)
        return c, removed
