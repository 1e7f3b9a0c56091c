from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from combatcore.core.engine.commands import (
    AddCondition,
    AdjustSavingThrow,
    ApplyDamage,
    ApplyOngoingDamage,
    ApplyRegeneration,
    Attack,
    Command,
    CommitRecharge,
    CommitSavingThrows,
    Delay,
    ForceRecharge,
    ForceSavingThrow,
    Heal,
    NextTurn,
    ProposeRecharge,
    ProposeSavingThrows,
    RemoveCondition,
    RollRecharge,
    RollSavingThrow,
    SetInitiative,
    SetSavingThrowModifier,
    StartCombat,
    UsePower,
)
from combatcore.core.engine.rules.initiative import turn_order
from combatcore.core.engine.state import EncounterSession


@dataclass
class ValidationError:
    code: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    ok: bool
    errors: List[ValidationError] = field(default_factory=list)


def _err(code: str, message: str, **meta: Any) -> ValidationResult:
    return ValidationResult(
        ok=False, errors=[ValidationError(code=code, message=message, meta=meta)]
    )


def _ok() -> ValidationResult:
    return ValidationResult(ok=True)


def _require(session: EncounterSession, *ids: str) -> Optional[ValidationResult]:
    for cid in ids:
        if cid not in session.combatants:
            return _err("UNKNOWN_COMBATANT", "Unknown combatant", combatant_id=cid)
    return None


def validate_command(session: EncounterSession, cmd: Command) -> ValidationResult:
    if isinstance(
        cmd,
        (
            AddCondition,
            RemoveCondition,
            ApplyDamage,
            Heal,
            ApplyOngoingDamage,
            ApplyRegeneration,
        ),
    ):
        return _require(session, cmd.target_id) or _ok()

    if isinstance(cmd, (SetInitiative, Delay, UsePower)):
        return _require(session, cmd.combatant_id) or _ok()

    if isinstance(cmd, StartCombat):
        if session.combat_started:
            return _err("COMBAT_ALREADY_STARTED", "Combat already started")
        if not turn_order(session.combatants):
            return _err("NO_INITIATIVE", "Nobody has an initiative score yet")
        return _ok()

    if isinstance(cmd, NextTurn):
        if not session.combat_started:
            return _err("COMBAT_NOT_STARTED", "Combat has not started")
        return _ok()

    if isinstance(cmd, ProposeSavingThrows):
        return _require(session, cmd.combatant_id) or _ok()

    if isinstance(
        cmd,
        (
            RollSavingThrow,
            AdjustSavingThrow,
            ForceSavingThrow,
            SetSavingThrowModifier,
            CommitSavingThrows,
        ),
    ):
        missing = _require(session, cmd.combatant_id)
        if missing:
            return missing
        batch = session.pending_saves.get(cmd.combatant_id)
        if batch is None:
            return _err(
                "NO_PENDING_SAVES",
                "No saving throws proposed for this combatant",
                combatant_id=cmd.combatant_id,
            )
        condition_id = getattr(cmd, "condition_id", None)
        if condition_id is not None and condition_id not in batch.entries:
            return _err(
                "UNKNOWN_CONDITION",
                "Condition is not part of the pending saving throws",
                condition_id=condition_id,
            )
        return _ok()

    if isinstance(cmd, ProposeRecharge):
        return _require(session, cmd.combatant_id) or _ok()

    if isinstance(cmd, (RollRecharge, ForceRecharge, CommitRecharge)):
        missing = _require(session, cmd.combatant_id)
        if missing:
            return missing
        rbatch = session.pending_recharges.get(cmd.combatant_id)
        if rbatch is None:
            return _err(
                "NO_PENDING_RECHARGE",
                "No recharge rolls proposed for this combatant",
                combatant_id=cmd.combatant_id,
            )
        power_id = getattr(cmd, "power_id", None)
        if power_id is not None and power_id not in rbatch.entries:
            return _err(
                "UNKNOWN_POWER",
                "Power is not part of the pending recharge rolls",
                power_id=power_id,
            )
        return _ok()

    if isinstance(cmd, Attack):
        # неизвестная сила не ошибка: apply просто ничего не сделает
        return _require(session, cmd.attacker_id, cmd.target_id) or _ok()

    return _ok()
