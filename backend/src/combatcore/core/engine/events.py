from __future__ import annotations

from typing import Any, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class RollMod(BaseModel):
    name: str
    value: int


class Roll(BaseModel):
    roll_id: UUID = Field(default_factory=uuid4)
    kind: Literal["d20", "d6", "damage", "other"]
    formula: str
    dice: list[int]
    mods: list[RollMod] = Field(default_factory=list)
    total: int
    nat: Optional[int] = None
    is_critical: bool = False


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    seq: int
    t: int
    type: str

    round: int
    turn_owner_id: Optional[str] = None
    actor_id: Optional[str] = None

    payload: dict[str, Any] = Field(default_factory=dict)


def _event(
    type_: str,
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    actor_id: Optional[str],
    payload: dict[str, Any],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type=type_,
        round=round_,
        turn_owner_id=turn_owner_id,
        actor_id=actor_id,
        payload=payload,
    )


def ev_command_rejected(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    actor_id: Optional[str],
    command: dict,
    code: str,
    message: str,
    meta: dict,
) -> EventEnvelope:
    return _event(
        "CommandRejected",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=actor_id,
        payload={
            "command": command,
            "code": code,
            "message": message,
            "meta": meta,
        },
    )


# ---- conditions ----


def ev_condition_added(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    condition: dict,
    label: str,
    duration: str,
) -> EventEnvelope:
    return _event(
        "ConditionAdded",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "condition": condition,
            "label": label,
            "duration": duration,
        },
    )


def ev_condition_removed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    condition_id: str,
    label: str,
    reason: Literal["manual", "saved", "expired"],
) -> EventEnvelope:
    return _event(
        "ConditionRemoved",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "condition_id": condition_id,
            "label": label,
            "reason": reason,
        },
    )


def ev_condition_extended(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    condition_id: str,
    until_round: int,
) -> EventEnvelope:
    return _event(
        "ConditionExtended",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "condition_id": condition_id,
            "until_round": until_round,
        },
    )


# ---- damage / healing ----


def ev_damage_applied(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    source: Literal["direct", "attack", "ongoing"],
    raw: int,
    damage_types: list[str],
    modifier: Optional[str],
    halved: bool,
    effective: int,
    temp_hp_before: int,
    temp_hp_after: int,
    damage_taken_after: int,
    health: str,
) -> EventEnvelope:
    return _event(
        "DamageApplied",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "source": source,
            "raw": raw,
            "damage_types": damage_types,
            "modifier": modifier,
            "halved": halved,
            "effective": effective,
            "temp_hp_before": temp_hp_before,
            "temp_hp_after": temp_hp_after,
            "damage_taken_after": damage_taken_after,
            "health": health,
        },
    )


def ev_ongoing_damage_applied(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    lines: list[dict],
    total: int,
    temp_hp_after: int,
    damage_taken_after: int,
    health: str,
) -> EventEnvelope:
    return _event(
        "OngoingDamageApplied",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "lines": lines,
            "total": total,
            "temp_hp_after": temp_hp_after,
            "damage_taken_after": damage_taken_after,
            "health": health,
        },
    )


def ev_healed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    amount: int,
    surges: int,
    temporary: bool,
    value: int,
    damage_taken_after: int,
    temp_hp_after: int,
) -> EventEnvelope:
    return _event(
        "Healed",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "amount": amount,
            "surges": surges,
            "temporary": temporary,
            "value": value,
            "damage_taken_after": damage_taken_after,
            "temp_hp_after": temp_hp_after,
        },
    )


def ev_regenerated(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    target_id: str,
    value: int,
    damage_taken_after: int,
) -> EventEnvelope:
    return _event(
        "Regenerated",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "value": value,
            "damage_taken_after": damage_taken_after,
        },
    )


# ---- initiative / turns ----


def ev_initiative_set(
    *,
    seq: int,
    t: int,
    round_: int,
    group_key: str,
    combatant_ids: list[str],
    initiative: Optional[int],
) -> EventEnvelope:
    return _event(
        "InitiativeSet",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=None,
        actor_id=None,
        payload={
            "group_key": group_key,
            "combatant_ids": combatant_ids,
            "initiative": initiative,
        },
    )


def ev_initiative_rolled(
    *,
    seq: int,
    t: int,
    round_: int,
    combatant_ids: list[str],
    roll: Roll,
    bonus: int,
) -> EventEnvelope:
    return _event(
        "InitiativeRolled",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=None,
        actor_id=combatant_ids[0] if combatant_ids else None,
        payload={
            "combatant_ids": combatant_ids,
            "roll": roll.model_dump(),
            "bonus": bonus,
            "initiative": roll.total,
        },
    )


def ev_combat_started(
    *, seq: int, t: int, round_: int, order: list[dict]
) -> EventEnvelope:
    # order: [{"combatant_id": "...", "initiative": 12}, ...]
    return _event(
        "CombatStarted",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=None,
        actor_id=None,
        payload={"order": order},
    )


def ev_round_started(
    *, seq: int, t: int, round_: int, turn_owner_id: str
) -> EventEnvelope:
    return _event(
        "RoundStarted",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=None,
        payload={"round": round_},
    )


def ev_turn_started(
    *, seq: int, t: int, round_: int, turn_owner_id: str
) -> EventEnvelope:
    return _event(
        "TurnStarted",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=turn_owner_id,
        payload={},
    )


def ev_turn_ended(
    *, seq: int, t: int, round_: int, turn_owner_id: str
) -> EventEnvelope:
    return _event(
        "TurnEnded",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=turn_owner_id,
        payload={},
    )


def ev_delay_changed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    delaying: bool,
    initiative: Optional[int],
) -> EventEnvelope:
    return _event(
        "DelayChanged",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "delaying": delaying,
            "initiative": initiative,
        },
    )


def ev_power_used(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    power_id: str,
) -> EventEnvelope:
    return _event(
        "PowerUsed",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "power_id": power_id},
    )


# ---- saving throws ----


def ev_saving_throws_proposed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    global_modifier: int,
    entries: list[dict],
) -> EventEnvelope:
    return _event(
        "SavingThrowsProposed",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "global_modifier": global_modifier,
            "entries": entries,
        },
    )


def ev_saving_throw_updated(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    global_modifier: int,
    entry: dict,
) -> EventEnvelope:
    return _event(
        "SavingThrowUpdated",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "global_modifier": global_modifier,
            "entry": entry,
        },
    )


def ev_saving_throws_committed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    saved: list[str],
    failed: list[str],
    pending: list[str],
) -> EventEnvelope:
    return _event(
        "SavingThrowsCommitted",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "saved": saved,
            "failed": failed,
            "pending": pending,
        },
    )


# ---- recharge ----


def ev_recharge_proposed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    entries: list[dict],
) -> EventEnvelope:
    return _event(
        "RechargeProposed",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "entries": entries},
    )


def ev_recharge_updated(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    entry: dict,
) -> EventEnvelope:
    return _event(
        "RechargeUpdated",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "entry": entry},
    )


def ev_recharge_committed(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    combatant_id: str,
    recharged: list[str],
    still_used: list[str],
) -> EventEnvelope:
    return _event(
        "RechargeCommitted",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "recharged": recharged,
            "still_used": still_used,
        },
    )


# ---- attack ----


def ev_attack_rolled(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
    power_id: str,
    roll: Roll,
    defence: str,
    effective_defence: int,
    hit: bool,
    critical: bool,
    fumble: bool,
) -> EventEnvelope:
    return _event(
        "AttackRolled",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={
            "attacker_id": attacker_id,
            "target_id": target_id,
            "power_id": power_id,
            "roll": roll.model_dump(),
            "defence": defence,
            "effective_defence": effective_defence,
            "hit": hit,
            "critical": critical,
            "fumble": fumble,
        },
    )


def ev_damage_rolled(
    *,
    seq: int,
    t: int,
    round_: int,
    turn_owner_id: Optional[str],
    attacker_id: str,
    target_id: str,
    roll: Roll,
    value: int,
    miss_damage: int,
) -> EventEnvelope:
    return _event(
        "DamageRolled",
        seq=seq,
        t=t,
        round_=round_,
        turn_owner_id=turn_owner_id,
        actor_id=attacker_id,
        payload={
            "attacker_id": attacker_id,
            "target_id": target_id,
            "roll": roll.model_dump(),
            "value": value,
            "miss_damage": miss_damage,
        },
    )
