from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

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
    RollInitiative,
    RollRecharge,
    RollSavingThrow,
    SetInitiative,
    SetSavingThrowModifier,
    StartCombat,
    UsePower,
)
from combatcore.core.engine.events import (
    Roll,
    RollMod,
    ev_attack_rolled,
    ev_combat_started,
    ev_command_rejected,
    ev_condition_added,
    ev_condition_extended,
    ev_condition_removed,
    ev_damage_applied,
    ev_damage_rolled,
    ev_delay_changed,
    ev_healed,
    ev_initiative_rolled,
    ev_initiative_set,
    ev_ongoing_damage_applied,
    ev_power_used,
    ev_recharge_committed,
    ev_recharge_proposed,
    ev_recharge_updated,
    ev_regenerated,
    ev_round_started,
    ev_saving_throw_updated,
    ev_saving_throws_committed,
    ev_saving_throws_proposed,
    ev_turn_ended,
    ev_turn_started,
)
from combatcore.core.engine.rules import ongoing
from combatcore.core.engine.rules.attack import (
    attack_damage,
    damage_types_from_text,
    defence_modifiers,
    resolve_attack,
)
from combatcore.core.engine.rules.damage import (
    apply_damage,
    effective_modifier_table,
    heal,
    health_state,
    modifier_for,
)
from combatcore.core.engine.rules.initiative import (
    group_members,
    next_actor,
    roll_initiative,
    set_group_initiative,
    turn_order,
)
from combatcore.core.engine.rules.recharge import RechargeBatch, use_power
from combatcore.core.engine.rules.saves import SaveBatch
from combatcore.core.engine.rules.validator import validate_command
from combatcore.core.engine.state import (
    CombatantState,
    DamageModifierEntry,
    EncounterSession,
    OngoingCondition,
    PowerDefinition,
)

logger = logging.getLogger(__name__)


def _bump(session: EncounterSession) -> Tuple[int, int]:
    session.seq += 1
    session.t += 1
    return session.seq, session.t


def _actor_of(cmd: Command) -> Optional[str]:
    return (
        getattr(cmd, "combatant_id", None)
        or getattr(cmd, "attacker_id", None)
        or getattr(cmd, "target_id", None)
    )


def _health(session: EncounterSession, c: CombatantState) -> str:
    return health_state(c, session.max_hp(c), session.role(c))


def _defeated(session: EncounterSession, c: CombatantState) -> bool:
    return _health(session, c) == "defeated"


def _table(session: EncounterSession, c: CombatantState) -> List[DamageModifierEntry]:
    return effective_modifier_table(session.modifier_table(c), c)


def _find_power(
    session: EncounterSession, c: CombatantState, power_id: str
) -> Optional[PowerDefinition]:
    profile = session.profile_for(c)
    return profile.power(power_id) if profile else None


# ---- общие шаги ----


def _apply_damage_to(
    session: EncounterSession,
    target_id: str,
    raw: int,
    damage_types: List[str],
    halve: bool,
    source: str,
    events: List[dict],
) -> int:
    target = session.combatants[target_id]
    table = _table(session, target)
    temp_before = target.temp_hp

    updated, effective = apply_damage(target, raw, damage_types, table, halve)
    session.combatants[target_id] = updated

    seq, t = _bump(session)
    events.append(
        ev_damage_applied(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            target_id=target_id,
            source=source,  # type: ignore[arg-type]
            raw=raw,
            damage_types=list(damage_types),
            modifier=modifier_for(damage_types, table).label,
            halved=halve,
            effective=effective,
            temp_hp_before=temp_before,
            temp_hp_after=updated.temp_hp,
            damage_taken_after=updated.damage_taken,
            health=_health(session, updated),
        ).model_dump()
    )
    return effective


def _apply_ongoing_to(
    session: EncounterSession, target_id: str, events: List[dict]
) -> int:
    target = session.combatants[target_id]
    table = _table(session, target)
    lines = ongoing.ongoing_damage_breakdown(target, table)

    updated, total = ongoing.apply_ongoing_damage(target, table)
    session.combatants[target_id] = updated

    seq, t = _bump(session)
    events.append(
        ev_ongoing_damage_applied(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            target_id=target_id,
            lines=[
                {
                    "condition_id": ln.condition_id,
                    "label": ln.label,
                    "modifier": ln.modifier,
                    "value": ln.value,
                }
                for ln in lines
            ],
            total=total,
            temp_hp_after=updated.temp_hp,
            damage_taken_after=updated.damage_taken,
            health=_health(session, updated),
        ).model_dump()
    )
    return total


def _apply_regeneration_to(
    session: EncounterSession, target_id: str, events: List[dict]
) -> int:
    target = session.combatants[target_id]
    profile = session.profile_for(target)
    base = profile.regeneration if profile else 0

    updated, healed = ongoing.apply_regeneration(target, base)
    session.combatants[target_id] = updated

    seq, t = _bump(session)
    events.append(
        ev_regenerated(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            target_id=target_id,
            value=healed,
            damage_taken_after=updated.damage_taken,
        ).model_dump()
    )
    return healed


def _remove_condition(
    session: EncounterSession,
    target_id: str,
    condition: OngoingCondition,
    reason: str,
    events: List[dict],
) -> None:
    session.combatants[target_id] = ongoing.remove(
        session.combatants[target_id], condition
    )
    seq, t = _bump(session)
    events.append(
        ev_condition_removed(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            target_id=target_id,
            condition_id=condition.id,
            label=ongoing.describe_condition(condition),
            reason=reason,  # type: ignore[arg-type]
        ).model_dump()
    )


def _expire(
    session: EncounterSession,
    actor_id: str,
    at_start: bool,
    extend: Set[str],
    events: List[dict],
) -> None:
    ending = ongoing.conditions_ending(
        list(session.combatants.values()), actor_id, session.round, at_start
    )
    for target_id, oc in ending:
        if oc.id not in extend:
            _remove_condition(session, target_id, oc, "expired", events)
            continue

        # продлеваем ещё на один ход владельца
        extended = oc.model_copy(update={"round": session.round + 1})
        c = session.combatants[target_id].copy()
        c.conditions = [extended if x.id == oc.id else x for x in c.conditions]
        session.combatants[target_id] = c

        seq, t = _bump(session)
        events.append(
            ev_condition_extended(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                target_id=target_id,
                condition_id=oc.id,
                until_round=extended.round,
            ).model_dump()
        )


def _propose_saves(
    session: EncounterSession,
    combatant_id: str,
    auto_roll: Optional[bool],
    global_modifier: Optional[int],
    events: List[dict],
) -> SaveBatch:
    c = session.combatants[combatant_id]
    if auto_roll is None:
        # за героев бросают игроки
        auto_roll = c.kind != "hero"

    batch = SaveBatch.propose(
        c,
        session.role(c),
        roller=session.roll,
        auto_roll=auto_roll,
        global_modifier=global_modifier,
    )
    session.pending_saves[combatant_id] = batch

    seq, t = _bump(session)
    events.append(
        ev_saving_throws_proposed(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            combatant_id=combatant_id,
            global_modifier=batch.global_modifier,
            entries=[r.to_dict() for r in batch.resolve()],
        ).model_dump()
    )
    return batch


def _propose_recharge(
    session: EncounterSession,
    combatant_id: str,
    auto_roll: bool,
    events: List[dict],
) -> RechargeBatch:
    c = session.combatants[combatant_id]
    batch = RechargeBatch.propose(
        c,
        lambda pid: _find_power(session, c, pid),
        roller=session.roll,
        auto_roll=auto_roll,
    )
    session.pending_recharges[combatant_id] = batch

    seq, t = _bump(session)
    events.append(
        ev_recharge_proposed(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            combatant_id=combatant_id,
            entries=[r.to_dict() for r in batch.resolve()],
        ).model_dump()
    )
    return batch


def _has_save_ends(c: CombatantState) -> bool:
    return any(oc.duration.kind == "save_ends" for oc in c.conditions)


def _has_rechargeable(session: EncounterSession, c: CombatantState) -> bool:
    for pid in c.used_powers:
        power = _find_power(session, c, pid)
        if power is not None and power.recharge.strip():
            return True
    return False


def _begin_turn(
    session: EncounterSession,
    actor_id: str,
    *,
    extend: Set[str],
    apply_ongoing: bool,
    propose_recharge: bool,
    events: List[dict],
) -> None:
    """
    Начало хода: регенерация -> истечение "до начала хода" ->
    продолжительный урон -> предложение перезарядки.
    """
    seq, t = _bump(session)
    events.append(
        ev_turn_started(
            seq=seq, t=t, round_=session.round, turn_owner_id=actor_id
        ).model_dump()
    )

    actor = session.combatants[actor_id]
    profile = session.profile_for(actor)
    base_regen = profile.regeneration if profile else 0
    if actor.damage_taken > 0 and ongoing.regeneration_value(actor, base_regen) > 0:
        _apply_regeneration_to(session, actor_id, events)

    _expire(session, actor_id, at_start=True, extend=extend, events=events)

    actor = session.combatants[actor_id]
    if apply_ongoing and ongoing.ongoing_damage_breakdown(actor, _table(session, actor)):
        _apply_ongoing_to(session, actor_id, events)

    actor = session.combatants[actor_id]
    if propose_recharge and _has_rechargeable(session, actor):
        _propose_recharge(session, actor_id, auto_roll=True, events=events)


def apply_command(
    session: EncounterSession, cmd: Command
) -> Tuple[EncounterSession, List[dict]]:
    """
    Возвращаем (session, events_as_dicts).
    При ошибке валидации возвращаем CommandRejected и НЕ меняем session.
    """
    vr = validate_command(session, cmd)
    if not vr.ok:
        e = vr.errors[0]
        logger.info("command %s rejected: %s", cmd.type, e.code)
        seq, t = _bump(session)
        rej = ev_command_rejected(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            actor_id=_actor_of(cmd),
            command=cmd.model_dump(),
            code=e.code,
            message=e.message,
            meta=e.meta,
        ).model_dump()
        return session, [rej]

    events: List[dict] = []

    # ---- conditions ----

    if isinstance(cmd, AddCondition):
        target = session.combatants[cmd.target_id]
        if target.condition(cmd.condition.id) is not None:
            return session, events

        oc = ongoing.stamp_duration(
            cmd.condition, session.round, session.current_actor_id
        )
        session.combatants[cmd.target_id] = ongoing.add(target, oc)

        seq, t = _bump(session)
        events.append(
            ev_condition_added(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                target_id=cmd.target_id,
                condition=oc.model_dump(),
                label=ongoing.describe_condition(oc),
                duration=ongoing.describe_duration(
                    oc, session.round, session.names()
                ),
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, RemoveCondition):
        existing = session.combatants[cmd.target_id].condition(cmd.condition_id)
        if existing is not None:
            _remove_condition(session, cmd.target_id, existing, "manual", events)
        return session, events

    # ---- damage / healing ----

    if isinstance(cmd, ApplyDamage):
        target = session.combatants[cmd.target_id]
        halve = cmd.halve
        if halve is None:
            profile = session.profile_for(target)
            halve = bool(profile and profile.insubstantial)

        _apply_damage_to(
            session,
            cmd.target_id,
            cmd.amount,
            list(cmd.damage_types),
            halve,
            "direct",
            events,
        )
        return session, events

    if isinstance(cmd, Heal):
        target = session.combatants[cmd.target_id]
        updated, value = heal(
            target,
            session.max_hp(target),
            amount=cmd.amount,
            surges=cmd.surges,
            temporary=cmd.temporary,
        )
        session.combatants[cmd.target_id] = updated

        seq, t = _bump(session)
        events.append(
            ev_healed(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                target_id=cmd.target_id,
                amount=cmd.amount,
                surges=cmd.surges,
                temporary=cmd.temporary,
                value=value,
                damage_taken_after=updated.damage_taken,
                temp_hp_after=updated.temp_hp,
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, ApplyOngoingDamage):
        _apply_ongoing_to(session, cmd.target_id, events)
        return session, events

    if isinstance(cmd, ApplyRegeneration):
        _apply_regeneration_to(session, cmd.target_id, events)
        return session, events

    # ---- initiative / turns ----

    if isinstance(cmd, SetInitiative):
        group = session.combatants[cmd.combatant_id].initiative_group
        session.combatants = set_group_initiative(
            session.combatants, group, cmd.initiative
        )

        seq, t = _bump(session)
        events.append(
            ev_initiative_set(
                seq=seq,
                t=t,
                round_=session.round,
                group_key=group,
                combatant_ids=group_members(session.combatants, group),
                initiative=cmd.initiative,
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, RollInitiative):
        bonuses = {}
        for cid, c in session.combatants.items():
            profile = session.profile_for(c)
            bonuses[cid] = profile.initiative_bonus if profile else 0

        session.combatants, rolls = roll_initiative(
            session.combatants, bonuses, session.roll, cmd.mode
        )
        for r in rolls:
            roll = Roll(
                kind="d20",
                formula=f"1d20+{r.bonus}",
                dice=[r.die],
                mods=[RollMod(name="initiative_bonus", value=r.bonus)],
                total=r.total,
                nat=r.die,
            )
            seq, t = _bump(session)
            events.append(
                ev_initiative_rolled(
                    seq=seq,
                    t=t,
                    round_=session.round,
                    combatant_ids=r.combatant_ids,
                    roll=roll,
                    bonus=r.bonus,
                ).model_dump()
            )
        return session, events

    if isinstance(cmd, StartCombat):
        order = turn_order(session.combatants)
        first = next(
            (cid for cid in order if not _defeated(session, session.combatants[cid])),
            order[0],
        )
        session.combat_started = True
        session.round = 1
        session.current_actor_id = first

        seq, t = _bump(session)
        events.append(
            ev_combat_started(
                seq=seq,
                t=t,
                round_=session.round,
                order=[
                    {
                        "combatant_id": cid,
                        "initiative": session.combatants[cid].initiative,
                    }
                    for cid in order
                ],
            ).model_dump()
        )
        seq, t = _bump(session)
        events.append(
            ev_round_started(
                seq=seq, t=t, round_=session.round, turn_owner_id=first
            ).model_dump()
        )
        _begin_turn(
            session,
            first,
            extend=set(),
            apply_ongoing=True,
            propose_recharge=True,
            events=events,
        )
        return session, events

    if isinstance(cmd, NextTurn):
        extend = set(cmd.extend_condition_ids)
        actor_id = session.current_actor_id

        if actor_id is not None and actor_id in session.combatants:
            _expire(session, actor_id, at_start=False, extend=extend, events=events)

            seq, t = _bump(session)
            events.append(
                ev_turn_ended(
                    seq=seq, t=t, round_=session.round, turn_owner_id=actor_id
                ).model_dump()
            )

            if cmd.propose_saves and _has_save_ends(session.combatants[actor_id]):
                _propose_saves(session, actor_id, None, None, events)

        # побеждённые ход пропускают
        nxt, wrapped = next_actor(
            session.combatants, actor_id, skip=lambda c: _defeated(session, c)
        )
        session.current_actor_id = nxt
        if nxt is None:
            return session, events

        if wrapped:
            session.round += 1
            seq, t = _bump(session)
            events.append(
                ev_round_started(
                    seq=seq, t=t, round_=session.round, turn_owner_id=nxt
                ).model_dump()
            )

        _begin_turn(
            session,
            nxt,
            extend=extend,
            apply_ongoing=cmd.apply_ongoing_damage,
            propose_recharge=cmd.propose_recharge,
            events=events,
        )
        return session, events

    if isinstance(cmd, Delay):
        c = session.combatants[cmd.combatant_id].copy()
        c.delaying = cmd.delaying
        if not cmd.delaying and cmd.initiative is not None:
            c.initiative = cmd.initiative
        session.combatants[cmd.combatant_id] = c

        seq, t = _bump(session)
        events.append(
            ev_delay_changed(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=c.id,
                delaying=c.delaying,
                initiative=c.initiative,
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, UsePower):
        c = session.combatants[cmd.combatant_id]
        # неизвестная сила -> no-op
        if _find_power(session, c, cmd.power_id) is None:
            return session, events
        if cmd.power_id in c.used_powers:
            return session, events

        session.combatants[cmd.combatant_id] = use_power(c, cmd.power_id)
        seq, t = _bump(session)
        events.append(
            ev_power_used(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=cmd.combatant_id,
                power_id=cmd.power_id,
            ).model_dump()
        )
        return session, events

    # ---- saving throws ----

    if isinstance(cmd, ProposeSavingThrows):
        _propose_saves(
            session, cmd.combatant_id, cmd.auto_roll, cmd.global_modifier, events
        )
        return session, events

    if isinstance(
        cmd, (RollSavingThrow, AdjustSavingThrow, ForceSavingThrow)
    ):
        batch = session.pending_saves[cmd.combatant_id]
        if isinstance(cmd, RollSavingThrow):
            batch.roll(cmd.condition_id, session.roll)
        elif isinstance(cmd, AdjustSavingThrow):
            batch.adjust(cmd.condition_id, cmd.delta)
        elif cmd.outcome == "saved":
            batch.force_save(cmd.condition_id)
        else:
            batch.force_fail(cmd.condition_id)

        resolution = next(
            r for r in batch.resolve() if r.condition_id == cmd.condition_id
        )
        seq, t = _bump(session)
        events.append(
            ev_saving_throw_updated(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=cmd.combatant_id,
                global_modifier=batch.global_modifier,
                entry=resolution.to_dict(),
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, SetSavingThrowModifier):
        batch = session.pending_saves[cmd.combatant_id]
        batch.global_modifier = cmd.global_modifier

        seq, t = _bump(session)
        events.append(
            ev_saving_throws_proposed(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=cmd.combatant_id,
                global_modifier=batch.global_modifier,
                entries=[r.to_dict() for r in batch.resolve()],
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, CommitSavingThrows):
        batch = session.pending_saves.pop(cmd.combatant_id)
        resolutions = batch.resolve()
        saved_ids = {r.condition_id for r in resolutions if r.outcome == "saved"}
        saved_conditions = [
            oc
            for oc in session.combatants[cmd.combatant_id].conditions
            if oc.id in saved_ids
        ]
        for oc in saved_conditions:
            _remove_condition(session, cmd.combatant_id, oc, "saved", events)

        seq, t = _bump(session)
        events.append(
            ev_saving_throws_committed(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=cmd.combatant_id,
                saved=[oc.id for oc in saved_conditions],
                failed=[r.condition_id for r in resolutions if r.outcome == "failed"],
                pending=[
                    r.condition_id for r in resolutions if r.outcome == "pending"
                ],
            ).model_dump()
        )
        return session, events

    # ---- recharge ----

    if isinstance(cmd, ProposeRecharge):
        _propose_recharge(session, cmd.combatant_id, cmd.auto_roll, events)
        return session, events

    if isinstance(cmd, (RollRecharge, ForceRecharge)):
        rbatch = session.pending_recharges[cmd.combatant_id]
        if isinstance(cmd, RollRecharge):
            rbatch.roll(cmd.power_id, session.roll)
        elif cmd.outcome == "recharged":
            rbatch.force_success(cmd.power_id)
        else:
            rbatch.force_failure(cmd.power_id)

        rres = next(r for r in rbatch.resolve() if r.power_id == cmd.power_id)
        seq, t = _bump(session)
        events.append(
            ev_recharge_updated(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=cmd.combatant_id,
                entry=rres.to_dict(),
            ).model_dump()
        )
        return session, events

    if isinstance(cmd, CommitRecharge):
        rbatch = session.pending_recharges.pop(cmd.combatant_id)
        updated, recharged = rbatch.commit(session.combatants[cmd.combatant_id])
        session.combatants[cmd.combatant_id] = updated

        seq, t = _bump(session)
        events.append(
            ev_recharge_committed(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                combatant_id=cmd.combatant_id,
                recharged=recharged,
                still_used=list(updated.used_powers),
            ).model_dump()
        )
        return session, events

    # ---- attack ----

    if isinstance(cmd, Attack):
        attacker = session.combatants[cmd.attacker_id]
        target = session.combatants[cmd.target_id]
        power = _find_power(session, attacker, cmd.power_id)
        # нет силы или у силы нет атаки -> no-op
        if power is None or power.attack_bonus is None or power.defence is None:
            return session, events

        tprofile = session.profile_for(target)
        base = tprofile.defences.get(power.defence) if tprofile else 10
        result = resolve_attack(
            power.attack_bonus,
            base,
            defence_modifiers(target),
            power.defence,
            session.roll,
        )

        seq, t = _bump(session)
        events.append(
            ev_attack_rolled(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                attacker_id=cmd.attacker_id,
                target_id=cmd.target_id,
                power_id=power.id,
                roll=Roll(
                    kind="d20",
                    formula=f"1d20+{result.bonus}",
                    dice=[result.roll],
                    mods=[RollMod(name="attack_bonus", value=result.bonus)],
                    total=result.total,
                    nat=result.roll,
                    is_critical=result.critical,
                ),
                defence=result.defence,
                effective_defence=result.effective_defence,
                hit=result.hit,
                critical=result.critical,
                fumble=result.fumble,
            ).model_dump()
        )

        if power.recharge.strip() and power.id not in attacker.used_powers:
            session.combatants[cmd.attacker_id] = use_power(attacker, power.id)
            seq, t = _bump(session)
            events.append(
                ev_power_used(
                    seq=seq,
                    t=t,
                    round_=session.round,
                    turn_owner_id=session.current_actor_id,
                    combatant_id=cmd.attacker_id,
                    power_id=power.id,
                ).model_dump()
            )

        dmg = attack_damage(result, power.damage, session.roll) if power.damage else None
        if dmg is None:
            return session, events

        seq, t = _bump(session)
        events.append(
            ev_damage_rolled(
                seq=seq,
                t=t,
                round_=session.round,
                turn_owner_id=session.current_actor_id,
                attacker_id=cmd.attacker_id,
                target_id=cmd.target_id,
                roll=Roll(
                    kind="damage",
                    formula=power.damage + (" (CRIT max)" if result.critical else ""),
                    dice=dmg.dice,
                    total=dmg.rolled,
                    is_critical=result.critical,
                ),
                value=dmg.value,
                miss_damage=dmg.miss_damage,
            ).model_dump()
        )

        amount = dmg.value if result.hit else 0
        if not result.hit and cmd.apply_miss_damage:
            amount = dmg.miss_damage
        if cmd.apply_damage and amount > 0:
            _apply_damage_to(
                session,
                cmd.target_id,
                amount,
                damage_types_from_text(power.details),
                bool(tprofile and tprofile.insubstantial),
                "attack",
                events,
            )
        return session, events

    # На всякий случай (хотя валидатор уже ловит)
    seq, t = _bump(session)
    events.append(
        ev_command_rejected(
            seq=seq,
            t=t,
            round_=session.round,
            turn_owner_id=session.current_actor_id,
            actor_id=None,
            command=cmd.model_dump(),
            code="UNKNOWN_COMMAND",
            message="Unhandled command",
            meta={},
        ).model_dump()
    )
    return session, events
