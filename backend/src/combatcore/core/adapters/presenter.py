from __future__ import annotations

from typing import Any, Dict

from combatcore.core.engine.rules.attack import defence_modifiers, effective_defence
from combatcore.core.engine.rules.damage import health_state
from combatcore.core.engine.rules.initiative import turn_order
from combatcore.core.engine.rules.ongoing import describe_condition, describe_duration
from combatcore.core.engine.state import DEFENCE_TYPES, CombatantState, EncounterSession


# Только "наружу" для UI: обратного восстановления здесь нет.


def combatant_to_dict(session: EncounterSession, c: CombatantState) -> Dict[str, Any]:
    profile = session.profile_for(c)
    max_hp = session.max_hp(c)
    names = session.names()

    defences: Dict[str, Any] = {}
    if profile is not None:
        mods = defence_modifiers(c)
        for d in DEFENCE_TYPES:
            base = profile.defences.get(d)  # type: ignore[arg-type]
            defences[d] = {
                "base": base,
                "effective": effective_defence(base, mods, d),  # type: ignore[arg-type]
            }

    return {
        "id": c.id,
        "name": c.name,
        "kind": c.kind,
        "group_key": c.initiative_group,
        "profile_id": c.profile_id,
        "role": session.role(c),
        "initiative": c.initiative,
        "delaying": c.delaying,
        "max_hp": max_hp,
        "current_hp": c.current_hp(max_hp),
        "damage_taken": c.damage_taken,
        "temp_hp": c.temp_hp,
        "health": health_state(c, max_hp, session.role(c)),
        "position": list(c.position) if c.position else None,
        "defences": defences,
        "used_powers": list(c.used_powers),
        "conditions": [
            {
                **oc.model_dump(),
                "label": describe_condition(oc),
                "duration_text": describe_duration(oc, session.round, names),
            }
            for oc in c.conditions
        ],
    }


def session_to_dict(session: EncounterSession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "name": session.name,
        "round": session.round,
        "combat_started": session.combat_started,
        "current_actor_id": session.current_actor_id,
        "turn_order": turn_order(session.combatants),
        "seq": session.seq,
        "combatants": [
            combatant_to_dict(session, c) for c in session.combatants.values()
        ],
        "pending_saves": {
            cid: {
                "global_modifier": batch.global_modifier,
                "entries": [r.to_dict() for r in batch.resolve()],
            }
            for cid, batch in session.pending_saves.items()
        },
        "pending_recharges": {
            cid: [r.to_dict() for r in batch.resolve()]
            for cid, batch in session.pending_recharges.items()
        },
    }
