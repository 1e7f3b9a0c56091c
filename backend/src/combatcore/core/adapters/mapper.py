from __future__ import annotations

from collections.abc import Mapping as ABCMapping
from dataclasses import dataclass
from typing import Any, Optional, cast

from combatcore.api.schemas import CreatureData
from combatcore.core.engine.state import CombatantKind, CombatantState, CreatureProfile, Pos


@dataclass(frozen=True)
class CombatantOverrides:
    damage_taken: Optional[int] = None
    temp_hp: Optional[int] = None
    initiative: Optional[int] = None


def _as_dict(obj: Any) -> dict[str, Any]:
    """
    Превращает вход (pydantic model / dict) в dict[str, Any].
    """
    if obj is None:
        return {}

    if isinstance(obj, dict):
        return cast(dict[str, Any], obj)

    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        res = dump()
        if isinstance(res, ABCMapping):
            return dict(cast(ABCMapping[str, Any], res))

    raise TypeError(f"Cannot map creature payload of type {type(obj).__name__}")


def profile_from_creature(
    creature: CreatureData | ABCMapping[str, Any],
    *,
    profile_id: str,
    name: str,
) -> CreatureProfile:
    data = CreatureData.model_validate(_as_dict(creature))

    # миньон: 1 HP независимо от записи в ростере
    max_hp = 1 if data.role == "minion" else data.max_hp

    return CreatureProfile(
        id=profile_id,
        name=name,
        max_hp=max_hp,
        defences=data.defences,
        initiative_bonus=data.initiative_bonus,
        role=data.role,
        damage_modifiers=list(data.damage_modifiers),
        regeneration=data.regeneration,
        insubstantial=data.insubstantial,
        powers=list(data.powers),
    )


def combatant_from_profile(
    profile: CreatureProfile,
    *,
    combatant_id: str,
    name: Optional[str] = None,
    group_key: Optional[str] = None,
    kind: CombatantKind = "creature",
    position: Optional[Pos] = None,
    overrides: CombatantOverrides | None = None,
) -> CombatantState:
    ov = overrides or CombatantOverrides()

    c = CombatantState(
        id=combatant_id,
        name=name or profile.name,
        group_key=group_key,
        kind=kind,
        profile_id=profile.id,
        position=(int(position[0]), int(position[1])) if position else None,
    )
    if ov.damage_taken is not None:
        c.damage_taken = max(0, int(ov.damage_taken))
    if ov.temp_hp is not None:
        c.temp_hp = max(0, int(ov.temp_hp))
    if ov.initiative is not None:
        c.initiative = int(ov.initiative)
    return c
