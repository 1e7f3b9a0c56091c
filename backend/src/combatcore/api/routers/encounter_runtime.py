from __future__ import annotations

import logging
from typing import Annotated, List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from combatcore.api.schemas import (
    AddCombatantRequest,
    AddCombatantResponse,
    ApplyCommandRequest,
    EncounterRuntimeResponse,
    GetEncounterStateResponse,
)
from combatcore.core.adapters import (
    combatant_from_profile,
    profile_from_creature,
    session_to_dict,
)
from combatcore.core.engine.commands import Command
from combatcore.core.engine.rules.apply import apply_command as engine_apply
from combatcore.core.engine.rules.initiative import group_members
from combatcore.core.engine.state import CombatantKind, EncounterSession
from combatcore.core.runtime.session_store import SessionStore, get_store
from combatcore.db.deps import get_db
from combatcore.db.models import Creature, Encounter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/encounters", tags=["encounter-runtime"])

# Command это Union, разбираем по полю "type"
_COMMAND = TypeAdapter(Annotated[Command, Field(discriminator="type")])


def _session_or_404(
    encounter_id: str, db: Session, store: SessionStore
) -> EncounterSession:
    session = store.get(encounter_id)
    if session is not None:
        return session

    enc = db.get(Encounter, encounter_id)
    if not enc:
        raise HTTPException(status_code=404, detail="Encounter not found")

    # сессии живут в памяти: после рестарта начинаем бой заново
    return store.create(enc.id, enc.name, seed=enc.seed)


@router.get("/{encounter_id}/state", response_model=GetEncounterStateResponse)
def get_state(
    encounter_id: str,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
):
    session = _session_or_404(encounter_id, db, store)
    return GetEncounterStateResponse(
        encounter_id=encounter_id, state=session_to_dict(session)
    )


@router.post("/{encounter_id}/combatants:add", response_model=AddCombatantResponse)
def add_combatants(
    encounter_id: str,
    req: AddCombatantRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
):
    if (req.creature_id is None) == (req.hero is None):
        raise HTTPException(
            status_code=422, detail="Exactly one of creature_id or hero is required"
        )
    if req.combatant_id is not None and req.count != 1:
        raise HTTPException(
            status_code=422, detail="combatant_id can only be used with count=1"
        )

    session = _session_or_404(encounter_id, db, store)

    kind: CombatantKind
    if req.hero is None:
        row = db.get(Creature, req.creature_id)
        if not row:
            raise HTTPException(status_code=404, detail="Creature not found")
        profile = profile_from_creature(row.data_json, profile_id=row.id, name=row.name)
        kind = req.kind or "creature"
    else:
        profile = profile_from_creature(
            req.hero.data, profile_id=f"hero-{uuid4().hex}", name=req.hero.name
        )
        kind = "hero"

    if req.combatant_id is not None:
        ids = [req.combatant_id]
    else:
        ids = [uuid4().hex[:12] for _ in range(req.count)]

    clash = [cid for cid in ids if cid in session.combatants]
    if clash:
        raise HTTPException(
            status_code=409, detail=f"Combatant id already in use: {clash[0]}"
        )

    session.profiles[profile.id] = profile
    group_key = req.group_key or (ids[0] if kind == "hero" else profile.id)
    base_name = req.name or profile.name
    already = len(group_members(session.combatants, group_key))
    position = (req.position.x, req.position.y) if req.position else None

    added: List[str] = []
    for i, cid in enumerate(ids):
        # "Goblin 1", "Goblin 2"... только если в группе больше одного
        numbered = req.count > 1 or already > 0
        name = f"{base_name} {already + i + 1}" if numbered else base_name
        session.combatants[cid] = combatant_from_profile(
            profile,
            combatant_id=cid,
            name=name,
            group_key=group_key,
            kind=kind,
            position=position,
        )
        added.append(cid)

    store.save(session)
    logger.info("encounter %s: added %s", encounter_id, added)
    return AddCombatantResponse(
        encounter_id=encounter_id,
        combatant_ids=added,
        state=session_to_dict(session),
    )


@router.post("/{encounter_id}/commands:apply", response_model=EncounterRuntimeResponse)
def apply_command(
    encounter_id: str,
    req: ApplyCommandRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
):
    session = _session_or_404(encounter_id, db, store)

    try:
        cmd_obj = _COMMAND.validate_python(req.command)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid command: {e}")

    session, events_delta = engine_apply(session, cmd_obj)
    store.save(session)

    return EncounterRuntimeResponse(
        encounter_id=encounter_id,
        state=session_to_dict(session),
        events_delta=events_delta,
    )
