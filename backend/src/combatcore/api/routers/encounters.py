from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from combatcore.api.schemas import EncounterCreate, EncounterOut
from combatcore.config import get_settings
from combatcore.core.runtime.session_store import SessionStore, get_store
from combatcore.db.deps import get_db
from combatcore.db.models import Encounter

router = APIRouter(prefix="/encounters", tags=["encounters"])


def _out(obj: Encounter) -> EncounterOut:
    return EncounterOut(
        id=obj.id,
        name=obj.name,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


@router.get("", response_model=list[EncounterOut])
def list_encounters(db: Session = Depends(get_db)):
    items = db.query(Encounter).order_by(Encounter.created_at.desc()).all()
    return [_out(e) for e in items]


@router.get("/{encounter_id}", response_model=EncounterOut)
def get_encounter(encounter_id: str, db: Session = Depends(get_db)):
    obj = db.get(Encounter, encounter_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return _out(obj)


@router.post("", response_model=EncounterOut)
def create_encounter(
    payload: EncounterCreate,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
):
    seed = payload.seed if payload.seed is not None else get_settings().seed

    obj = Encounter(name=payload.name, seed=seed)
    db.add(obj)
    db.commit()
    db.refresh(obj)

    store.create(obj.id, obj.name, seed=seed)
    return _out(obj)


@router.delete("/{encounter_id}", status_code=204)
def delete_encounter(
    encounter_id: str,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
):
    obj = db.get(Encounter, encounter_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Encounter not found")
    db.delete(obj)
    db.commit()
    store.drop(encounter_id)
