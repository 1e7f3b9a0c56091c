from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from combatcore.api.schemas import CreatureCreate, CreatureData, CreatureOut, CreatureUpdate
from combatcore.db.deps import get_db
from combatcore.db.models import Creature

router = APIRouter(prefix="/creatures", tags=["creatures"])


def _out(obj: Creature) -> CreatureOut:
    return CreatureOut(
        id=obj.id,
        name=obj.name,
        data=CreatureData.model_validate(obj.data_json),
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def _get_or_404(db: Session, creature_id: str) -> Creature:
    obj = db.get(Creature, creature_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Creature not found")
    return obj


@router.get("", response_model=list[CreatureOut])
def list_creatures(db: Session = Depends(get_db)):
    items = db.query(Creature).order_by(Creature.created_at.desc()).all()
    return [_out(c) for c in items]


@router.post("", response_model=CreatureOut)
def create_creature(payload: CreatureCreate, db: Session = Depends(get_db)):
    obj = Creature(name=payload.name, data_json=payload.data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _out(obj)


@router.get("/{creature_id}", response_model=CreatureOut)
def get_creature(creature_id: str, db: Session = Depends(get_db)):
    return _out(_get_or_404(db, creature_id))


def _update(creature_id: str, payload: CreatureUpdate, db: Session) -> CreatureOut:
    obj = _get_or_404(db, creature_id)

    if payload.name is not None:
        obj.name = payload.name
    if payload.data is not None:
        obj.data_json = payload.data.model_dump()

    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _out(obj)


@router.patch("/{creature_id}", response_model=CreatureOut)
def patch_creature(
    creature_id: str, payload: CreatureUpdate, db: Session = Depends(get_db)
):
    return _update(creature_id, payload, db)


@router.put("/{creature_id}", response_model=CreatureOut)
def update_creature(
    creature_id: str, payload: CreatureUpdate, db: Session = Depends(get_db)
):
    return _update(creature_id, payload, db)


@router.delete("/{creature_id}", status_code=204)
def delete_creature(creature_id: str, db: Session = Depends(get_db)):
    obj = _get_or_404(db, creature_id)
    db.delete(obj)
    db.commit()
