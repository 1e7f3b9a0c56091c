from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from combatcore.core.engine.state import (
    DamageModifierEntry,
    Defences,
    PowerDefinition,
    RoleKind,
)


class PosDTO(BaseModel):
    x: int = 0
    y: int = 0


# ---- Creature payload (то, что хранится в data_json) ----


class CreatureData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, ge=1)

    max_hp: int = Field(ge=1)
    defences: Defences = Field(default_factory=Defences)
    initiative_bonus: int = Field(default=0, ge=-20, le=40)

    role: RoleKind = "normal"

    damage_modifiers: List[DamageModifierEntry] = Field(default_factory=list)
    regeneration: int = Field(default=0, ge=0)

    # insubstantial -> по умолчанию урон делится пополам
    insubstantial: bool = False

    powers: List[PowerDefinition] = Field(default_factory=list)


# ---- API DTOs ----


class CreatureCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    data: CreatureData


class CreatureUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    data: Optional[CreatureData] = None


class CreatureOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    data: CreatureData
    created_at: datetime
    updated_at: datetime


class EncounterCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    seed: Optional[int] = None


class EncounterOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class HeroSpec(BaseModel):
    # герой не живёт в ростере, его профиль передаём прямо в запросе
    model_config = ConfigDict(extra="forbid")

    name: str
    data: CreatureData


class AddCombatantRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    creature_id: Optional[str] = None
    hero: Optional[HeroSpec] = None

    kind: Optional[Literal["creature", "trap"]] = None
    count: int = Field(default=1, ge=1, le=50)
    name: Optional[str] = None
    group_key: Optional[str] = None
    combatant_id: Optional[str] = None  # только для count == 1
    position: Optional[PosDTO] = None


class AddCombatantResponse(BaseModel):
    encounter_id: str
    combatant_ids: List[str]
    state: Dict[str, Any]


class ApplyCommandRequest(BaseModel):
    command: Dict[str, Any]


class EncounterRuntimeResponse(BaseModel):
    encounter_id: str
    state: Dict[str, Any]
    events_delta: List[Dict[str, Any]] = Field(default_factory=list)


class GetEncounterStateResponse(BaseModel):
    encounter_id: str
    state: Dict[str, Any]
