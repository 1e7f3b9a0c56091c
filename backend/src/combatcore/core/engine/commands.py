# backend/src/combatcore/core/engine/commands.py

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from combatcore.core.engine.state import DamageType, OngoingCondition


class CommandBase(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: str


# ---- conditions ----


class AddCondition(CommandBase):
    type: Literal["AddCondition"] = "AddCondition"
    target_id: str
    condition: OngoingCondition


class RemoveCondition(CommandBase):
    type: Literal["RemoveCondition"] = "RemoveCondition"
    target_id: str
    condition_id: str


# ---- damage / healing ----


class ApplyDamage(CommandBase):
    type: Literal["ApplyDamage"] = "ApplyDamage"
    target_id: str
    amount: int = Field(ge=0)
    damage_types: List[DamageType] = Field(default_factory=list)
    # None -> берём из профиля (insubstantial)
    halve: Optional[bool] = None


class Heal(CommandBase):
    type: Literal["Heal"] = "Heal"
    target_id: str
    amount: int = Field(default=0, ge=0)
    surges: int = Field(default=0, ge=0)
    temporary: bool = False


class ApplyOngoingDamage(CommandBase):
    type: Literal["ApplyOngoingDamage"] = "ApplyOngoingDamage"
    target_id: str


class ApplyRegeneration(CommandBase):
    type: Literal["ApplyRegeneration"] = "ApplyRegeneration"
    target_id: str


# ---- initiative / turns ----


class SetInitiative(CommandBase):
    type: Literal["SetInitiative"] = "SetInitiative"
    combatant_id: str
    initiative: Optional[int] = None  # None = сбросить


class RollInitiative(CommandBase):
    type: Literal["RollInitiative"] = "RollInitiative"
    mode: Literal["group", "individual"] = "group"


class StartCombat(CommandBase):
    type: Literal["StartCombat"] = "StartCombat"


class NextTurn(CommandBase):
    type: Literal["NextTurn"] = "NextTurn"
    # эффекты, которые оператор решил продлить на ещё один ход
    extend_condition_ids: List[str] = Field(default_factory=list)
    apply_ongoing_damage: bool = True
    propose_saves: bool = True
    propose_recharge: bool = True


class Delay(CommandBase):
    type: Literal["Delay"] = "Delay"
    combatant_id: str
    delaying: bool = True
    initiative: Optional[int] = None  # новый счёт при возврате в порядок


class UsePower(CommandBase):
    type: Literal["UsePower"] = "UsePower"
    combatant_id: str
    power_id: str


# ---- saving throws ----


class ProposeSavingThrows(CommandBase):
    type: Literal["ProposeSavingThrows"] = "ProposeSavingThrows"
    combatant_id: str
    auto_roll: Optional[bool] = None  # None -> герои бросают сами
    global_modifier: Optional[int] = None


class RollSavingThrow(CommandBase):
    type: Literal["RollSavingThrow"] = "RollSavingThrow"
    combatant_id: str
    condition_id: str


class AdjustSavingThrow(CommandBase):
    type: Literal["AdjustSavingThrow"] = "AdjustSavingThrow"
    combatant_id: str
    condition_id: str
    delta: int = 1


class ForceSavingThrow(CommandBase):
    type: Literal["ForceSavingThrow"] = "ForceSavingThrow"
    combatant_id: str
    condition_id: str
    outcome: Literal["saved", "failed"]


class SetSavingThrowModifier(CommandBase):
    type: Literal["SetSavingThrowModifier"] = "SetSavingThrowModifier"
    combatant_id: str
    global_modifier: int


class CommitSavingThrows(CommandBase):
    type: Literal["CommitSavingThrows"] = "CommitSavingThrows"
    combatant_id: str


# ---- recharge ----


class ProposeRecharge(CommandBase):
    type: Literal["ProposeRecharge"] = "ProposeRecharge"
    combatant_id: str
    auto_roll: bool = True


class RollRecharge(CommandBase):
    type: Literal["RollRecharge"] = "RollRecharge"
    combatant_id: str
    power_id: str


class ForceRecharge(CommandBase):
    type: Literal["ForceRecharge"] = "ForceRecharge"
    combatant_id: str
    power_id: str
    outcome: Literal["recharged", "not_recharged"]


class CommitRecharge(CommandBase):
    type: Literal["CommitRecharge"] = "CommitRecharge"
    combatant_id: str


# ---- attack ----


class Attack(CommandBase):
    type: Literal["Attack"] = "Attack"
    attacker_id: str
    target_id: str
    power_id: str
    apply_damage: bool = True
    apply_miss_damage: bool = False


Command = Union[
    AddCondition,
    RemoveCondition,
    ApplyDamage,
    Heal,
    ApplyOngoingDamage,
    ApplyRegeneration,
    SetInitiative,
    RollInitiative,
    StartCombat,
    NextTurn,
    Delay,
    UsePower,
    ProposeSavingThrows,
    RollSavingThrow,
    AdjustSavingThrow,
    ForceSavingThrow,
    SetSavingThrowModifier,
    CommitSavingThrows,
    ProposeRecharge,
    RollRecharge,
    ForceRecharge,
    CommitRecharge,
    Attack,
]
