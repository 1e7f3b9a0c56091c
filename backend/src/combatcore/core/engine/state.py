from __future__ import annotations

from dataclasses import dataclass, field, replace
from random import Random
from typing import (
    TYPE_CHECKING,
    Annotated,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Tuple,
    Union,
    get_args,
)
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from combatcore.core.engine.rules.recharge import RechargeBatch
    from combatcore.core.engine.rules.saves import SaveBatch

Pos = Tuple[int, int]

# roll(min, max) -> int, включительно с обеих сторон
Roller = Callable[[int, int], int]

DamageType = Literal[
    "untyped",
    "acid",
    "cold",
    "fire",
    "force",
    "lightning",
    "necrotic",
    "poison",
    "psychic",
    "radiant",
    "thunder",
]
DAMAGE_TYPES: Tuple[str, ...] = get_args(DamageType)

DefenceType = Literal["ac", "fortitude", "reflex", "will"]
DEFENCE_TYPES: Tuple[str, ...] = ("ac", "fortitude", "reflex", "will")

RoleKind = Literal["normal", "elite", "solo", "minion"]
CombatantKind = Literal["hero", "creature", "trap"]

IMMUNE = "immune"


def _new_id() -> str:
    return uuid4().hex


class DamageModifierEntry(BaseModel):
    """
    Сопротивление/уязвимость/иммунитет к одному типу урона.
    value < 0 -> resist, value > 0 -> vulnerable, "immune" -> иммунитет.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    damage_type: DamageType
    value: Union[int, Literal["immune"]]

    @property
    def is_immune(self) -> bool:
        return self.value == IMMUNE


# ---- ongoing effects (что делает состояние) ----


class DamageEffect(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["damage"] = "damage"
    damage_type: DamageType = "untyped"
    value: int = Field(ge=0)


class StatusEffect(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["status"] = "status"
    description: str


class DefenceModifierEffect(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["defence_modifier"] = "defence_modifier"
    defences: List[DefenceType] = Field(default_factory=lambda: list(DEFENCE_TYPES))
    delta: int = 2


class DamageModifierEffect(BaseModel):
    # временное сопротивление/уязвимость, добавляется к таблице существа
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["damage_modifier"] = "damage_modifier"
    entry: DamageModifierEntry


class RegenerationEffect(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["regeneration"] = "regeneration"
    value: int = Field(ge=0)
    details: str = ""


ConditionEffect = Annotated[
    Union[
        DamageEffect,
        StatusEffect,
        DefenceModifierEffect,
        DamageModifierEffect,
        RegenerationEffect,
    ],
    Field(discriminator="kind"),
]


# ---- durations (когда заканчивается) ----


class SaveEnds(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["save_ends"] = "save_ends"
    saving_throw_modifier: int = 0


class UntilEndOfNextTurn(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["until_end_of_next_turn"] = "until_end_of_next_turn"
    owner_id: Optional[str] = None  # чей ход завершает эффект


class UntilStartOfNextTurn(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["until_start_of_next_turn"] = "until_start_of_next_turn"
    owner_id: Optional[str] = None


class UntilEndOfEncounter(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["until_end_of_encounter"] = "until_end_of_encounter"


ConditionDuration = Annotated[
    Union[SaveEnds, UntilEndOfNextTurn, UntilStartOfNextTurn, UntilEndOfEncounter],
    Field(discriminator="kind"),
]

TURN_BOUND = ("until_end_of_next_turn", "until_start_of_next_turn")


class OngoingCondition(BaseModel):
    # frozen: тип длительности фиксируется при создании
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=_new_id)
    effect: ConditionEffect
    duration: ConditionDuration = Field(default_factory=UntilEndOfEncounter)

    # раунд-маркер: для turn-bound длительностей это раунд окончания
    round: int = 0

    @property
    def is_turn_bound(self) -> bool:
        return self.duration.kind in TURN_BOUND


# ---- roll states ----


class Pending(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["pending"] = "pending"


class Rolled(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["rolled"] = "rolled"
    value: int = Field(ge=0)


class ForcedSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["forced_success"] = "forced_success"


class ForcedFailure(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["forced_failure"] = "forced_failure"


RollState = Annotated[
    Union[Pending, Rolled, ForcedSuccess, ForcedFailure],
    Field(discriminator="kind"),
]


# ---- roster data ----


class Defences(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ac: int = 10
    fortitude: int = 10
    reflex: int = 10
    will: int = 10

    def get(self, defence: DefenceType) -> int:
        return int(getattr(self, defence))


class PowerDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    attack_bonus: Optional[int] = None
    defence: Optional[DefenceType] = None
    damage: str = ""  # "2d6+4"
    recharge: str = ""  # "Recharge 5-6"
    details: str = ""  # отсюда берём типы урона


class CreatureProfile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    max_hp: int = Field(ge=1)
    defences: Defences = Field(default_factory=Defences)
    initiative_bonus: int = 0
    role: RoleKind = "normal"
    damage_modifiers: List[DamageModifierEntry] = Field(default_factory=list)
    regeneration: int = Field(default=0, ge=0)
    insubstantial: bool = False
    powers: List[PowerDefinition] = Field(default_factory=list)

    def power(self, power_id: str) -> Optional[PowerDefinition]:
        for p in self.powers:
            if p.id == power_id:
                return p
        return None


@dataclass
class CombatantState:
    id: str
    name: str

    # все экземпляры одного слота ("Goblin Cutter") делят group_key
    group_key: Optional[str] = None
    kind: CombatantKind = "creature"
    profile_id: Optional[str] = None

    initiative: Optional[int] = None  # None = ещё не бросал (не то же самое, что 0)

    damage_taken: int = 0
    temp_hp: int = 0

    position: Optional[Pos] = None

    conditions: List[OngoingCondition] = field(default_factory=list)
    used_powers: List[str] = field(default_factory=list)

    delaying: bool = False

    @property
    def initiative_group(self) -> str:
        return self.group_key or self.id

    def current_hp(self, max_hp: int) -> int:
        return max_hp - self.damage_taken

    def mark_power_used(self, power_id: str) -> None:
        if power_id not in self.used_powers:
            self.used_powers.append(power_id)

    def condition(self, condition_id: str) -> Optional[OngoingCondition]:
        for oc in self.conditions:
            if oc.id == condition_id:
                return oc
        return None

    def copy(self) -> "CombatantState":
        # условия неизменяемые, достаточно скопировать списки
        return replace(
            self,
            conditions=list(self.conditions),
            used_powers=list(self.used_powers),
        )


@dataclass
class EncounterSession:
    id: str = field(default_factory=lambda: str(uuid4()))
    name: str = ""

    round: int = 1
    combat_started: bool = False
    current_actor_id: Optional[str] = None

    combatants: Dict[str, CombatantState] = field(default_factory=dict)
    profiles: Dict[str, CreatureProfile] = field(default_factory=dict)

    # предложенные, но ещё не применённые броски (propose -> commit)
    pending_saves: Dict[str, SaveBatch] = field(default_factory=dict)
    pending_recharges: Dict[str, RechargeBatch] = field(default_factory=dict)

    seq: int = 0
    t: int = 0

    rng_seed: int = 0
    rng: Random = field(default_factory=Random)
    roller: Optional[Roller] = None

    def with_seed(self, seed: int) -> "EncounterSession":
        self.rng_seed = seed
        self.rng = Random(seed)
        return self

    def roll(self, lo: int, hi: int) -> int:
        if self.roller is not None:
            return self.roller(lo, hi)
        return self.rng.randint(lo, hi)

    def profile_for(self, combatant: CombatantState) -> Optional[CreatureProfile]:
        if combatant.profile_id is None:
            return None
        return self.profiles.get(combatant.profile_id)

    def max_hp(self, combatant: CombatantState) -> int:
        profile = self.profile_for(combatant)
        return profile.max_hp if profile else 0

    def role(self, combatant: CombatantState) -> RoleKind:
        profile = self.profile_for(combatant)
        return profile.role if profile else "normal"

    def modifier_table(self, combatant: CombatantState) -> List[DamageModifierEntry]:
        profile = self.profile_for(combatant)
        return list(profile.damage_modifiers) if profile else []

    def names(self) -> Dict[str, str]:
        return {cid: c.name for cid, c in self.combatants.items()}
