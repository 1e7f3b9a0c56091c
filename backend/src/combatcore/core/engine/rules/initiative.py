from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Mapping, Optional, Tuple

from combatcore.core.engine.dice import roll_die
from combatcore.core.engine.state import CombatantState, Roller

InitiativeMode = Literal["group", "individual"]


@dataclass(frozen=True)
class InitiativeRoll:
    combatant_ids: List[str]
    die: int
    bonus: int

    @property
    def total(self) -> int:
        return self.die + self.bonus


def group_members(
    combatants: Mapping[str, CombatantState], group_key: str
) -> List[str]:
    return [cid for cid, c in combatants.items() if c.initiative_group == group_key]


def set_group_initiative(
    combatants: Mapping[str, CombatantState],
    group_key: str,
    score: Optional[int],
) -> Dict[str, CombatantState]:
    """
    Один счёт на всю группу: каждый участник с этим group_key получает
    одинаковое значение. None сбрасывает в "не бросал".
    """
    out: Dict[str, CombatantState] = {}
    for cid, c in combatants.items():
        if c.initiative_group == group_key:
            c = c.copy()
            c.initiative = score
        out[cid] = c
    return out


def roll_initiative(
    combatants: Mapping[str, CombatantState],
    bonuses: Mapping[str, int],
    roller: Roller,
    mode: InitiativeMode = "group",
) -> Tuple[Dict[str, CombatantState], List[InitiativeRoll]]:
    # бросаем только тем, у кого инициативы ещё нет
    batches: Dict[str, List[str]] = {}
    for cid, c in combatants.items():
        if c.initiative is not None:
            continue
        key = c.initiative_group if mode == "group" else cid
        batches.setdefault(key, []).append(cid)

    out = {cid: c for cid, c in combatants.items()}
    rolls: List[InitiativeRoll] = []
    for ids in batches.values():
        r = InitiativeRoll(
            combatant_ids=ids,
            die=roll_die(roller, 20),
            bonus=bonuses.get(ids[0], 0),
        )
        for cid in ids:
            c = out[cid].copy()
            c.initiative = r.total
            out[cid] = c
        rolls.append(r)

    return out, rolls


def turn_order(combatants: Mapping[str, CombatantState]) -> List[str]:
    # sorted() стабилен: при равенстве остаётся порядок добавления
    ready = [
        c for c in combatants.values() if c.initiative is not None and not c.delaying
    ]
    return [c.id for c in sorted(ready, key=lambda c: -int(c.initiative or 0))]


def next_actor(
    combatants: Mapping[str, CombatantState],
    current_id: Optional[str],
    skip: Optional[Callable[[CombatantState], bool]] = None,
) -> Tuple[Optional[str], bool]:
    """
    Возвращает (следующий, wrapped). wrapped=True -> начался новый раунд.
    skip(c) -> True: участник пропускает ход (например, побеждён).
    """
    full = turn_order(combatants)
    order = [cid for cid in full if skip is None or not skip(combatants[cid])]
    if not order:
        return None, False

    if current_id is None:
        return order[0], False

    if current_id in full:
        # идём по полному порядку, пропуская тех, кто не ходит
        for cid in full[full.index(current_id) + 1 :]:
            if cid in order:
                return cid, False
        return order[0], True

    # текущий выбыл из порядка (delay): ищем первого ниже по счёту
    current = combatants.get(current_id)
    score = current.initiative if current is not None else None
    if score is not None:
        for cid in order:
            if int(combatants[cid].initiative or 0) < score:
                return cid, False
    return order[0], True
