from __future__ import annotations

import re
from dataclasses import dataclass
from random import Random
from typing import List, Optional, Tuple

from combatcore.core.engine.state import Roller

_DICE_RE = re.compile(r"^\s*(\d+)\s*d\s*(\d+)\s*([+-]\s*\d+)?\s*$", re.IGNORECASE)
# то же, но ищем внутри текста ("2d8 + 4 fire damage")
_DICE_SEARCH_RE = re.compile(r"(\d+)\s*d\s*(\d+)(\s*[+-]\s*\d+)?", re.IGNORECASE)
_CONST_RE = re.compile(r"^\s*([+-]?\s*\d+)\s*$")


def rng_roller(rng: Random) -> Roller:
    return rng.randint


def roll_die(roller: Roller, sides: int) -> int:
    return roller(1, sides)


@dataclass(frozen=True)
class DiceExpression:
    throws: int
    sides: int
    constant: int = 0

    @classmethod
    def parse(cls, text: str) -> "DiceExpression":
        m = _DICE_RE.match(text or "")
        if m:
            sides = int(m.group(2))
            if sides < 1:
                raise ValueError(f"Die must have at least one side: {text!r}")
            return cls(int(m.group(1)), sides, _signed(m.group(3)))
        c = _CONST_RE.match(text or "")
        if c:
            return cls(0, 0, _signed(c.group(1)))
        raise ValueError(f"Unsupported dice formula: {text!r}")

    @classmethod
    def try_parse(cls, text: str) -> Optional["DiceExpression"]:
        try:
            return cls.parse(text)
        except ValueError:
            pass
        m = _DICE_SEARCH_RE.search(text or "")
        if not m or int(m.group(2)) < 1:
            return None
        return cls(int(m.group(1)), int(m.group(2)), _signed(m.group(3)))

    @property
    def maximum(self) -> int:
        return self.throws * self.sides + self.constant

    def roll(self, roller: Roller) -> Tuple[List[int], int]:
        dice = [roll_die(roller, self.sides) for _ in range(self.throws)]
        return dice, sum(dice) + self.constant

    def __str__(self) -> str:
        if self.throws == 0:
            return str(self.constant)
        base = f"{self.throws}d{self.sides}"
        if self.constant > 0:
            return f"{base}+{self.constant}"
        if self.constant < 0:
            return f"{base}{self.constant}"
        return base


def _signed(raw: Optional[str]) -> int:
    return int(raw.replace(" ", "")) if raw else 0
