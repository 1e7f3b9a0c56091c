from .mapper import (
    CombatantOverrides,
    combatant_from_profile,
    profile_from_creature,
)
from .presenter import combatant_to_dict, session_to_dict

__all__ = [
    "CombatantOverrides",
    "combatant_from_profile",
    "profile_from_creature",
    "combatant_to_dict",
    "session_to_dict",
]
