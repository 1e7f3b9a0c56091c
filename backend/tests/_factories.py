from combatcore.core.engine.state import (
    CombatantState,
    CreatureProfile,
    DamageModifierEntry,
    Defences,
    EncounterSession,
    PowerDefinition,
)

HERO = CreatureProfile(
    id="hero-aria",
    name="Aria",
    max_hp=40,
    defences=Defences(ac=18, fortitude=15, reflex=15, will=14),
    powers=[
        PowerDefinition(
            id="sword",
            name="Radiant Sword",
            attack_bonus=7,
            defence="ac",
            damage="1d8+4",
            details="radiant",
        )
    ],
)

GOBLIN = CreatureProfile(
    id="goblin",
    name="Goblin Cutter",
    max_hp=30,
    defences=Defences(ac=16, fortitude=13, reflex=14, will=12),
    initiative_bonus=2,
)

DRAKE = CreatureProfile(
    id="drake",
    name="Fire Drake",
    max_hp=60,
    role="elite",
    powers=[
        PowerDefinition(
            id="breath",
            name="Fire Breath",
            attack_bonus=4,
            defence="reflex",
            damage="2d6+3",
            recharge="Recharge 5-6",
            details="fire damage. Miss: half damage",
        ),
        PowerDefinition(id="tail", name="Tail Sweep", details="push 1"),
    ],
)

TROLL = CreatureProfile(id="troll", name="Troll", max_hp=80, regeneration=5)

WRAITH = CreatureProfile(
    id="wraith",
    name="Wraith",
    max_hp=35,
    insubstantial=True,
    damage_modifiers=[
        DamageModifierEntry(damage_type="necrotic", value="immune"),
        DamageModifierEntry(damage_type="radiant", value=5),
    ],
)

PROFILES = {p.id: p for p in (HERO, GOBLIN, DRAKE, TROLL, WRAITH)}


def make_session(*combatants: CombatantState) -> EncounterSession:
    session = EncounterSession(id="enc-1", name="Test").with_seed(1)
    session.profiles = dict(PROFILES)
    for c in combatants:
        session.combatants[c.id] = c
    return session


def hero(cid: str = "A", initiative=None, **kw) -> CombatantState:
    return CombatantState(
        id=cid,
        name="Aria",
        kind="hero",
        profile_id="hero-aria",
        initiative=initiative,
        **kw,
    )


def monster(cid: str, profile_id: str, initiative=None, **kw) -> CombatantState:
    return CombatantState(
        id=cid,
        name=PROFILES[profile_id].name,
        profile_id=profile_id,
        group_key=kw.pop("group_key", profile_id),
        initiative=initiative,
        **kw,
    )


def types(events) -> list:
    return [e["type"] for e in events]
