from combatcore.core.engine.commands import (
    AddCondition,
    AdjustSavingThrow,
    CommitRecharge,
    CommitSavingThrows,
    Delay,
    ForceRecharge,
    NextTurn,
    ProposeRecharge,
    ProposeSavingThrows,
    RollInitiative,
    RollRecharge,
    RollSavingThrow,
    SetInitiative,
    SetSavingThrowModifier,
    StartCombat,
)
from combatcore.core.engine.rules.apply import apply_command
from combatcore.core.engine.rules.initiative import turn_order
from combatcore.core.engine.state import (
    DamageEffect,
    OngoingCondition,
    SaveEnds,
    StatusEffect,
    UntilEndOfNextTurn,
    UntilStartOfNextTurn,
)

from _factories import hero, make_session, monster, types


def test_turn_cycle_with_ongoing_damage_and_saves(scripted):
    session = make_session(hero(initiative=20), monster("G", "goblin", initiative=10))
    session.roller = scripted([12])

    session, ev = apply_command(session, StartCombat())
    assert types(ev) == ["CombatStarted", "RoundStarted", "TurnStarted"]
    assert session.current_actor_id == "A"

    burning = OngoingCondition(
        effect=DamageEffect(damage_type="fire", value=5), duration=SaveEnds()
    )
    session, _ = apply_command(session, AddCondition(target_id="G", condition=burning))

    session, ev = apply_command(session, NextTurn())
    assert types(ev) == ["TurnEnded", "TurnStarted", "OngoingDamageApplied"]
    assert session.current_actor_id == "G"
    assert session.combatants["G"].damage_taken == 5

    # конец хода гоблина: предлагаем спасбросок и переходим в раунд 2
    session, ev = apply_command(session, NextTurn())
    assert types(ev) == [
        "TurnEnded",
        "SavingThrowsProposed",
        "RoundStarted",
        "TurnStarted",
    ]
    assert session.round == 2
    assert session.current_actor_id == "A"
    entry = ev[1]["payload"]["entries"][0]
    assert entry["total"] == 12
    assert entry["outcome"] == "saved"

    session, ev = apply_command(session, CommitSavingThrows(combatant_id="G"))
    assert types(ev) == ["ConditionRemoved", "SavingThrowsCommitted"]
    assert ev[0]["payload"]["reason"] == "saved"
    assert ev[1]["payload"]["saved"] == [burning.id]
    assert session.combatants["G"].conditions == []
    assert session.pending_saves == {}

    _, ev = apply_command(session, CommitSavingThrows(combatant_id="G"))
    assert ev[0]["payload"]["code"] == "NO_PENDING_SAVES"


def test_hero_saves_wait_for_the_player(scripted):
    dazed = OngoingCondition(
        effect=StatusEffect(description="dazed"), duration=SaveEnds()
    )
    session = make_session(hero(conditions=[dazed]))

    session, ev = apply_command(session, ProposeSavingThrows(combatant_id="A"))
    entry = ev[0]["payload"]["entries"][0]
    assert entry["state"]["kind"] == "pending"
    assert entry["outcome"] == "pending"

    session.roller = scripted([9])
    session, ev = apply_command(
        session, RollSavingThrow(combatant_id="A", condition_id=dazed.id)
    )
    assert ev[0]["type"] == "SavingThrowUpdated"
    assert ev[0]["payload"]["entry"]["outcome"] == "failed"

    session, ev = apply_command(
        session, AdjustSavingThrow(combatant_id="A", condition_id=dazed.id, delta=1)
    )
    assert ev[0]["payload"]["entry"]["total"] == 10
    assert ev[0]["payload"]["entry"]["outcome"] == "saved"

    _, ev = apply_command(
        session, RollSavingThrow(combatant_id="A", condition_id="nope")
    )
    assert ev[0]["payload"]["code"] == "UNKNOWN_CONDITION"

    session, ev = apply_command(session, CommitSavingThrows(combatant_id="A"))
    assert session.combatants["A"].conditions == []


def test_operator_changes_global_save_modifier(scripted):
    dazed = OngoingCondition(
        effect=StatusEffect(description="dazed"), duration=SaveEnds()
    )
    session = make_session(monster("D", "drake", conditions=[dazed]))
    session.roller = scripted([8])

    session, ev = apply_command(session, ProposeSavingThrows(combatant_id="D"))
    # elite +2
    assert ev[0]["payload"]["global_modifier"] == 2
    assert ev[0]["payload"]["entries"][0]["outcome"] == "saved"

    session, ev = apply_command(
        session, SetSavingThrowModifier(combatant_id="D", global_modifier=0)
    )
    assert ev[0]["payload"]["entries"][0]["outcome"] == "failed"


def test_end_of_turn_effect_expires_or_is_extended():
    session = make_session(hero(initiative=20), monster("G", "goblin", initiative=10))
    session, _ = apply_command(session, StartCombat())

    guarded = OngoingCondition(
        effect=StatusEffect(description="guarded"),
        duration=UntilEndOfNextTurn(owner_id="A"),
    )
    session, _ = apply_command(session, AddCondition(target_id="G", condition=guarded))
    assert session.combatants["G"].conditions[0].round == 2

    # конец текущего хода A: эффект ещё держится
    session, ev = apply_command(session, NextTurn())
    assert "ConditionRemoved" not in types(ev)
    session, _ = apply_command(session, NextTurn())
    assert session.round == 2

    session, ev = apply_command(
        session, NextTurn(extend_condition_ids=[guarded.id])
    )
    assert types(ev)[0] == "ConditionExtended"
    assert ev[0]["payload"]["until_round"] == 3
    assert session.combatants["G"].conditions[0].round == 3

    session, _ = apply_command(session, NextTurn())
    assert session.round == 3
    session, ev = apply_command(session, NextTurn())
    assert types(ev)[0] == "ConditionRemoved"
    assert ev[0]["payload"]["reason"] == "expired"
    assert session.combatants["G"].conditions == []


def test_start_of_turn_effect_expires_when_owner_starts():
    session = make_session(hero(initiative=20), monster("G", "goblin", initiative=10))
    session, _ = apply_command(session, StartCombat())

    shield = OngoingCondition(
        effect=StatusEffect(description="shielded"),
        duration=UntilStartOfNextTurn(owner_id="A"),
    )
    session, _ = apply_command(session, AddCondition(target_id="A", condition=shield))

    session, ev = apply_command(session, NextTurn())
    assert "ConditionRemoved" not in types(ev)

    session, ev = apply_command(session, NextTurn())
    assert types(ev)[-2:] == ["TurnStarted", "ConditionRemoved"]
    assert session.combatants["A"].conditions == []


def test_regeneration_at_turn_start():
    session = make_session(
        hero(initiative=20), monster("T", "troll", initiative=15, damage_taken=8)
    )
    session, _ = apply_command(session, StartCombat())
    session, ev = apply_command(session, NextTurn())

    assert types(ev) == ["TurnEnded", "TurnStarted", "Regenerated"]
    assert ev[-1]["payload"]["value"] == 5
    assert session.combatants["T"].damage_taken == 3


def test_recharge_proposed_at_turn_start(scripted):
    session = make_session(
        monster("D", "drake", initiative=20, used_powers=["breath", "tail"])
    )
    session.roller = scripted([5])

    session, ev = apply_command(session, StartCombat())
    assert types(ev) == ["CombatStarted", "RoundStarted", "TurnStarted", "RechargeProposed"]
    entries = ev[-1]["payload"]["entries"]
    assert [e["power_id"] for e in entries] == ["breath"]
    assert entries[0]["outcome"] == "recharged"

    session, ev = apply_command(session, CommitRecharge(combatant_id="D"))
    assert ev[0]["payload"]["recharged"] == ["breath"]
    assert session.combatants["D"].used_powers == ["tail"]


def test_manual_recharge_flow(scripted):
    session = make_session(monster("D", "drake", used_powers=["breath"]))

    session, ev = apply_command(
        session, ProposeRecharge(combatant_id="D", auto_roll=False)
    )
    assert ev[0]["payload"]["entries"][0]["outcome"] == "pending"

    session.roller = scripted([3])
    session, ev = apply_command(session, RollRecharge(combatant_id="D", power_id="breath"))
    assert ev[0]["payload"]["entry"]["outcome"] == "not_recharged"

    session, ev = apply_command(
        session,
        ForceRecharge(combatant_id="D", power_id="breath", outcome="recharged"),
    )
    assert ev[0]["payload"]["entry"]["outcome"] == "recharged"

    _, ev = apply_command(session, RollRecharge(combatant_id="D", power_id="tail"))
    assert ev[0]["payload"]["code"] == "UNKNOWN_POWER"

    session, ev = apply_command(session, CommitRecharge(combatant_id="D"))
    assert session.combatants["D"].used_powers == []
    assert session.pending_recharges == {}


def test_initiative_commands_and_delay(scripted):
    session = make_session(
        hero(),
        monster("G1", "goblin"),
        monster("G2", "goblin"),
    )

    session, ev = apply_command(session, SetInitiative(combatant_id="A", initiative=17))
    assert ev[0]["payload"]["combatant_ids"] == ["A"]

    # один бросок на группу гоблинов: 11 + 2
    session.roller = scripted([11])
    session, ev = apply_command(session, RollInitiative())
    assert types(ev) == ["InitiativeRolled"]
    assert ev[0]["payload"]["combatant_ids"] == ["G1", "G2"]
    assert session.combatants["G1"].initiative == 13
    assert session.combatants["G2"].initiative == 13
    assert session.combatants["A"].initiative == 17

    session, _ = apply_command(session, StartCombat())
    assert turn_order(session.combatants) == ["A", "G1", "G2"]

    session, ev = apply_command(session, Delay(combatant_id="G1"))
    assert types(ev) == ["DelayChanged"]
    session, _ = apply_command(session, NextTurn())
    assert session.current_actor_id == "G2"

    session, _ = apply_command(
        session, Delay(combatant_id="G1", delaying=False, initiative=5)
    )
    assert turn_order(session.combatants) == ["A", "G2", "G1"]
    session, _ = apply_command(session, NextTurn())
    assert session.current_actor_id == "G1"


def test_set_initiative_updates_whole_group():
    session = make_session(monster("G1", "goblin"), monster("G2", "goblin"))
    session, ev = apply_command(session, SetInitiative(combatant_id="G2", initiative=9))
    assert ev[0]["payload"]["group_key"] == "goblin"
    assert session.combatants["G1"].initiative == 9


def test_defeated_combatants_lose_their_turn():
    session = make_session(
        hero(initiative=20),
        monster("G", "goblin", initiative=10, damage_taken=30),
        monster("D", "drake", initiative=5),
    )
    session, _ = apply_command(session, StartCombat())
    assert session.current_actor_id == "A"

    session, ev = apply_command(session, NextTurn())
    assert session.current_actor_id == "D"
    assert "OngoingDamageApplied" not in types(ev)

    session, ev = apply_command(session, NextTurn())
    assert session.current_actor_id == "A"
    assert session.round == 2


def test_start_combat_skips_defeated_first_actor():
    session = make_session(
        monster("G", "goblin", initiative=25, damage_taken=30),
        hero(initiative=20),
    )
    session, ev = apply_command(session, StartCombat())
    assert session.current_actor_id == "A"
    assert ev[1]["turn_owner_id"] == "A"
