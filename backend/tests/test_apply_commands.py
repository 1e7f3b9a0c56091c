from combatcore.core.engine.commands import (
    AddCondition,
    ApplyDamage,
    ApplyOngoingDamage,
    ApplyRegeneration,
    CommitSavingThrows,
    Heal,
    NextTurn,
    RemoveCondition,
    StartCombat,
    UsePower,
)
from combatcore.core.engine.rules.apply import apply_command
from combatcore.core.engine.state import (
    DamageEffect,
    OngoingCondition,
    SaveEnds,
    StatusEffect,
    UntilEndOfNextTurn,
)

from _factories import hero, make_session, monster, types


def test_unknown_target_is_rejected_without_changes():
    session = make_session(hero(), monster("G", "goblin"))

    session, ev = apply_command(
        session, ApplyDamage(target_id="nobody", amount=5)
    )
    assert types(ev) == ["CommandRejected"]
    assert ev[0]["payload"]["code"] == "UNKNOWN_COMBATANT"
    assert ev[0]["payload"]["meta"] == {"combatant_id": "nobody"}
    assert all(c.damage_taken == 0 for c in session.combatants.values())


def test_turn_commands_need_started_combat():
    session = make_session(hero(), monster("G", "goblin"))

    _, ev = apply_command(session, NextTurn())
    assert ev[0]["payload"]["code"] == "COMBAT_NOT_STARTED"

    # никто не бросил инициативу
    _, ev = apply_command(session, StartCombat())
    assert ev[0]["payload"]["code"] == "NO_INITIATIVE"
    assert session.combat_started is False


def test_commit_without_proposal_is_rejected():
    session = make_session(monster("G", "goblin"))
    _, ev = apply_command(session, CommitSavingThrows(combatant_id="G"))
    assert ev[0]["payload"]["code"] == "NO_PENDING_SAVES"


def test_add_condition_stamps_round_for_current_actor():
    session = make_session(hero(), monster("G", "goblin"))
    session.round = 2
    session.current_actor_id = "A"

    oc = OngoingCondition(
        effect=StatusEffect(description="dazed"),
        duration=UntilEndOfNextTurn(owner_id="A"),
    )
    session, ev = apply_command(session, AddCondition(target_id="G", condition=oc))

    assert types(ev) == ["ConditionAdded"]
    stored = session.combatants["G"].conditions[0]
    assert stored.round == 3
    payload = ev[0]["payload"]
    assert payload["label"] == "dazed"
    assert payload["duration"] == "until the end of Aria's next turn (ends in round 3)"

    # тот же id второй раз ничего не добавляет
    session, ev = apply_command(session, AddCondition(target_id="G", condition=oc))
    assert ev == []
    assert len(session.combatants["G"].conditions) == 1


def test_remove_condition_by_id():
    oc = OngoingCondition(effect=StatusEffect(description="marked"))
    session = make_session(monster("G", "goblin", conditions=[oc]))

    session, ev = apply_command(
        session, RemoveCondition(target_id="G", condition_id=oc.id)
    )
    assert types(ev) == ["ConditionRemoved"]
    assert ev[0]["payload"]["reason"] == "manual"
    assert session.combatants["G"].conditions == []

    # уже нет -> no-op
    session, ev = apply_command(
        session, RemoveCondition(target_id="G", condition_id=oc.id)
    )
    assert ev == []


def test_apply_damage_uses_profile_table_and_insubstantial():
    session = make_session(monster("W", "wraith"))

    # (10 + 5) // 2
    session, ev = apply_command(
        session, ApplyDamage(target_id="W", amount=10, damage_types=["radiant"])
    )
    payload = ev[0]["payload"]
    assert payload["source"] == "direct"
    assert payload["modifier"] == "Vulnerable 5"
    assert payload["halved"] is True
    assert payload["effective"] == 7
    assert session.combatants["W"].damage_taken == 7

    session, ev = apply_command(
        session,
        ApplyDamage(target_id="W", amount=10, damage_types=["radiant"], halve=False),
    )
    assert ev[0]["payload"]["effective"] == 15

    session, ev = apply_command(
        session, ApplyDamage(target_id="W", amount=30, damage_types=["necrotic"])
    )
    assert ev[0]["payload"]["effective"] == 0
    assert ev[0]["payload"]["modifier"] == "Immune"
    assert session.combatants["W"].damage_taken == 22


def test_damage_reports_health_state():
    session = make_session(monster("G", "goblin"))

    session, ev = apply_command(session, ApplyDamage(target_id="G", amount=15))
    assert ev[0]["payload"]["health"] == "bloodied"

    session, ev = apply_command(session, ApplyDamage(target_id="G", amount=15))
    assert ev[0]["payload"]["health"] == "defeated"


def test_heal_with_surges():
    session = make_session(hero(damage_taken=15))
    # max_hp 40 -> surge 10
    session, ev = apply_command(session, Heal(target_id="A", surges=1))
    assert types(ev) == ["Healed"]
    assert ev[0]["payload"]["value"] == 10
    assert session.combatants["A"].damage_taken == 5


def test_manual_ongoing_damage_and_regeneration():
    burning = OngoingCondition(
        effect=DamageEffect(damage_type="fire", value=5), duration=SaveEnds()
    )
    session = make_session(monster("T", "troll", conditions=[burning]))

    session, ev = apply_command(session, ApplyOngoingDamage(target_id="T"))
    assert types(ev) == ["OngoingDamageApplied"]
    assert ev[0]["payload"]["total"] == 5
    assert ev[0]["payload"]["lines"][0]["label"] == "5 ongoing fire damage"

    session, ev = apply_command(session, ApplyRegeneration(target_id="T"))
    assert ev[0]["payload"]["value"] == 5
    assert session.combatants["T"].damage_taken == 0

    # без урона регенерация ничего не даёт
    session, ev = apply_command(session, ApplyRegeneration(target_id="T"))
    assert ev[0]["payload"]["value"] == 0


def test_use_power_marks_once_and_ignores_unknown():
    session = make_session(monster("D", "drake"))

    session, ev = apply_command(session, UsePower(combatant_id="D", power_id="breath"))
    assert types(ev) == ["PowerUsed"]
    assert session.combatants["D"].used_powers == ["breath"]

    session, ev = apply_command(session, UsePower(combatant_id="D", power_id="breath"))
    assert ev == []

    session, ev = apply_command(session, UsePower(combatant_id="D", power_id="nope"))
    assert ev == []
    assert session.combatants["D"].used_powers == ["breath"]


def test_seq_grows_with_each_event():
    session = make_session(monster("G", "goblin"))
    _, ev1 = apply_command(session, ApplyDamage(target_id="G", amount=1))
    _, ev2 = apply_command(session, ApplyDamage(target_id="G", amount=1))
    assert ev2[0]["seq"] == ev1[0]["seq"] + 1
