from combatcore.core.engine.state import CombatantState
from combatcore.core.engine.rules.damage import heal, health_state


def test_heal_with_surges_and_flat_amount():
    c = CombatantState(id="H", name="Hero", kind="hero", damage_taken=20)
    # max_hp 30 -> surge = 7; 2 surges + 3 = 17
    new, value = heal(c, 30, amount=3, surges=2)
    assert value == 17
    assert new.damage_taken == 3


def test_heal_clamps_at_zero_damage():
    c = CombatantState(id="H", name="Hero", damage_taken=4)
    new, _ = heal(c, 30, amount=10)
    assert new.damage_taken == 0


def test_heal_starts_from_zero_hp():
    # 40 урона при max 30 -> сначала считаем 30, потом лечим
    c = CombatantState(id="H", name="Hero", damage_taken=40)
    new, _ = heal(c, 30, amount=5)
    assert new.damage_taken == 25
    assert new.current_hp(30) == 5


def test_temporary_healing_keeps_the_higher_value():
    c = CombatantState(id="H", name="Hero", temp_hp=6, damage_taken=10)
    new, _ = heal(c, 30, amount=4, temporary=True)
    assert new.temp_hp == 6
    assert new.damage_taken == 10

    new, _ = heal(c, 30, amount=9, temporary=True)
    assert new.temp_hp == 9


def test_health_states():
    c = CombatantState(id="M", name="Orc")
    assert health_state(c, 20) == "active"

    c.damage_taken = 10
    assert health_state(c, 20) == "bloodied"

    c.damage_taken = 9
    assert health_state(c, 20) == "active"

    c.damage_taken = 25
    assert health_state(c, 20) == "defeated"


def test_minion_goes_down_to_any_damage():
    c = CombatantState(id="m", name="Minion")
    assert health_state(c, 1, role="minion") == "active"
    c.damage_taken = 1
    assert health_state(c, 1, role="minion") == "defeated"
