GOBLIN = {
    "name": "Goblin Cutter",
    "data": {
        "max_hp": 1,
        "defences": {"ac": 16, "fortitude": 12, "reflex": 14, "will": 11},
        "initiative_bonus": 3,
        "role": "minion",
        "powers": [
            {
                "id": "short-sword",
                "name": "Short Sword",
                "attack_bonus": 5,
                "defence": "ac",
                "damage": "4",
            }
        ],
    },
}


def test_creatures_create_get_update_delete(client):
    r = client.post("/creatures", json=GOBLIN)
    assert r.status_code == 200, r.text
    created = r.json()
    assert created["name"] == "Goblin Cutter"
    cid = created["id"]
    assert created["data"]["role"] == "minion"
    assert created["data"]["defences"]["reflex"] == 14
    assert created["data"]["powers"][0]["recharge"] == ""

    r = client.get("/creatures")
    assert r.status_code == 200
    assert cid in [c["id"] for c in r.json()]

    r = client.get(f"/creatures/{cid}")
    assert r.status_code == 200
    assert r.json()["data"]["initiative_bonus"] == 3

    # patch: только имя, данные остаются
    r = client.patch(f"/creatures/{cid}", json={"name": "Goblin Sniper"})
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Goblin Sniper"
    assert r.json()["data"]["role"] == "minion"

    upd = {
        "data": {
            **GOBLIN["data"],
            "role": "normal",
            "max_hp": 25,
            "damage_modifiers": [{"damage_type": "poison", "value": "immune"}],
        }
    }
    r = client.put(f"/creatures/{cid}", json=upd)
    assert r.status_code == 200, r.text
    updated = r.json()
    assert updated["data"]["max_hp"] == 25
    assert updated["data"]["damage_modifiers"] == [
        {"damage_type": "poison", "value": "immune"}
    ]

    r = client.delete(f"/creatures/{cid}")
    assert r.status_code == 204
    r = client.get(f"/creatures/{cid}")
    assert r.status_code == 404


def test_creature_validation_422(client):
    # max_hp отсутствует
    r = client.post("/creatures", json={"name": "Bad", "data": {"role": "normal"}})
    assert r.status_code == 422

    # неизвестный тип урона
    bad = {
        "name": "Bad",
        "data": {
            "max_hp": 10,
            "damage_modifiers": [{"damage_type": "slashing", "value": -5}],
        },
    }
    r = client.post("/creatures", json=bad)
    assert r.status_code == 422

    # лишние поля запрещены
    r = client.post(
        "/creatures", json={"name": "Bad", "data": {"max_hp": 10, "speed_ft": 30}}
    )
    assert r.status_code == 422


def test_unknown_creature_404(client):
    assert client.get("/creatures/nope").status_code == 404
    assert client.delete("/creatures/nope").status_code == 404
