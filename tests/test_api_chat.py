def _say(client, message, key="chat-1", platform="telegram", **extra):
    r = client.post(f"/chat/{platform}/{key}", json={"message": message, **extra})
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "service": "chefbot", "sessions": 0}


def test_menu(client):
    body = client.get("/menu").json()
    assert body["currency_symbol"] == "R$"
    assert len(body["items"]) == 10
    assert {"id": "8", "name": "Caipirinha", "description": "", "price": "14.90", "category": "Bebidas"} in body["items"]


def test_chat_full_flow(client):
    first = _say(client, "mesa 5, somos 3 pessoas", customer_name="Ana")
    assert first["stage"] == "ordering"
    assert "show_menu" in [a["type"] for a in first["due_actions"]]
    assert first["reply"].startswith("Perfeito! Mesa 5, 3 pessoa(s)")

    second = _say(client, "quero 1 salmão grelhado e uma caipirinha")
    assert second["intent"] == "ordering"
    assert second["order"]["total"] == "60.80"
    assert [(i["name"], i["quantity"]) for i in second["order"]["items"]] == [
        ("Salmão Grelhado", 1),
        ("Caipirinha", 1),
    ]
    assert second["reply"].startswith("Adicionado ✅")

    third = _say(client, "confirma")
    assert third["stage"] == "payment"
    assert third["action_results"] == [
        {"type": "persist_order", "ok": True, "order_id": 1, "error": None}
    ]
    assert third["recorded_order_id"] == 1
    assert third["reply"].startswith("✅ Pedido confirmado!")

    session = client.get("/sessions/chat-1").json()
    assert session["stage"] == "payment"
    assert session["table_number"] == 5
    assert session["customer"]["name"] == "Ana"
    assert "transcript" not in session

    paid = client.post("/sessions/chat-1/payment")
    assert paid.status_code == 200
    assert paid.json() == {"ok": True, "stage": "completed", "order_id": 1}

    closed = _say(client, "quero uma coca")
    assert closed["stage"] == "completed"
    assert [a["type"] for a in closed["due_actions"]] == ["order_closed"]


def test_unknown_session(client):
    assert client.get("/sessions/missing").status_code == 404
    assert client.post("/sessions/missing/payment").status_code == 404


def test_payment_before_confirmation_conflicts(client):
    _say(client, "quero uma caipirinha")
    r = client.post("/sessions/chat-1/payment")
    assert r.status_code == 409


def test_suggestions_reply(client):
    body = _say(client, "quero um hamburgue")
    assert body["extracted"]["items"] == []
    assert "Hambúrguer Artesanal" in body["reply"]
