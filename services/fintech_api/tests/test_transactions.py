from decimal import Decimal
from uuid import uuid4


def test_transfer_scenario_end_to_end(client, new_user, new_account):
    alice, bob = new_user(), new_user()
    a = new_account(alice["id"], fund="1000.00")
    b = new_account(bob["id"])
    assert Decimal(a["balance"]) == Decimal("1000.00")

    r = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "to_account_id": b["id"],
        "type": "TRANSFER", "amount": "500.00", "description": "Dinner split payment",
    })
    assert r.status_code == 201, r.text
    txn = r.json()
    assert txn["status"] == "PENDING"
    assert Decimal(txn["fee"]) == Decimal("2.50")
    assert txn["processed_at"] is None

    r = client.post(f"/v1/transactions/{txn['id']}/process")
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "COMPLETED"
    assert r.json()["processed_at"] is not None

    a = client.get(f"/v1/accounts/{a['id']}").json()
    b = client.get(f"/v1/accounts/{b['id']}").json()
    assert Decimal(a["balance"]) == Decimal("497.50")
    assert Decimal(a["available_balance"]) == Decimal("497.50")
    assert Decimal(b["balance"]) == Decimal("500.00")

    r = client.get("/v1/notifications/unread-count", params={"user_id": alice["id"]})
    # one for the funding deposit, one for the transfer
    assert r.json() == 2


def test_cancel_completed_fails_and_balances_stay(client, new_user, new_account):
    alice = new_user()
    a = new_account(alice["id"], fund="100")
    r = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "type": "WITHDRAWAL",
        "amount": "20", "process": True,
    })
    assert r.status_code == 201, r.text
    txn = r.json()
    assert txn["status"] == "COMPLETED"

    r = client.post(f"/v1/transactions/{txn['id']}/cancel")
    assert r.status_code == 409
    assert r.json()["error"]["kind"] == "INVALID_STATE"

    r = client.post(f"/v1/transactions/{txn['id']}/process")
    assert r.status_code == 409

    a = client.get(f"/v1/accounts/{a['id']}").json()
    assert Decimal(a["balance"]) == Decimal("75.00")


def test_cancel_pending(client, new_user, new_account):
    alice, bob = new_user(), new_user()
    a = new_account(alice["id"], fund="100")
    b = new_account(bob["id"])
    txn = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "to_account_id": b["id"],
        "type": "PAYMENT", "amount": "30",
    }).json()

    r = client.post(f"/v1/transactions/{txn['id']}/cancel")
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "CANCELLED"
    assert r.json()["processed_at"] is None
    assert Decimal(client.get(f"/v1/accounts/{a['id']}").json()["balance"]) == Decimal("100")


def test_fail_pending(client, new_user, new_account):
    alice = new_user()
    a = new_account(alice["id"], fund="100")
    txn = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "type": "PAYMENT", "amount": "30",
    }).json()
    r = client.post(f"/v1/transactions/{txn['id']}/fail", json={"reason": "card declined"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "FAILED"
    assert r.json()["metadata"] == {"failureReason": "card declined"}


def test_insufficient_funds_leaves_no_record(client, new_user, new_account):
    alice, bob = new_user(), new_user()
    a = new_account(alice["id"], fund="10")
    b = new_account(bob["id"])
    r = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "to_account_id": b["id"],
        "type": "TRANSFER", "amount": "10.01",
    })
    assert r.status_code == 422
    assert r.json()["error"] == {"kind": "INSUFFICIENT_FUNDS", "message": "Insufficient funds"}

    r = client.get("/v1/transactions", params={"user_id": alice["id"], "type": "TRANSFER"})
    assert r.json() == []


def test_missing_entities_are_not_found(client, new_user, new_account):
    alice = new_user()
    a = new_account(alice["id"], fund="10")
    r = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "to_account_id": str(uuid4()),
        "type": "TRANSFER", "amount": "1",
    })
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "Destination account not found"

    for action in ("process", "cancel", "fail"):
        r = client.post(f"/v1/transactions/{uuid4()}/{action}")
        assert r.status_code == 404
        assert r.json()["error"]["kind"] == "NOT_FOUND"


def test_request_validation_uses_error_shape(client, new_user):
    alice = new_user()
    r = client.post("/v1/transactions", json={"user_id": alice["id"], "type": "TRANSFER", "amount": "-5"})
    assert r.status_code == 422
    assert r.json()["error"]["kind"] == "INVALID_INPUT"

    r = client.post("/v1/transactions", json={"user_id": alice["id"], "type": "BRIBE", "amount": "5"})
    assert r.status_code == 422


def test_list_filters_and_lookups(client, new_user, new_account):
    alice, bob = new_user(), new_user()
    a = new_account(alice["id"], fund="1000")
    b = new_account(bob["id"])
    made = []
    for amount in ("1", "2", "3"):
        r = client.post("/v1/transactions", json={
            "user_id": alice["id"], "from_account_id": a["id"], "to_account_id": b["id"],
            "type": "TRANSFER", "amount": amount,
        })
        made.append(r.json())
    client.post(f"/v1/transactions/{made[0]['id']}/process")

    all_rows = client.get("/v1/transactions", params={"user_id": alice["id"]}).json()
    assert len(all_rows) == 4  # funding deposit + three transfers
    assert all_rows[0]["id"] == made[-1]["id"]  # newest first

    pending = client.get("/v1/transactions", params={"user_id": alice["id"], "status": "PENDING"}).json()
    assert {t["id"] for t in pending} == {made[1]["id"], made[2]["id"]}

    capped = client.get("/v1/transactions", params={"user_id": alice["id"], "limit": 2}).json()
    assert len(capped) == 2

    r = client.get(f"/v1/transactions/by-reference/{made[1]['reference']}")
    assert r.status_code == 200
    assert r.json()["id"] == made[1]["id"]
    assert client.get("/v1/transactions/by-reference/TXNNOPE").status_code == 404

    assert client.get(f"/v1/transactions/{made[2]['id']}").json()["reference"] == made[2]["reference"]

    outgoing = client.get(f"/v1/accounts/{a['id']}/transactions", params={"direction": "from"}).json()
    incoming = client.get(f"/v1/accounts/{b['id']}/transactions", params={"direction": "to"}).json()
    assert len(outgoing) == 3
    assert len(incoming) == 3


def test_references_are_unique(client, new_user, new_account):
    alice = new_user()
    a = new_account(alice["id"])
    refs = set()
    for _ in range(20):
        r = client.post("/v1/transactions", json={
            "user_id": alice["id"], "to_account_id": a["id"], "type": "DEPOSIT", "amount": "1",
        })
        refs.add(r.json()["reference"])
    assert len(refs) == 20


def test_oversized_amount_is_a_typed_error(client, new_user, new_account):
    alice = new_user()
    a = new_account(alice["id"])
    for amount in ("1E+30", "1000000000000"):
        r = client.post("/v1/transactions", json={
            "user_id": alice["id"], "to_account_id": a["id"], "type": "DEPOSIT", "amount": amount,
        })
        assert r.status_code == 400, r.text
        assert r.json()["error"]["kind"] == "INVALID_INPUT"


def test_jpy_fee_is_whole_yen(client, new_user, new_account):
    alice, bob = new_user(), new_user()
    a = new_account(alice["id"], currency="JPY", fund="1000")
    b = new_account(bob["id"], currency="JPY")
    r = client.post("/v1/transactions", json={
        "user_id": alice["id"], "from_account_id": a["id"], "to_account_id": b["id"],
        "type": "TRANSFER", "amount": "100", "process": True,
    })
    assert r.status_code == 201, r.text
    assert Decimal(r.json()["fee"]) == Decimal("3")
    assert Decimal(client.get(f"/v1/accounts/{a['id']}").json()["balance"]) == Decimal("897")
