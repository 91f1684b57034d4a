import itertools
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from services.fintech_api.app.core.db import Store
from services.fintech_api.app.main import create_app


@pytest.fixture
def store():
    # one shared in-memory connection; TestClient calls come from worker threads
    s = Store(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    s.create_schema()
    yield s
    s.close()


@pytest.fixture
def session(store):
    with store.session() as s:
        yield s


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c


@pytest.fixture
def new_user(client):
    seq = itertools.count(1)

    def _new_user(**overrides):
        n = next(seq)
        body = {"email": f"user{n}@example.com", "first_name": "Test", "last_name": f"User{n}"} | overrides
        r = client.post("/v1/users", json=body)
        assert r.status_code == 201, r.text
        return r.json()

    return _new_user


@pytest.fixture
def new_account(client):
    def _new_account(user_id, account_type="CHECKING", currency="USD", fund=None):
        r = client.post("/v1/accounts", json={"user_id": user_id, "account_type": account_type, "currency": currency})
        assert r.status_code == 201, r.text
        acc = r.json()
        if fund is not None:
            r = client.post("/v1/transactions", json={
                "user_id": user_id, "to_account_id": acc["id"], "type": "DEPOSIT",
                "amount": str(fund), "process": True,
            })
            assert r.status_code == 201, r.text
            acc = client.get(f"/v1/accounts/{acc['id']}").json()
        return acc

    return _new_account
