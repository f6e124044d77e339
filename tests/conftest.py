"""Fixture Flask + Supabase palsu di memori.

Client palsu meniru rantai query supabase-py yang dipakai app
(``from_().select().eq().order().limit().execute()``, ``insert``, ``update``,
``delete``) dan sebagian ``auth``.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

import app as app_module


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.max_rows = None

    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        # PostgREST membandingkan lewat teks di URL
        self.filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if self.db.fail_with is not None:
            raise self.db.fail_with
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                self.db.next_id += 1
                row = dict(payload, id=self.db.next_id)
                rows.append(row)
                inserted.append(dict(row))
            return SimpleNamespace(data=inserted)

        matched = [row for row in rows if self._matches(row)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])
        if self.op == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda r: str(r.get(column)), reverse=desc)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeAuth:
    def __init__(self):
        self.users = {}
        self.tokens = {}
        self.current_token = None
        self.signed_out = False

    def add_user(self, user_id, email, password):
        self.users[email] = {"id": user_id, "email": email, "password": password}
        self.tokens[f"token-{user_id}"] = self.users[email]

    def sign_up(self, credentials):
        if credentials["email"] in self.users:
            raise RuntimeError("User already registered")
        user_id = f"user-{len(self.users) + 1}"
        self.add_user(user_id, credentials["email"], credentials["password"])
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=credentials["email"]))

    def sign_in_with_password(self, credentials):
        user = self.users.get(credentials["email"])
        if user is None or user["password"] != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        return SimpleNamespace(
            user=SimpleNamespace(id=user["id"], email=user["email"]),
            session=SimpleNamespace(access_token=f"token-{user['id']}", refresh_token="refresh"),
        )

    def set_session(self, access_token, refresh_token):
        self.current_token = access_token

    def get_user(self):
        user = self.tokens.get(self.current_token)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user["id"], email=user["email"]))

    def sign_out(self):
        self.signed_out = True
        self.current_token = None


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.next_id = 0
        self.fail_with = None
        self.auth = FakeAuth()

    def from_(self, table):
        return FakeQuery(self, table)

    table = from_

    def rows(self, table="transactions"):
        return self.tables.setdefault(table, [])

    def seed(self, *rows, table="transactions"):
        for row in rows:
            self.next_id += 1
            self.rows(table).append(dict({"id": self.next_id}, **row))


@pytest.fixture
def fake_supabase(monkeypatch):
    fake = FakeSupabase()
    fake.auth.add_user("user-1", "umkm@example.com", "rahasia123")
    monkeypatch.setattr(app_module, "get_supabase", lambda: fake)
    return fake


@pytest.fixture
def client(fake_supabase):
    app_module.app.config.update(TESTING=True, SECRET_KEY="test-secret", KAS_TABLE="transactions")
    with app_module.app.test_client() as test_client:
        yield test_client


@pytest.fixture
def logged_in_client(client):
    with client.session_transaction() as sess:
        sess["access_token"] = "token-user-1"
        sess["refresh_token"] = "refresh"
        sess["user_id"] = "user-1"
        sess["email"] = "umkm@example.com"
        sess["logged_in"] = True
    return client
