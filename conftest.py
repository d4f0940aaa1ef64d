"""
Pytest fixtures shared by the functions service and lunch client tests

``FakeSupabase`` is an in-memory stand-in for supabase-py's sync client:
tables with the query-builder calls the code uses, the auth admin and
password APIs, storage buckets, failure injection and a call log.
"""

import re
import time
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
from postgrest.exceptions import APIError


PRIMARY_KEYS = {
    "profiles": "id",
    "admins": "admin_id",
    "cooks": "cook_id",
    "drivers": "driver_id",
    "employees": "employee_id",
    "companies": "company_id",
    "meals": "meal_id",
    "orders": "order_id",
}


class FakeAuthError(Exception):
    """Auth provider rejection carrying ``.message`` like supabase-py's auth errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _api_error(message: str, code: str = "P0001") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def _like(pattern: str) -> "re.Pattern":
    parts = [re.escape(part) for part in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    """Query builder over one in-memory table"""

    def __init__(self, fake: "FakeSupabase", table: str):
        self.fake = fake
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.count_mode: Optional[str] = None
        self.filters: List[Tuple[str, str, Any]] = []
        self.order_by: Optional[Tuple[str, bool]] = None
        self.row_limit: Optional[int] = None
        self.single_mode: Optional[str] = None

    # Builder calls

    def select(self, columns: str = "*", count: Optional[str] = None):
        if self.op == "select":
            self.count_mode = count
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, values: Dict[str, Any]):
        self.op, self.payload = "update", values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(("eq", column, value))
        return self

    def ilike(self, column: str, pattern: str):
        self.filters.append(("ilike", column, pattern))
        return self

    def or_(self, expression: str):
        alternatives = []
        for clause in expression.split(","):
            column, op, value = clause.split(".", 2)
            alternatives.append((op, column, value))
        self.filters.append(("or", "", alternatives))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def single(self):
        self.single_mode = "single"
        return self

    # Evaluation

    @staticmethod
    def _test(op: str, column: str, value: Any, row: Dict[str, Any]) -> bool:
        if op == "eq":
            return str(row.get(column)) == str(value)
        if op == "ilike":
            return bool(_like(value).match(str(row.get(column) or "")))
        if op == "or":
            return any(FakeQuery._test(o, c, v, row) for o, c, v in value)
        raise ValueError(f"Unsupported filter: {op}")

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(self._test(op, column, value, row) for op, column, value in self.filters)

    def execute(self):
        self.fake.calls.append((self.table, self.op, tuple((c, v) for _, c, v in self.filters)))
        self.fake._apply_delay(self.table, self.op)
        self.fake._raise_if_failing(self.table, self.op)

        rows = self.fake.tables.setdefault(self.table, [])

        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = [self.fake._store(self.table, dict(row)) for row in new_rows]
            return SimpleNamespace(data=[dict(row) for row in stored], count=None)

        matched = [row for row in rows if self._matches(row)]

        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        if self.op == "delete":
            self.fake.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        if self.order_by is not None:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: (row.get(column) is None, str(row.get(column))),
                             reverse=desc)
        count = len(matched) if self.count_mode else None
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        data = [dict(row) for row in matched]

        if self.single_mode == "maybe":
            if not data:
                return None
            return SimpleNamespace(data=data[0], count=count)
        if self.single_mode == "single":
            if len(data) != 1:
                raise _api_error("JSON object requested, multiple (or no) rows returned")
            return SimpleNamespace(data=data[0], count=count)
        return SimpleNamespace(data=data, count=count)


class FakeAuthAdmin:
    def __init__(self, fake: "FakeSupabase"):
        self.fake = fake

    def create_user(self, attributes: Dict[str, Any]):
        self.fake.calls.append(("auth", "create_user", attributes["email"]))
        self.fake._raise_if_failing("auth", "create_user")
        email = attributes["email"]
        if any(user.email == email for user in self.fake.users.values()):
            raise FakeAuthError("A user with this email address has already been registered")
        user = SimpleNamespace(id=str(uuid.uuid4()), email=email,
                               email_confirmed=bool(attributes.get("email_confirm")))
        self.fake.users[user.id] = user
        self.fake.passwords[user.id] = attributes.get("password")
        return SimpleNamespace(user=user)

    def delete_user(self, user_id: str):
        self.fake.calls.append(("auth", "delete_user", user_id))
        self.fake._raise_if_failing("auth", "delete_user")
        if user_id not in self.fake.users:
            raise FakeAuthError("User not found")
        del self.fake.users[user_id]
        self.fake.passwords.pop(user_id, None)


class FakeAuth:
    def __init__(self, fake: "FakeSupabase"):
        self.fake = fake
        self.admin = FakeAuthAdmin(fake)
        self.session = None
        self.listeners: List[Any] = []

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)

        def unsubscribe():
            if callback in self.listeners:
                self.listeners.remove(callback)

        return SimpleNamespace(unsubscribe=unsubscribe)

    def emit(self, event: str, session=None):
        """Notify subscribers the way the provider does after an auth change"""
        for callback in list(self.listeners):
            callback(event, session)

    def sign_in_with_password(self, credentials: Dict[str, str]):
        self.fake.calls.append(("auth", "sign_in", credentials["email"]))
        self.fake._raise_if_failing("auth", "sign_in")
        for user_id, user in self.fake.users.items():
            if user.email == credentials["email"] and self.fake.passwords.get(user_id) == credentials["password"]:
                self.session = SimpleNamespace(access_token=f"token-{user_id}", user=user)
                self.emit("SIGNED_IN", self.session)
                return SimpleNamespace(user=user, session=self.session)
        raise FakeAuthError("Invalid login credentials")

    def get_session(self):
        self.fake._apply_delay("auth", "get_session")
        return self.session

    def sign_out(self):
        self.fake.calls.append(("auth", "sign_out", None))
        self.session = None
        self.emit("SIGNED_OUT", None)


class FakeBucket:
    def __init__(self, fake: "FakeSupabase", bucket: str):
        self.fake = fake
        self.bucket = bucket

    def upload(self, path: str, file: bytes, file_options: Optional[Dict[str, str]] = None):
        self.fake.calls.append(("storage", "upload", path))
        self.fake._raise_if_failing("storage", "upload")
        self.fake.objects[(self.bucket, path)] = (file, dict(file_options or {}))
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"https://storage.test/{self.bucket}/{path}"


class FakeStorage:
    def __init__(self, fake: "FakeSupabase"):
        self.fake = fake

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.fake, bucket)


class FakeSupabase:
    """In-memory supabase-py client"""

    auth_error = FakeAuthError

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.users: Dict[str, Any] = {}
        self.passwords: Dict[str, str] = {}
        self.objects: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        self.failures: Dict[Tuple[str, str], Tuple[str, str]] = {}
        self.delays: Dict[Tuple[str, str], float] = {}
        self._next_id: Dict[str, int] = {}
        self.auth = FakeAuth(self)
        self.storage = FakeStorage(self)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # Test helpers

    def fail_on(self, target: str, op: str, message: str, code: str = "P0001") -> None:
        """Make the next and every later ``op`` on ``target`` fail with ``message``"""
        self.failures[(target, op)] = (message, code)

    def delay(self, target: str, op: str, seconds: float) -> None:
        """Block ``op`` on ``target`` for ``seconds`` before it runs"""
        self.delays[(target, op)] = seconds

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [dict(self._store(table, dict(row))) for row in rows]

    def add_user(self, email: str, password: str, user_id: Optional[str] = None):
        user = SimpleNamespace(id=user_id or str(uuid.uuid4()), email=email, email_confirmed=True)
        self.users[user.id] = user
        self.passwords[user.id] = password
        return user

    def rows(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        return [
            row for row in self.tables.get(table, [])
            if all(str(row.get(k)) == str(v) for k, v in filters.items())
        ]

    def ops(self, target: Optional[str] = None) -> List[Tuple[str, str]]:
        """(target, op) pairs of the call log, in order"""
        return [(t, op) for t, op, _ in self.calls if target is None or t == target]

    # Internals

    def _store(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        key = PRIMARY_KEYS.get(table)
        if key and row.get(key) is None:
            next_id = self._next_id.get(table, 0) + 1
            existing = [r.get(key) for r in self.tables.get(table, []) if isinstance(r.get(key), int)]
            next_id = max([next_id] + [value + 1 for value in existing])
            self._next_id[table] = next_id
            row[key] = next_id
        row.setdefault("created_at", f"2025-01-01T00:00:{len(self.tables.get(table, [])):02d}")
        self.tables.setdefault(table, []).append(row)
        return row

    def _raise_if_failing(self, target: str, op: str) -> None:
        failure = self.failures.get((target, op))
        if failure is None:
            return
        message, code = failure
        if target in ("auth", "storage"):
            raise FakeAuthError(message)
        raise _api_error(message, code)

    def _apply_delay(self, target: str, op: str) -> None:
        seconds = self.delays.get((target, op))
        if seconds:
            time.sleep(seconds)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """Fresh in-memory Supabase client"""
    return FakeSupabase()
