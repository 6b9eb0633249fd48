"""
Shared fixtures. The environment is pinned before any backend module is
imported: demo mode on, no Supabase project, uploads in a temp directory.
"""
import os
import tempfile

os.environ["DEMO_MODE"] = "true"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
# Not created here: the app has to create it itself
os.environ["UPLOAD_DIR"] = os.path.join(tempfile.mkdtemp(prefix="aivideopro-"), "uploads")

import pytest
from fastapi.testclient import TestClient

import shared_dependencies
from config import DEMO_USER_ID, DEMO_USER_EMAIL
from services import db_utils
from services.job_storage import job_storage
from shared_dependencies import create_access_token


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeTable:
    def __init__(self):
        self.rows = []
        self.fail_with = None


class FakeQuery:
    """Enough of the postgrest builder for the calls the backend makes"""

    def __init__(self, table: FakeTable):
        self.table = table
        self.operation = "select"
        self.payload = None
        self.filters = []
        self.ordering = None
        self.row_limit = None

    def select(self, *columns):
        self.operation = "select"
        return self

    def insert(self, row):
        self.operation = "insert"
        self.payload = row
        return self

    def update(self, values):
        self.operation = "update"
        self.payload = values
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def execute(self):
        if self.table.fail_with is not None:
            raise self.table.fail_with

        if self.operation == "insert":
            self.table.rows.append(dict(self.payload))
            return FakeResponse([dict(self.payload)])

        matched = [row for row in self.table.rows
                   if all(row.get(column) == value for column, value in self.filters)]

        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(row) for row in matched])

        if self.ordering:
            column, desc = self.ordering
            matched.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        return FakeResponse([dict(row) for row in matched])


class FakeBucket:
    def __init__(self, name):
        self.name = name
        self.files = {}

    def upload(self, path, content, file_options=None):
        self.files[path] = {"content": content, "options": file_options}
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path):
        return f"https://project.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.buckets = {}

    def from_(self, name):
        return self.buckets.setdefault(name, FakeBucket(name))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.storage = FakeStorage()

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, FakeTable()))


@pytest.fixture(autouse=True)
def clean_state():
    job_storage.clear_demo_jobs()
    db_utils.reset_supabase_breaker()
    yield
    job_storage.clear_demo_jobs()
    db_utils.reset_supabase_breaker()


@pytest.fixture
def fake_supabase(monkeypatch):
    """Switch off demo mode and route every Supabase call to an in-memory fake"""
    fake = FakeSupabase()
    monkeypatch.setenv("DEMO_MODE", "false")
    monkeypatch.setattr(shared_dependencies, "supabase", fake)
    return fake


@pytest.fixture
def client():
    from app import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def demo_token():
    return create_access_token({"sub": DEMO_USER_ID, "email": DEMO_USER_EMAIL})


@pytest.fixture
def make_token():
    def _make(user_id: str, email: str = "editor@example.com") -> str:
        return create_access_token({"sub": user_id, "email": email})
    return _make
