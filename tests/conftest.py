"""Shared fixtures: the FastAPI app wired to in-memory Supabase fakes."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient

from raqm.core.realtime import get_realtime_hub
from raqm.database.supabase_client import get_auth_supabase, get_supabase
from raqm.main import app as fastapi_app
from raqm.modules.auth.service import clear_auth_cache
from raqm.storage.media import MediaStorage
from tests.fakes import FakeHub, FakeSupabase


@pytest.fixture(autouse=True)
def _reset_process_caches():
    clear_auth_cache()
    MediaStorage._known_buckets.clear()
    yield
    clear_auth_cache()
    MediaStorage._known_buckets.clear()


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def hub():
    return FakeHub()


@pytest.fixture
def app(supabase, hub):
    fastapi_app.dependency_overrides[get_supabase] = lambda: supabase
    fastapi_app.dependency_overrides[get_auth_supabase] = lambda: supabase
    fastapi_app.dependency_overrides[get_realtime_hub] = lambda: hub
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def alice(supabase):
    return supabase.create_user("AB 12345", full_name="Alice Driver")


@pytest.fixture
def bob(supabase):
    return supabase.create_user("DXB 777", full_name="Bob Racer")


@pytest.fixture
def carol(supabase):
    return supabase.create_user("SHJ 4040", full_name="Carol Cruiser")


@pytest.fixture
def unverified(supabase):
    return supabase.create_user("AUH 1", full_name="New Driver", verified=False)

