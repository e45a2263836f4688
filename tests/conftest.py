"""Shared fixtures: fake storage and database, an app client with swappable callers."""
import io
import zipfile
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from sitebuilder.core.dependencies import get_caller
from sitebuilder.database.supabase_client import get_service_supabase, get_supabase
from sitebuilder.main import app
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.storage.s3_storage import S3Storage, get_storage
from tests.fakes import FakeS3Client, FakeSupabase

OWNER = "9876543210"
OTHER = "9123456780"


def make_caller(identity=OWNER, role="user", user_id=None):
    return Caller(user_id=user_id or f"user-{identity}", identity=identity, role=role)


def make_zip(files):
    """Build a ZIP in memory from {name: bytes-or-str}; names ending in / become directory entries."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            zf.writestr(name, content)
    return buf.getvalue()


def template_row(template_id="template_1_abc", **overrides):
    row = {
        "id": template_id,
        "name": "Bakery",
        "description": "A bakery site",
        "business_category": "restaurant",
        "template_type": "landing-page",
        "tags": [],
        "s3_path": f"web-templates/{template_id}",
        "preview_image": None,
        "is_active": True,
        "is_public": True,
        "custom_identity": None,
        "created_by": "admin",
        "has_index_html": False,
        "file_count": 0,
        "total_size": 0,
        "last_modified": None,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    row.update(overrides)
    return row


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def storage(s3):
    return S3Storage(client=s3, bucket_name="test-bucket")


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def caller_holder():
    return {"caller": make_caller()}


@pytest.fixture
def client(db, storage, caller_holder):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_caller] = lambda: caller_holder["caller"]
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def as_admin(caller_holder):
    caller_holder["caller"] = make_caller(identity="admin-1", role="admin")
    return caller_holder["caller"]
