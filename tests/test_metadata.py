"""Template metadata stays equal to a full recount across file operations."""
import pytest
from fastapi import HTTPException

from sitebuilder.modules.files.service import FileManagerService
from sitebuilder.modules.templates.metadata import MetadataRecorder
from tests.conftest import template_row

TEMPLATE_ID = "template_1_abc"
PREFIX = f"web-templates/{TEMPLATE_ID}/"


@pytest.fixture
def recorder(db, storage):
    db.rows("web_templates").append(template_row(TEMPLATE_ID))
    return MetadataRecorder(db, storage)


@pytest.fixture
def files(storage, recorder):
    return FileManagerService(storage, PREFIX, recorder=recorder, template_id=TEMPLATE_ID)


def _summary(db):
    row = db.rows("web_templates")[0]
    return row["file_count"], row["total_size"], row["has_index_html"]


def _recount(s3):
    keys = [k for k in s3.keys(PREFIX) if not k.endswith("/")]
    size = sum(len(s3.objects[k]["Body"]) for k in keys)
    return len(keys), size, f"{PREFIX}index.html" in s3.objects


def test_counters_follow_every_mutation(db, s3, files):
    steps = [
        lambda: files.create_file("", "index.html", "<html></html>"),
        lambda: files.create_folder("", "css"),
        lambda: files.create_file("css", "site.css", "body{}"),
        lambda: files.upload("css", "site.css", b"body{color:red}"),
        lambda: files.upload("img", "logo.png", b"\x89PNG...."),
        lambda: files.update_file("index.html", "<html><body></body></html>"),
        lambda: files.rename("css/site.css", "main.css"),
        lambda: files.delete("img", is_directory=True),
        lambda: files.rename("index.html", "home.html"),
        lambda: files.rename("home.html", "index.html"),
        lambda: files.delete("index.html"),
    ]
    for step in steps:
        step()
        assert _summary(db) == _recount(s3)


def test_has_index_follows_entry_point_rename(db, s3, files):
    files.create_file("", "index.html", "x")
    assert _summary(db)[2] is True
    files.rename("index.html", "old.html")
    assert _summary(db)[2] is False


def test_nested_index_does_not_count_as_entry_point(db, files):
    files.create_file("blog", "index.html", "x")
    assert _summary(db)[2] is False


def test_recompute_matches_storage(db, s3, recorder):
    s3.put(f"{PREFIX}index.html", b"12345")
    s3.put(f"{PREFIX}a/b.txt", b"123")
    s3.put(f"{PREFIX}a/", b"")
    metadata = recorder.recompute(TEMPLATE_ID)
    assert (metadata.file_count, metadata.total_size, metadata.has_index_html) == (2, 8, True)
    assert _summary(db) == (2, 8, True)


def test_unknown_template(recorder):
    with pytest.raises(HTTPException) as exc:
        recorder.touch("template_missing")
    assert exc.value.status_code == 404
