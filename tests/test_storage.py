from unittest.mock import MagicMock

import pytest

from raqm.config import settings
from raqm.scripts.ensure_storage_buckets import BUCKETS, ensure_buckets
from raqm.storage import s3_storage
from raqm.storage.media import MediaStorage, file_extension
from raqm.storage.s3_storage import S3Storage
from tests.fakes import FakeSupabase


@pytest.fixture
def s3(monkeypatch):
    monkeypatch.setattr(settings, "aws_access_key_id", "AKIA")
    monkeypatch.setattr(settings, "aws_secret_access_key", "secret")
    monkeypatch.setattr(settings, "s3_bucket_name", "raqm-media")
    monkeypatch.setattr(settings, "aws_region", "me-central-1")
    client = MagicMock()
    monkeypatch.setattr(s3_storage.boto3, "client", lambda *args, **kwargs: client)
    storage = S3Storage()
    return storage, client


def test_file_extension():
    assert file_extension("IMG_001.JPEG") == "jpeg"
    assert file_extension("noext") == "jpg"
    assert file_extension(None) == "jpg"


def test_ensure_bucket_creates_public_bucket_once():
    supabase = FakeSupabase()
    storage = MediaStorage(supabase)
    storage.ensure_bucket("post_images")
    supabase.storage.buckets.clear()
    storage.ensure_bucket("post_images")
    assert supabase.storage.buckets == {}

    MediaStorage._known_buckets.clear()
    supabase.storage.buckets["story_images"] = True
    storage.ensure_bucket("story_images")
    assert supabase.storage.buckets == {"story_images": True}


def test_supabase_upload_returns_public_url():
    supabase = FakeSupabase()
    url = MediaStorage(supabase).upload_image("story_images", "u1/a.png", b"img", "image/png")
    assert url == "https://fake.supabase.co/storage/v1/object/public/story_images/u1/a.png"
    content, options = supabase.storage.objects[("story_images", "u1/a.png")]
    assert options == {"content-type": "image/png"}


def test_remove_parses_public_url():
    supabase = FakeSupabase()
    media = MediaStorage(supabase)
    assert media.remove("post_images", "https://fake.supabase.co/storage/v1/object/public/post_images/u1/x.jpg")
    assert supabase.storage.removed == [("post_images", "u1/x.jpg")]


def test_s3_backend_uses_bucket_as_key_prefix(s3):
    storage, client = s3
    supabase = FakeSupabase()
    media = MediaStorage(supabase, s3_storage=storage)

    url = media.upload_image("post_images", "u1/a.png", b"img", "image/png")
    assert url == "https://raqm-media.s3.me-central-1.amazonaws.com/post_images/u1/a.png"
    client.put_object.assert_called_once_with(
        Bucket="raqm-media", Key="post_images/u1/a.png", Body=b"img", ContentType="image/png"
    )
    assert supabase.storage.objects == {}

    assert media.remove("post_images", url) is True
    client.delete_object.assert_called_once_with(Bucket="raqm-media", Key="post_images/u1/a.png")


def test_s3_requires_configuration(monkeypatch):
    monkeypatch.setattr(settings, "s3_bucket_name", None)
    with pytest.raises(ValueError):
        S3Storage()


def test_ensure_buckets_script():
    supabase = FakeSupabase()
    assert ensure_buckets(supabase) == len(BUCKETS)
    assert set(supabase.storage.buckets) == {"post_images", "story_images", "mulkiya-verifications"}
    assert all(supabase.storage.buckets.values())
