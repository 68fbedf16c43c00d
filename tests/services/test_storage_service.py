from __future__ import annotations

import re

import boto3
import pytest
from botocore.stub import ANY, Stubber
from fakes import FakeSupabaseClient

from followdesk.core.exceptions import StorageError, UploadValidationError
from followdesk.services.storage import ProfileImageStorage


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        endpoint_url="https://storage.test/storage/v1/s3",
        aws_access_key_id="test-key",
        aws_secret_access_key="test-secret",
    )


@pytest.fixture
def storage(s3_client) -> ProfileImageStorage:
    return ProfileImageStorage(
        client=s3_client,
        bucket="user-uploads",
        public_base_url="https://project.supabase.co/storage/v1/object/public/user-uploads",
    )


def test_generate_image_key_keeps_original_extension(storage) -> None:
    key = storage.generate_image_key("portrait.PNG", "image/png")

    assert re.fullmatch(r"profile-images/\d{13}-[0-9a-f]{12}\.png", key)


def test_generate_image_key_falls_back_to_mime_type(storage) -> None:
    key = storage.generate_image_key("avatar", "image/webp")

    assert key.endswith(".webp")


def test_generate_image_key_is_unique(storage) -> None:
    assert storage.generate_image_key("a.jpg", "image/jpeg") != storage.generate_image_key(
        "a.jpg", "image/jpeg"
    )


def test_validate_image_rejects_large_files(storage) -> None:
    with pytest.raises(UploadValidationError, match="Maximum 5MB allowed"):
        storage.validate_image(5 * 1024 * 1024 + 1, "image/png")


def test_validate_image_rejects_unsupported_types(storage) -> None:
    with pytest.raises(UploadValidationError, match="Only JPEG, PNG, and WebP"):
        storage.validate_image(100, "image/gif")


def test_validate_image_accepts_limit_size(storage) -> None:
    storage.validate_image(5 * 1024 * 1024, "image/jpeg")


@pytest.mark.asyncio
async def test_upload_profile_image_puts_object_and_returns_public_url(
    storage, s3_client
) -> None:
    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"abc"'},
            {
                "Bucket": "user-uploads",
                "Key": ANY,
                "Body": b"\x89PNG data",
                "ContentType": "image/png",
                "CacheControl": "max-age=3600",
            },
        )

        url = await storage.upload_profile_image(b"\x89PNG data", "me.png", "image/png")

        stubber.assert_no_pending_responses()

    assert url.startswith(
        "https://project.supabase.co/storage/v1/object/public/user-uploads/profile-images/"
    )
    assert url.endswith(".png")


@pytest.mark.asyncio
async def test_upload_failure_raises_storage_error(storage, s3_client) -> None:
    with Stubber(s3_client) as stubber:
        stubber.add_client_error(
            "put_object", service_error_code="AccessDenied", http_status_code=403
        )

        with pytest.raises(StorageError, match="Upload failed"):
            await storage.upload_profile_image(b"jpeg", "me.jpg", "image/jpeg")


@pytest.mark.asyncio
async def test_upload_without_client_is_disabled() -> None:
    storage = ProfileImageStorage(client=None, public_base_url="https://cdn.test")
    storage.client = None

    with pytest.raises(StorageError, match="disabled"):
        await storage.upload_profile_image(b"jpeg", "me.jpg", "image/jpeg")


@pytest.mark.asyncio
async def test_upload_falls_back_to_supabase_storage_api() -> None:
    supabase = FakeSupabaseClient()
    storage = ProfileImageStorage(
        client=None,
        bucket="user-uploads",
        public_base_url="https://project.supabase.co/storage/v1/object/public/user-uploads",
        supabase_client=supabase,
    )
    storage.client = None

    url = await storage.upload_profile_image(b"\x89PNG data", "me.png", "image/png")

    [(key, (body, options))] = supabase.storage.objects["user-uploads"].items()
    assert body == b"\x89PNG data"
    assert options == {
        "content-type": "image/png",
        "cache-control": "3600",
        "upsert": "false",
    }
    assert url == (
        f"https://project.supabase.co/storage/v1/object/public/user-uploads/{key}"
    )


@pytest.mark.asyncio
async def test_supabase_fallback_uses_sdk_public_url_without_base() -> None:
    supabase = FakeSupabaseClient()
    storage = ProfileImageStorage(client=None, supabase_client=supabase)
    storage.client = None
    storage.public_base_url = None

    url = await storage.upload_profile_image(b"jpeg", "me.jpg", "image/jpeg")

    assert url.startswith(
        "https://fake.supabase.co/storage/v1/object/public/user-uploads/profile-images/"
    )


@pytest.mark.asyncio
async def test_supabase_fallback_refuses_to_overwrite(monkeypatch) -> None:
    supabase = FakeSupabaseClient()
    storage = ProfileImageStorage(
        client=None, public_base_url="https://cdn.test", supabase_client=supabase
    )
    storage.client = None
    monkeypatch.setattr(
        storage, "generate_image_key", lambda *_: "profile-images/fixed.jpg"
    )

    await storage.upload_profile_image(b"first", "me.jpg", "image/jpeg")
    with pytest.raises(StorageError, match="Upload failed"):
        await storage.upload_profile_image(b"second", "me.jpg", "image/jpeg")

    stored, _ = supabase.storage.objects["user-uploads"]["profile-images/fixed.jpg"]
    assert stored == b"first"
