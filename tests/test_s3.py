"""Tests for the S3 backend against an in-memory client."""

import hashlib

import pytest

from shorten.errors import ExhaustionError, InvalidCodeError, InvalidURLError, StorageError
from shorten.storage.models import ChangeRecord, LookupStatus
from shorten.storage.s3 import S3Storage, hash_code, rfc3339_nano


def test_hash_code():
    assert hash_code("/docs") == hashlib.sha256(b"/docs").hexdigest()


def test_rfc3339_nano():
    """Test trailing zeros of the fraction are trimmed."""
    assert rfc3339_nano(0) == "1970-01-01T00:00:00Z"
    assert rfc3339_nano(1_500_000_000) == "1970-01-01T00:00:01.5Z"
    assert rfc3339_nano(1_700_000_000_123_456_789) == "2023-11-14T22:13:20.123456789Z"


@pytest.mark.asyncio
class TestS3Connect:
    """Test bucket bootstrap."""

    async def test_existing_bucket(self, s3_client):
        client = s3_client

        await S3Storage.connect("links", client=client)

        assert client.created == []

    async def test_creates_missing_bucket(self, bare_s3_client):
        client = bare_s3_client

        await S3Storage.connect("links", client=client, region="eu-central-1")

        assert client.created == [
            ("links", {"CreateBucketConfiguration": {"LocationConstraint": "eu-central-1"}})
        ]

    async def test_us_east_1_has_no_location(self, bare_s3_client):
        client = bare_s3_client

        await S3Storage.connect("links", client=client, region="us-east-1")

        assert client.created == [("links", {})]

    async def test_other_errors_propagate(self, s3_client):
        client = s3_client
        client.error_code = "AccessDenied"

        with pytest.raises(StorageError) as excinfo:
            await S3Storage.connect("links", client=client)

        assert excinfo.value.stage == "connect"
        assert client.created == []


@pytest.mark.asyncio
class TestS3Storage:
    """Test S3 storage."""

    async def test_round_trip(self, s3_storage, sample_urls):
        await s3_storage.bind("docs", sample_urls[0])

        outcome = await s3_storage.resolve("/docs")

        assert outcome.status is LookupStatus.FOUND
        assert outcome.url == sample_urls[0]

    async def test_overwrite(self, s3_storage, sample_urls):
        await s3_storage.bind("docs", sample_urls[0])
        await s3_storage.bind("docs", sample_urls[1])

        assert (await s3_storage.resolve("docs")).url == sample_urls[1]

    async def test_object_layout(self, s3_storage, s3_client, sample_urls):
        """Test a write stores the long URL, the code and one history record."""
        await s3_storage.bind("docs", sample_urls[0], user="alice")

        prefix = "v2/" + hashlib.sha256(b"/docs").hexdigest()
        objects = s3_client.buckets["links"]

        assert objects[f"{prefix}/long"] == (sample_urls[0].encode(), "text/plain")
        assert objects[f"{prefix}/short"] == (b"/docs", "text/plain")

        history = [key for key in objects if key.startswith(f"{prefix}/change_history/")]
        assert len(history) == 1
        body, content_type = objects[history[0]]
        assert content_type == "application/json"
        assert ChangeRecord.from_json(body.decode()) == ChangeRecord(url=sample_urls[0], user="alice")

    async def test_unknown_user(self, s3_storage, s3_client, sample_urls):
        await s3_storage.bind("docs", sample_urls[0])

        history = [key for key in s3_client.buckets["links"] if "/change_history/" in key]
        body, _ = s3_client.buckets["links"][history[0]]
        assert ChangeRecord.from_json(body.decode()).user == "unknown"

    async def test_not_found(self, s3_storage):
        outcome = await s3_storage.resolve("missing")
        assert outcome.status is LookupStatus.NOT_FOUND

    async def test_transport_error(self, s3_storage, s3_client):
        s3_client.error_code = "InternalError"

        with pytest.raises(StorageError) as excinfo:
            await s3_storage.resolve("docs")

        assert excinfo.value.stage == "lookup"

    async def test_undecodable_object_is_lookup_error(self, s3_storage, s3_client):
        key = "v2/" + hashlib.sha256(b"/bin").hexdigest() + "/long"
        s3_client.buckets["links"][key] = (b"\xff\xfe", "text/plain")

        with pytest.raises(StorageError) as excinfo:
            await s3_storage.resolve("bin")

        assert excinfo.value.stage == "lookup"
        assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)

    async def test_write_error(self, s3_storage, s3_client, sample_urls):
        s3_client.error_code = "SlowDown"

        with pytest.raises(StorageError) as excinfo:
            await s3_storage.bind("docs", sample_urls[0])

        assert excinfo.value.stage == "write"

    async def test_invalid_input(self, s3_storage, s3_client):
        with pytest.raises(InvalidCodeError):
            await s3_storage.bind("..", "https://example.com")

        with pytest.raises(InvalidURLError):
            await s3_storage.bind("docs", "example.com")

        assert s3_client.buckets["links"] == {}

    async def test_exists(self, s3_storage, sample_urls):
        assert not await s3_storage.exists("/docs")

        await s3_storage.bind("docs", sample_urls[0])

        assert await s3_storage.exists("/docs")

    async def test_health_check(self, s3_storage, s3_client):
        assert await s3_storage.health_check()

        s3_client.error_code = "AccessDenied"
        assert not await s3_storage.health_check()


@pytest.mark.asyncio
class TestS3Generation:
    """Test self-minted codes."""

    async def test_generated_code_resolves(self, s3_storage, sample_urls):
        assert s3_storage.supports_generation

        code = await s3_storage.bind_generated(sample_urls[2])

        assert len(code) == 8
        assert not code.startswith("/")
        assert (await s3_storage.resolve(code)).url == sample_urls[2]

    async def test_generated_codes_differ(self, s3_storage, sample_urls):
        first = await s3_storage.bind_generated(sample_urls[0])
        second = await s3_storage.bind_generated(sample_urls[1])

        assert first != second

    async def test_exhaustion(self, s3_storage, s3_client, sample_urls):
        """Test ten collisions in a row give up without writing."""
        s3_client.always_exists = True

        with pytest.raises(ExhaustionError):
            await s3_storage.bind_generated(sample_urls[0])

        assert s3_client.head_object_calls == 10
        assert s3_client.buckets["links"] == {}

    async def test_invalid_url_mints_nothing(self, s3_storage, s3_client):
        with pytest.raises(InvalidURLError):
            await s3_storage.bind_generated("nope")

        assert s3_client.head_object_calls == 0
