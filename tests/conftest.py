"""Pytest configuration and fixtures."""

import asyncio
import io

import pytest
from botocore.exceptions import ClientError

from shorten.common.logging_config import setup_logging
from shorten.fuzzy import FuzzyMatcher
from shorten.shortcode import ShortCodeGenerator
from shorten.storage import postgres as postgres_module
from shorten.storage.filesystem import FilesystemStorage
from shorten.storage.postgres import PostgresStorage
from shorten.storage.regex import RegexStorage
from shorten.storage.s3 import S3Storage


class FakeDatabase:
    """In-memory stand-in for the urls/links tables."""

    def __init__(self):
        self.urls = {}  # url -> id
        self.links = {}  # link -> url id
        self.next_id = 1
        self.ping_failures = 0
        self.ping_calls = 0
        self.fail_link_write = False
        self.block_link_write = False
        self.link_write_started = False
        self.fuzzy_windows = []

    def url_for_id(self, url_id):
        for url, uid in self.urls.items():
            if uid == url_id:
                return url
        return None


class FakeTransaction:
    """Snapshot on enter, restore on any exception."""

    def __init__(self, db):
        self.db = db

    async def __aenter__(self):
        self.snapshot = (dict(self.db.urls), dict(self.db.links), self.db.next_id)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.db.urls, self.db.links, self.db.next_id = self.snapshot
        return False


class FakeConnection:
    """Answers the queries PostgresStorage issues."""

    def __init__(self, db):
        self.db = db

    def transaction(self):
        return FakeTransaction(self.db)

    async def fetchval(self, query, *args):
        await asyncio.sleep(0)
        db = self.db

        if query == "SELECT 1":
            db.ping_calls += 1
            if db.ping_failures > 0:
                db.ping_failures -= 1
                raise ConnectionRefusedError("connection refused")
            return 1

        if query == postgres_module.LOAD_QUERY:
            url_id = db.links.get(args[0])
            return None if url_id is None else db.url_for_id(url_id)

        if query == postgres_module.SAVE_URL_QUERY:
            url = args[0]
            if url not in db.urls:
                db.urls[url] = db.next_id
                db.next_id += 1
            return db.urls[url]

        raise AssertionError(f"unexpected query: {query}")

    async def fetch(self, query, *args):
        await asyncio.sleep(0)
        assert query == postgres_module.FUZZY_CANDIDATES_QUERY
        low, high = args
        self.db.fuzzy_windows.append((low, high))
        return [{"link": link} for link in self.db.links if low <= len(link) <= high]

    async def execute(self, query, *args):
        await asyncio.sleep(0)
        db = self.db

        if query == postgres_module.SAVE_LINK_QUERY:
            db.link_write_started = True
            if db.block_link_write:
                await asyncio.Event().wait()
            if db.fail_link_write:
                raise ConnectionResetError("connection reset by peer")
            link, url_id = args
            db.links[link] = url_id
            return "INSERT 0 1"

        if query == postgres_module.CREATE_TABLES_SQL:
            return "CREATE TABLE"

        raise AssertionError(f"unexpected query: {query}")


class _Acquire:
    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakePool:
    def __init__(self, db):
        self.db = db
        self.closed = False

    def acquire(self):
        return _Acquire(FakeConnection(self.db))

    async def close(self):
        self.closed = True


def _client_error(code, operation):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self, buckets=()):
        self.buckets = {name: {} for name in buckets}
        self.created = []
        self.error_code = None
        self.head_object_calls = 0
        self.always_exists = False

    def _bucket(self, name, operation):
        if self.error_code:
            raise _client_error(self.error_code, operation)
        if name not in self.buckets:
            raise _client_error("NoSuchBucket", operation)
        return self.buckets[name]

    def head_bucket(self, Bucket):
        if self.error_code:
            raise _client_error(self.error_code, "HeadBucket")
        if Bucket not in self.buckets:
            raise _client_error("404", "HeadBucket")
        return {}

    def create_bucket(self, Bucket, **kwargs):
        self.buckets[Bucket] = {}
        self.created.append((Bucket, kwargs))
        return {}

    def put_object(self, Bucket, Key, Body, ContentType):
        self._bucket(Bucket, "PutObject")[Key] = (Body, ContentType)
        return {}

    def get_object(self, Bucket, Key):
        objects = self._bucket(Bucket, "GetObject")
        if Key not in objects:
            raise _client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(objects[Key][0])}

    def head_object(self, Bucket, Key):
        self.head_object_calls += 1
        objects = self._bucket(Bucket, "HeadObject")
        if Key not in objects and not self.always_exists:
            raise _client_error("404", "HeadObject")
        return {}


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def fs_storage(tmp_path, logger):
    return FilesystemStorage(str(tmp_path / "links"), logger=logger)


@pytest.fixture
def regex_storage(logger):
    return RegexStorage(
        {
            r"^/gh/(.+)$": r"https://github.com/\1",
            r"^/docs$": "https://docs.example.com/",
            r"^/(.+)$": r"https://search.example.com/?q=\1",
        },
        logger=logger,
    )


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def pg_storage(fake_db, logger):
    return PostgresStorage(FakePool(fake_db), matcher=FuzzyMatcher(logger=logger), logger=logger)


@pytest.fixture
def s3_client():
    return FakeS3Client(buckets=["links"])


@pytest.fixture
def s3_storage(s3_client, logger):
    return S3Storage(
        s3_client,
        "links",
        generator=ShortCodeGenerator(seed=1234, logger=logger),
        logger=logger,
    )


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def created_pools(monkeypatch):
    """Patch asyncpg.create_pool; yields the shared database and the pools made."""
    db = FakeDatabase()
    created = []

    async def fake_create_pool(dsn, **kwargs):
        pool = FakePool(db)
        created.append((pool, kwargs))
        return pool

    monkeypatch.setattr(postgres_module.asyncpg, "create_pool", fake_create_pool)
    return db, created


@pytest.fixture
def bare_s3_client():
    """S3 client with no buckets yet."""
    return FakeS3Client()
