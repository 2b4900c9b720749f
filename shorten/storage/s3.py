"""S3 backend for short-link storage.

Every mapping lives under ``<version>/<sha256 of the code>/``:

    long                          the long URL, plain text
    short                         the sanitized code, plain text
    change_history/<timestamp>    JSON record per write, never read back
"""

import asyncio
import hashlib
import logging
import posixpath
import time
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..common.validators import normalize_code, validate_url
from ..errors import StorageError
from ..shortcode import ShortCodeGenerator
from .base import Binder
from .models import ChangeRecord, LookupOutcome

STORAGE_VERSION = "v2"

# HEAD requests only carry the status code
NOT_FOUND_CODES = {"404", "NotFound", "NoSuchKey"}

DEFAULT_USER = "unknown"


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def rfc3339_nano(ns: Optional[int] = None) -> str:
    """UTC timestamp with nanoseconds, trailing zeros trimmed."""
    if ns is None:
        ns = time.time_ns()
    seconds, fraction = divmod(ns, 1_000_000_000)
    stamp = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(seconds))
    digits = f"{fraction:09d}".rstrip("0")
    if digits:
        stamp = f"{stamp}.{digits}"
    return stamp + "Z"


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in NOT_FOUND_CODES


class S3Storage(Binder):
    """Short links stored as S3 objects, with a per-code change history."""

    name = "s3"
    supports_generation = True

    def __init__(
        self,
        client: Any,
        bucket_name: str,
        region: Optional[str] = None,
        generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Wrap an S3 client.

        Use :meth:`connect` to also make sure the bucket exists.

        Args:
            client: boto3 S3 client
            bucket_name: Bucket holding the mappings
            region: Bucket region, used when the bucket has to be created
            generator: Code generator for self-minted codes
            logger: Optional logger instance
        """
        self.client = client
        self.bucket_name = bucket_name
        self.region = region
        self.generator = generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    async def connect(
        cls,
        bucket_name: str,
        client: Any = None,
        region: str = "us-west-2",
        generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "S3Storage":
        """Build the storage, creating the bucket if it is missing.

        Args:
            bucket_name: Bucket holding the mappings
            client: Pre-authenticated boto3 S3 client; one is created if omitted
            region: Region for a newly created client
            generator: Code generator for self-minted codes
            logger: Optional logger instance

        Raises:
            StorageError: If the bucket can't be checked or created
        """
        if client is None:
            client = boto3.client("s3", region_name=region)

        storage = cls(client, bucket_name, region=region, generator=generator, logger=logger)
        await storage._ensure_bucket()
        return storage

    async def _ensure_bucket(self) -> None:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket_name)
            return
        except ClientError as e:
            if not _is_not_found(e):
                raise StorageError(f"failed to check bucket {self.bucket_name}", stage="connect") from e
        except BotoCoreError as e:
            raise StorageError(f"failed to check bucket {self.bucket_name}", stage="connect") from e

        self.logger.info(f"Creating bucket {self.bucket_name}")
        kwargs = {"Bucket": self.bucket_name}
        # us-east-1 is the one region that rejects an explicit location
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            await asyncio.to_thread(self.client.create_bucket, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to create bucket {self.bucket_name}", stage="connect") from e

    def _prefix(self, code: str) -> str:
        return posixpath.join(STORAGE_VERSION, hash_code(code))

    async def _put(self, key: str, body: str, content_type: str) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket_name,
            Key=key,
            Body=body.encode("utf-8"),
            ContentType=content_type,
        )

    async def _save(self, code: str, url: str, user: Optional[str]) -> None:
        prefix = self._prefix(code)
        record = ChangeRecord(url=url, user=user or DEFAULT_USER)

        # Each put is awaited on its own, so a cancel stops the remaining writes
        try:
            await self._put(posixpath.join(prefix, "long"), url, "text/plain")
        except (ClientError, BotoCoreError) as e:
            raise StorageError("failed to save long url to s3", stage="write") from e

        try:
            await self._put(posixpath.join(prefix, "short"), code, "text/plain")
        except (ClientError, BotoCoreError) as e:
            raise StorageError("failed to save short url to s3", stage="write") from e

        try:
            await self._put(
                posixpath.join(prefix, "change_history", rfc3339_nano()),
                record.to_json(),
                "application/json",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError("failed to save changelog to s3", stage="write") from e

        self.logger.info(f"Saved {code} -> {url}")

    async def exists(self, code: str) -> bool:
        """Check whether a sanitized code already has a mapping."""
        try:
            await asyncio.to_thread(
                self.client.head_object,
                Bucket=self.bucket_name,
                Key=posixpath.join(self._prefix(code), "long"),
            )
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise StorageError("failed to check short code in s3", stage="lookup") from e
        except BotoCoreError as e:
            raise StorageError("failed to check short code in s3", stage="lookup") from e

    async def bind(self, raw_code: str, raw_url: str, user: Optional[str] = None) -> None:
        code = normalize_code(raw_code)
        url = validate_url(raw_url)
        await self._save(code, url, user)

    async def bind_generated(self, raw_url: str, user: Optional[str] = None) -> str:
        url = validate_url(raw_url)

        async def taken(candidate: str) -> bool:
            return await self.exists(normalize_code(candidate))

        code = await self.generator.generate(taken)
        await self._save(normalize_code(code), url, user)
        return code

    async def resolve(self, raw_code: str) -> LookupOutcome:
        code = normalize_code(raw_code)
        key = posixpath.join(self._prefix(code), "long")

        try:
            response = await asyncio.to_thread(
                self.client.get_object, Bucket=self.bucket_name, Key=key
            )
            body = await asyncio.to_thread(response["Body"].read)
        except ClientError as e:
            if _is_not_found(e):
                return LookupOutcome.not_found()
            self.logger.error(f"Error loading {code}: {e}")
            raise StorageError("failed to load long url from s3", stage="lookup") from e
        except BotoCoreError as e:
            self.logger.error(f"Error loading {code}: {e}")
            raise StorageError("failed to read long url", stage="lookup") from e

        try:
            url = body.decode("utf-8")
        except UnicodeDecodeError as e:
            self.logger.error(f"Error decoding {code}: {e}")
            raise StorageError("stored long url is not valid UTF-8", stage="lookup") from e

        return LookupOutcome.found(url)

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket_name)
            return True
        except (ClientError, BotoCoreError) as e:
            self.logger.error(f"Health check failed: {e}")
            return False
