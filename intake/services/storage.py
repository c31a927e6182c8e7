import io
import os
import re
import shutil
import tempfile

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.security import safe_join

from ..errors import NotFound, PersistenceError, StartupError


KEY_PATTERN = re.compile(r"^[0-9]+-[0-9a-f]{16}(\.[a-z0-9]{1,10})?$")


def generate_storage_key(timestamp_ms, random_source, extension=""):
    """Build an artifact key from a millisecond timestamp and 64 random bits.

    Pure: the same timestamp, random state and extension give the same key,
    so tests can pass a seeded ``random.Random``.
    """
    return f"{int(timestamp_ms)}-{random_source.getrandbits(64):016x}{extension}"


def is_valid_key(key):
    return bool(key) and KEY_PATTERN.match(key) is not None


class LocalArtifactStore:
    """Artifacts as flat files in one directory."""

    def __init__(self, directory):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path(self, key):
        if not is_valid_key(key):
            raise ValueError(f"invalid artifact key: {key!r}")
        return safe_join(self.directory, key)

    def save(self, stream, key, content_type=None):
        path = self._path(key)
        # write next to the target and rename so readers never see a partial file
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".part", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(stream, out)
                out.flush()
                os.fsync(out.fileno())
            os.replace(tmp, path)
        except OSError as e:
            _discard(tmp)
            raise PersistenceError("Failed to store resume") from e
        except Exception:
            _discard(tmp)
            raise
        return key

    def exists(self, key):
        if not is_valid_key(key):
            return False
        return os.path.isfile(self._path(key))

    def open(self, key):
        if not is_valid_key(key):
            raise NotFound("File missing")
        try:
            return open(self._path(key), "rb")
        except FileNotFoundError:
            raise NotFound("File missing")

    def iter_keys(self):
        with os.scandir(self.directory) as entries:
            for entry in entries:
                if entry.is_file() and is_valid_key(entry.name):
                    yield entry.name


def _discard(path):
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


class S3ArtifactStore:
    """Artifacts as objects under a prefix of one bucket. S3 PUTs are atomic."""

    def __init__(self, client, bucket, prefix=""):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix or ""

    def _object_key(self, key):
        if not is_valid_key(key):
            raise ValueError(f"invalid artifact key: {key!r}")
        return f"{self.prefix}{key}"

    def save(self, stream, key, content_type=None):
        extra = {"ContentType": content_type} if content_type else None
        try:
            self.client.upload_fileobj(stream, self.bucket, self._object_key(key), ExtraArgs=extra)
        except (BotoCoreError, ClientError) as e:
            raise PersistenceError("Failed to store resume") from e
        return key

    def exists(self, key):
        if not is_valid_key(key):
            return False
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._object_key(key))
            return True
        except ClientError as e:
            if _is_missing(e):
                return False
            raise

    def open(self, key):
        if not is_valid_key(key):
            raise NotFound("File missing")
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=self._object_key(key))
        except ClientError as e:
            if _is_missing(e):
                raise NotFound("File missing")
            raise
        return io.BytesIO(obj["Body"].read())

    def iter_keys(self):
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
            for item in page.get("Contents", []):
                name = item["Key"][len(self.prefix):]
                if is_valid_key(name):
                    yield name


def _is_missing(err):
    code = str(err.response.get("Error", {}).get("Code", ""))
    return code in ("404", "NoSuchKey", "NotFound")


def build_artifact_store(config):
    backend = config.get("STORAGE_BACKEND", "local")
    if backend == "local":
        try:
            return LocalArtifactStore(config["UPLOAD_DIR"])
        except OSError as e:
            raise StartupError(f"cannot create upload directory {config['UPLOAD_DIR']}: {e}") from e
    if backend == "s3":
        bucket = config.get("S3_BUCKET")
        if not bucket:
            raise StartupError("STORAGE_BACKEND=s3 requires S3_BUCKET")
        # endpoint_url may be empty for AWS-managed S3
        s3_kwargs = {}
        if config.get("S3_ENDPOINT"):
            s3_kwargs["endpoint_url"] = config["S3_ENDPOINT"]
        if config.get("S3_REGION"):
            s3_kwargs["region_name"] = config["S3_REGION"]
        client = boto3.client(
            "s3",
            aws_access_key_id=config.get("S3_ACCESS_KEY"),
            aws_secret_access_key=config.get("S3_SECRET_KEY"),
            config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
            **s3_kwargs,
        )
        return S3ArtifactStore(client, bucket, config.get("S3_PREFIX", ""))
    raise StartupError(f"unknown STORAGE_BACKEND: {backend!r}")
