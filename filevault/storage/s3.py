import tempfile

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from filevault.core.exceptions import (
    FileNotFound,
    StreamOpenFailure,
    StreamReadFailure,
    StreamWriteFailure,
    MetadataUnavailable,
    DeleteFileFailure,
)
from filevault.core.logging_config import storage_logger
from filevault.core.settings import S3_SPOOL_SIZE
from filevault.storage.base import Storage

NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


# ============================================================
# READER
# ============================================================
class S3ObjectReader:
    """
    Seekable reader over an S3 object.

    GetObject bodies are forward-only; seek() drops the current body
    and the next read() issues a ranged GetObject from the new offset.
    """

    def __init__(self, client, bucket, key, body=None):
        self._client = client
        self._bucket = bucket
        self._key = key
        self._body = body
        self._position = 0
        self.closed = False

    def _open_body(self):
        params = {"Bucket": self._bucket, "Key": self._key}
        if self._position:
            params["Range"] = f"bytes={self._position}-"

        try:
            self._body = self._client.get_object(**params)["Body"]
        except ClientError as e:
            if _error_code(e) == "InvalidRange":
                # offset at or past the end of the object
                self._body = None
                return False
            raise StreamReadFailure(f"GetObject failed for s3://{self._bucket}/{self._key}: {e}") from e
        except BotoCoreError as e:
            raise StreamReadFailure(f"GetObject failed for s3://{self._bucket}/{self._key}: {e}") from e
        return True

    def read(self, size=-1):
        if self.closed:
            raise ValueError("I/O operation on closed reader")

        if self._body is None and not self._open_body():
            return b""

        try:
            data = self._body.read(None if size is None or size < 0 else size)
        except (BotoCoreError, OSError) as e:
            raise StreamReadFailure(f"Read failed for s3://{self._bucket}/{self._key}: {e}") from e

        self._position += len(data)
        return data

    def seek(self, offset, whence=0):
        if whence != 0:
            raise ValueError("S3ObjectReader only supports absolute seeks")
        self._close_body()
        self._position = offset
        return self._position

    def _close_body(self):
        if self._body is not None:
            self._body.close()
            self._body = None

    def close(self):
        if not self.closed:
            self._close_body()
            self.closed = True


# ============================================================
# WRITER
# ============================================================
class S3ObjectWriter:
    """
    Spools written bytes to a temporary file and uploads them when
    closed. boto3's managed transfer switches to multipart uploads
    for large objects.
    """

    def __init__(self, client, bucket, key, spool_size=S3_SPOOL_SIZE):
        self._client = client
        self._bucket = bucket
        self._key = key
        self._buffer = tempfile.SpooledTemporaryFile(max_size=spool_size)
        self.closed = False

    def write(self, data):
        if self.closed:
            raise ValueError("I/O operation on closed writer")
        return self._buffer.write(data)

    def close(self):
        if self.closed:
            return
        self.closed = True

        try:
            self._buffer.seek(0)
            self._client.upload_fileobj(self._buffer, self._bucket, self._key)
            storage_logger.info(f"Uploaded s3://{self._bucket}/{self._key}")
        except (BotoCoreError, ClientError) as e:
            raise StreamWriteFailure(f"Upload failed for s3://{self._bucket}/{self._key}: {e}") from e
        finally:
            self._buffer.close()


# ============================================================
# STORAGE
# ============================================================
class S3Storage(Storage):
    driver = "s3"

    def __init__(self, bucket, prefix="", client=None):
        if not bucket:
            raise ValueError("S3 bucket name not configured.")
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self._client = client or boto3.client("s3")

    def object_key(self, name: str) -> str:
        name = str(name).lstrip("/")
        return f"{self.prefix}/{name}" if self.prefix else name

    def _head(self, name):
        return self._client.head_object(Bucket=self.bucket, Key=self.object_key(name))

    def open_read(self, name):
        key = self.object_key(name)
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise FileNotFound(name) from None
            raise StreamOpenFailure(name, str(e)) from e
        except BotoCoreError as e:
            raise StreamOpenFailure(name, str(e)) from e

        return S3ObjectReader(self._client, self.bucket, key, body=response["Body"])

    def open_write(self, name):
        return S3ObjectWriter(self._client, self.bucket, self.object_key(name))

    def size(self, name):
        try:
            return int(self._head(name)["ContentLength"])
        except (BotoCoreError, ClientError) as e:
            raise MetadataUnavailable(name, str(e)) from e

    def delete(self, name):
        try:
            self._client.delete_object(Bucket=self.bucket, Key=self.object_key(name))
        except (BotoCoreError, ClientError) as e:
            raise DeleteFileFailure(name, str(e)) from e
        storage_logger.info(f"Deleted s3://{self.bucket}/{self.object_key(name)}")

    def exists(self, name):
        try:
            self._head(name)
            return True
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            raise

    def __repr__(self):
        return f"S3Storage(bucket={self.bucket!r}, prefix={self.prefix!r})"
