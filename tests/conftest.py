"""Shared fixtures: an in-memory stand-in for the boto3 S3 client."""

import io
import threading
from collections import Counter

import pytest
from botocore.exceptions import ClientError


def make_client_error(code: str, message: str = "error", operation: str = "TestOperation") -> ClientError:
    return ClientError(
        error_response={"Error": {"Code": code, "Message": message}},
        operation_name=operation,
    )


class FakeS3Client:
    """
    Implements the slice of the boto3 S3 client used by s3_sluice
    (list_objects_v2, get_object, copy, delete_object) and records every
    call so tests can check what was acted upon.
    """

    def __init__(self, objects=None, page_size=1000):
        self._lock = threading.Lock()
        self.buckets = {}
        self.page_size = page_size
        self.list_calls = []
        self.copies = []
        self.deletes = []
        self.gets = []
        # {("copy"|"delete"|"get", key): remaining failures}
        self.failures = Counter()
        for (bucket, key), body in (objects or {}).items():
            self.put(bucket, key, body)

    def put(self, bucket, key, body=b""):
        self.buckets.setdefault(bucket, {})[key] = body

    def keys(self, bucket):
        return sorted(self.buckets.get(bucket, {}))

    def fail(self, action, key, times=1):
        self.failures[(action, key)] += times

    def _maybe_fail(self, action, key):
        with self._lock:
            if self.failures[(action, key)] > 0:
                self.failures[(action, key)] -= 1
                raise make_client_error("InternalError", f"{action} {key} failed")

    def list_objects_v2(self, Bucket, Prefix="", MaxKeys=1000, StartAfter=None):
        with self._lock:
            self.list_calls.append({"Bucket": Bucket, "Prefix": Prefix, "StartAfter": StartAfter})
            keys = [k for k in sorted(self.buckets.get(Bucket, {})) if k.startswith(Prefix)]
            if StartAfter:
                keys = [k for k in keys if k > StartAfter]
            keys = keys[: min(MaxKeys, self.page_size)]
            contents = [
                {"Key": k, "Size": len(self.buckets[Bucket][k]), "ETag": '"etag"'}
                for k in keys
            ]
        resp = {"KeyCount": len(contents)}
        if contents:
            resp["Contents"] = contents
        return resp

    def get_object(self, Bucket, Key):
        self._maybe_fail("get", Key)
        with self._lock:
            self.gets.append((Bucket, Key))
            body = self.buckets[Bucket][Key]
        return {"Body": io.BytesIO(body)}

    def copy(self, CopySource, Bucket, Key):
        self._maybe_fail("copy", CopySource["Key"])
        with self._lock:
            self.copies.append((CopySource["Bucket"], CopySource["Key"], Bucket, Key))
            body = self.buckets[CopySource["Bucket"]][CopySource["Key"]]
            self.buckets.setdefault(Bucket, {})[Key] = body

    def delete_object(self, Bucket, Key):
        self._maybe_fail("delete", Key)
        with self._lock:
            self.deletes.append((Bucket, Key))
            self.buckets.get(Bucket, {}).pop(Key, None)


@pytest.fixture
def fake_s3():
    return FakeS3Client(
        {
            ("bucket-a", "in/a.txt"): b"alpha",
            ("bucket-a", "in/b.txt"): b"bravo",
            ("bucket-a", "in/_$folder$"): b"",
        }
    )


@pytest.fixture
def no_wait():
    return {"retry_wait": 0}
