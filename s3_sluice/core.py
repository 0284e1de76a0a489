from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import boto3
from botocore.config import Config

from .location import Location
from .utils import write_bytes

# S3 never returns more than this per listing request
PAGE_SIZE = 1000


def get_s3_client(
    aws_profile: Optional[str] = None,
    aws_access_key_id: Optional[str] = None,
    aws_secret_access_key: Optional[str] = None,
    region_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    retries_max_attempts: int = 8,
    retries_mode: str = "standard",
    connect_timeout: int = 10,
    read_timeout: int = 60,
):
    """Create a boto3 S3 client with sensible retries and timeouts."""
    cfg = Config(
        retries={"max_attempts": retries_max_attempts, "mode": retries_mode},
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=50,
    )
    if aws_profile:
        session = boto3.Session(profile_name=aws_profile, region_name=region_name)
    else:
        session = boto3.Session(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            region_name=region_name,
        )
    return session.client("s3", config=cfg, endpoint_url=endpoint_url)


@dataclass(frozen=True)
class S3Object:
    bucket: str
    key: str
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    etag: Optional[str] = None

    @classmethod
    def from_listing(cls, bucket: str, entry: Dict[str, Any]) -> "S3Object":
        return cls(
            bucket=bucket,
            key=entry["Key"],
            last_modified=entry.get("LastModified"),
            size=entry.get("Size"),
            etag=(entry.get("ETag") or "").strip('"') or None,
        )

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"


def list_page(
    s3_client,
    bucket: str,
    prefix: str = "",
    marker: Optional[str] = None,
    max_keys: int = PAGE_SIZE,
) -> List[S3Object]:
    """
    Fetch a single page of objects under `prefix`, starting after key `marker`.
    An empty list means there is nothing left to list.
    """
    kwargs: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": max_keys}
    if marker:
        kwargs["StartAfter"] = marker
    resp = s3_client.list_objects_v2(**kwargs)
    return [
        S3Object.from_listing(bucket, entry)
        for entry in resp.get("Contents", []) or []
        if entry.get("Key")
    ]


def fetch_body(s3_client, obj: S3Object) -> bytes:
    resp = s3_client.get_object(Bucket=obj.bucket, Key=obj.key)
    body = resp["Body"]
    try:
        return body.read()
    finally:
        close = getattr(body, "close", None)
        if close:
            close()


def download_file(s3_client, obj: S3Object, to_file: str | Path) -> Path:
    """
    Write one object to exactly `to_file`, creating parent directories and
    overwriting whatever is there. No intelligence around filenaming.
    """
    return write_bytes(to_file, fetch_body(s3_client, obj))


def copy_object(s3_client, source_bucket, source_key, target_bucket, target_key):
    s3_client.copy({'Bucket': source_bucket, 'Key': source_key}, target_bucket, target_key)


def destroy_object(s3_client, obj: S3Object) -> None:
    s3_client.delete_object(Bucket=obj.bucket, Key=obj.key)


def is_empty(s3_client, location: Location) -> bool:
    """
    True if the location holds at most one object. A lone object is usually
    the directory placeholder itself.
    """
    return len(list_page(s3_client, location.bucket, location.dir_as_path, max_keys=2)) <= 1
