from __future__ import annotations
import re
from dataclasses import dataclass, field

from .errors import MalformedLocationError

# scheme://bucket/ or scheme://bucket/some/dir/ ; trailing slash is mandatory
_LOCATION_RE = re.compile(
    r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*)://(?P<bucket>[^/]+)/(?:(?P<dir>.+)/)?$"
)


@dataclass(frozen=True)
class Location:
    """
    A bucket plus a directory-like key prefix, e.g. ``s3://my-bucket/raw/2024/``.

    Built only from strings that end with ``/`` so that the prefix can never
    be confused with a partial filename.
    """

    raw: str
    scheme: str = field(init=False)
    bucket: str = field(init=False)
    dir: str = field(init=False)

    def __post_init__(self) -> None:
        m = _LOCATION_RE.match(self.raw) if isinstance(self.raw, str) else None
        if not m:
            raise MalformedLocationError(f"Bad storage location {self.raw!r}")
        object.__setattr__(self, "scheme", m.group("scheme"))
        object.__setattr__(self, "bucket", m.group("bucket"))
        object.__setattr__(self, "dir", m.group("dir") or "")

    @classmethod
    def parse(cls, raw: str) -> "Location":
        return cls(raw)

    @property
    def dir_as_path(self) -> str:
        return f"{self.dir}/" if self.dir else ""

    def __str__(self) -> str:
        return self.raw
