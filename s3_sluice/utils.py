from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Pattern, Union
from pathlib import Path
import os
import re
import yaml

# Empty "directory" objects left behind by Hadoop/EMR tooling
FOLDER_MARKER_SUFFIX = "_$folder$"


def ensure_dir(path: Path | str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def write_bytes(path: Path | str, data: bytes) -> Path:
    dst = Path(path)
    ensure_dir(dst.parent)
    dst.write_bytes(data)
    return dst


def read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def as_directory(path: Union[str, os.PathLike]) -> str:
    """Local directory as a string ending in a separator; "" is the working directory."""
    p = os.fspath(path) or os.curdir
    return p if p.endswith(("/", os.sep)) else p + os.sep


def is_folder_marker(key: str) -> bool:
    return key.endswith(FOLDER_MARKER_SUFFIX)


@dataclass(frozen=True)
class NegativeRegex:
    """Wrap a pattern to select the keys that do NOT match it."""

    regex: Union[str, Pattern[str]]


MatchSpec = Union[str, Pattern[str], NegativeRegex]


def compile_matcher(match: Optional[MatchSpec] = None) -> Callable[[str], bool]:
    """
    Turn a match spec into a key predicate. Plain patterns are searched
    anywhere in the key; a NegativeRegex inverts the result.
    """
    if match is None:
        match = ".+"
    negate = isinstance(match, NegativeRegex)
    pattern = match.regex if negate else match
    rx = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _match(key: str) -> bool:
        found = rx.search(key) is not None
        return not found if negate else found

    return _match
