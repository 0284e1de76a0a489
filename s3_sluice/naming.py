from __future__ import annotations
import posixpath
import re
from typing import Callable, Optional, Pattern, Union

from .errors import PathRewriteError


def name_file(
    filepath: str,
    new_filename: str,
    remove_path: Optional[str] = None,
    add_path: Optional[str] = None,
    flatten: bool = False,
) -> str:
    """
    Prepare a destination key (or local path) for an object.

    S3 keys are flat strings while the targets we write to are treated as
    paths, so the source key is reshaped in a few steps:

    - the filename part of `filepath` is replaced by `new_filename`
    - with `flatten`, every directory is dropped and only the filename is kept
    - otherwise `remove_path` is stripped from the front; the renamed path
      must start with it or PathRewriteError is raised
    - `add_path`, if set, is put in front of whatever is left
    """
    dirname = posixpath.dirname(filepath)
    new_filepath = f"{dirname}/{new_filename}" if dirname else new_filename

    if remove_path is None and add_path is None and not flatten:
        return new_filepath

    if flatten:
        shortened = new_filename
    else:
        remove = remove_path or ""
        if not new_filepath.startswith(remove):
            raise PathRewriteError(
                f"name_file failed. Filepath {new_filepath!r} does not start with {remove!r}"
            )
        shortened = new_filepath[len(remove):]

    if add_path is None:
        return shortened
    return add_path + shortened


def base_name(key: str) -> Optional[str]:
    """Filename part of a key, or None for keys ending in '/'."""
    name = key.rsplit("/", 1)[-1]
    return name or None


def regex_renamer(pattern: Union[str, Pattern[str]], replacement: str) -> Callable[[str], str]:
    rx = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _rename(filename: str) -> str:
        return rx.sub(replacement, filename)

    return _rename
