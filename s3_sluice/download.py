from __future__ import annotations
import logging
import os
from typing import Any, Dict, Optional, Union

from .core import download_file
from .engine import Operation, Renamer, process_files
from .location import Location
from .utils import MatchSpec

__all__ = ["download_file", "download_files"]

log = logging.getLogger(__name__)


def download_files(
    s3_client,
    from_location: Union[Location, str],
    to_directory: Union[str, "os.PathLike[str]"],
    match: Optional[MatchSpec] = ".+",
    alter_filename: Optional[Renamer] = None,
    flatten: bool = False,
    **engine_opts: Any,
) -> Dict[str, Any]:
    """
    Download every object under `from_location` matching `match` into the
    local `to_directory`, keeping the sub-folder layout unless `flatten`.
    Missing directories are created and existing files are overwritten.
    """
    log.info("  downloading files from %s to %s", from_location, to_directory)
    return process_files(
        Operation.DOWNLOAD, s3_client, from_location, match, to_directory,
        alter_filename, flatten, **engine_opts,
    )
