from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Union

from .engine import Operation, Renamer, process_files
from .location import Location
from .utils import MatchSpec

log = logging.getLogger(__name__)


def move_files(
    s3_client,
    from_location: Union[Location, str],
    to_location: Union[Location, str],
    match: Optional[MatchSpec] = ".+",
    alter_filename: Optional[Renamer] = None,
    flatten: bool = False,
    **engine_opts: Any,
) -> Dict[str, Any]:
    """
    Move matching objects from `from_location` to `to_location`.
    Each object is copied first and its source deleted only once the copy
    went through; a copy that keeps failing leaves the source in place.
    """
    log.info("  moving files from %s to %s", from_location, to_location)
    return process_files(
        Operation.MOVE, s3_client, from_location, match, to_location,
        alter_filename, flatten, **engine_opts,
    )
