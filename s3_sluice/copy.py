from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Union

from .engine import Operation, Renamer, process_files
from .location import Location
from .utils import MatchSpec

log = logging.getLogger(__name__)


def copy_files(
    s3_client,
    from_location: Union[Location, str],
    to_location: Union[Location, str],
    match: Optional[MatchSpec] = ".+",
    alter_filename: Optional[Renamer] = None,
    flatten: bool = False,
    **engine_opts: Any,
) -> Dict[str, Any]:
    """Server-side copy of the matching objects between two locations."""
    log.info("  copying files from %s to %s", from_location, to_location)
    return process_files(
        Operation.COPY, s3_client, from_location, match, to_location,
        alter_filename, flatten, **engine_opts,
    )
