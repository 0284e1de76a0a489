from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Union

from .engine import Operation, process_files
from .location import Location
from .utils import MatchSpec

log = logging.getLogger(__name__)


def delete_files(
    s3_client,
    from_location: Union[Location, str],
    match: Optional[MatchSpec] = ".+",
    **engine_opts: Any,
) -> Dict[str, Any]:
    log.info("  deleting files from %s", from_location)
    return process_files(Operation.DELETE, s3_client, from_location, match, **engine_opts)
