from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from tqdm import tqdm

from . import config
from .core import PAGE_SIZE, S3Object, copy_object, destroy_object, download_file, list_page
from .errors import (
    InvalidOperationArgumentsError,
    S3CopyError,
    S3DeleteError,
    S3DownloadError,
    StorageOperationError,
    log_and_reraise,
)
from .location import Location
from .naming import base_name, name_file
from .retry import retry_call
from .utils import MatchSpec, as_directory, compile_matcher, is_folder_marker

log = logging.getLogger(__name__)

Destination = Union[Location, str, "os.PathLike[str]"]
Renamer = Callable[[str], str]

DOWNLOAD_STEP = "download"
COPY_STEP = "copy"
DELETE_STEP = "delete"


class Operation(str, Enum):
    DOWNLOAD = "download"
    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"

    @property
    def steps(self) -> Tuple[str, ...]:
        """Sub-actions run for each object, in order."""
        return _STEPS[self]

    @property
    def needs_destination(self) -> bool:
        return self is not Operation.DELETE


# A move is a copy followed by a delete; never the other way round
_STEPS: Dict[Operation, Tuple[str, ...]] = {
    Operation.DOWNLOAD: (DOWNLOAD_STEP,),
    Operation.COPY: (COPY_STEP,),
    Operation.MOVE: (COPY_STEP, DELETE_STEP),
    Operation.DELETE: (DELETE_STEP,),
}


class ListingCursor:
    """
    Listing state shared by the workers of one run: a buffer holding the
    current page, the last key seen (the marker for the next page) and a
    completion flag. Every read or write happens under one lock.
    """

    def __init__(
        self,
        s3_client,
        location: Location,
        matcher: Callable[[str], bool],
        retries: Optional[int] = None,
        retry_wait: Optional[float] = None,
        page_size: int = PAGE_SIZE,
    ):
        self._s3 = s3_client
        self._location = location
        self._matcher = matcher
        self._retries = config.RETRIES if retries is None else retries
        self._retry_wait = config.RETRY_WAIT if retry_wait is None else retry_wait
        self._page_size = page_size
        self._lock = threading.Lock()
        self._buffer: List[S3Object] = []
        self._marker: Optional[str] = None
        self._stop = threading.Event()
        self.complete = False

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _wanted(self, key: str) -> bool:
        if is_folder_marker(key) or base_name(key) is None:
            return False
        return self._matcher(key)

    @log_and_reraise(StorageOperationError)
    def _refill(self) -> List[S3Object]:
        return retry_call(
            list_page,
            self._s3,
            self._location.bucket,
            self._location.dir_as_path,
            self._marker,
            self._page_size,
            retries=self._retries,
            wait=self._retry_wait,
            failure_msg=f"Problem listing {self._location}",
        )

    def claim(self) -> Optional[S3Object]:
        """
        Pop the next matching object, listing another page when the buffer
        runs dry. Returns None once the listing is exhausted or the run has
        been stopped.
        """
        with self._lock:
            while not self.complete and not self.stopped:
                if not self._buffer:
                    try:
                        page = self._refill()
                    except BaseException:
                        self.stop()
                        raise
                    if not page:
                        self.complete = True
                        break
                    self._marker = page[-1].key
                    # reversed so that pop() hands out keys in listing order
                    self._buffer = page[::-1]
                obj = self._buffer.pop()
                if self._wanted(obj.key):
                    return obj
            return None


def _coerce_operation(operation: Union[Operation, str]) -> Operation:
    try:
        return Operation(operation)
    except ValueError:
        raise InvalidOperationArgumentsError(
            f"File operation {operation!r} is unsupported. Try download, copy, delete or move"
        ) from None


def _validate(
    op: Operation,
    from_location: Location,
    to_loc_or_dir: Optional[Destination],
    alter_filename: Optional[Renamer],
    concurrency: int,
    retries: int,
    retry_wait: float,
) -> Optional[Destination]:
    if op.needs_destination:
        if to_loc_or_dir is None:
            raise InvalidOperationArgumentsError(
                f"File operation {op.value} requires the to_loc_or_dir to be set"
            )
    else:
        if to_loc_or_dir is not None:
            raise InvalidOperationArgumentsError(
                f"File operation {op.value} does not support the to_loc_or_dir argument"
            )
        if alter_filename is not None:
            raise InvalidOperationArgumentsError(
                f"File operation {op.value} does not support the alter_filename argument"
            )

    if alter_filename is not None and not callable(alter_filename):
        raise InvalidOperationArgumentsError("alter_filename must be callable")
    if concurrency < 1:
        raise InvalidOperationArgumentsError(f"concurrency must be >= 1, got {concurrency}")
    if retries < 0:
        raise InvalidOperationArgumentsError(f"retries must be >= 0, got {retries}")
    if retry_wait < 0:
        raise InvalidOperationArgumentsError(f"retry_wait must be >= 0, got {retry_wait}")

    if op is Operation.DOWNLOAD:
        if isinstance(to_loc_or_dir, Location):
            raise InvalidOperationArgumentsError("download needs a local directory, not a storage location")
        return as_directory(to_loc_or_dir)
    if op in (Operation.COPY, Operation.MOVE):
        to_location = to_loc_or_dir if isinstance(to_loc_or_dir, Location) else Location.parse(to_loc_or_dir)
        # new keys under the source prefix would be listed and processed again
        if (
            to_location.bucket == from_location.bucket
            and to_location.dir_as_path.startswith(from_location.dir_as_path)
        ):
            raise InvalidOperationArgumentsError(
                f"File operation {op.value} needs a destination outside the source: "
                f"{to_location} is within {from_location}"
            )
        return to_location
    return None


@log_and_reraise(S3DownloadError)
def _download_step(s3_client, obj: S3Object, target: str, retries: int, wait_s: float) -> None:
    retry_call(
        download_file, s3_client, obj, target,
        retries=retries, wait=wait_s,
        success_msg=f"      +/> {target}",
        failure_msg=f"Problem downloading {obj.key}",
    )


@log_and_reraise(S3CopyError)
def _copy_step(s3_client, obj: S3Object, to_location: Location, target: str, retries: int, wait_s: float) -> None:
    retry_call(
        copy_object, s3_client, obj.bucket, obj.key, to_location.bucket, target,
        retries=retries, wait=wait_s,
        success_msg=f"      +-> {to_location.bucket}/{target}",
        failure_msg=f"Problem copying {obj.key}",
    )


@log_and_reraise(S3DeleteError)
def _delete_step(s3_client, obj: S3Object, retries: int, wait_s: float) -> None:
    retry_call(
        destroy_object, s3_client, obj,
        retries=retries, wait=wait_s,
        success_msg=f"      x {obj}",
        failure_msg=f"Problem destroying {obj.key}",
    )


def _process_object(
    op: Operation,
    s3_client,
    obj: S3Object,
    from_location: Location,
    destination: Optional[Destination],
    alter_filename: Optional[Renamer],
    flatten: bool,
    retries: int,
    wait_s: float,
) -> Optional[str]:
    filename = base_name(obj.key)
    if alter_filename is not None:
        filename = alter_filename(filename)

    source = f"{from_location.bucket}/{obj.key}"
    target: Optional[str] = None
    if op is Operation.DOWNLOAD:
        target = name_file(obj.key, filename, from_location.dir_as_path, destination, flatten)
        log.info("    DOWNLOAD %s +-> %s", source, target)
    elif op in (Operation.COPY, Operation.MOVE):
        target = name_file(obj.key, filename, from_location.dir_as_path, destination.dir_as_path, flatten)
        arrow = "->" if op is Operation.MOVE else "+->"
        log.info("    %s %s %s %s/%s", op.value.upper(), source, arrow, destination.bucket, target)
    else:
        log.info("    DELETE x %s", source)

    for step in op.steps:
        if step == DOWNLOAD_STEP:
            _download_step(s3_client, obj, target, retries, wait_s)
        elif step == COPY_STEP:
            _copy_step(s3_client, obj, destination, target, retries, wait_s)
        elif step == DELETE_STEP:
            _delete_step(s3_client, obj, retries, wait_s)

    if target is not None and op is not Operation.DOWNLOAD:
        return f"{destination.bucket}/{target}"
    return target


def process_files(
    operation: Union[Operation, str],
    s3_client,
    from_location: Union[Location, str],
    match: Optional[MatchSpec] = ".+",
    to_loc_or_dir: Optional[Destination] = None,
    alter_filename: Optional[Renamer] = None,
    flatten: bool = False,
    *,
    concurrency: Optional[int] = None,
    retries: Optional[int] = None,
    retry_wait: Optional[float] = None,
    progress: bool = False,
    keep_processed: bool = True,
) -> Dict[str, Any]:
    """
    Run `operation` concurrently over every object under `from_location`
    whose key satisfies `match`.

    Supported operations:
    - download: to the local directory `to_loc_or_dir`
    - copy: to the Location `to_loc_or_dir`
    - move: copy, then delete the source
    - delete: no destination

    `alter_filename` rewrites the filename part of each key; `flatten`
    drops any sub-folders below `from_location`. The first object that
    still fails after its retries aborts the whole run and its error is
    raised once all workers have stopped.

    With `keep_processed=False` the result carries only the count in
    `stats` and `processed` is None, for runs over very large listings.
    """
    op = _coerce_operation(operation)
    settings = config.EngineSettings.defaults().override(concurrency, retries, retry_wait)
    if not isinstance(from_location, Location):
        from_location = Location.parse(from_location)
    destination = _validate(
        op, from_location, to_loc_or_dir, alter_filename,
        settings.concurrency, settings.retries, settings.retry_wait,
    )
    matcher = compile_matcher(match)

    cursor = ListingCursor(
        s3_client, from_location, matcher,
        retries=settings.retries, retry_wait=settings.retry_wait,
    )
    bar = tqdm(desc=op.value.capitalize(), unit="obj") if progress else None

    def _drain() -> Tuple[int, List[Tuple[str, Optional[str]]]]:
        count = 0
        done: List[Tuple[str, Optional[str]]] = []
        try:
            while True:
                obj = cursor.claim()
                if obj is None:
                    break
                target = _process_object(
                    op, s3_client, obj, from_location, destination,
                    alter_filename, flatten, settings.retries, settings.retry_wait,
                )
                count += 1
                if keep_processed:
                    done.append((obj.key, target))
                if bar:
                    bar.update(1)
        except BaseException:
            # let the other workers finish their current object and quit
            cursor.stop()
            raise
        return count, done

    first_error: Optional[BaseException] = None
    try:
        with ThreadPoolExecutor(max_workers=settings.concurrency, thread_name_prefix="s3-sluice") as ex:
            futures = [ex.submit(_drain) for _ in range(settings.concurrency)]
            finished, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for f in futures:
                if f in finished and f.exception() is not None:
                    first_error = f.exception()
                    cursor.stop()
                    break
    finally:
        if bar:
            bar.close()

    if first_error is not None:
        raise first_error

    results = [f.result() for f in futures]
    total = sum(count for count, _ in results)
    processed = [item for _, done in results for item in done] if keep_processed else None
    return {
        "processed": processed,
        "stats": {
            "operation": op.value,
            "source": str(from_location),
            "destination": None if destination is None else str(destination),
            "total": total,
            "concurrency": settings.concurrency,
            "flatten": flatten,
        },
    }
