from __future__ import annotations
import logging
import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from . import config

T = TypeVar("T")

log = logging.getLogger(__name__)


def retry_call(
    func: Callable[..., T],
    *args: Any,
    retries: Optional[int] = None,
    wait: Optional[float] = None,
    success_msg: Optional[str] = None,
    failure_msg: Optional[str] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Any] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Call `func(*args, **kwargs)`, retrying up to `retries` times with a fixed
    `wait` between attempts. The last error is re-raised unchanged.
    """
    retries = config.RETRIES if retries is None else retries
    wait = config.RETRY_WAIT if wait is None else wait

    attempt = 0
    while True:
        try:
            result = func(*args, **kwargs)
        except retry_on as e:
            if attempt >= retries:
                raise
            attempt += 1
            log.warning(
                "%s (attempt %d/%d failed: %s). Retrying in %ss.",
                failure_msg or f"{getattr(func, '__name__', func)} failed",
                attempt, retries + 1, e, wait,
            )
            sleep(wait)
            continue
        if success_msg:
            log.debug(success_msg)
        return result
