from __future__ import annotations
import logging
import functools
from typing import Type, Callable, Any

class S3SluiceError(Exception): pass
class MalformedLocationError(S3SluiceError, ValueError): pass
class InvalidOperationArgumentsError(S3SluiceError, ValueError): pass
class PathRewriteError(S3SluiceError): pass

class StorageOperationError(S3SluiceError): pass
class S3CopyError(StorageOperationError): pass
class S3DeleteError(StorageOperationError): pass
class S3DownloadError(StorageOperationError): pass

def setup_logging(level: int = logging.INFO, logfile: str | None = None) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):  # avoid duplicate handlers
        root.removeHandler(h)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    stream = logging.StreamHandler()
    stream.setFormatter(fmt)
    root.addHandler(stream)
    if logfile:
        fh = logging.FileHandler(logfile)
        fh.setFormatter(fmt)
        root.addHandler(fh)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))

def log_and_reraise(exception_cls: Type[Exception] = StorageOperationError):
    """
    Log any failure of the wrapped call and re-raise it as `exception_cls`,
    chaining the original error. Errors already of our own hierarchy pass
    through untouched.
    """
    def deco(func: Callable[..., Any]):
        @functools.wraps(func)
        def wrapper(*a, **kw):
            try:
                return func(*a, **kw)
            except S3SluiceError:
                raise
            except Exception as e:
                logging.getLogger(func.__module__).error("%s failed: %s", func.__name__, e)
                raise exception_cls(f"{func.__name__} failed: {e}") from e
        return wrapper
    return deco
