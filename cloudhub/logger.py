import functools
import gzip
import inspect
import logging
import logging.handlers
import os
import shutil
import sys
from gzip import GzipFile
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

from .config import settings

logger = logging.getLogger("cloudhub")
logger.setLevel(settings.log_level.upper())
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)


def rotator(source, dest):
    with open(source, "rb") as f_in:
        with gzip.open(dest + ".gz", "wb") as f_out:
            assert isinstance(f_out, GzipFile)
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


if settings.logs_dir is not None:
    logs_dir = Path(settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file_handler = logging.handlers.TimedRotatingFileHandler(
        logs_dir / "cloudhub.log", when="midnight"
    )
    log_file_handler.setFormatter(formatter)
    log_file_handler.rotator = rotator
    logger.addHandler(log_file_handler)

log_stream_handler = logging.StreamHandler(sys.stdout)
log_stream_handler.setFormatter(formatter)
logger.addHandler(log_stream_handler)


P = ParamSpec("P")
R = TypeVar("R")


def log_exception(
    prefix: str,
    default_return: R | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Log and swallow exceptions from a synchronous callback.

    For timer callbacks and user hooks, where an exception has no caller to
    reach. ``{name}`` placeholders in ``prefix`` are filled from the call's
    arguments, e.g. ``@log_exception("Expire notification {notification_id}")``.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                arguments = sig.bind_partial(*args, **kwargs).arguments
                try:
                    label = prefix.format_map(arguments)
                except (KeyError, ValueError) as format_error:
                    logger.warning(f"Failed to format prefix '{prefix}': {format_error}")
                    label = prefix
                params = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
                context = f"[{params}] " if params else ""
                logger.error(
                    f"{context}{label}: {type(e).__name__}: {e}",
                    exc_info=True,
                    stacklevel=2,
                )
                return default_return  # type: ignore[return-value]

        return wrapper

    return decorator
