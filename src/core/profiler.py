import functools
import inspect
import logging
import time

logger = logging.getLogger(__name__)


class Profiler:
    """
    Provides a decorator that logs how long synchronous and asynchronous calls
    take, and how long they ran before failing.
    """

    @staticmethod
    def _log(func, start, error=None):
        elapsed = time.perf_counter() - start
        if error is None:
            logger.debug(f"[Profiler] {func.__qualname__} took {elapsed:.4f}s")
        else:
            logger.debug(
                f"[Profiler] {func.__qualname__} failed after {elapsed:.4f}s: {error!r}"
            )

    @staticmethod
    def profile(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except BaseException as e:
                    Profiler._log(func, start, e)
                    raise
                Profiler._log(func, start)
                return result

            return async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except BaseException as e:
                    Profiler._log(func, start, e)
                    raise
                Profiler._log(func, start)
                return result

            return sync_wrapper
