import asyncio
import enum
import logging
import time
from typing import List, Optional, Tuple

import httpx

from contracts.endpoint import Endpoint
from contracts.probe_result import ProbeBudget, ProbeResult
from core.errors import InvalidEndpoint, InvalidInput, TransferFailure
from core.profiler import Profiler

logger = logging.getLogger(__name__)

# Connect-level failures meaning the host was never reached
UNREACHABLE_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.UnsupportedProtocol,
)
TRANSFER_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)

MIN_ELAPSED = 1e-9
MAX_GROWTH = 100


class ProbePhase(enum.Enum):
    CALIBRATING = "calibrating"
    MEASURING = "measuring"
    DONE = "done"


class Calibration:
    """
    Outcome of the calibrating phase: the total iteration count the measuring
    pass should run.
    """

    def __init__(self, iterations: int, passes: int = 0):
        self.iterations = iterations
        self.passes = passes

    def __repr__(self):
        return f"Calibration(iterations={self.iterations}, passes={self.passes})"


def round_up(n: int) -> int:
    """Round n up to the next 1, 2, 3 or 5 times a power of ten."""
    base = 10 ** (len(str(n)) - 1)
    for multiple in (1, 2, 3, 5):
        if n <= multiple * base:
            return multiple * base
    return 10 * base


def predict_iterations(
    goal: float, prev_iterations: int, prev_elapsed: float, max_iterations: int
) -> int:
    """
    Predict how many iterations fill `goal` seconds given that `prev_iterations`
    took `prev_elapsed` seconds. Overshoots by 20%, never grows more than 100x,
    and always grows by at least one.
    """
    prev_elapsed = max(prev_elapsed, MIN_ELAPSED)
    n = int(goal * prev_iterations / prev_elapsed)
    n += n // 5
    n = min(n, MAX_GROWTH * prev_iterations)
    n = max(n, prev_iterations + 1)
    return min(round_up(n), max_iterations)


class _PassState:
    """
    State shared by the workers of one parallel pass. Only touched from the
    event loop thread, and never across an await, so claims and the first-size
    capture are race-free.
    """

    def __init__(self, iterations: int):
        self.remaining = iterations
        self.stop = asyncio.Event()
        self.first_bytes: Optional[int] = None

    def claim(self) -> bool:
        if self.stop.is_set() or self.remaining <= 0:
            return False
        self.remaining -= 1
        return True

    def capture_first(self, nbytes: int):
        if self.first_bytes is None:
            self.first_bytes = nbytes


class _PassOutcome:
    def __init__(self, elapsed, total_bytes, iterations, first_bytes):
        self.elapsed = elapsed
        self.total_bytes = total_bytes
        self.iterations = iterations
        self.first_bytes = first_bytes


class ProbeRun:
    """
    One probe against one endpoint, driven through
    CALIBRATING -> MEASURING -> DONE.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: Endpoint,
        worker_count: int,
        budget: ProbeBudget,
        uniform_size: bool = False,
    ):
        self.client = client
        self.endpoint = endpoint
        self.worker_count = worker_count
        self.budget = budget
        self.uniform_size = uniform_size
        self.phase = ProbePhase.CALIBRATING
        self._reached = False

    async def execute(self) -> ProbeResult:
        self.phase = ProbePhase.CALIBRATING
        calibration = await self.calibrate()
        logger.debug(f"Calibrated {self.endpoint.label}: {calibration}")
        self.phase = ProbePhase.MEASURING
        result = await self.measure(calibration)
        self.phase = ProbePhase.DONE
        return result

    async def calibrate(self) -> Calibration:
        if self.budget.iterations is not None:
            return Calibration(iterations=self.budget.iterations)

        goal = self.budget.duration
        window = goal * self.budget.calibration_fraction
        max_iterations = self.budget.max_iterations
        n = 1
        passes = 0
        while True:
            outcome = await self._run_pass(n)
            passes += 1
            logger.debug(
                f"Calibration pass {passes} for {self.endpoint.label}: "
                f"{n} iterations in {outcome.elapsed:.4f}s"
            )
            if outcome.elapsed >= window or n >= max_iterations:
                break
            n = predict_iterations(window, n, outcome.elapsed, max_iterations)

        if outcome.elapsed >= goal or n >= max_iterations:
            return Calibration(iterations=n, passes=passes)
        return Calibration(
            iterations=predict_iterations(goal, n, outcome.elapsed, max_iterations),
            passes=passes,
        )

    async def measure(self, calibration: Calibration) -> ProbeResult:
        outcome = await self._run_pass(calibration.iterations)
        first_bytes = outcome.first_bytes or 0
        if self.uniform_size:
            total_bytes = first_bytes * outcome.iterations
        else:
            total_bytes = outcome.total_bytes
        return ProbeResult(
            total_bytes=total_bytes,
            elapsed=outcome.elapsed,
            iterations=outcome.iterations,
            bytes_per_iteration=first_bytes,
        )

    async def _run_pass(self, iterations: int) -> _PassOutcome:
        state = _PassState(iterations)
        workers = min(self.worker_count, iterations)
        start = time.perf_counter()
        tasks = [
            asyncio.create_task(
                self._worker(state), name=f"probe-{self.endpoint.label}-{i}"
            )
            for i in range(workers)
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            state.stop.set()
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        elapsed = max(time.perf_counter() - start, MIN_ELAPSED)

        for task in tasks:
            if task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                wrapped = self._classify(error)
                if wrapped is error:
                    raise error
                raise wrapped from error

        totals: List[Tuple[int, int]] = [task.result() for task in tasks]
        return _PassOutcome(
            elapsed=elapsed,
            total_bytes=sum(nbytes for nbytes, _ in totals),
            iterations=sum(count for _, count in totals),
            first_bytes=state.first_bytes,
        )

    async def _worker(self, state: _PassState) -> Tuple[int, int]:
        nbytes = 0
        iterations = 0
        while state.claim():
            got = await self._download()
            state.capture_first(got)
            nbytes += got
            iterations += 1
        return nbytes, iterations

    async def _download(self) -> int:
        async with self.client.stream("GET", self.endpoint.url) as response:
            # The host answered, so later connect errors are transfer failures
            self._reached = True
            response.raise_for_status()
            async for _ in response.aiter_bytes():
                pass
        # Raw wire bytes, also counted when the body arrived already loaded
        return response.num_bytes_downloaded

    def _classify(self, error: BaseException) -> BaseException:
        if isinstance(error, UNREACHABLE_ERRORS) and not self._reached:
            return InvalidEndpoint(f"{self.endpoint.url}: unreachable: {error!r}")
        if isinstance(error, TRANSFER_ERRORS):
            return TransferFailure(
                f"{self.endpoint.label}: transfer failed while "
                f"{self.phase.value}: {error!r}"
            )
        return error


class ThroughputProber:
    """
    Measures download throughput of a single endpoint with parallel workers
    sharing one HTTP connection pool.
    """

    def __init__(self, client: httpx.AsyncClient, uniform_size: bool = False):
        """
        Args:
            client (httpx.AsyncClient): Connection pool used for every download.
                The caller owns and closes it.
            uniform_size (bool): Derive total bytes from the first download's size
                instead of summing every download.
        """
        self.client = client
        self.uniform_size = uniform_size

    @Profiler.profile
    async def probe(
        self,
        endpoint: Endpoint,
        worker_count: int,
        budget: Optional[ProbeBudget] = None,
    ) -> ProbeResult:
        """
        Calibrate an iteration count for the budget, then run that many downloads
        across `worker_count` workers.

        Raises:
            InvalidEndpoint: Malformed URL, or host unreachable before any bytes were read.
            TransferFailure: Any worker failed; no partial result is returned.
            InvalidInput: worker_count is not a positive integer.
        """
        self._validate(endpoint, worker_count)
        run = ProbeRun(
            self.client,
            endpoint,
            worker_count,
            budget or ProbeBudget(),
            uniform_size=self.uniform_size,
        )
        result = await run.execute()
        logger.debug(
            f"Probe of {endpoint.label} finished: {result.iterations} iterations, "
            f"{result.total_bytes} bytes in {result.elapsed:.4f}s"
        )
        return result

    @staticmethod
    def _validate(endpoint: Endpoint, worker_count: int):
        if isinstance(worker_count, bool) or not isinstance(worker_count, int):
            raise InvalidInput(f"worker_count must be an integer, got {worker_count!r}")
        if worker_count < 1:
            raise InvalidInput(f"worker_count must be positive, got {worker_count}")
        try:
            url = httpx.URL(endpoint.url)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise InvalidEndpoint(f"{endpoint.url!r}: malformed URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidEndpoint(f"{endpoint.url!r}: malformed URL")
