import logging
from typing import List, Optional, Sequence, Tuple

from abstractions.reporter import Reporter
from contracts.endpoint import Endpoint
from contracts.probe_result import AggregateStat, ProbeBudget, ThroughputSample
from core.aggregator import Aggregator
from core.profiler import Profiler
from core.throughput_prober import ThroughputProber

logger = logging.getLogger(__name__)


class BenchmarkOrchestrator:
    """
    Probes endpoints one at a time so they never compete for bandwidth, and
    streams each endpoint's throughput sample to the reporters as it lands.
    """

    def __init__(
        self,
        prober: ThroughputProber,
        budget: Optional[ProbeBudget] = None,
        reporters: Optional[Sequence[Reporter]] = None,
        aggregator: Optional[Aggregator] = None,
    ):
        """
        Initialize the BenchmarkOrchestrator.

        Args:
            prober (ThroughputProber): Prober used for every endpoint.
            budget (Optional[ProbeBudget]): Duration/iteration budget per endpoint.
            reporters (Optional[Sequence[Reporter]]): Receivers of samples and the aggregate.
            aggregator (Optional[Aggregator]): Combines samples into the final statistic.
        """
        self.prober = prober
        self.budget = budget or ProbeBudget()
        self.reporters = list(reporters or [])
        self.aggregator = aggregator or Aggregator()

    @Profiler.profile
    async def run(
        self, endpoints: Sequence[Endpoint], worker_count: int
    ) -> List[ThroughputSample]:
        """
        Probe every endpoint sequentially in the given order.

        Returns:
            List[ThroughputSample]: One sample per endpoint, in endpoint order.

        Raises:
            FastProbeError: The first probe failure aborts the whole run.
        """
        samples = []
        for index, endpoint in enumerate(endpoints, start=1):
            logger.info(
                f"Probing {endpoint.label} ({index}/{len(endpoints)}) "
                f"with {worker_count} workers"
            )
            result = await self.prober.probe(endpoint, worker_count, self.budget)
            sample = ThroughputSample.from_probe_result(endpoint, result)
            samples.append(sample)
            for reporter in self.reporters:
                reporter.report_sample(sample)
        return samples

    async def benchmark(
        self, endpoints: Sequence[Endpoint], worker_count: int
    ) -> Tuple[List[ThroughputSample], AggregateStat]:
        samples = await self.run(endpoints, worker_count)
        stat = self.aggregator.aggregate(samples)
        for reporter in self.reporters:
            reporter.report_aggregate(stat)
        return samples, stat
