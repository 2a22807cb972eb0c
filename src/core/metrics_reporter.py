import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from abstractions.reporter import Reporter
from contracts.probe_result import AggregateStat, ThroughputSample

logger = logging.getLogger(__name__)


class MetricsReporter(Reporter):
    """
    Records benchmark results as Prometheus gauges on a private registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.THROUGHPUT = Gauge(
            "fast_endpoint_throughput_mbps",
            "Download throughput per endpoint in Mbit/s",
            ["endpoint"],
            registry=self.registry,
        )
        self.ITERATIONS = Gauge(
            "fast_endpoint_iterations",
            "Downloads completed per endpoint during the measuring pass",
            ["endpoint"],
            registry=self.registry,
        )
        self.MEAN = Gauge(
            "fast_throughput_mean_mbps",
            "Iteration-weighted mean throughput in Mbit/s",
            registry=self.registry,
        )
        self.STDDEV = Gauge(
            "fast_throughput_stddev_mbps",
            "Iteration-weighted standard deviation of throughput in Mbit/s",
            registry=self.registry,
        )

    def report_sample(self, sample: ThroughputSample):
        self.THROUGHPUT.labels(endpoint=sample.label).set(sample.megabits_per_second)
        self.ITERATIONS.labels(endpoint=sample.label).set(sample.weight)
        logger.debug(f"Recorded throughput gauge for {sample.label}")

    def report_aggregate(self, stat: AggregateStat):
        self.MEAN.set(stat.mean)
        self.STDDEV.set(stat.stddev)

    def exposition(self) -> str:
        return generate_latest(self.registry).decode("utf-8")
