from abc import ABC, abstractmethod

from contracts.fast_config import ClientInfo
from contracts.probe_result import AggregateStat, ThroughputSample


class Reporter(ABC):
    """
    Abstract base class for consumers of benchmark results. Samples arrive one
    per endpoint, in endpoint order, as soon as each probe finishes.
    """

    def report_client(self, client: ClientInfo):
        """
        Receive the identity of the client being measured. Optional.

        Args:
            client (ClientInfo): ISP and public IP reported by the endpoint source.
        """

    @abstractmethod
    def report_sample(self, sample: ThroughputSample):
        """
        Receive the throughput sample of one endpoint.

        Args:
            sample (ThroughputSample): Label, iterations and Mbit/s of the endpoint.
        """

    @abstractmethod
    def report_aggregate(self, stat: AggregateStat):
        """
        Receive the weighted mean and standard deviation over all endpoints.

        Args:
            stat (AggregateStat): The aggregate statistic.
        """
