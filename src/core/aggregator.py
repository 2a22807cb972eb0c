import logging
import math
from typing import Sequence

from contracts.probe_result import AggregateStat, ThroughputSample
from core.errors import InvalidInput

logger = logging.getLogger(__name__)


class Aggregator:
    """
    Combines per-endpoint throughput samples into a weighted mean and weighted
    standard deviation. Samples with fewer iterations count for less.
    """

    def aggregate(self, samples: Sequence[ThroughputSample]) -> AggregateStat:
        if not samples:
            raise InvalidInput("cannot aggregate an empty sample set")
        total_weight = math.fsum(s.weight for s in samples)
        if total_weight <= 0:
            raise InvalidInput("cannot aggregate samples whose weights are all zero")

        weighted = [s for s in samples if s.weight > 0]
        low = min(s.megabits_per_second for s in weighted)
        high = max(s.megabits_per_second for s in weighted)
        if low == high:
            stat = AggregateStat(mean=low, stddev=0.0)
        else:
            mean = (
                math.fsum(s.weight * s.megabits_per_second for s in weighted)
                / total_weight
            )
            # Rounding must not push the mean outside the sampled range
            mean = min(max(mean, low), high)
            variance = (
                math.fsum(
                    s.weight * (s.megabits_per_second - mean) ** 2 for s in weighted
                )
                / total_weight
            )
            stat = AggregateStat(mean=mean, stddev=math.sqrt(variance))
        logger.debug(
            f"Aggregated {len(samples)} samples (total weight {total_weight}): {stat}"
        )
        return stat
