from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from contracts.endpoint import Endpoint


class ProbeBudget(BaseModel):
    """
    Bounds for one probe. Without a fixed iteration count the prober calibrates
    the count so the measuring pass fills `duration` seconds.
    """

    model_config = ConfigDict(frozen=True)

    duration: float = Field(default=1.0, gt=0)
    iterations: Optional[int] = Field(default=None, ge=1)
    max_iterations: int = Field(default=1_000_000_000, ge=1)
    calibration_fraction: float = Field(default=0.1, gt=0, le=1)


class ProbeResult(BaseModel):
    """
    Data model representing the outcome of one probe against one endpoint.
    """

    model_config = ConfigDict(frozen=True)

    total_bytes: int = Field(ge=0)
    elapsed: float = Field(gt=0)
    iterations: int = Field(ge=0)
    # Size of the first completed download
    bytes_per_iteration: int = Field(default=0, ge=0)


class ThroughputSample(BaseModel):
    """
    Throughput of one endpoint, weighted by the number of iterations behind it.
    """

    model_config = ConfigDict(frozen=True)

    label: str = ""
    megabits_per_second: float = Field(ge=0)
    weight: float = Field(ge=0)

    @property
    def iterations(self) -> int:
        return int(self.weight)

    @classmethod
    def from_probe_result(
        cls, endpoint: Endpoint, result: ProbeResult
    ) -> "ThroughputSample":
        mbps = result.total_bytes * 8 / 1e6 / result.elapsed
        return cls(
            label=endpoint.label,
            megabits_per_second=mbps,
            weight=float(result.iterations),
        )


class AggregateStat(BaseModel):
    """
    Weighted mean and standard deviation over all throughput samples.
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    stddev: float
