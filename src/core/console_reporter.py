import sys
from typing import Optional, TextIO

from abstractions.reporter import Reporter
from contracts.fast_config import ClientInfo
from contracts.probe_result import AggregateStat, ThroughputSample

COLUMN_WIDTH = 20
PADDING = 3


class ConsoleReporter(Reporter):
    """
    Prints a three-column table: server, iteration count and Mbit/s, followed
    by the weighted mean and standard deviation.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        banner_stream: Optional[TextIO] = None,
    ):
        self.stream = stream or sys.stdout
        self.banner_stream = banner_stream or sys.stderr
        self._header_written = False

    @staticmethod
    def _row(*cells) -> str:
        width = COLUMN_WIDTH + PADDING
        head = "".join(f"{cell:<{width}}" for cell in cells[:-1])
        return f"{head}{cells[-1]}".rstrip()

    def _write(self, line: str):
        self.stream.write(line + "\n")
        self.stream.flush()

    def _ensure_header(self):
        if not self._header_written:
            self._write(self._row("server", "# iters", "speed (Mbit/s)"))
            self._header_written = True

    def report_client(self, client: ClientInfo):
        isp = client.isp or "???"
        self.banner_stream.write(f"Testing from {isp} ({client.ip})...\n\n")
        self.banner_stream.flush()

    def report_sample(self, sample: ThroughputSample):
        self._ensure_header()
        self._write(
            self._row(
                sample.label,
                str(sample.iterations),
                f"{sample.megabits_per_second:.3f}",
            )
        )

    def report_aggregate(self, stat: AggregateStat):
        self._ensure_header()
        self._write(self._row("", "", f"{stat.mean:.3f} ±{stat.stddev:.3f}"))
