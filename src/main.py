import argparse
import asyncio
import logging
import sys

import httpx

from config.config import Config
from config.logging_config import setup_logging
from contracts.probe_result import ProbeBudget
from core.benchmark_orchestrator import BenchmarkOrchestrator
from core.console_reporter import ConsoleReporter
from core.errors import FastProbeError
from core.fast_api_client import FastApiClient
from core.metrics_reporter import MetricsReporter
from core.throughput_prober import ThroughputProber

logger = logging.getLogger(__name__)


def positive_int(value):
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return n


def positive_float(value):
    x = float(value)
    if x <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return x


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fastprobe",
        description="Measure download throughput against fast.com targets.",
    )
    parser.add_argument(
        "--token", default=Config.FAST_API_TOKEN, help="api.fast.com access token"
    )
    parser.add_argument(
        "--urls",
        type=positive_int,
        default=Config.FAST_URL_COUNT,
        help="number of URLs to try",
    )
    parser.add_argument(
        "--user-agent", default=Config.FAST_USER_AGENT, help="user agent to use"
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=Config.FAST_WORKERS,
        help="parallel downloads per endpoint",
    )
    parser.add_argument(
        "--duration",
        type=positive_float,
        default=Config.FAST_DURATION_SECONDS,
        help="seconds the measuring pass should fill per endpoint",
    )
    parser.add_argument(
        "--iterations",
        type=positive_int,
        default=None,
        help="fixed download count per endpoint (skips calibration)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="print Prometheus metrics when the run finishes",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="be verbose")
    return parser


def build_budget(args) -> ProbeBudget:
    return ProbeBudget(
        duration=args.duration,
        iterations=args.iterations,
        max_iterations=Config.FAST_MAX_ITERATIONS,
        calibration_fraction=Config.FAST_CALIBRATION_FRACTION,
    )


async def run(args, stream=None, transport=None) -> int:
    console = ConsoleReporter(stream=stream)
    reporters = [console]
    metrics = None
    if args.metrics:
        metrics = MetricsReporter()
        reporters.append(metrics)

    timeout = httpx.Timeout(Config.FAST_HTTP_TIMEOUT)
    limits = httpx.Limits(max_connections=max(args.workers, 1))
    async with httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        follow_redirects=True,
        transport=transport,
    ) as client:
        source = FastApiClient(
            client,
            token=args.token,
            url_count=args.urls,
            user_agent=args.user_agent,
        )
        fast_config = await source.load()
        if args.verbose:
            console.report_client(fast_config.client)

        endpoints = fast_config.endpoints()
        if not endpoints:
            logger.error("api.fast.com returned no targets")
            return 1

        orchestrator = BenchmarkOrchestrator(
            ThroughputProber(client, uniform_size=Config.FAST_UNIFORM_SIZE),
            budget=build_budget(args),
            reporters=reporters,
        )
        await orchestrator.benchmark(endpoints, args.workers)

    if metrics is not None:
        console.stream.write(metrics.exposition())
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level="INFO" if args.verbose else None)
    try:
        return asyncio.run(run(args))
    except FastProbeError as e:
        print(f"fastprobe: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("fastprobe: interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
