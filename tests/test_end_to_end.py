import io
import unittest

import httpx
from fastapi import FastAPI, Response

from contracts.endpoint import Endpoint
from contracts.probe_result import ProbeBudget
from core.benchmark_orchestrator import BenchmarkOrchestrator
from core.console_reporter import ConsoleReporter
from core.errors import TransferFailure
from core.metrics_reporter import MetricsReporter
from core.throughput_prober import ThroughputProber


def create_speedtest_app():
    app = FastAPI()
    app.state.downloads = 0

    @app.get("/speedtest/{size}")
    async def speedtest(size: int):
        app.state.downloads += 1
        return Response(content=b"\0" * size, media_type="application/octet-stream")

    @app.get("/broken")
    async def broken():
        return Response(content=b"unavailable", status_code=503)

    return app


class TestEndToEnd(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.app = create_speedtest_app()
        self.client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.app), base_url="http://testserver"
        )
        self.out = io.StringIO()
        self.metrics = MetricsReporter()

    async def asyncTearDown(self):
        await self.client.aclose()

    def _orchestrator(self, budget):
        return BenchmarkOrchestrator(
            ThroughputProber(self.client),
            budget=budget,
            reporters=[ConsoleReporter(stream=self.out), self.metrics],
        )

    async def test_benchmark_against_fixed_size_payloads(self):
        endpoints = [
            Endpoint(url="http://testserver/speedtest/4096", label="small"),
            Endpoint(url="http://testserver/speedtest/16384", label="large"),
        ]
        orchestrator = self._orchestrator(ProbeBudget(iterations=6))
        samples, stat = await orchestrator.benchmark(endpoints, 3)

        self.assertEqual([s.label for s in samples], ["small", "large"])
        self.assertEqual([s.iterations for s in samples], [6, 6])
        self.assertEqual(self.app.state.downloads, 12)
        values = [s.megabits_per_second for s in samples]
        self.assertGreater(min(values), 0)
        self.assertGreaterEqual(stat.mean, min(values))
        self.assertLessEqual(stat.mean, max(values))

        table = self.out.getvalue()
        self.assertIn("small", table)
        self.assertIn("large", table)
        self.assertIn("±", table)
        self.assertIn('endpoint="large"', self.metrics.exposition())

    async def test_calibrated_benchmark(self):
        endpoints = [Endpoint(url="http://testserver/speedtest/1024", label="one")]
        orchestrator = self._orchestrator(
            ProbeBudget(duration=0.05, max_iterations=25)
        )
        samples, stat = await orchestrator.benchmark(endpoints, 2)
        self.assertGreaterEqual(samples[0].iterations, 1)
        self.assertLessEqual(samples[0].iterations, 25)
        self.assertEqual(stat.stddev, 0)

    async def test_broken_endpoint_aborts_run(self):
        endpoints = [
            Endpoint(url="http://testserver/speedtest/64", label="ok"),
            Endpoint(url="http://testserver/broken", label="broken"),
            Endpoint(url="http://testserver/speedtest/64", label="never"),
        ]
        orchestrator = self._orchestrator(ProbeBudget(iterations=2))
        with self.assertRaises(TransferFailure):
            await orchestrator.benchmark(endpoints, 2)
        self.assertIn("ok", self.out.getvalue())
        self.assertNotIn("never", self.out.getvalue())
        self.assertNotIn("±", self.out.getvalue())


if __name__ == "__main__":
    unittest.main()
