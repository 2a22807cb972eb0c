import asyncio
import inspect
import unittest

from core.profiler import Profiler


class Sample:
    @Profiler.profile
    def add(self, a, b):
        return a + b

    @Profiler.profile
    async def add_later(self, a, b):
        await asyncio.sleep(0)
        return a + b

    @Profiler.profile
    async def fail(self):
        raise RuntimeError("boom")


class TestProfiler(unittest.IsolatedAsyncioTestCase):
    async def test_sync_call_is_timed(self):
        with self.assertLogs("core.profiler", level="DEBUG") as logs:
            self.assertEqual(Sample().add(1, 2), 3)
        self.assertIn("Sample.add took", logs.output[0])

    async def test_async_call_is_timed(self):
        with self.assertLogs("core.profiler", level="DEBUG") as logs:
            self.assertEqual(await Sample().add_later(2, 3), 5)
        self.assertIn("Sample.add_later took", logs.output[0])

    async def test_failure_is_logged_and_raised(self):
        with self.assertLogs("core.profiler", level="DEBUG") as logs:
            with self.assertRaises(RuntimeError):
                await Sample().fail()
        self.assertIn("Sample.fail failed after", logs.output[0])

    def test_wraps_preserve_metadata(self):
        self.assertEqual(Sample.add.__name__, "add")
        self.assertTrue(inspect.iscoroutinefunction(Sample.add_later))


if __name__ == "__main__":
    unittest.main()
