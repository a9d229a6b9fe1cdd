from __future__ import annotations

import unittest

from newsroom.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    reset_telemetry,
    snapshot_counters,
    time_block,
)


class TelemetryTests(unittest.TestCase):
    def setUp(self):
        reset_telemetry()

    def test_time_block_appends_ms_suffix(self):
        metric_name = "learning.suggestions.latency"

        with time_block(metric_name):
            pass

        stats = get_latency_stats(metric_name)
        self.assertEqual(stats["count"], 1)
        self.assertGreaterEqual(stats["p95"], 0.0)
        self.assertEqual(get_latency_stats(f"{metric_name}_ms")["count"], 1)

    def test_time_block_records_on_error(self):
        with self.assertRaises(RuntimeError), time_block("learning.metrics_ms"):
            raise RuntimeError("boom")

        self.assertEqual(get_latency_stats("learning.metrics_ms")["count"], 1)

    def test_empty_latency_stats(self):
        self.assertEqual(get_latency_stats("never.latency")["count"], 0)

    def test_counter_increments(self):
        before = counter("test.counter", 0)
        counter("test.counter")
        after = counter("test.counter", 0)
        self.assertEqual(after, before + 1)

    def test_reset_clears_counters(self):
        counter("learning.corrections", 3)
        self.assertEqual(snapshot_counters(), {"learning.corrections": 3})

        reset_telemetry()

        self.assertEqual(get_counter("learning.corrections"), 0)


if __name__ == "__main__":
    unittest.main()
