import threading
import unittest
from unittest.mock import Mock, call

from sql_forwarder.core.backoff import SAFE_INTERVAL_MS, BackoffController


class TestBackoffController(unittest.TestCase):

    def test_failures_double_up_to_maximum_and_success_resets(self):
        backoff = BackoffController(1000, 8000)
        observed = [backoff.current_interval_ms]
        for _ in range(3):
            backoff.on_failure()
            observed.append(backoff.current_interval_ms)
        self.assertEqual(observed, [1000, 2000, 4000, 8000])

        backoff.on_failure()
        self.assertEqual(backoff.current_interval_ms, 8000)

        backoff.on_success()
        self.assertEqual(backoff.current_interval_ms, 1000)

    def test_maximum_not_a_power_of_two(self):
        backoff = BackoffController(1000, 5000)
        values = []
        for _ in range(5):
            values.append(backoff.on_failure())
        self.assertEqual(values, [2000, 4000, 5000, 5000, 5000])

    def test_listener_sees_every_change(self):
        listener = Mock()
        backoff = BackoffController(1000, 4000, listener=listener)
        backoff.on_success()
        backoff.on_failure()
        backoff.on_failure()
        backoff.on_failure()
        backoff.on_success()
        self.assertEqual(listener.call_args_list, [call(2000), call(4000), call(1000)])

    def test_listener_failure_falls_back_to_safe_interval(self):
        listener = Mock(side_effect=[RuntimeError("timer gone"), None])
        backoff = BackoffController(1000, 8000, listener=listener)

        backoff.on_failure()

        self.assertEqual(backoff.current_interval_ms, SAFE_INTERVAL_MS)
        self.assertEqual(listener.call_args_list, [call(2000), call(SAFE_INTERVAL_MS)])

    def test_success_after_fallback_restores_base(self):
        listener = Mock(side_effect=[RuntimeError("timer gone"), None, None])
        backoff = BackoffController(1000, 8000, listener=listener)
        backoff.on_failure()
        backoff.on_success()
        self.assertEqual(backoff.current_interval_ms, 1000)

    def test_concurrent_failures_stay_bounded(self):
        backoff = BackoffController(10, 640)
        threads = [threading.Thread(target=backoff.on_failure) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(backoff.current_interval_ms, 640)

    def test_invalid_bounds(self):
        with self.assertRaises(ValueError):
            BackoffController(0, 100)
        with self.assertRaises(ValueError):
            BackoffController(1000, 500)


if __name__ == "__main__":
    unittest.main()
