"""Tests for shellbench.bench.compare — relative speed analysis."""

from __future__ import annotations

import math
import unittest

from shellbench.bench.compare import compute_relative_speeds, fastest_result, sort_by_mean

from bench_test_helpers import make_stub_result


class TestComputeRelativeSpeeds(unittest.TestCase):
    def test_three_commands(self) -> None:
        results = [
            make_stub_result("one", 1.0, 0.1),
            make_stub_result("two", 2.0, 0.2),
            make_stub_result("four", 4.0, 0.4),
        ]
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        self.assertEqual([a.relative_speed for a in annotated], [1.0, 2.0, 4.0])
        expected = 2.0 * math.sqrt((0.2 / 2.0) ** 2 + (0.1 / 1.0) ** 2)
        self.assertAlmostEqual(annotated[1].relative_speed_stddev, expected)
        self.assertAlmostEqual(annotated[1].relative_speed_stddev, 0.283, places=3)
        self.assertTrue(annotated[0].is_fastest)
        self.assertFalse(annotated[1].is_fastest)

    def test_fastest_is_exactly_one(self) -> None:
        results = [
            make_stub_result("slow", 0.3, 0.01),
            make_stub_result("fast", 0.1, 0.01),
            make_stub_result("mid", 0.2, 0.01),
        ]
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        self.assertEqual(annotated[1].relative_speed, 1.0)
        for a in annotated:
            self.assertGreaterEqual(a.relative_speed, 1.0)

    def test_input_order_preserved(self) -> None:
        results = [make_stub_result("b", 0.2, 0.0), make_stub_result("a", 0.1, 0.0)]
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        self.assertEqual([a.result.command for a in annotated], ["b", "a"])

    def test_zero_mean_fastest_not_computable(self) -> None:
        results = [make_stub_result("zero", 0.0, 0.0), make_stub_result("x", 0.5, 0.1)]
        self.assertIsNone(compute_relative_speeds(results))

    def test_tiny_nonzero_mean_is_computable(self) -> None:
        results = [make_stub_result("tiny", 1e-9, None), make_stub_result("x", 0.5, 0.1)]
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        self.assertAlmostEqual(annotated[1].relative_speed, 0.5e9)

    def test_missing_stddev_gives_no_ratio_stddev(self) -> None:
        results = [make_stub_result("a", 1.0, None), make_stub_result("b", 2.0, 0.2)]
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        self.assertIsNone(annotated[0].relative_speed_stddev)
        self.assertIsNone(annotated[1].relative_speed_stddev)

    def test_single_result(self) -> None:
        annotated = compute_relative_speeds([make_stub_result("only", 0.4, 0.02)])
        assert annotated is not None
        self.assertEqual(annotated[0].relative_speed, 1.0)
        self.assertTrue(annotated[0].is_fastest)

    def test_empty(self) -> None:
        self.assertEqual(compute_relative_speeds([]), [])

    def test_tie_first_wins(self) -> None:
        results = [make_stub_result("first", 0.1, 0.0), make_stub_result("second", 0.1, 0.0)]
        self.assertIs(fastest_result(results), results[0])
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        self.assertTrue(annotated[0].is_fastest)
        self.assertFalse(annotated[1].is_fastest)
        self.assertEqual(annotated[1].relative_speed, 1.0)


class TestSortByMean(unittest.TestCase):
    def test_sorted_stable(self) -> None:
        results = [
            make_stub_result("c", 0.3, 0.0),
            make_stub_result("a1", 0.1, 0.0),
            make_stub_result("a2", 0.1, 0.0),
        ]
        annotated = compute_relative_speeds(results)
        assert annotated is not None
        ordered = sort_by_mean(annotated)
        self.assertEqual([a.result.command for a in ordered], ["a1", "a2", "c"])


if __name__ == "__main__":
    unittest.main()
