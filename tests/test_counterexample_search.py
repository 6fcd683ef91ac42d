"""Runs the random counterexample search as part of the suite."""
from __future__ import annotations

import random

from validation.counterexample_search import (
    SearchReport,
    random_expression,
    run_search,
)


class TestCounterexampleSearch:

    def test_no_counterexamples(self):
        report = run_search(seed=0, count=100)
        assert report.passed, report.summary()
        assert report.checks_run == 500

    def test_random_expression_is_reproducible(self):
        first = random_expression(random.Random(7))
        second = random_expression(random.Random(7))
        assert first == second

    def test_empty_report_summary(self):
        assert "No counterexamples found" in SearchReport().summary()
