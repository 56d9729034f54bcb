"""Tests for cellcalc.calc TableEvaluator."""

from __future__ import annotations

import logging

import pytest

from cellcalc.calc import (
    CalcEngine,
    CycleDetected,
    DanglingReference,
    EvaluationFailure,
    TableEvaluator,
    UnknownCell,
    evaluate_arithmetic,
)


def _calculate(table: dict[tuple[int, int], str]) -> dict[tuple[int, int], str]:
    ev = TableEvaluator()
    ev.load(table)
    return ev.calculate()


class CountingArithmetic:
    """Wraps the arithmetic evaluator and records every expression it sees."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, expression: str) -> float:
        self.calls.append(expression)
        return evaluate_arithmetic(expression)


class TestLoadAndCalculate:
    def test_simple_reference(self) -> None:
        assert _calculate({(0, 0): "3", (0, 1): "a1+2"}) == {(0, 0): "3", (0, 1): "5"}

    def test_calculate_before_load(self) -> None:
        with pytest.raises(RuntimeError, match="load"):
            TableEvaluator().calculate()

    def test_results_row_major(self) -> None:
        solved = _calculate({(1, 0): "1", (0, 1): "2", (0, 0): "3"})
        assert list(solved) == [(0, 0), (0, 1), (1, 0)]

    def test_forward_reference_chain(self) -> None:
        solved = _calculate({(0, 0): "a2 * 2", (1, 0): "a3 + 1", (2, 0): "4"})
        assert solved == {(0, 0): "10", (1, 0): "5", (2, 0): "4"}

    def test_fractional_result(self) -> None:
        solved = _calculate({(0, 0): "1", (0, 1): "a1 / 4"})
        assert solved[(0, 1)] == "0.25"

    def test_negative_value_substituted(self) -> None:
        solved = _calculate({(0, 0): "-3", (0, 1): "5-a1", (0, 2): "a1*a1"})
        assert solved == {(0, 0): "-3", (0, 1): "8", (0, 2): "9"}

    def test_upper_case_reference(self) -> None:
        solved = _calculate({(0, 0): "7", (0, 1): "A1 - 2"})
        assert solved[(0, 1)] == "5"

    def test_protocol(self) -> None:
        assert isinstance(TableEvaluator(), CalcEngine)


class TestMemoization:
    def test_shared_dependency_evaluated_once(self) -> None:
        counter = CountingArithmetic()
        ev = TableEvaluator(arithmetic=counter)
        ev.load({(0, 0): "2", (0, 1): "a1+a1", (0, 2): "b1+a1"})
        solved = ev.calculate()
        assert solved == {(0, 0): "2", (0, 1): "4", (0, 2): "6"}
        assert counter.calls == ["2", "2+2", "4+2"]

    def test_calculate_twice_reuses_memo(self) -> None:
        counter = CountingArithmetic()
        ev = TableEvaluator(arithmetic=counter)
        ev.load({(0, 0): "2", (0, 1): "a1*3"})
        first = ev.calculate()
        assert ev.calculate() == first
        assert len(counter.calls) == 2

    def test_load_resets_memo(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "1"})
        ev.calculate()
        ev.load({(0, 0): "2"})
        assert ev.calculate() == {(0, 0): "2"}


class TestEmptyCells:
    def test_blank_is_zero(self) -> None:
        assert _calculate({(0, 0): ""}) == {(0, 0): "0"}

    def test_blank_as_dependency(self) -> None:
        solved = _calculate({(0, 0): "", (0, 1): "a1+5"})
        assert solved == {(0, 0): "0", (0, 1): "5"}

    def test_whitespace_only(self) -> None:
        solved = _calculate({(0, 0): "   ", (0, 1): "a1-1"})
        assert solved == {(0, 0): "0", (0, 1): "-1"}


class TestErrorIsolation:
    def test_malformed_cell(self) -> None:
        solved = _calculate({(0, 0): "1", (0, 1): "a1 + 1", (0, 23): "1 + )"})
        assert solved == {(0, 0): "1", (0, 1): "2", (0, 23): "#ERR"}

    def test_failed_dependency_propagates(self) -> None:
        solved = _calculate({(0, 0): "1 + )", (0, 1): "a1 + 1", (0, 2): "3"})
        assert solved == {(0, 0): "#ERR", (0, 1): "#ERR", (0, 2): "3"}

    def test_division_by_zero(self) -> None:
        solved = _calculate({(0, 0): "0", (0, 1): "1 / a1"})
        assert solved[(0, 1)] == "#ERR"

    def test_dangling_reference(self) -> None:
        solved = _calculate({(0, 0): "z9 + 1", (0, 1): "2", (0, 2): "a1"})
        assert solved == {(0, 0): "#ERR", (0, 1): "2", (0, 2): "#ERR"}

    def test_invalid_reference(self) -> None:
        solved = _calculate({(0, 0): "a0 + 1", (0, 1): "2"})
        assert solved == {(0, 0): "#ERR", (0, 1): "2"}

    def test_text_cell(self) -> None:
        solved = _calculate({(0, 0): "hello", (0, 1): "4"})
        assert solved == {(0, 0): "#ERR", (0, 1): "4"}

    def test_failure_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="cellcalc"):
            _calculate({(0, 0): "1 + )"})
        assert "a1" in caplog.text
        assert "1 + )" in caplog.text


class TestCycles:
    def test_cycle_does_not_block_unrelated(self) -> None:
        solved = _calculate({(0, 0): "b1", (0, 1): "a1", (0, 2): "5"})
        assert solved == {(0, 0): "#ERR", (0, 1): "#ERR", (0, 2): "5"}

    def test_self_reference(self) -> None:
        assert _calculate({(0, 0): "a1 + 1"}) == {(0, 0): "#ERR"}

    def test_dependent_of_cycle(self) -> None:
        solved = _calculate({(0, 0): "b1", (0, 1): "a1", (1, 0): "a1 + 1", (1, 1): "7"})
        assert solved == {(0, 0): "#ERR", (0, 1): "#ERR", (1, 0): "#ERR", (1, 1): "7"}

    def test_bypassing_cycle_check_is_fatal(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "a1"})
        with pytest.raises(RuntimeError, match="escaped cycle detection"):
            ev.evaluate_cell((0, 0))


class TestDeepTables:
    def test_long_sum_in_one_cell(self) -> None:
        solved = _calculate({(0, 0): " + ".join(["1"] * 1200), (0, 1): "7"})
        assert solved == {(0, 0): "1200", (0, 1): "7"}

    def test_deep_parentheses_contained(self) -> None:
        deep = "(" * 1500 + "1" + ")" * 1500
        solved = _calculate({(0, 0): deep, (0, 1): "a1 + 1", (0, 2): "7"})
        assert solved == {(0, 0): "#ERR", (0, 1): "#ERR", (0, 2): "7"}

    def test_running_total_referencing_rows_below(self) -> None:
        """Each row reads the next row down, so row-major order starts at the top."""
        rows = 2000
        table = {(row, 0): f"a{row + 2} + 1" for row in range(rows - 1)}
        table[(rows - 1, 0)] = "1"
        solved = _calculate(table)
        assert solved[(0, 0)] == str(rows)
        assert solved[(rows - 1, 0)] == "1"

    def test_recursion_error_stays_with_cell(self) -> None:
        def arithmetic(expression: str) -> float:
            if expression == "9":
                raise RecursionError("maximum recursion depth exceeded")
            return evaluate_arithmetic(expression)

        ev = TableEvaluator(arithmetic=arithmetic)
        ev.load({(0, 0): "9", (0, 1): "a1", (0, 2): "3"})
        assert ev.calculate() == {(0, 0): "#ERR", (0, 1): "#ERR", (0, 2): "3"}
        assert ev.result().failures[(0, 0)].kind == "EvaluationFailure"


class TestEvaluateCell:
    def test_unknown_cell(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "1"})
        with pytest.raises(UnknownCell):
            ev.evaluate_cell((5, 5))
        assert (5, 5) not in ev.calculate()

    def test_failure_recorded_before_raise(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "2 *", (0, 1): "a1"})
        with pytest.raises(EvaluationFailure) as exc_info:
            ev.evaluate_cell((0, 1))
        assert "a1" in str(exc_info.value)
        assert ev.calculate() == {(0, 0): "#ERR", (0, 1): "#ERR"}

    def test_failure_carries_dereferenced_expression(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "4", (0, 1): "a1 +"})
        with pytest.raises(EvaluationFailure) as exc_info:
            ev.evaluate_cell((0, 1))
        assert exc_info.value.expression == "4 +"
        assert exc_info.value.index == (0, 1)

    def test_cached_failure_raises_again(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "z1"})
        ev.calculate()
        with pytest.raises(DanglingReference):
            ev.evaluate_cell((0, 0))


class TestResult:
    def test_failures_reported(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "b1", (0, 1): "a1", (0, 2): "1 + )", (0, 3): "8"})
        result = ev.result()
        assert result.solved[(0, 3)] == "8"
        assert result.total_cells == 4
        assert result.error_cells == 3
        assert result.failures[(0, 0)].kind == CycleDetected.__name__
        assert result.failures[(0, 2)].kind == "EvaluationFailure"
        assert result.failures[(0, 2)].reference == "c1"

    def test_clean_table(self) -> None:
        ev = TableEvaluator()
        ev.load({(0, 0): "1"})
        result = ev.result()
        assert result.failures == {}
        assert result.error_cells == 0
