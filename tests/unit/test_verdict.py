from __future__ import annotations

from unittest.mock import patch

import pytest

from order_intake.models.config_models import ColumnKeywords, ValidationRules
from order_intake.models.order_record import OrderStatus
from order_intake.validation import rows as rows_module
from order_intake.validation.columns import MissingColumnsError
from order_intake.validation.verdict import EmptySheetError, data_rows, evaluate_sheet

HEADER_A = ["SKU", "Cantidad Solicitada", "Precio Unitario"]


def test_scenario_a_approved():
    verdict = evaluate_sheet([HEADER_A, ["1234567", "10", "5.50"]])
    assert verdict.status is OrderStatus.APPROVED
    assert verdict.approved
    assert verdict.rows_evaluated == 1
    assert verdict.first_failure is None


def test_scenario_b_non_digit_code():
    verdict = evaluate_sheet([HEADER_A, ["12AB34", "10", "5.50"]])
    assert verdict.status is OrderStatus.ERROR
    assert verdict.first_failure.failed_checks == ["code"]


def test_scenario_c_variant_suffix():
    verdict = evaluate_sheet([["Codigo Producto", "Cant", "Valor"], ["00012345/2", "3", "0"]])
    assert verdict.status is OrderStatus.APPROVED
    assert verdict.outcomes[0].code == "00012345"


def test_scenario_d_header_only():
    with pytest.raises(EmptySheetError):
        evaluate_sheet([HEADER_A])


def test_empty_sheet():
    with pytest.raises(EmptySheetError):
        evaluate_sheet([])


def test_blank_rows_only_is_error():
    verdict = evaluate_sheet([HEADER_A, [None, None, None]])
    assert verdict.status is OrderStatus.ERROR
    assert verdict.first_failure.failed_checks == ["code", "quantity", "price"]


def test_scenario_e_missing_quantity_column():
    with pytest.raises(MissingColumnsError):
        evaluate_sheet([["SKU", "Descripcion", "Precio"], ["1234567", "Tornillo", "5"]])


def test_empty_sheet_checked_before_columns():
    # no data rows wins over unusable headers
    with pytest.raises(EmptySheetError):
        evaluate_sheet([["foo", "bar"]])


def test_short_circuit_stops_at_first_failure():
    sheet = [
        HEADER_A,
        ["1234567", "1", "1"],
        ["1234568", "1", "1"],
        ["bad", "1", "1"],
        ["1234569", "1", "1"],
    ]
    with patch("order_intake.validation.verdict.validate_row", wraps=rows_module.validate_row) as spy:
        verdict = evaluate_sheet(sheet)
    assert spy.call_count == 3
    assert verdict.rows_evaluated == 3
    assert verdict.status is OrderStatus.ERROR
    assert verdict.first_failure.row_number == 4


def test_exhaustive_mode_evaluates_every_row():
    sheet = [HEADER_A, ["bad", "1", "1"], ["1234567", "0", "1"], ["1234567", "1", "1"]]
    verdict = evaluate_sheet(sheet, rules=ValidationRules(stop_at_first_failure=False))
    assert verdict.status is OrderStatus.ERROR
    assert verdict.rows_evaluated == 3
    assert [o.passed for o in verdict.outcomes] == [False, False, True]
    assert verdict.first_failure.row_number == 2


def test_blank_row_between_valid_rows_fails_order():
    sheet = [HEADER_A, ["1234567", "10", "5.50"], [None, None, None], ["1234568", "1", "1"]]
    verdict = evaluate_sheet(sheet)
    assert verdict.status is OrderStatus.ERROR
    assert verdict.rows_evaluated == 2
    assert verdict.first_failure.row_number == 3
    assert verdict.first_failure.code == ""


def test_empty_string_row_is_validated():
    verdict = evaluate_sheet([HEADER_A, ["", "", ""]], rules=ValidationRules(stop_at_first_failure=False))
    assert verdict.rows_evaluated == 1
    assert not verdict.approved


def test_partially_blank_row_is_validated():
    verdict = evaluate_sheet([HEADER_A, ["1234567", None, None]])
    assert verdict.status is OrderStatus.ERROR


def test_fallback_between_duplicate_code_columns():
    sheet = [
        ["SKU", "Codigo Producto", "Cantidad", "Precio"],
        ["1234567", None, "1", "2"],
        [None, "7654321", "1", "2"],
    ]
    assert evaluate_sheet(sheet).approved


def test_revalidation_is_idempotent():
    sheet = [HEADER_A, ["1234567", "10", "5.50"], ["12AB34", "1", "1"]]
    first = evaluate_sheet(sheet)
    second = evaluate_sheet(sheet)
    assert first == second
    assert first.status is OrderStatus.ERROR


def test_synthetic_keywords_and_rules():
    keywords = ColumnKeywords(product_code=("ref",), quantity=("qty",), price=("amount",))
    rules = ValidationRules(code_min_digits=3, code_max_digits=3)
    verdict = evaluate_sheet([["Ref", "Qty", "Amount"], ["123", "1", "0"]], keywords, rules)
    assert verdict.approved


def test_data_rows_numbering():
    rows = data_rows([["h"], ["a"], [None], ["b"]])
    assert [n for n, _ in rows] == [2, 3, 4]


def test_huge_integer_quantity_fails_row_without_raising():
    verdict = evaluate_sheet([HEADER_A, ["1234567", 10**400, "1"]])
    assert verdict.status is OrderStatus.ERROR
    assert verdict.first_failure.failed_checks == ["quantity"]
