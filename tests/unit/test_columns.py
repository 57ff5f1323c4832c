from __future__ import annotations

import pytest

from order_intake.models.config_models import ColumnKeywords, FieldRole
from order_intake.validation.columns import MissingColumnsError, resolve_columns
from order_intake.validation.headers import normalize_headers


def test_resolve_columns_basic():
    headers = normalize_headers(["SKU", "Cantidad Solicitada", "Precio Unitario"])
    columns = resolve_columns(headers, ColumnKeywords())
    assert columns.product_code == (0,)
    assert columns.quantity == (1,)
    assert columns.price == (2,)


def test_resolve_columns_keeps_every_match_in_header_order():
    headers = normalize_headers(["Descripcion", "Codigo Producto", "SKU", "Cant", "Valor", "Precio"])
    columns = resolve_columns(headers, ColumnKeywords())
    assert columns.product_code == (1, 2)
    assert columns.quantity == (3,)
    assert columns.price == (4, 5)


def test_one_column_may_serve_several_roles():
    # "cantidad solicitada" / "precio unitario" style overlap: "unitario" and "cant" in one header
    headers = normalize_headers(["SKU", "Cant. x Precio Unitario"])
    columns = resolve_columns(headers, ColumnKeywords())
    assert columns.quantity == (1,)
    assert columns.price == (1,)


def test_resolve_columns_missing_quantity():
    headers = normalize_headers(["SKU", "Descripcion", "Precio"])
    with pytest.raises(MissingColumnsError) as e:
        resolve_columns(headers, ColumnKeywords())
    assert e.value.missing == [FieldRole.QUANTITY]
    assert "quantity" in str(e.value)


def test_resolve_columns_reports_all_missing_roles():
    with pytest.raises(MissingColumnsError) as e:
        resolve_columns(normalize_headers(["foo", "bar"]), ColumnKeywords())
    assert e.value.missing == [FieldRole.PRODUCT_CODE, FieldRole.QUANTITY, FieldRole.PRICE]


def test_equivalent_spellings_resolve_identically():
    a = resolve_columns(normalize_headers(["Código Producto", "CANT.", "Precio-Unitario"]), ColumnKeywords())
    b = resolve_columns(normalize_headers(["codigo producto", "cant", "precio unitario"]), ColumnKeywords())
    assert a == b


def test_synthetic_keywords():
    keywords = ColumnKeywords(product_code=("ref",), quantity=("qty",), price=("amount",))
    columns = resolve_columns(normalize_headers(["Qty", "Ref", "Amount"]), keywords)
    assert (columns.product_code, columns.quantity, columns.price) == ((1,), (0,), (2,))


def test_keywords_must_not_be_empty():
    with pytest.raises(ValueError):
        ColumnKeywords(quantity=())
