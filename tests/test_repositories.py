from unittest.mock import Mock

import pytest

from pdv.domain.errors import ApiError
from pdv.infra.repositories import CustomerApi, ProductApi, SaleCodeApi, _normalize_page


@pytest.mark.parametrize(
    "payload,names,pages",
    [
        ([{"nombre": "A"}, {"nombre": "B"}], ["A", "B"], 1),
        ({"items": [{"nombre": "A"}], "pagination": {"page": 1, "limit": 1, "total": 3}}, ["A"], 3),
        ({"clientes": [{"nombre": "A"}], "pagination": {"page": 2, "limit": 10, "total": 11, "pages": 2}}, ["A"], 2),
        ({"outra": "coisa"}, [], 1),
    ],
)
def test_normalize_page_shapes(payload, names, pages):
    rows, pag = _normalize_page(payload, ("clientes",), 1, 10)
    assert [r["nombre"] for r in rows] == names
    assert pag.pages == pages


def test_customers_204_is_empty_page():
    api = Mock()
    api.get.return_value = None
    items, pag = CustomerApi(api).list_customers(page=3, limit=5)
    assert items == []
    assert (pag.page, pag.limit, pag.total) == (3, 5, 0)


def test_customers_wrapped_in_data():
    api = Mock()
    api.get.return_value = {"data": {"clientes": [{"id": 9, "nombre": "Ana"}], "pagination": {"total": 1}}}
    items, _ = CustomerApi(api).list_customers()
    assert items[0].id == "9"
    assert api.get.call_args.kwargs["params"]["estado"] is None


@pytest.mark.parametrize(
    "body,expected",
    [("VTA-010", "VTA-010"), ({"data": {"codigo": "VTA-003"}}, "VTA-003"), ({"lastCode": None}, None), (None, None)],
)
def test_last_code_shapes(body, expected):
    api = Mock()
    api.get.return_value = body
    assert SaleCodeApi(api).last_code() == expected


def test_reserve_conflict_is_false_other_errors_propagate():
    api = Mock()
    api.post.side_effect = ApiError("ocupado", status_code=409)
    assert SaleCodeApi(api).reserve("VTA-001") is False
    api.post.side_effect = ApiError("falhou", status_code=500)
    with pytest.raises(ApiError):
        SaleCodeApi(api).reserve("VTA-001")


def test_products_prefer_sale_price():
    api = Mock()
    api.get.return_value = {"data": [{"id": "x", "code": "C1", "name": "Clip", "price": 10, "salePrice": 12, "stock": 4}]}
    [product] = ProductApi(api).list_products()
    assert product.price == 12
    assert product.stock == 4
