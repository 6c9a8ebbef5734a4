import random

import pytest

from pdv.domain.cart import CartStore
from pdv.domain.models import Product
from pdv.domain.stock import ProductCatalog, StockReconciler


@pytest.fixture
def setup():
    catalog = ProductCatalog([
        Product(id="p1", code="LAP-001", name="Lápiz HB", price=1500, stock=10),
        Product(id="p2", code="CUA-100", name="Cuaderno", price=5000, stock=3),
    ])
    cart = CartStore()
    reconciler = StockReconciler(catalog)
    reconciler.attach(cart)
    return catalog, cart, reconciler


def _invariant(catalog, cart, initial):
    for pid, stock in initial.items():
        assert catalog.get(pid).stock + cart.quantity_of(pid) == stock


def test_add_holds_stock(setup):
    catalog, cart, _ = setup
    cart.add_item(catalog.get("p1"))
    cart.add_item(catalog.get("p1"))
    assert catalog.get("p1").stock == 8


def test_stock_plus_cart_is_constant_under_random_operations(setup):
    catalog, cart, _ = setup
    initial = catalog.snapshot()
    rnd = random.Random(42)
    for _ in range(200):
        pid = rnd.choice(["p1", "p2"])
        op = rnd.choice(["add", "update", "remove"])
        if op == "add":
            cart.add_item(catalog.get(pid))
        elif op == "update":
            cart.update_quantity(pid, rnd.randint(0, 5))
        else:
            cart.remove_item(pid)
        _invariant(catalog, cart, initial)


def test_restore_returns_full_quantities(setup):
    catalog, cart, reconciler = setup
    initial = catalog.snapshot()
    cart.add_item(catalog.get("p1"))
    cart.update_quantity("p1", 4)
    cart.add_item(catalog.get("p2"))
    reconciler.restore(cart)
    assert cart.is_empty
    assert catalog.snapshot() == initial


def test_detach_stops_mirroring(setup):
    catalog, cart, reconciler = setup
    reconciler.detach()
    cart.add_item(catalog.get("p1"))
    assert catalog.get("p1").stock == 10


def test_catalog_search_by_name_or_code_case_insensitive(setup):
    catalog, _, _ = setup
    assert [p.id for p in catalog.search("lápiz")] == ["p1"]
    assert [p.id for p in catalog.search("cua-1")] == ["p2"]
    assert catalog.search("   ") == []
    assert catalog.by_code("lap-001").id == "p1"
