import pytest

from pdv.domain.errors import InvalidTransition, OutOfStock, ProductNotFound
from pdv.domain.models import Product


def test_catalog_loaded_from_api(terminal):
    assert len(terminal.catalog) == 3
    assert terminal.catalog.get("p1").price == 1500


def test_add_by_id_or_code(terminal):
    terminal.add("p1")
    terminal.add("LAP-001")
    assert terminal.cart.quantity_of("p1") == 2
    assert terminal.catalog.get("p1").stock == 8


def test_unknown_product(terminal):
    with pytest.raises(ProductNotFound) as exc:
        terminal.add("nao-existe")
    assert exc.value.ref == "nao-existe"
    assert "nao-existe" in exc.value.message
    with pytest.raises(ProductNotFound):
        terminal.set_quantity("nao-existe", 2)
    assert terminal.cart.is_empty


def test_out_of_stock_is_blocked(terminal):
    with pytest.raises(OutOfStock):
        terminal.add("p3")
    terminal.set_quantity("p2", 3)
    assert terminal.catalog.get("p2").stock == 0
    with pytest.raises(OutOfStock) as err:
        terminal.increment("p2")
    assert err.value.available == 3
    with pytest.raises(OutOfStock):
        terminal.set_quantity("p1", 11)
    assert terminal.cart.quantity_of("p1") == 0


def test_decrement_to_zero_removes(terminal):
    terminal.add("p1")
    terminal.decrement("p1")
    assert terminal.cart.is_empty
    assert terminal.catalog.get("p1").stock == 10


def test_cancel_sale_restores_stock_and_releases_code(terminal, backend):
    before = terminal.catalog.snapshot()
    terminal.add("p1")
    terminal.set_quantity("p2", 2)
    terminal.checkout.open()
    terminal.cancel_sale()
    assert terminal.cart.is_empty
    assert terminal.catalog.snapshot() == before
    assert backend.released == ["VTA-008"]
    assert terminal.checkout.session is None


def test_reload_catalog_with_items_is_refused(terminal):
    terminal.add("p1")
    with pytest.raises(InvalidTransition):
        terminal.load_catalog([Product(id="z", code="Z", name="Z")])


def test_load_local_catalog(terminal):
    n = terminal.load_catalog([Product(id="z", code="Z-1", name="Régua", price=2000, stock=1)])
    assert n == 1
    assert terminal.catalog.by_code("z-1").name == "Régua"
