import pytest

from pdv.domain.cart import CartStore
from pdv.domain.models import Customer, Product


@pytest.fixture
def caneta():
    return Product(id="p1", code="CAN-01", name="Caneta", price=5000, stock=10)


@pytest.fixture
def caderno():
    return Product(id="p2", code="CAD-01", name="Caderno", price=1200, stock=4)


def _expected_total(cart):
    return sum(i.product.price * i.quantity for i in cart.items)


def test_add_same_product_twice_increments_quantity(caneta):
    cart = CartStore()
    cart.add_item(caneta)
    cart.add_item(caneta)
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 2
    assert cart.total == 10000


def test_total_follows_every_mutation(caneta, caderno):
    cart = CartStore()
    cart.add_item(caneta)
    cart.add_item(caderno)
    assert cart.total == _expected_total(cart) == 6200
    cart.update_quantity("p2", 3)
    assert cart.total == _expected_total(cart) == 8600
    cart.remove_item("p1")
    assert cart.total == _expected_total(cart) == 3600
    assert cart.count == 3


def test_update_to_zero_is_remove(caneta, caderno):
    a, b = CartStore(), CartStore()
    for cart in (a, b):
        cart.add_item(caneta)
        cart.add_item(caderno)
    a.update_quantity("p1", 0)
    b.remove_item("p1")
    assert [i.product.id for i in a.items] == [i.product.id for i in b.items] == ["p2"]
    assert a.total == b.total


def test_negative_or_unknown_update_is_ignored(caneta):
    cart = CartStore()
    cart.add_item(caneta)
    cart.update_quantity("p1", -1)
    cart.update_quantity("nao-existe", 5)
    assert cart.quantity_of("p1") == 1
    assert cart.total == 5000


def test_listeners_receive_deltas(caneta):
    deltas = []
    cart = CartStore()
    cart.subscribe(lambda product, delta: deltas.append((product.id, delta)))
    cart.add_item(caneta)
    cart.update_quantity("p1", 4)
    cart.update_quantity("p1", 4)  # sem mudança, sem evento
    cart.update_quantity("p1", 2)
    cart.remove_item("p1")
    assert deltas == [("p1", 1), ("p1", 3), ("p1", -2), ("p1", -2)]


def test_clear_resets_everything_without_events(caneta):
    deltas = []
    cart = CartStore()
    cart.add_item(caneta)
    cart.set_customer(Customer(name="Ana"))
    cart.subscribe(lambda product, delta: deltas.append(delta))
    cart.clear()
    assert cart.is_empty
    assert cart.customer is None
    assert cart.total == 0
    assert deltas == []


def test_unsubscribe_stops_events(caneta):
    deltas = []
    listener = lambda product, delta: deltas.append(delta)  # noqa: E731
    cart = CartStore()
    cart.subscribe(listener)
    cart.add_item(caneta)
    cart.unsubscribe(listener)
    cart.add_item(caneta)
    assert deltas == [1]
