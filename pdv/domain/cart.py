"""
Carrinho de compras (CartStore).

Redutor puro em memória: não faz chamadas de rede nem conhece o checkout.
Não verifica estoque; quem chama já conferiu a disponibilidade.

Cada mutação de quantidade é publicada de forma síncrona aos assinantes
como ``(produto, delta)``. ``clear()`` não publica nada: devolver estoque
ou liberar o código de venda é responsabilidade de quem limpa.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from pdv.domain.models import CartItem, Customer, Product


CartListener = Callable[[Product, int], None]


class CartStore:
    def __init__(self) -> None:
        self.items: List[CartItem] = []
        self.customer: Optional[Customer] = None
        self.total: float = 0.0
        self._listeners: List[CartListener] = []

    # -------------------------
    # Assinatura
    # -------------------------

    def subscribe(self, listener: CartListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CartListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, product: Product, delta: int) -> None:
        if delta == 0:
            return
        for listener in list(self._listeners):
            listener(product, delta)

    # -------------------------
    # Leitura
    # -------------------------

    def find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None

    def quantity_of(self, product_id: str) -> int:
        item = self.find(product_id)
        return item.quantity if item else 0

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def count(self) -> int:
        return sum(i.quantity for i in self.items)

    # -------------------------
    # Mutações
    # -------------------------

    def add_item(self, product: Product) -> None:
        item = self.find(product.id)
        if item:
            item.quantity += 1
        else:
            self.items.append(CartItem(product=product, quantity=1))
        self._recalc()
        self._emit(product, 1)

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity < 0:
            return
        item = self.find(product_id)
        if item is None:
            return
        delta = quantity - item.quantity
        if quantity == 0:
            self.items = [i for i in self.items if i.product.id != product_id]
        else:
            item.quantity = quantity
        self._recalc()
        self._emit(item.product, delta)

    def remove_item(self, product_id: str) -> None:
        item = self.find(product_id)
        self.items = [i for i in self.items if i.product.id != product_id]
        self._recalc()
        if item:
            self._emit(item.product, -item.quantity)

    def set_customer(self, customer: Optional[Customer]) -> None:
        self.customer = customer

    def clear(self) -> None:
        self.items = []
        self.customer = None
        self.total = 0.0

    def _recalc(self) -> None:
        self.total = sum(i.product.price * i.quantity for i in self.items)
