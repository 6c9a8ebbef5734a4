"""
Catálogo de produtos e reconciliação otimista de estoque.

O ``ProductCatalog`` guarda o estoque exibido. Enquanto há um carrinho
aberto, o único escritor desse estoque é o ``StockReconciler``, que espelha
cada delta do carrinho (reserva local em duas fases):

1) hold: adicionar ao carrinho desconta do estoque exibido;
2a) commit: a venda confirmada mantém o desconto (o backend passa a ser a
    fonte da verdade);
2b) rollback: cancelar/abandonar devolve a quantidade integral de cada item.

Não há garantia entre sessões; o backend pode recusar a venda se o
estoque real mudou.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pdv.domain.cart import CartStore
from pdv.domain.models import Product


class ProductCatalog:
    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: Dict[str, Product] = {}
        self.load(products)

    def load(self, products: Iterable[Product]) -> None:
        """Substitui o catálogo (refresh uma vez por sessão)."""
        self._products = {p.id: p for p in products}

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def by_code(self, code: str) -> Optional[Product]:
        code = (code or "").strip().lower()
        for p in self._products.values():
            if p.code.lower() == code:
                return p
        return None

    def all(self) -> List[Product]:
        return list(self._products.values())

    def search(self, term: str) -> List[Product]:
        """Busca por nome ou código, sem diferenciar maiúsculas."""
        t = (term or "").strip().lower()
        if not t:
            return []
        return [p for p in self._products.values() if t in p.name.lower() or t in p.code.lower()]

    def snapshot(self) -> Dict[str, int]:
        return {pid: p.stock for pid, p in self._products.items()}

    def adjust_stock(self, product_id: str, delta: int) -> int:
        """Soma ``delta`` ao estoque exibido. Uso exclusivo do reconciliador."""
        product = self._products.get(product_id)
        if product is None:
            return 0
        product.stock += delta
        return product.stock

    def __len__(self) -> int:
        return len(self._products)


class StockReconciler:
    """Mantém ``estoque exibido + quantidade no carrinho`` constante."""

    def __init__(self, catalog: ProductCatalog) -> None:
        self.catalog = catalog
        self._cart: Optional[CartStore] = None

    def attach(self, cart: CartStore) -> None:
        if self._cart is not None:
            self._cart.unsubscribe(self.on_cart_delta)
        self._cart = cart
        cart.subscribe(self.on_cart_delta)

    def detach(self) -> None:
        if self._cart is not None:
            self._cart.unsubscribe(self.on_cart_delta)
            self._cart = None

    def on_cart_delta(self, product: Product, delta: int) -> None:
        # carrinho +d => estoque -d
        self.catalog.adjust_stock(product.id, -delta)

    def available(self, product_id: str) -> int:
        product = self.catalog.get(product_id)
        return product.stock if product else 0

    def restore(self, cart: CartStore) -> None:
        """Rollback: devolve tudo ao catálogo e esvazia o carrinho."""
        for item in cart.items:
            self.catalog.adjust_stock(item.product.id, item.quantity)
        cart.clear()
