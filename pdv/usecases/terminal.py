"""
UC: Caixa (SalesTerminal).

Contêiner explícito de uma sessão de vendas: um catálogo, um carrinho, um
reconciliador de estoque e os serviços da API. Cada teste ou interface cria
a sua instância; nada é global.

Responsabilidades:
- carregar o catálogo (API ou planilha) uma vez por sessão;
- barrar, na fronteira da interface, quantidades acima do estoque exibido;
- cancelar a venda devolvendo o estoque e liberando o código reservado.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from pdv.config import API_BASE_URL, API_TOKEN, DEFAULTS, WORKER
from pdv.domain.cart import CartStore
from pdv.domain.errors import InvalidTransition, OutOfStock, ProductNotFound
from pdv.domain.models import Customer, Product
from pdv.domain.stock import ProductCatalog, StockReconciler
from pdv.infra.http import ApiClient
from pdv.infra.logger import log_system_event, print_system
from pdv.infra.repositories import CustomerApi, ProductApi, SaleApi, SaleCodeApi
from pdv.usecases.checkout import CheckoutWorkflow
from pdv.usecases.clientes import CustomerDirectory
from pdv.usecases.confirmar_venda import SaleCommitter
from pdv.usecases.reservar_codigo import SaleCodeReservationClient


ProductRef = Union[str, Product]


class SalesTerminal:
    def __init__(
        self,
        api: ApiClient,
        worker: Optional[str] = WORKER,
        max_attempts: int = DEFAULTS.max_reservation_attempts,
        backoff: float = DEFAULTS.reservation_backoff,
        page_size: int = DEFAULTS.customers_page_size,
    ):
        self.api = api
        self.catalog = ProductCatalog()
        self.cart = CartStore()
        self.reconciler = StockReconciler(self.catalog)
        self.reconciler.attach(self.cart)

        self.products = ProductApi(api)
        self.reservations = SaleCodeReservationClient(SaleCodeApi(api), max_attempts=max_attempts, backoff=backoff)
        self.directory = CustomerDirectory(CustomerApi(api), page_size=page_size)
        self.committer = SaleCommitter(SaleApi(api), self.cart, self.reservations, worker=worker)
        self.checkout = CheckoutWorkflow(self.cart, self.reservations, self.committer, self.directory)

    @classmethod
    def from_config(cls, base_url: str = API_BASE_URL, token: Optional[str] = API_TOKEN, **kwargs) -> "SalesTerminal":
        return cls(ApiClient(base_url=base_url, token=token), **kwargs)

    # -------------------------
    # Catálogo
    # -------------------------

    def load_catalog(self, products: Optional[Iterable[Product]] = None) -> int:
        """Carrega o catálogo (da API quando ``products`` é None)."""
        if not self.cart.is_empty:
            raise InvalidTransition("Não é possível recarregar o catálogo com itens no carrinho")
        rows = list(products) if products is not None else self.products.list_products()
        self.catalog.load(rows)
        log_system_event("catalog_loaded", {"products": len(rows), "source": "api" if products is None else "local"})
        print_system(f">> Catálogo carregado: {len(rows)} produtos")
        return len(rows)

    def _product(self, ref: ProductRef) -> Product:
        pid = ref.id if isinstance(ref, Product) else str(ref)
        product = self.catalog.get(pid) or self.catalog.by_code(pid)
        if product is None:
            raise ProductNotFound(pid)
        return product

    # -------------------------
    # Carrinho (com checagem de estoque)
    # -------------------------

    def add(self, ref: ProductRef) -> Product:
        product = self._product(ref)
        if product.stock < 1:
            raise OutOfStock(product.name, product.stock)
        self.cart.add_item(product)
        return product

    def set_quantity(self, ref: ProductRef, quantity: int) -> None:
        product = self._product(ref)
        current = self.cart.quantity_of(product.id)
        if quantity > current and quantity - current > product.stock:
            raise OutOfStock(product.name, product.stock + current)
        if current == 0 and quantity > 0:
            # update_quantity só altera itens existentes
            self.cart.add_item(product)
        self.cart.update_quantity(product.id, quantity)

    def increment(self, ref: ProductRef) -> None:
        product = self._product(ref)
        self.set_quantity(product, self.cart.quantity_of(product.id) + 1)

    def decrement(self, ref: ProductRef) -> None:
        product = self._product(ref)
        current = self.cart.quantity_of(product.id)
        if current > 0:
            self.cart.update_quantity(product.id, current - 1)

    def remove(self, ref: ProductRef) -> None:
        self.cart.remove_item(self._product(ref).id)

    def set_customer(self, customer: Optional[Customer]) -> None:
        self.cart.set_customer(customer)

    # -------------------------
    # Cancelamento
    # -------------------------

    def cancel_sale(self) -> None:
        """Abandona a venda: libera o código (se houver) e devolve o estoque."""
        if self.checkout.session is not None:
            self.checkout.close()
        self.reconciler.restore(self.cart)
        log_system_event("sale_cancelled")
