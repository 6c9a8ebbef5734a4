"""
UC: Checkout em 4 passos (Produtos → Cliente → Pagamento → Resumo).

Fluxo:
1) ``open()`` exige carrinho não vazio e reserva o código de venda uma única
   vez; o código fica guardado na sessão enquanto ela durar.
2) Avançar passa pela guarda do passo atual; voltar é sempre permitido.
3) ``commit()`` só no Resumo. Sucesso fecha a sessão (código consumido,
   carrinho limpo). Falha mantém a sessão aberta e o código reservado.
4) ``close()`` sem venda confirmada libera o código exatamente uma vez e não
   mexe no carrinho nem no estoque.

Guardas de saída:
- Produtos: carrinho não vazio (revisão apenas);
- Cliente: cliente com nome preenchido;
- Pagamento: meio de pagamento escolhido;
- Resumo: o usuário confirma.

Obs.:
- O toggle de desconto só existe quando o cliente tem
  ``descuentoPersonalizado > 0``; trocar de cliente reinicia o toggle.
- A sessão também funciona como context manager: sair do bloco sem
  confirmar libera o código.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from pdv.domain.cart import CartStore
from pdv.domain.errors import CommitError, InvalidTransition
from pdv.domain.models import CompletedSale, Customer, PaymentMethod
from pdv.domain.policies import DiscountSummary, apply_discount
from pdv.infra.logger import log_system_event, log_transaction, log_venda
from pdv.usecases.clientes import CustomerDirectory
from pdv.usecases.confirmar_venda import SaleCommitter
from pdv.usecases.reservar_codigo import Reservation, SaleCodeReservationClient


class CheckoutStep(IntEnum):
    PRODUCTS = 1
    CUSTOMER = 2
    PAYMENT = 3
    SUMMARY = 4

    @property
    def label(self) -> str:
        return {
            CheckoutStep.PRODUCTS: "Produtos",
            CheckoutStep.CUSTOMER: "Cliente",
            CheckoutStep.PAYMENT: "Pagamento",
            CheckoutStep.SUMMARY: "Resumo",
        }[self]


class SessionStatus(str, Enum):
    OPEN = "open"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class CheckoutSession:
    reservation: Reservation
    step: CheckoutStep = CheckoutStep.PRODUCTS
    customer: Optional[Customer] = None
    payment_method: Optional[PaymentMethod] = None
    discount_applied: bool = False
    status: SessionStatus = SessionStatus.OPEN
    last_error: Optional[str] = None

    @property
    def code(self) -> str:
        return self.reservation.code


class CheckoutWorkflow:
    def __init__(
        self,
        cart: CartStore,
        reservations: SaleCodeReservationClient,
        committer: SaleCommitter,
        directory: Optional[CustomerDirectory] = None,
    ):
        self.cart = cart
        self.reservations = reservations
        self.committer = committer
        self.directory = directory
        self.session: Optional[CheckoutSession] = None
        self.last_sale: Optional[CompletedSale] = None
        self._committing = False

    # -------------------------
    # Ciclo de vida
    # -------------------------

    @property
    def is_open(self) -> bool:
        return self.session is not None and self.session.status is SessionStatus.OPEN

    def open(self) -> CheckoutSession:
        if self.is_open:
            return self.session
        if self.cart.is_empty:
            raise InvalidTransition("Carrinho vazio: adicione produtos antes de finalizar")

        reservation = self.reservations.acquire()
        session = CheckoutSession(reservation=reservation)
        if self.cart.customer is not None:
            session.customer = self.cart.customer
            session.discount_applied = self.cart.customer.has_discount
        self.session = session
        self.last_sale = None
        log_system_event("checkout_open", {"code": reservation.code, "items": len(self.cart.items)})
        return session

    def close(self) -> bool:
        """Abandona o checkout. True só se o backend confirmou a liberação do código."""
        session = self.session
        if session is None:
            return False
        self.session = None
        if session.status is not SessionStatus.OPEN:
            return False
        session.status = SessionStatus.CANCELLED
        released = False
        if session.reservation.is_held:
            released = self.reservations.release(session.reservation)
        log_venda("cancel", session.code, self.cart.total)
        return released

    def __enter__(self) -> "CheckoutWorkflow":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> CheckoutSession:
        if not self.is_open:
            raise InvalidTransition("Checkout não está aberto")
        return self.session

    # -------------------------
    # Navegação
    # -------------------------

    def guard_error(self, step: Optional[CheckoutStep] = None) -> Optional[str]:
        """Motivo pelo qual não se pode sair de ``step`` (None = liberado)."""
        session = self._require_open()
        step = step or session.step
        if step is CheckoutStep.PRODUCTS and self.cart.is_empty:
            return "Carrinho vazio"
        if step is CheckoutStep.CUSTOMER and (session.customer is None or not session.customer.name.strip()):
            return "Selecione ou cadastre um cliente"
        if step is CheckoutStep.PAYMENT and session.payment_method is None:
            return "Selecione o meio de pagamento"
        if step is CheckoutStep.SUMMARY:
            return "Último passo: confirme a venda"
        return None

    def can_advance(self) -> bool:
        return self.guard_error() is None

    def next(self) -> CheckoutStep:
        session = self._require_open()
        reason = self.guard_error()
        if reason:
            raise InvalidTransition(reason)
        session.step = CheckoutStep(session.step + 1)
        return session.step

    def back(self) -> CheckoutStep:
        session = self._require_open()
        if session.step > CheckoutStep.PRODUCTS:
            session.step = CheckoutStep(session.step - 1)
        return session.step

    def go_to(self, step: CheckoutStep) -> CheckoutStep:
        """Salta para ``step``; para frente só passando por todas as guardas."""
        session = self._require_open()
        step = CheckoutStep(step)
        if step <= session.step:
            session.step = step
            return step
        while session.step < step:
            self.next()
        return session.step

    # -------------------------
    # Seleções
    # -------------------------

    def select_customer(self, customer: Optional[Customer]) -> None:
        session = self._require_open()
        session.customer = customer
        session.discount_applied = bool(customer and customer.has_discount)

    def register_customer(self, fields: Dict[str, Any]) -> Customer:
        if self.directory is None:
            raise InvalidTransition("Cadastro de clientes indisponível")
        self._require_open()
        customer = self.directory.register(fields)
        self.select_customer(customer)
        return customer

    def choose_payment(self, method: Any) -> PaymentMethod:
        session = self._require_open()
        session.payment_method = PaymentMethod.parse(method)
        return session.payment_method

    @property
    def discount_available(self) -> bool:
        session = self.session
        return bool(session and session.customer and session.customer.has_discount)

    def set_discount(self, enabled: bool) -> bool:
        session = self._require_open()
        session.discount_applied = bool(enabled) and self.discount_available
        return session.discount_applied

    def summary(self) -> DiscountSummary:
        session = self._require_open()
        pct = session.customer.discount_percent if session.customer else 0
        return apply_discount(self.cart.total, pct, session.discount_applied)

    # -------------------------
    # Confirmação
    # -------------------------

    def commit(self) -> CompletedSale:
        session = self._require_open()
        if self._committing:
            raise InvalidTransition("Confirmação já em andamento")
        if session.step is not CheckoutStep.SUMMARY:
            raise InvalidTransition(f"Confirmação só no passo Resumo (atual: {session.step.label})")
        for step in (CheckoutStep.PRODUCTS, CheckoutStep.CUSTOMER, CheckoutStep.PAYMENT):
            reason = self.guard_error(step)
            if reason:
                raise InvalidTransition(reason)

        totals = self.summary()
        self._committing = True
        try:
            sale = self.committer.commit(
                items=list(self.cart.items),
                reservation=session.reservation,
                payment_method=session.payment_method,
                final_total=totals.final_total,
                customer=session.customer,
                discount_percent=totals.discount_percent if totals.applied else None,
            )
        except CommitError as exc:
            session.last_error = exc.message
            log_transaction("checkout", {"code": session.code, "step": session.step.name}, error=exc.message)
            raise
        finally:
            self._committing = False

        session.status = SessionStatus.COMMITTED
        session.last_error = None
        self.session = None
        self.last_sale = sale
        return sale
