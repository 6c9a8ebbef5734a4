"""
UC: Confirmar VENDA (SaleCommitter).

- commit(): monta o payload, envia ``POST /ventas`` e, em caso de sucesso,
  limpa o carrinho e marca o código reservado como consumido.

Classificação das falhas:
- 409 → CommitConflict (código duplicado / estoque real insuficiente); código
  continua reservado e o carrinho intacto, pode tentar de novo;
- 404 → CommitNotFound (cliente/produto/vendedor sumiu no servidor);
- 400/422 → CommitValidationError (payload malformado);
- rede ou qualquer outro status → CommitTransportError.

Obs.:
- Não existe chave de idempotência além do próprio código; uma nova
  tentativa após falha é uma venda nova (a anterior não foi gravada).
- O estoque já foi descontado no catálogo pelo reconciliador e fica assim.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pdv.config import WORKER
from pdv.domain.cart import CartStore
from pdv.domain.errors import (
    ApiError,
    CommitConflict,
    CommitError,
    CommitNotFound,
    CommitTransportError,
    CommitValidationError,
    TransportError,
)
from pdv.domain.models import CartItem, CompletedSale, Customer, PaymentMethod, SaleLine
from pdv.infra.logger import log_transaction, log_venda
from pdv.infra.repositories import SaleApi
from pdv.usecases.reservar_codigo import Reservation, SaleCodeReservationClient


def _classify(exc: ApiError) -> CommitError:
    status = exc.status_code
    if isinstance(exc, TransportError) or status is None:
        return CommitTransportError(f"Falha de comunicação ao registrar a venda: {exc.message}")
    if status == 409:
        return CommitConflict(exc.message or "Conflito: código duplicado ou estoque insuficiente", status)
    if status == 404:
        return CommitNotFound(exc.message or "Cliente, produto ou vendedor não encontrado", status)
    if status in (400, 422):
        errors = {}
        if isinstance(exc.payload, dict) and isinstance(exc.payload.get("errors"), dict):
            errors = {str(k): str(v) for k, v in exc.payload["errors"].items()}
        return CommitValidationError(exc.message or "Dados da venda inválidos", status, errors)
    return CommitTransportError(exc.message or f"Erro inesperado ({status}) ao registrar a venda", status)


def build_lines(items: Sequence[CartItem]) -> List[SaleLine]:
    return [
        SaleLine(
            code=i.product.code,
            name=i.product.name,
            quantity=i.quantity,
            unit_price=i.product.price,
            line_total=i.product.price * i.quantity,
        )
        for i in items
    ]


def build_payload(
    lines: Sequence[SaleLine],
    code: str,
    payment_method: PaymentMethod,
    total: float,
    customer: Optional[Customer] = None,
    discount_percent: Optional[float] = None,
    worker: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "code": code,
        "items": [line.to_api() for line in lines],
        "paymentMethod": payment_method.value,
        "total": total,
    }
    if customer is not None:
        payload["customer"] = customer.snapshot()
    if discount_percent:
        payload["discountPercent"] = discount_percent
    if worker:
        payload["worker"] = worker
    return payload


class SaleCommitter:
    def __init__(
        self,
        sales: SaleApi,
        cart: CartStore,
        reservations: SaleCodeReservationClient,
        worker: Optional[str] = WORKER,
    ):
        self.sales = sales
        self.cart = cart
        self.reservations = reservations
        self.worker = worker

    def _validate(self, items: Sequence[CartItem], reservation: Reservation,
                  payment_method: Optional[PaymentMethod], final_total: float) -> None:
        errors: Dict[str, str] = {}
        if not items:
            errors["items"] = "Carrinho vazio"
        if payment_method is None:
            errors["paymentMethod"] = "Selecione o meio de pagamento"
        if final_total is None or final_total < 0:
            errors["total"] = "Total inválido"
        if not reservation.is_held:
            errors["code"] = f"Código {reservation.code} não está reservado"
        if errors:
            raise CommitValidationError("Venda inválida: " + "; ".join(errors.values()), errors=errors)

    def commit(
        self,
        items: Sequence[CartItem],
        reservation: Reservation,
        payment_method: Optional[PaymentMethod],
        final_total: float,
        customer: Optional[Customer] = None,
        discount_percent: Optional[float] = None,
    ) -> CompletedSale:
        self._validate(items, reservation, payment_method, final_total)

        lines = build_lines(items)
        subtotal = sum(line.line_total for line in lines)
        payload = build_payload(
            lines, reservation.code, payment_method, final_total,
            customer=customer, discount_percent=discount_percent, worker=self.worker,
        )
        log_venda("submit", reservation.code, final_total, items=len(lines))

        try:
            body = self.sales.create_sale(payload)
        except ApiError as exc:
            err = _classify(exc)
            log_venda(type(err).__name__, reservation.code, final_total, level="error",
                      status=exc.status_code, error=exc.message)
            log_transaction("commit", {"code": reservation.code, "total": final_total}, error=err.message)
            raise err from exc

        # sucesso: código permanente, carrinho zerado
        self.reservations.mark_committed(reservation)
        self.cart.clear()

        sale = CompletedSale(
            id=str(body.get("id") or body.get("_id") or reservation.code),
            code=str(body.get("code") or reservation.code),
            total=float(body.get("total", final_total)),
            payment_method=payment_method,
            timestamp=datetime.now(),
            customer=customer,
            lines=tuple(lines),
            subtotal=subtotal,
            discount_percent=float(discount_percent or 0),
        )
        log_venda("commit", sale.code, sale.total, sale_id=sale.id)
        log_transaction("commit", {"code": sale.code}, result={"id": sale.id, "total": sale.total})
        return sale
