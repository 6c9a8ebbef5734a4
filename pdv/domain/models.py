"""
Modelos (dataclasses) do domínio do PDV.

Observação importante:
- O backend fala espanhol (``nombre``, ``descuentoPersonalizado``...);
  a conversão de/para esses dicionários fica em ``from_api``/``to_api``
  para que o resto do código use apenas os nomes daqui.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class PaymentMethod(str, Enum):
    """Meios de pagamento aceitos (valor = string do backend)."""
    CASH = "Efectivo"
    MOBILE_WALLET = "Nequi"
    BANK_TRANSFER = "Transferencia"

    @classmethod
    def parse(cls, value: Any) -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        s = str(value or "").strip().lower()
        for m in cls:
            if s in (m.value.lower(), m.name.lower()):
                return m
        aliases = {
            "dinheiro": cls.CASH,
            "efetivo": cls.CASH,
            "carteira": cls.MOBILE_WALLET,
            "transferencia": cls.BANK_TRANSFER,
            "transferência": cls.BANK_TRANSFER,
            "pix": cls.BANK_TRANSFER,
        }
        if s in aliases:
            return aliases[s]
        raise ValueError(f"Meio de pagamento desconhecido: {value!r}")


@dataclass
class Product:
    """Produto do catálogo. ``stock`` é o estoque exibido (otimista)."""
    id: str
    code: str
    name: str
    price: float = 0.0
    stock: int = 0
    category: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Product":
        price = data.get("salePrice")
        if price is None:
            price = data.get("price", 0)
        return cls(
            id=str(data.get("id") or data.get("_id") or data.get("code")),
            code=str(data.get("code") or ""),
            name=str(data.get("name") or ""),
            price=float(price or 0),
            stock=int(data.get("stock") or 0),
            category=str(data.get("category") or ""),
        )


@dataclass
class CartItem:
    product: Product
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


@dataclass
class Customer:
    """Cliente no escopo do carrinho (não é o cadastro completo)."""
    name: str
    document: str = ""
    id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    discount_percent: float = 0.0

    @property
    def has_discount(self) -> bool:
        return (self.discount_percent or 0) > 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Customer":
        """Converte um ``CustomerEntity`` do backend."""
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            name=str(data.get("nombre") or data.get("name") or ""),
            document=str(data.get("numeroIdentificacion") or data.get("document") or ""),
            email=data.get("email") or None,
            phone=data.get("telefono") or data.get("phone") or None,
            discount_percent=float(data.get("descuentoPersonalizado") or 0),
        )

    def snapshot(self) -> Dict[str, Any]:
        """Cópia enviada junto com a venda."""
        snap: Dict[str, Any] = {"name": self.name, "document": self.document}
        if self.id is not None:
            snap["id"] = self.id
        if self.email:
            snap["email"] = self.email
        if self.phone:
            snap["phone"] = self.phone
        return snap


@dataclass
class Pagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 1


@dataclass(frozen=True)
class SaleLine:
    code: str
    name: str
    quantity: int
    unit_price: float
    line_total: float

    def to_api(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "lineTotal": self.line_total,
        }


@dataclass(frozen=True)
class CompletedSale:
    """Recibo imutável de uma venda confirmada."""
    id: str
    code: str
    total: float
    payment_method: PaymentMethod
    timestamp: datetime
    customer: Optional[Customer] = None
    lines: Tuple[SaleLine, ...] = field(default_factory=tuple)
    subtotal: float = 0.0
    discount_percent: float = 0.0
