"""
Políticas de cálculo e utilidades do PDV.

Este módulo contém as regras de negócio puras usadas pelo checkout:
formato do código de venda, regra de desconto do cliente, validação do
cadastro rápido de clientes e a marcação de estoque baixo. Nenhuma
função aqui faz I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from pdv.config import DEFAULTS


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\d{10}$")
_TRAILING_DIGITS_RE = re.compile(r"(\d+)\s*$")


def format_sale_code(number: int, prefix: str = DEFAULTS.code_prefix, digits: int = DEFAULTS.code_digits) -> str:
    """Formata o número sequencial como código de venda.

    ``format_sale_code(8)`` → ``'VTA-008'``. Números maiores que o
    preenchimento simplesmente ganham mais dígitos (``VTA-1000``); a
    sequência nunca volta ao início.
    """
    if number < 1:
        raise ValueError("O número do código de venda deve ser >= 1")
    return f"{prefix}-{number:0{digits}d}"


def parse_sale_code(code: Optional[str]) -> int:
    """Extrai o sufixo numérico de um código de venda.

    Retorna 0 quando não há código ou ele não termina em dígitos, de modo
    que o próximo candidato seja sempre ``último + 1``.
    """
    if code is None:
        return 0
    m = _TRAILING_DIGITS_RE.search(str(code))
    if not m:
        return 0
    return int(m.group(1))


def round_half_up(value: float) -> int:
    """Arredonda para o inteiro mais próximo (0,5 sobe)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class DiscountSummary:
    subtotal: float
    discount_percent: float
    discount_amount: float
    final_total: float

    @property
    def applied(self) -> bool:
        return self.discount_amount > 0


def apply_discount(total: float, discount_percent: Optional[float], enabled: bool) -> DiscountSummary:
    """Aplica o desconto personalizado do cliente.

    Regras:
        - desabilitado ou percentual <= 0 → total inalterado;
        - habilitado → ``round(total - total * pct / 100)``, nunca abaixo de 0.

    Args:
        total: Soma dos itens do carrinho.
        discount_percent: ``descuentoPersonalizado`` do cliente.
        enabled: Estado do toggle de desconto no resumo.

    Returns:
        Um ``DiscountSummary`` com subtotal, desconto e total final.
    """
    pct = float(discount_percent or 0)
    if not enabled or pct <= 0:
        return DiscountSummary(subtotal=total, discount_percent=0.0, discount_amount=0.0, final_total=total)
    final = max(0, round_half_up(total - total * pct / 100))
    return DiscountSummary(
        subtotal=total,
        discount_percent=pct,
        discount_amount=total - final,
        final_total=final,
    )


def validate_new_customer(fields: Dict[str, Any]) -> Dict[str, str]:
    """Valida o cadastro rápido de cliente.

    Returns:
        Dicionário campo -> mensagem. Vazio quando tudo está válido.
    """
    errors: Dict[str, str] = {}
    nome = str(fields.get("nombre") or "").strip()
    documento = str(fields.get("numeroIdentificacion") or "").strip()
    email = str(fields.get("email") or "").strip()
    telefono = str(fields.get("telefono") or "").strip()

    if not nome:
        errors["nombre"] = "Nome obrigatório"
    if not documento:
        errors["numeroIdentificacion"] = "Documento obrigatório"
    if not EMAIL_RE.match(email):
        errors["email"] = "E-mail inválido"
    if not PHONE_RE.match(telefono):
        errors["telefono"] = "Telefone inválido (10 dígitos)"
    return errors


def is_low_stock(stock: int, threshold: int = DEFAULTS.low_stock_threshold) -> bool:
    return stock <= threshold
