"""
Repositórios de acesso à API da loja.

Classes:
- ProductApi
- SaleCodeApi
- CustomerApi
- SaleApi

Cada repositório só traduz chamadas HTTP em dicionários/dataclasses do
domínio; decisões (retentativas, classificação de erros) ficam nos casos
de uso.
"""

from __future__ import annotations

from math import ceil
from typing import Any, Dict, List, Optional, Tuple

from pdv.domain.errors import ApiError
from pdv.domain.models import Customer, Pagination, Product
from pdv.infra.http import ApiClient


# -------------------------
# Helpers
# -------------------------

def _unwrap(body: Any) -> Any:
    """O backend às vezes embrulha a resposta em ``{"data": ...}``."""
    if isinstance(body, dict) and "data" in body and body["data"] is not None:
        return body["data"]
    return body


def _as_int(val: Any, default: int) -> int:
    try:
        i = int(val)
    except (TypeError, ValueError):
        return default
    return i if i > 0 else default


def _normalize_page(
    payload: Any, list_keys: Tuple[str, ...], page: int, limit: int
) -> Tuple[List[Dict[str, Any]], Pagination]:
    """Normaliza as várias formas de listagem paginada do backend.

    Formas aceitas: lista simples, ``{items, pagination}`` ou
    ``{<list_key>, pagination}``. Qualquer outra forma vira página vazia.
    """
    if isinstance(payload, list):
        return payload, Pagination(page=page, limit=limit, total=len(payload), pages=1)

    if isinstance(payload, dict):
        for key in ("items",) + list_keys:
            if isinstance(payload.get(key), list):
                items = payload[key]
                p = payload.get("pagination") or {}
                pg = _as_int(p.get("page"), page)
                lim = _as_int(p.get("limit"), limit)
                total = _as_int(p.get("total"), len(items)) if p.get("total") is not None else len(items)
                pages = _as_int(p.get("pages"), max(1, ceil(total / lim)) if total and lim else 1)
                return items, Pagination(page=pg, limit=lim, total=total, pages=pages)

    return [], Pagination(page=page, limit=limit, total=0, pages=1)


# -------------------------
# Produtos
# -------------------------

class ProductApi:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_products(self) -> List[Product]:
        payload = _unwrap(self.api.get("productos"))
        rows, _ = _normalize_page(payload, ("productos", "products"), 1, 0)
        return [Product.from_api(r) for r in rows]


# -------------------------
# Códigos de venda
# -------------------------

class SaleCodeApi:
    def __init__(self, api: ApiClient):
        self.api = api

    def last_code(self) -> Optional[str]:
        payload = _unwrap(self.api.get("ventas/ultimo-codigo"))
        if payload is None:
            return None
        if isinstance(payload, str):
            return payload or None
        if isinstance(payload, dict):
            code = payload.get("code") or payload.get("codigo") or payload.get("lastCode")
            return str(code) if code else None
        return None

    def reserve(self, code: str) -> bool:
        """Reserva atômica no servidor: só o primeiro a pedir vence."""
        try:
            payload = _unwrap(self.api.post("ventas/codigos/reservar", {"code": code}))
        except ApiError as exc:
            if exc.status_code == 409:
                return False
            raise
        if isinstance(payload, dict):
            return bool(payload.get("reserved"))
        return bool(payload)

    def release(self, code: str) -> None:
        self.api.post("ventas/codigos/liberar", {"code": code})


# -------------------------
# Clientes
# -------------------------

class CustomerApi:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_customers(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Customer], Pagination]:
        body = self.api.get(
            "clientes",
            params={"page": page, "limit": limit, "search": search, "estado": status},
        )
        if body is None:
            # 204: sem conteúdo
            return [], Pagination(page=page, limit=limit, total=0, pages=1)
        rows, pagination = _normalize_page(_unwrap(body), ("clientes",), page, limit)
        return [Customer.from_api(r) for r in rows], pagination

    def create_customer(self, fields: Dict[str, Any]) -> Customer:
        payload = _unwrap(self.api.post("clientes", fields))
        if isinstance(payload, dict) and isinstance(payload.get("cliente"), dict):
            payload = payload["cliente"]
        data = dict(fields)
        if isinstance(payload, dict):
            data.update(payload)
        return Customer.from_api(data)


# -------------------------
# Vendas
# -------------------------

class SaleApi:
    def __init__(self, api: ApiClient):
        self.api = api

    def create_sale(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = _unwrap(self.api.post("ventas", payload))
        if isinstance(body, dict) and isinstance(body.get("venta"), dict):
            body = body["venta"]
        return body if isinstance(body, dict) else {}
