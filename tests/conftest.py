"""
Fixtures compartilhadas: um backend falso em memória no lugar da API real.

``FakeBackend`` é um ``ApiClient`` cujo ``request`` roteia os caminhos da
API para estado local protegido por lock (a reserva de código é atômica:
o primeiro a pedir vence).
"""

import threading
from math import ceil

import pytest

from pdv.domain.errors import ApiError
from pdv.infra.http import ApiClient
from pdv.usecases.terminal import SalesTerminal


PRODUCTS = [
    {"id": "p1", "code": "LAP-001", "name": "Lápiz HB", "salePrice": 1500, "stock": 10, "category": "Escritura"},
    {"id": "p2", "code": "CUA-100", "name": "Cuaderno 100 hojas", "salePrice": 5000, "stock": 3, "category": "Papel"},
    {"id": "p3", "code": "BOR-010", "name": "Borrador", "salePrice": 800, "stock": 0, "category": "Escritura"},
]

CUSTOMERS = [
    {"id": 1, "nombre": "Ana Gómez", "numeroIdentificacion": "100200300", "email": "ana@example.com",
     "telefono": "3001112233", "descuentoPersonalizado": 10, "estado": "activo"},
    {"id": 2, "nombre": "Bruno Díaz", "numeroIdentificacion": "200300400", "email": "bruno@example.com",
     "telefono": "3002223344", "descuentoPersonalizado": 0, "estado": "activo"},
    {"id": 3, "nombre": "Carla Ruiz", "numeroIdentificacion": "300400500", "email": "carla@example.com",
     "telefono": "3003334455", "descuentoPersonalizado": 15, "estado": "activo"},
]


class FakeBackend(ApiClient):
    def __init__(self, last_code="VTA-007", products=None, customers=None):
        super().__init__(base_url="http://pdv.test/v1/papeleria", token="test-token")
        self.lock = threading.Lock()
        self.last_code = last_code
        self.products = [dict(p) for p in (PRODUCTS if products is None else products)]
        self.customers = [dict(c) for c in (CUSTOMERS if customers is None else customers)]
        self.reserved = set()
        self.committed = set()
        self.released = []
        self.sales = []
        self.calls = []
        self._failures = {}

    def fail_next(self, method, path, exc, times=1):
        """Enfileira ``exc`` para as próximas ``times`` chamadas de ``method path``."""
        self._failures.setdefault((method.upper(), path), []).extend([exc] * times)

    def calls_to(self, method, path):
        return [c for c in self.calls if c[0] == method.upper() and c[1] == path]

    def request(self, method, path, params=None, json=None):
        method = method.upper()
        with self.lock:
            self.calls.append((method, path, params, json))
            queued = self._failures.get((method, path))
            if queued:
                raise queued.pop(0)
            handler = self._routes().get((method, path))
            if handler is None:
                raise ApiError(f"Rota não encontrada: {method} {path}", status_code=404)
            return handler(params or {}, json or {})

    def _routes(self):
        return {
            ("GET", "productos"): lambda params, body: {"data": self.products},
            ("GET", "ventas/ultimo-codigo"): self._last_code,
            ("POST", "ventas/codigos/reservar"): self._reserve,
            ("POST", "ventas/codigos/liberar"): self._release,
            ("GET", "clientes"): self._list_customers,
            ("POST", "clientes"): self._create_customer,
            ("POST", "ventas"): self._create_sale,
        }

    def _last_code(self, params, body):
        if self.last_code is None:
            return None
        return {"data": {"code": self.last_code}}

    def _reserve(self, params, body):
        code = body["code"]
        if code in self.reserved or code in self.committed:
            raise ApiError(f"Código {code} já reservado", status_code=409, payload={"reserved": False})
        self.reserved.add(code)
        return {"reserved": True, "code": code}

    def _release(self, params, body):
        self.reserved.discard(body["code"])
        self.released.append(body["code"])
        return None

    def _list_customers(self, params, body):
        rows = [c for c in self.customers if not params.get("estado") or c.get("estado") == params["estado"]]
        term = (params.get("search") or "").lower()
        if term:
            rows = [c for c in rows if any(term in str(c.get(k, "")).lower()
                                           for k in ("nombre", "numeroIdentificacion", "email"))]
        if not rows:
            return None
        page, limit = int(params.get("page", 1)), int(params.get("limit", 10))
        chunk = rows[(page - 1) * limit: page * limit]
        return {"clientes": chunk,
                "pagination": {"page": page, "limit": limit, "total": len(rows), "pages": ceil(len(rows) / limit)}}

    def _create_customer(self, params, body):
        if any(c["numeroIdentificacion"] == body.get("numeroIdentificacion") for c in self.customers):
            raise ApiError("Documento já cadastrado", status_code=409)
        row = dict(body, id=len(self.customers) + 1, estado="activo")
        self.customers.append(row)
        return {"data": {"cliente": row}}

    def _create_sale(self, params, body):
        code = body["code"]
        if code in self.committed or code not in self.reserved:
            raise ApiError(f"Código {code} inválido ou já usado", status_code=409)
        self.reserved.discard(code)
        self.committed.add(code)
        self.last_code = code
        self.sales.append(body)
        return {"data": {"venta": {"id": f"sale-{len(self.sales)}", "code": code, "total": body["total"]}}}


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def terminal(backend):
    t = SalesTerminal(backend)
    t.load_catalog()
    return t


@pytest.fixture
def make_backend():
    return FakeBackend
