"""
UC: seleção de cliente no checkout.

- CustomerDirectory: listagem paginada, busca e cadastro rápido (API).
- CustomerPicker: estado da tela de clientes (página, termo, resultados).
- SearchDebouncer: só dispara a busca depois de ``delay`` segundos sem digitação.

Obs.:
- A busca é feita no servidor (nome/documento/e-mail).
- Um cliente recém-cadastrado já volta selecionado, sem nova consulta.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

from pdv.config import DEFAULTS
from pdv.domain.errors import ApiError, PdvError, ValidationError
from pdv.domain.models import Customer, Pagination
from pdv.domain.policies import validate_new_customer
from pdv.infra.logger import log_system_event, log_transaction
from pdv.infra.repositories import CustomerApi


def _normalize_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


class CustomerDirectory:
    def __init__(self, customers: CustomerApi, page_size: int = DEFAULTS.customers_page_size):
        self.customers = customers
        self.page_size = page_size

    def list(self, page: int = 1, search: Optional[str] = None, status: Optional[str] = "activo"):
        try:
            return self.customers.list_customers(
                page=page, limit=self.page_size, search=_normalize_str(search), status=status,
            )
        except ApiError as exc:
            log_system_event("customers_list_error", {"page": page, "error": exc.message}, level="error")
            raise

    def register(self, fields: Dict[str, Any]) -> Customer:
        """Valida e cadastra um cliente; devolve o cliente pronto para seleção."""
        body = {
            "tipoIdentificacion": _normalize_str(fields.get("tipoIdentificacion")) or "CC",
            "numeroIdentificacion": _normalize_str(fields.get("numeroIdentificacion")),
            "nombre": _normalize_str(fields.get("nombre")),
            "email": _normalize_str(fields.get("email")),
            "telefono": _normalize_str(fields.get("telefono")),
            "tipoCliente": _normalize_str(fields.get("tipoCliente")) or "individual",
        }
        for opt in ("departamento", "ciudad", "ubicacionLocal"):
            if _normalize_str(fields.get(opt)):
                body[opt] = _normalize_str(fields.get(opt))
        if fields.get("descuentoPersonalizado") not in (None, ""):
            body["descuentoPersonalizado"] = float(fields["descuentoPersonalizado"])

        errors = validate_new_customer(body)
        if errors:
            raise ValidationError("Cadastro de cliente inválido", errors)

        try:
            customer = self.customers.create_customer(body)
        except ApiError as exc:
            log_transaction("cliente_novo", {"documento": body["numeroIdentificacion"]}, error=exc.message)
            if exc.status_code in (400, 409, 422):
                raise ValidationError(exc.message or "Cliente recusado pelo servidor") from exc
            raise
        log_transaction("cliente_novo", {"documento": customer.document}, result={"id": customer.id})
        return customer


class SearchDebouncer:
    """Debounce de digitação com relógio injetável."""

    def __init__(self, delay: float = DEFAULTS.search_debounce, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self._clock = clock
        self._pending: Optional[str] = None
        self._last_input = 0.0

    def push(self, term: str) -> None:
        self._pending = term
        self._last_input = self._clock()

    def ready(self) -> Optional[str]:
        """Termo a buscar se o usuário parou de digitar; senão None."""
        if self._pending is None:
            return None
        if self._clock() - self._last_input < self.delay:
            return None
        term, self._pending = self._pending, None
        return term

    @property
    def pending(self) -> bool:
        return self._pending is not None


class CustomerPicker:
    def __init__(self, directory: CustomerDirectory, debouncer: Optional[SearchDebouncer] = None):
        self.directory = directory
        self.debouncer = debouncer or SearchDebouncer()
        self.search = ""
        self.items: List[Customer] = []
        self.pagination = Pagination(limit=directory.page_size)
        self.error: Optional[str] = None

    def load(self, page: int = 1) -> List[Customer]:
        try:
            self.items, self.pagination = self.directory.list(page=page, search=self.search)
            self.error = None
        except PdvError as exc:
            self.items = []
            self.error = exc.message
        return self.items

    def type_search(self, term: str) -> None:
        self.debouncer.push(term)

    def poll(self) -> bool:
        """Executa a busca pendente; True se a lista foi recarregada."""
        term = self.debouncer.ready()
        if term is None:
            return False
        self.search = term.strip()
        self.load(page=1)
        return True

    def next_page(self) -> List[Customer]:
        if self.pagination.page < self.pagination.pages:
            return self.load(self.pagination.page + 1)
        return self.items

    def previous_page(self) -> List[Customer]:
        if self.pagination.page > 1:
            return self.load(self.pagination.page - 1)
        return self.items
