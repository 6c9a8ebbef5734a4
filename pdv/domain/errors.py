"""
Hierarquia de erros do PDV.

Os erros de rede chegam da camada infra como ``ApiError``/``TransportError``
e são convertidos, na fronteira de cada componente, para um dos erros
tipados abaixo. As interfaces (CLI/TUI) capturam ``PdvError`` e exibem a
mensagem.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PdvError(Exception):
    """Base de todos os erros do PDV."""

    retryable: bool = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


# -------------------------
# Transporte / API
# -------------------------

class ApiError(PdvError):
    """Resposta HTTP de erro (status >= 400)."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class TransportError(ApiError):
    """Falha de rede: sem resposta do servidor."""

    retryable = True


# -------------------------
# Reserva de código de venda
# -------------------------

class ReservationError(PdvError):
    pass


class ReservationConflict(ReservationError):
    """O código candidato já foi reservado por outra sessão."""

    retryable = True

    def __init__(self, code: str) -> None:
        super().__init__(f"Código {code} já reservado")
        self.code = code


class CodeExhausted(ReservationError):
    """Teto de tentativas atingido sem conseguir reservar um código."""

    def __init__(self, attempts: int, last_candidate: str) -> None:
        super().__init__(
            f"Não foi possível reservar um código de venda após {attempts} tentativas "
            f"(último candidato: {last_candidate})"
        )
        self.attempts = attempts
        self.last_candidate = last_candidate


class ReservationTransportError(ReservationError):
    """Falha de rede/backend ao consultar ou reservar códigos."""

    retryable = True


ReservationFailed = ReservationTransportError


# -------------------------
# Validação
# -------------------------

class ValidationError(PdvError):
    """Erro de formulário; ``errors`` mapeia campo -> mensagem."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors = dict(errors or {})


# -------------------------
# Confirmação da venda
# -------------------------

class CommitError(PdvError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CommitConflict(CommitError):
    """Código duplicado ou estoque real insuficiente."""

    retryable = True


class CommitNotFound(CommitError):
    """Cliente, produto ou vendedor referenciado não existe mais."""


class CommitValidationError(CommitError, ValidationError):
    """Payload da venda rejeitado (erro do cliente)."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 errors: Optional[Dict[str, str]] = None) -> None:
        CommitError.__init__(self, message, status_code)
        self.errors = dict(errors or {})


class CommitTransportError(CommitError):
    retryable = True


# -------------------------
# Fluxo e estoque
# -------------------------

class InvalidTransition(PdvError):
    """Transição do checkout não permitida no estado atual."""


class ProductNotFound(PdvError):
    def __init__(self, ref: str) -> None:
        super().__init__(f"Produto não encontrado no catálogo: {ref}")
        self.ref = ref


class OutOfStock(PdvError):
    def __init__(self, product_name: str, available: int) -> None:
        super().__init__(f"Estoque insuficiente para {product_name} (disponível: {available})")
        self.product_name = product_name
        self.available = available
