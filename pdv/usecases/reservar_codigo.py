"""
UC: Reservar código de venda (VTA-001, VTA-002, ...).

Vários caixas podem disputar o mesmo número. O endpoint de reserva do
backend é atômico (o primeiro a pedir vence), então o cliente só precisa:

1) ler o último código registrado e começar em ``último + 1``;
2) tentar reservar o candidato, passando ao próximo número em caso de conflito;
3) desistir com ``CodeExhausted`` depois de ``max_attempts`` candidatos.

Uma reserva bem-sucedida fica com uma sessão de checkout até exatamente um
de ``mark_committed`` (sem chamada: o código vira definitivo) ou ``release``
(chamada best-effort: falhas só são logadas).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from pdv.config import DEFAULTS
from pdv.domain.errors import (
    ApiError,
    CodeExhausted,
    InvalidTransition,
    ReservationConflict,
    ReservationTransportError,
)
from pdv.domain.policies import format_sale_code, parse_sale_code
from pdv.infra.logger import log_reserva, log_transaction
from pdv.infra.repositories import SaleCodeApi


class ReservationState(str, Enum):
    HELD = "held"
    COMMITTED = "committed"
    RELEASED = "released"


@dataclass
class Reservation:
    code: str
    number: int
    attempts: int = 1
    state: ReservationState = ReservationState.HELD

    @property
    def is_held(self) -> bool:
        return self.state is ReservationState.HELD


class SaleCodeReservationClient:
    def __init__(
        self,
        codes: SaleCodeApi,
        max_attempts: int = DEFAULTS.max_reservation_attempts,
        backoff: float = DEFAULTS.reservation_backoff,
        prefix: str = DEFAULTS.code_prefix,
        digits: int = DEFAULTS.code_digits,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts deve ser >= 1")
        self.codes = codes
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.prefix = prefix
        self.digits = digits
        self._sleep = sleep

    def last_number(self) -> int:
        try:
            last = self.codes.last_code()
        except ApiError as exc:
            log_reserva("query_failed", None, level="error", error=str(exc))
            raise ReservationTransportError(f"Não foi possível consultar o último código: {exc.message}") from exc
        return parse_sale_code(last)

    def _try_reserve(self, code: str) -> None:
        try:
            reserved = self.codes.reserve(code)
        except ApiError as exc:
            log_reserva("reserve_failed", code, level="error", error=str(exc))
            raise ReservationTransportError(f"Não foi possível reservar {code}: {exc.message}") from exc
        if not reserved:
            raise ReservationConflict(code)

    def acquire(self) -> Reservation:
        """Reserva o próximo código livre; levanta CodeExhausted ou ReservationTransportError."""
        number = self.last_number() + 1
        candidate = format_sale_code(number, self.prefix, self.digits)
        for attempt in range(1, self.max_attempts + 1):
            candidate = format_sale_code(number, self.prefix, self.digits)
            try:
                self._try_reserve(candidate)
            except ReservationConflict:
                log_reserva("conflict", candidate, attempt)
                number += 1
                if self.backoff > 0 and attempt < self.max_attempts:
                    self._sleep(self.backoff)
                continue
            log_reserva("reserve", candidate, attempt)
            return Reservation(code=candidate, number=number, attempts=attempt)

        log_transaction("reservar_codigo", {"attempts": self.max_attempts}, error="exhausted")
        raise CodeExhausted(self.max_attempts, candidate)

    def release(self, reservation: Reservation) -> bool:
        """Libera um código reservado. Não levanta em falha de rede; retorna se deu certo."""
        if not reservation.is_held:
            log_reserva("release_skipped", reservation.code, state=reservation.state.value, level="warning")
            return False
        reservation.state = ReservationState.RELEASED
        try:
            self.codes.release(reservation.code)
        except ApiError as exc:
            # o TTL do backend limpa reservas órfãs
            log_reserva("release_failed", reservation.code, level="error", error=str(exc))
            return False
        log_reserva("release", reservation.code)
        return True

    def mark_committed(self, reservation: Reservation) -> None:
        if reservation.state is ReservationState.RELEASED:
            raise InvalidTransition(f"Código {reservation.code} já foi liberado")
        reservation.state = ReservationState.COMMITTED
        log_reserva("commit", reservation.code)
