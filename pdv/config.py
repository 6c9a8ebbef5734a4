"""
Configurações globais e valores padrão do PDV.
"""

import os
from dataclasses import dataclass


# Endereço base da API da loja
API_BASE_URL = os.environ.get("PDV_API_URL", "https://back-papeleria-two.vercel.app/v1/papeleria")

# Token Bearer (a autenticação em si fica fora deste cliente)
API_TOKEN = os.environ.get("PDV_API_TOKEN", "")

# Identificação do vendedor enviada junto com a venda (opcional)
WORKER = os.environ.get("PDV_WORKER") or None


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do PDV."""
    request_timeout: float = 10.0        # segundos por requisição
    code_prefix: str = "VTA"
    code_digits: int = 3                 # VTA-001
    max_reservation_attempts: int = 1000
    reservation_backoff: float = 0.0     # espera entre tentativas de reserva
    customers_page_size: int = 10
    search_debounce: float = 0.4         # 400 ms
    low_stock_threshold: int = 5


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
