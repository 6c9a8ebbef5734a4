"""
Sistema de logging das operações do PDV.

Este módulo configura e fornece loggers para registrar as operações
críticas do caixa: reservas de código, confirmações de venda, chamadas à
API e eventos do sistema.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = False
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é aberto na primeira mensagem (``delay=True``), então
    importar o módulo não cria arquivos vazios.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers anteriores (reimportação em testes)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs (na pasta do pacote, ou PDV_LOGS_DIR)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("PDV_LOGS_DIR") or (BASE_DIR / "logs"))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "vendas": LOGS_DIR / "vendas.log",
    "reservas": LOGS_DIR / "reservas.log",
    "api": LOGS_DIR / "api.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('pdv.transactions', str(LOG_FILES["transactions"]))
venda_logger = setup_logger('pdv.vendas', str(LOG_FILES["vendas"]))
reserva_logger = setup_logger('pdv.reservas', str(LOG_FILES["reservas"]))
api_logger = setup_logger('pdv.api', str(LOG_FILES["api"]))
system_logger = setup_logger('pdv.system', str(LOG_FILES["system"]))

def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (checkout, commit, reserva...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_venda(action: str, code: str, total: Any = None, level: str = "info", **kwargs) -> None:
    """
    Log específico para vendas (confirmação, falhas, cancelamentos).

    Args:
        action: Ação realizada (commit, conflict, cancel...)
        code: Código de venda reservado
        total: Total da venda (opcional)
        level: Nível do log
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "code": code, "total": total, **kwargs}
    log_method = getattr(venda_logger, level.lower(), venda_logger.info)
    log_method(f"VENDA_{action.upper()}: {log_data}")

def log_reserva(action: str, code: Optional[str], attempt: int = 0, level: str = "info", **kwargs) -> None:
    """
    Log específico para reservas de código de venda.

    Args:
        action: reserve, conflict, release, release_failed, commit
        code: Código envolvido
        attempt: Número da tentativa (reserva)
        level: Nível do log
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "code": code, "attempt": attempt, **kwargs}
    log_method = getattr(reserva_logger, level.lower(), reserva_logger.info)
    log_method(f"RESERVA_{action.upper()}: {log_data}")

def log_api_call(method: str, url: str, status: Optional[int] = None, elapsed_ms: float = 0.0, **kwargs) -> None:
    """
    Log das chamadas HTTP feitas à API.

    Args:
        method: Verbo HTTP
        url: URL chamada
        status: Status HTTP (None quando não houve resposta)
        elapsed_ms: Duração da chamada
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"method": method, "url": url, "status": status, "elapsed_ms": round(elapsed_ms, 1), **kwargs}
    if status is None or status >= 400:
        api_logger.warning(f"API_{method.upper()}: {log_data}")
    else:
        api_logger.info(f"API_{method.upper()}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {
        "event": event,
        "details": details or {},
        "at": datetime.now().isoformat(timespec="seconds"),
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Obtém as linhas mais recentes de um log.

    Args:
        log_type: Tipo de log (transactions, vendas, reservas, api, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"
