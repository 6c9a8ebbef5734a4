"""
Utilidades de parsing para valores monetários e quantidades.

Este módulo interpreta strings digitadas no caixa ou lidas de planilhas
de catálogo (por exemplo, "$ 5.000", "3,50" ou "1.234,56"). O objetivo é
extrair de forma robusta o valor numérico, qualquer que seja o separador
decimal usado.
"""

from __future__ import annotations

import re
from typing import Any, Optional

_CLEAN_RE = re.compile(r"[^\d.,\-+]")


def parse_valor(txt: Any) -> Optional[float]:
    """Interpreta um valor monetário.

    Regras para os separadores:
        - com ``.`` e ``,`` presentes, o último é o separador decimal;
        - um único tipo repetido (``1.000.000``) é separador de milhar;
        - um único separador seguido de exatamente 3 dígitos é milhar
          (``5.000`` → 5000), senão é decimal (``3.50`` → 3.5).

    Exemplos:
        "$ 5.000"   → 5000.0
        "3,50"      → 3.5
        "1.234,56"  → 1234.56
        "1,234.56"  → 1234.56

    Args:
        txt: Texto (ou número) a ser interpretado.

    Returns:
        O valor como float, ou None se não for possível interpretar.
    """
    if txt is None:
        return None
    if isinstance(txt, (int, float)) and not isinstance(txt, bool):
        return float(txt)
    s = _CLEAN_RE.sub("", str(txt).strip())
    if not s or not any(ch.isdigit() for ch in s):
        return None

    if "." in s and "," in s:
        dec = "." if s.rfind(".") > s.rfind(",") else ","
        thou = "," if dec == "." else "."
        s = s.replace(thou, "").replace(dec, ".")
    elif "." in s or "," in s:
        sep = "." if "." in s else ","
        head, _, tail = s.rpartition(sep)
        if s.count(sep) > 1 or len(tail) == 3:
            s = s.replace(sep, "")
        else:
            s = head.replace(sep, "") + "." + tail

    try:
        return float(s)
    except ValueError:
        return None


def parse_inteiro(txt: Any) -> Optional[int]:
    """Interpreta uma quantidade inteira (estoque, quantidade no carrinho)."""
    val = parse_valor(txt)
    if val is None:
        return None
    return int(round(val))
