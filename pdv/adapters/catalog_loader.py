"""
Loader de catálogo de produtos a partir de planilhas (XLSX ou CSV).

Usado quando o caixa trabalha com um catálogo local em vez de
``GET /productos``. Essas funções:
- leem a planilha usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos em pt/es);
- retornam ``Product`` prontos para o ``ProductCatalog``.

Observações:
- Linhas sem código ou sem nome são descartadas.
- Preço e estoque passam por ``parse_valor``/``parse_inteiro``.
- Sem coluna de id, o código do produto é usado como id.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from pdv.adapters.parsers import parse_inteiro, parse_valor
from pdv.domain.models import Product


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüçñ", "aaaaaeeeeiiiiooooouuuucn"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key) -> Optional[str]:
    """Lê um valor da linha tratando NA/vazio como None."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


ALIASES: Dict[str, str] = {
    "id": "id",

    "codigo": "code",
    "cod": "code",
    "code": "code",
    "sku": "code",
    "referencia": "code",

    "nome": "name",
    "nombre": "name",
    "produto": "name",
    "producto": "name",
    "name": "name",
    "descricao": "name",

    "preco": "price",
    "precio": "price",
    "price": "price",
    "preco venda": "price",
    "precio venta": "price",
    "valor": "price",
    "saleprice": "price",
    "sale price": "price",

    "estoque": "stock",
    "stock": "stock",
    "existencias": "stock",
    "quantidade": "stock",
    "cantidad": "stock",
    "qtd": "stock",

    "categoria": "category",
    "category": "category",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = ALIASES.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


def _read(path: str) -> pd.DataFrame:
    if Path(path).suffix.lower() == ".csv":
        return pd.read_csv(path, dtype="string")
    return pd.read_excel(path, dtype="string")


# ---------------------------
# loader público
# ---------------------------

def load_products(path: str) -> List[Product]:
    """Lê uma planilha de catálogo e devolve a lista de produtos.

    Colunas reconhecidas (qualquer sinônimo de ``ALIASES``):
      - id (opcional), code, name, price, stock, category
    """
    df = _normalize_columns(_read(path))
    out: List[Product] = []
    for _, row in df.iterrows():
        code = _safe_get(row, "code")
        name = _safe_get(row, "name")
        if not code or not name:
            continue
        price = parse_valor(_safe_get(row, "price")) or 0.0
        stock = parse_inteiro(_safe_get(row, "stock")) or 0
        out.append(Product(
            id=_safe_get(row, "id") or code,
            code=code,
            name=name,
            price=max(0.0, price),
            stock=max(0, stock),
            category=_safe_get(row, "category") or "",
        ))
    return out


def products_to_rows(products: List[Product]) -> List[Dict[str, Any]]:
    """Linhas planas para exibição em tabelas."""
    return [
        {"codigo": p.code, "nome": p.name, "categoria": p.category, "preco": p.price, "estoque": p.stock}
        for p in products
    ]
