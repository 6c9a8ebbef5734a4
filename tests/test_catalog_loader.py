"""
Tests for the catalog loader (planilhas XLSX/CSV → Product).
"""

import pandas as pd

from pdv.adapters.catalog_loader import _normalize_columns, load_products, products_to_rows


def test_normalize_columns_aliases():
    df = pd.DataFrame({"Código": ["1"], "Nombre": ["x"], "Precio Venta": ["1"], "Existencias": ["2"], "Outro": ["?"]})
    result = _normalize_columns(df)
    assert list(result.columns) == ["code", "name", "price", "stock", "outro"]


def test_load_products_from_xlsx(tmp_path):
    path = tmp_path / "catalogo.xlsx"
    pd.DataFrame({
        "Código": ["LAP-001", "CUA-100", None, "SEM-NOME"],
        "Produto": ["Lápiz HB", "Cuaderno", "Sem código", None],
        "Preço": ["$ 1.500", "5000", "10", "1"],
        "Estoque": ["10", "3", "1", "1"],
        "Categoria": ["Escritura", None, None, None],
    }).to_excel(path, index=False)

    products = load_products(str(path))

    assert [p.code for p in products] == ["LAP-001", "CUA-100"]
    lapiz = products[0]
    assert lapiz.id == "LAP-001"
    assert lapiz.price == 1500.0
    assert lapiz.stock == 10
    assert lapiz.category == "Escritura"
    assert products[1].category == ""


def test_load_products_from_csv(tmp_path):
    path = tmp_path / "catalogo.csv"
    path.write_text("id,codigo,nombre,precio,stock\n7,BOR-010,Borrador,800,-2\n", encoding="utf-8")
    [p] = load_products(str(path))
    assert (p.id, p.code, p.name, p.price, p.stock) == ("7", "BOR-010", "Borrador", 800.0, 0)


def test_products_to_rows(tmp_path):
    path = tmp_path / "catalogo.csv"
    path.write_text("codigo,nome,preco,estoque\nA-1,Apontador,2500,4\n", encoding="utf-8")
    rows = products_to_rows(load_products(str(path)))
    assert rows == [{"codigo": "A-1", "nome": "Apontador", "categoria": "", "preco": 2500.0, "estoque": 4}]
