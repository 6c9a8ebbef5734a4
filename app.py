# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py catalogo --arquivo catalogo.xlsx
  python app.py venda --vendedor caixa01
  python app.py codigo ultimo
  python app.py clientes listar --busca maria
  python app.py tui
"""

from pdv.adapters.cli import main

if __name__ == "__main__":
    main()
