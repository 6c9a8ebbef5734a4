# pdv/adapters/cli.py
"""
CLI do caixa (Typer).

Comandos principais:
- catalogo                -> lista o catálogo (API ou planilha local)
- venda                   -> venda interativa no terminal (Rich)
- codigo ultimo/reservar/liberar -> consulta, teste de reserva e liberação de códigos
- clientes listar/novo    -> consulta e cadastro de clientes
- logs                    -> mostra as últimas linhas de um log
- tui                     -> interface Textual
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from pdv.config import DEFAULTS, WORKER
from pdv.domain.errors import PdvError, ValidationError
from pdv.domain.policies import parse_sale_code
from pdv.infra import logger
from pdv.usecases.reservar_codigo import Reservation
from pdv.usecases.terminal import SalesTerminal
from pdv.adapters.catalog_loader import load_products, products_to_rows


app = typer.Typer(help="PDV — caixa de vendas")
console = Console()


@app.callback()
def _root(
    log: bool = typer.Option(False, "--log", help="Grava logs em pdv/logs (ou PDV_LOGS_DIR)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Mostra mensagens do sistema"),
):
    logger.ENABLE_LOGGING = log
    logger.ENABLE_OUTPUT = verbose


# -----------------------
# util
# -----------------------

def _build_terminal(worker: Optional[str] = WORKER) -> SalesTerminal:
    return SalesTerminal.from_config(worker=worker)


def _fmt_num(val: float) -> str:
    return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe uma lista de dicts como tabela Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        if column.lower() in ["preco", "estoque", "desconto", "total"]:
            table.add_column(column, justify="right")
        else:
            table.add_column(column)

    for row in data:
        values = []
        for col in columns:
            val = row.get(col, "")
            if col == "estoque" and isinstance(val, int) and val <= DEFAULTS.low_stock_threshold:
                values.append(f"[bold red]{val}[/]")
            elif isinstance(val, float):
                values.append(_fmt_num(val))
            elif val is None:
                values.append("")
            else:
                values.append(str(val))
        table.add_row(*values)
    console.print(table)


def _fail(exc: PdvError) -> None:
    console.print(f"[red]❌ {exc.message}[/red]")
    if isinstance(exc, ValidationError):
        for campo, msg in exc.errors.items():
            console.print(f"[red]  - {campo}: {msg}[/red]")
    raise typer.Exit(1)


def _load_catalog(terminal: SalesTerminal, arquivo: Optional[str]) -> int:
    if arquivo:
        return terminal.load_catalog(load_products(arquivo))
    return terminal.load_catalog()


# -----------------------
# catálogo e venda
# -----------------------

@app.command("catalogo")
def cmd_catalogo(
    arquivo: Optional[str] = typer.Option(None, "--arquivo", help="XLSX/CSV de catálogo (padrão: API)"),
    busca: Optional[str] = typer.Option(None, "--busca", help="Filtra por nome ou código"),
):
    """Lista o catálogo de produtos."""
    terminal = _build_terminal()
    try:
        _load_catalog(terminal, arquivo)
    except PdvError as e:
        _fail(e)
    products = terminal.catalog.search(busca) if busca else terminal.catalog.all()
    _display_table(products_to_rows(products), title="Catálogo")


@app.command("venda")
def cmd_venda(
    arquivo: Optional[str] = typer.Option(None, "--arquivo", help="XLSX/CSV de catálogo (padrão: API)"),
    vendedor: Optional[str] = typer.Option(WORKER, "--vendedor", help="Identificação do vendedor"),
):
    """Abre uma venda interativa no terminal."""
    from pdv.adapters.tui import VendaTUI

    terminal = _build_terminal(vendedor)
    try:
        _load_catalog(terminal, arquivo)
    except PdvError as e:
        _fail(e)
    VendaTUI(terminal, console=console).run()


# -----------------------
# códigos de venda
# -----------------------

codigo_app = typer.Typer(help="Códigos de venda (consulta, reserva e liberação).")
app.add_typer(codigo_app, name="codigo")


@codigo_app.command("ultimo")
def cmd_codigo_ultimo():
    """Mostra o último código de venda usado."""
    terminal = _build_terminal()
    try:
        last = terminal.reservations.codes.last_code()
    except PdvError as e:
        _fail(e)
    typer.echo(last or "(nenhum)")


@codigo_app.command("reservar")
def cmd_codigo_reservar():
    """Testa a reserva: reserva o próximo código livre, imprime e o libera em seguida."""
    terminal = _build_terminal()
    try:
        res = terminal.reservations.acquire()
    except PdvError as e:
        _fail(e)
    try:
        typer.echo(res.code)
    finally:
        ok = terminal.reservations.release(res)
    if not ok:
        console.print(f"[yellow]Não foi possível liberar {res.code}; o servidor expira a reserva.[/yellow]")
        raise typer.Exit(1)


@codigo_app.command("liberar")
def cmd_codigo_liberar(code: str = typer.Argument(..., help="Ex.: VTA-008")):
    """Libera um código reservado."""
    terminal = _build_terminal()
    ok = terminal.reservations.release(Reservation(code=code, number=parse_sale_code(code)))
    if not ok:
        console.print(f"[yellow]Não foi possível liberar {code}; o servidor expira a reserva.[/yellow]")
        raise typer.Exit(1)
    typer.echo(f">> {code} liberado.")


# -----------------------
# clientes
# -----------------------

clientes_app = typer.Typer(help="Consulta e cadastro de clientes.")
app.add_typer(clientes_app, name="clientes")


@clientes_app.command("listar")
def cmd_clientes_listar(
    pagina: int = typer.Option(1, "--pagina", min=1),
    limite: int = typer.Option(DEFAULTS.customers_page_size, "--limite", min=1),
    busca: Optional[str] = typer.Option(None, "--busca", help="Nome, documento ou e-mail"),
    estado: Optional[str] = typer.Option("activo", "--estado"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Lista clientes com paginação."""
    terminal = _build_terminal()
    terminal.directory.page_size = limite
    try:
        items, pag = terminal.directory.list(page=pagina, search=busca, status=estado)
    except PdvError as e:
        _fail(e)
    rows = [
        {"id": c.id, "nome": c.name, "documento": c.document, "email": c.email,
         "telefone": c.phone, "desconto": c.discount_percent}
        for c in items
    ]
    if as_json:
        _print_json({"items": rows, "pagination": pag.__dict__})
        return
    _display_table(rows, title=f"Clientes (página {pag.page}/{pag.pages}, total {pag.total})")


@clientes_app.command("novo")
def cmd_clientes_novo(
    nome: str = typer.Option(..., "--nome"),
    documento: str = typer.Option(..., "--documento"),
    email: str = typer.Option(..., "--email"),
    telefone: str = typer.Option(..., "--telefone", help="10 dígitos"),
    tipo_documento: str = typer.Option("CC", "--tipo-documento"),
    desconto: Optional[float] = typer.Option(None, "--desconto", help="Desconto personalizado (%)"),
):
    """Cadastra um cliente."""
    terminal = _build_terminal()
    fields = {
        "nombre": nome,
        "numeroIdentificacion": documento,
        "tipoIdentificacion": tipo_documento,
        "email": email,
        "telefono": telefone,
        "descuentoPersonalizado": desconto,
    }
    try:
        customer = terminal.directory.register(fields)
    except PdvError as e:
        _fail(e)
    typer.echo(f">> Cliente cadastrado: {customer.name} (id {customer.id})")


# -----------------------
# logs e TUI
# -----------------------

@app.command("logs")
def cmd_logs(
    tipo: str = typer.Option("transactions", "--tipo", help=", ".join(logger.LOG_FILES)),
    linhas: int = typer.Option(50, "--linhas", min=1),
):
    """Mostra as últimas linhas de um log."""
    typer.echo(logger.get_log_summary(tipo, linhas))


@app.command("tui")
def cmd_tui(
    arquivo: Optional[str] = typer.Option(None, "--arquivo", help="XLSX/CSV de catálogo (padrão: API)"),
    vendedor: Optional[str] = typer.Option(WORKER, "--vendedor"),
):
    """
    Inicia a Interface Terminal (Textual) do caixa.
    """
    from pdv.adapters.mainframe_tui import main as tui_main

    terminal = _build_terminal(vendedor)
    try:
        _load_catalog(terminal, arquivo)
    except PdvError as e:
        _fail(e)
    try:
        typer.echo("🚀 Iniciando Interface Terminal...")
        tui_main(terminal)
    except KeyboardInterrupt:
        terminal.cancel_sale()
        typer.echo("\n👋 Saindo do TUI...")
        raise typer.Exit(0)


def main():
    app()


if __name__ == "__main__":
    main()
