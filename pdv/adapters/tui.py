"""
TUI (Text User Interface) do caixa usando Rich.

Interface interativa baseada em menus para uma venda completa:
- Busca de produtos e montagem do carrinho
- Checkout em 4 passos (Produtos, Cliente, Pagamento, Resumo)
- Cancelamento com devolução de estoque
"""

from __future__ import annotations

from typing import List, Optional

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich import box

from pdv.domain.cart import CartStore
from pdv.domain.errors import CommitError, PdvError, ValidationError
from pdv.domain.models import CompletedSale, Customer, PaymentMethod, Product
from pdv.domain.policies import DiscountSummary, is_low_stock
from pdv.usecases.checkout import CheckoutStep
from pdv.usecases.clientes import CustomerPicker
from pdv.usecases.terminal import SalesTerminal


PAYMENT_LABELS = {
    PaymentMethod.CASH: "Dinheiro (Efectivo)",
    PaymentMethod.MOBILE_WALLET: "Carteira digital (Nequi)",
    PaymentMethod.BANK_TRANSFER: "Transferência bancária",
}


# -----------------------
# renderização
# -----------------------

def fmt_money(val: float) -> str:
    return "$ " + f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def products_table(products: List[Product], title: str = "Catálogo") -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Código")
    table.add_column("Produto")
    table.add_column("Categoria")
    table.add_column("Preço", justify="right")
    table.add_column("Estoque", justify="right")
    for idx, p in enumerate(products, 1):
        stock = f"[bold red]{p.stock}[/]" if is_low_stock(p.stock) else str(p.stock)
        table.add_row(str(idx), p.code, p.name, p.category, fmt_money(p.price), stock)
    return table


def cart_table(cart: CartStore) -> Table:
    title = "Carrinho"
    if cart.customer:
        title += f" — {cart.customer.name}"
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Produto")
    table.add_column("Qtd", justify="right")
    table.add_column("Unitário", justify="right")
    table.add_column("Total", justify="right")
    for idx, item in enumerate(cart.items, 1):
        table.add_row(
            str(idx), item.product.name, str(item.quantity),
            fmt_money(item.product.price), fmt_money(item.line_total),
        )
    table.add_section()
    table.add_row("", "[bold]Total[/bold]", str(cart.count), "", f"[bold]{fmt_money(cart.total)}[/bold]")
    return table


def customers_table(picker: CustomerPicker) -> Table:
    p = picker.pagination
    table = Table(title=f"Clientes (página {p.page}/{p.pages}, {p.total} no total)", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Nome")
    table.add_column("Documento")
    table.add_column("E-mail")
    table.add_column("Desconto", justify="right")
    for idx, c in enumerate(picker.items, 1):
        desc = f"{c.discount_percent:g}%" if c.has_discount else ""
        table.add_row(str(idx), c.name, c.document, c.email or "", desc)
    return table


def summary_panel(code: str, customer: Optional[Customer], method: Optional[PaymentMethod],
                  totals: DiscountSummary, discount_offered: bool, discount_on: bool) -> Panel:
    lines = [
        f"Código: [bold]{code}[/bold]",
        f"Cliente: {customer.name if customer else '-'}",
        f"Pagamento: {PAYMENT_LABELS.get(method, '-') if method else '-'}",
        "",
        f"Subtotal: {fmt_money(totals.subtotal)}",
    ]
    if discount_offered:
        state = "[green]aplicado[/green]" if discount_on else "[yellow]não aplicado[/yellow]"
        lines.append(f"Desconto ({customer.discount_percent:g}%): -{fmt_money(totals.discount_amount)} {state}")
    lines.append(f"[bold]Total: {fmt_money(totals.final_total)}[/bold]")
    return Panel("\n".join(lines), title="Resumo da venda", border_style="green")


def receipt_panel(sale: CompletedSale) -> Panel:
    rows = [f"{line.quantity} x {line.name} ({fmt_money(line.unit_price)}) = {fmt_money(line.line_total)}"
            for line in sale.lines]
    body = [
        f"Venda [bold]{sale.code}[/bold] (id {sale.id})",
        sale.timestamp.strftime("%d/%m/%Y %H:%M"),
        f"Cliente: {sale.customer.name if sale.customer else '-'}",
        "",
        *rows,
        "",
        f"Subtotal: {fmt_money(sale.subtotal)}",
    ]
    if sale.discount_percent:
        body.append(f"Desconto: {sale.discount_percent:g}%")
    body.append(f"[bold]Total: {fmt_money(sale.total)}[/bold]")
    body.append(f"Pagamento: {PAYMENT_LABELS.get(sale.payment_method, sale.payment_method.value)}")
    return Panel("\n".join(body), title="✅ Venda registrada", border_style="green")


class VendaTUI:
    """Text User Interface do caixa."""

    def __init__(self, terminal: SalesTerminal, console: Optional[Console] = None):
        self.console = console or Console()
        self.terminal = terminal

    def run(self) -> None:
        """Inicia a interface principal."""
        self.show_banner()
        try:
            while True:
                choice = self.show_main_menu()
                if choice == "1":
                    self.buscar_produto()
                elif choice == "2":
                    self.editar_carrinho()
                elif choice == "3":
                    self.finalizar_venda()
                elif choice == "4":
                    self.cancelar_venda()
                elif choice == "0":
                    if self.terminal.cart.is_empty or Confirm.ask("Há itens no carrinho. Cancelar a venda e sair?"):
                        self.terminal.cancel_sale()
                        self.console.print("\n[green]Saindo do caixa...[/green]")
                        break
        except KeyboardInterrupt:
            self.console.print("\n[red]Saindo...[/red]")
            self.terminal.cancel_sale()

    def show_banner(self) -> None:
        banner = Panel.fit(
            "[bold blue]PONTO DE VENDA[/bold blue]\n"
            f"[cyan]{len(self.terminal.catalog)} produtos no catálogo[/cyan]",
            border_style="blue",
        )
        self.console.print(Align.center(banner))

    def show_main_menu(self) -> str:
        cart = self.terminal.cart
        menu = Panel(
            "[bold]MENU[/bold]\n\n"
            "[yellow]1.[/yellow] Buscar / adicionar produto\n"
            f"[yellow]2.[/yellow] Carrinho ({cart.count} itens, {fmt_money(cart.total)})\n"
            "[yellow]3.[/yellow] Finalizar venda\n"
            "[yellow]4.[/yellow] Cancelar venda\n"
            "[yellow]0.[/yellow] Sair\n",
            title="Caixa",
            border_style="green",
        )
        self.console.print(menu)
        return Prompt.ask("Escolha uma opção", choices=["0", "1", "2", "3", "4"], console=self.console)

    # -----------------------
    # carrinho
    # -----------------------

    def buscar_produto(self) -> None:
        termo = Prompt.ask("Nome ou código (vazio = catálogo completo)", default="", console=self.console)
        found = self.terminal.catalog.search(termo) if termo.strip() else self.terminal.catalog.all()
        if not found:
            self.console.print("[yellow]Nenhum produto encontrado.[/yellow]")
            return
        self.console.print(products_table(found))
        escolha = Prompt.ask("Número do produto (0 = voltar)", default="0", console=self.console)
        if not escolha.isdigit() or not 0 < int(escolha) <= len(found):
            return
        try:
            product = self.terminal.add(found[int(escolha) - 1])
            self.console.print(f"[green]+1 {product.name}[/green]")
        except PdvError as e:
            self.console.print(f"[red]{e.message}[/red]")

    def editar_carrinho(self) -> None:
        cart = self.terminal.cart
        while not cart.is_empty:
            self.console.print(cart_table(cart))
            escolha = Prompt.ask("Item a alterar (0 = voltar)", default="0", console=self.console)
            if not escolha.isdigit() or not 0 < int(escolha) <= len(cart.items):
                return
            item = cart.items[int(escolha) - 1]
            qtd = Prompt.ask(f"Nova quantidade para {item.product.name} (0 remove)",
                             default=str(item.quantity), console=self.console)
            if not qtd.isdigit():
                continue
            try:
                self.terminal.set_quantity(item.product, int(qtd))
            except PdvError as e:
                self.console.print(f"[red]{e.message}[/red]")
        self.console.print("[dim]Carrinho vazio.[/dim]")

    def cancelar_venda(self) -> None:
        if self.terminal.cart.is_empty:
            return
        if Confirm.ask("Cancelar a venda e devolver os itens ao estoque?", console=self.console):
            self.terminal.cancel_sale()
            self.console.print("[yellow]Venda cancelada.[/yellow]")

    # -----------------------
    # checkout
    # -----------------------

    def finalizar_venda(self) -> Optional[CompletedSale]:
        workflow = self.terminal.checkout
        try:
            session = workflow.open()
        except PdvError as e:
            self.console.print(f"[red]Não foi possível iniciar o checkout: {e.message}[/red]")
            return None
        self.console.print(f"[cyan]Código reservado: {session.code}[/cyan]")

        picker = CustomerPicker(self.terminal.directory)
        try:
            while workflow.is_open:
                step = workflow.session.step
                if step is CheckoutStep.PRODUCTS:
                    action = self._passo_produtos()
                elif step is CheckoutStep.CUSTOMER:
                    action = self._passo_cliente(picker)
                elif step is CheckoutStep.PAYMENT:
                    action = self._passo_pagamento()
                else:
                    action = self._passo_resumo()
                if action == "sair":
                    break
        finally:
            if workflow.is_open:
                workflow.close()
                self.console.print("[yellow]Checkout fechado; código liberado.[/yellow]")
        return workflow.last_sale

    def _avancar(self) -> None:
        workflow = self.terminal.checkout
        try:
            workflow.next()
        except PdvError as e:
            self.console.print(f"[red]{e.message}[/red]")

    def _passo_produtos(self) -> str:
        self.console.print(Panel("Passo 1/4 — Produtos", border_style="cyan"))
        self.console.print(cart_table(self.terminal.cart))
        op = Prompt.ask("[a]vançar, [x] fechar", choices=["a", "x"], default="a", console=self.console)
        if op == "x":
            return "sair"
        self._avancar()
        return ""

    def _passo_cliente(self, picker: CustomerPicker) -> str:
        workflow = self.terminal.checkout
        session = workflow.session
        self.console.print(Panel(
            f"Passo 2/4 — Cliente (atual: {session.customer.name if session.customer else 'nenhum'})",
            border_style="cyan",
        ))
        if not picker.items and picker.error is None:
            picker.load()
        if picker.error:
            self.console.print(f"[red]{picker.error}[/red]")
        self.console.print(customers_table(picker))
        op = Prompt.ask(
            "Número para selecionar, [b]uscar, [n]/[p] página, [c]adastrar, [a]vançar, [v]oltar, [x] fechar",
            default="a", console=self.console,
        )
        if op.isdigit() and 0 < int(op) <= len(picker.items):
            workflow.select_customer(picker.items[int(op) - 1])
        elif op == "b":
            picker.search = Prompt.ask("Nome, documento ou e-mail", default="", console=self.console).strip()
            picker.load(1)
        elif op == "n":
            picker.next_page()
        elif op == "p":
            picker.previous_page()
        elif op == "c":
            self._cadastrar_cliente()
        elif op == "v":
            workflow.back()
        elif op == "x":
            return "sair"
        elif op == "a":
            self._avancar()
        return ""

    def _cadastrar_cliente(self) -> None:
        fields = {
            "nombre": Prompt.ask("Nome", console=self.console),
            "tipoIdentificacion": Prompt.ask("Tipo de documento", default="CC", console=self.console),
            "numeroIdentificacion": Prompt.ask("Documento", console=self.console),
            "email": Prompt.ask("E-mail", console=self.console),
            "telefono": Prompt.ask("Telefone (10 dígitos)", console=self.console),
        }
        try:
            customer = self.terminal.checkout.register_customer(fields)
            self.console.print(f"[green]Cliente {customer.name} cadastrado e selecionado.[/green]")
        except ValidationError as e:
            for msg in (e.errors or {"": e.message}).values():
                self.console.print(f"[red]{msg}[/red]")
        except PdvError as e:
            self.console.print(f"[red]{e.message}[/red]")

    def _passo_pagamento(self) -> str:
        workflow = self.terminal.checkout
        self.console.print(Panel("Passo 3/4 — Pagamento", border_style="cyan"))
        methods = list(PaymentMethod)
        for idx, m in enumerate(methods, 1):
            self.console.print(f"[yellow]{idx}.[/yellow] {PAYMENT_LABELS[m]}")
        op = Prompt.ask("Meio de pagamento, [v]oltar, [x] fechar", default="1", console=self.console)
        if op.isdigit() and 0 < int(op) <= len(methods):
            workflow.choose_payment(methods[int(op) - 1])
            self._avancar()
        elif op == "v":
            workflow.back()
        elif op == "x":
            return "sair"
        return ""

    def _passo_resumo(self) -> str:
        workflow = self.terminal.checkout
        session = workflow.session
        self.console.print(Panel("Passo 4/4 — Resumo", border_style="cyan"))
        self.console.print(summary_panel(
            session.code, session.customer, session.payment_method, workflow.summary(),
            workflow.discount_available, session.discount_applied,
        ))
        choices = ["f", "v", "x"] + (["d"] if workflow.discount_available else [])
        op = Prompt.ask(
            "[f]inalizar" + (", [d] alternar desconto" if workflow.discount_available else "")
            + ", [v]oltar, [x] fechar",
            choices=choices, default="f", console=self.console,
        )
        if op == "d":
            workflow.set_discount(not session.discount_applied)
        elif op == "v":
            workflow.back()
        elif op == "x":
            return "sair"
        elif op == "f":
            try:
                sale = workflow.commit()
            except CommitError as e:
                hint = " Tente novamente." if e.retryable else ""
                self.console.print(f"[red]Venda não registrada: {e.message}.{hint}[/red]")
                return ""
            except PdvError as e:
                self.console.print(f"[red]{e.message}[/red]")
                return ""
            self.console.print(receipt_panel(sale))
            return "sair"
        return ""


def main_tui(terminal: SalesTerminal) -> None:
    VendaTUI(terminal).run()
