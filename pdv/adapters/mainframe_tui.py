from __future__ import annotations

from typing import Dict, Optional

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical, ScrollableContainer
from textual.screen import ModalScreen, Screen
from textual.timer import Timer
from textual.widgets import Button, Checkbox, DataTable, Footer, Header, Input, Label, Static

from pdv.adapters.tui import PAYMENT_LABELS, fmt_money, receipt_panel, summary_panel
from pdv.domain.errors import CommitError, PdvError, ValidationError
from pdv.domain.models import CompletedSale, PaymentMethod
from pdv.domain.policies import is_low_stock
from pdv.infra.logger import log_system_event
from pdv.usecases.checkout import CheckoutStep
from pdv.usecases.clientes import CustomerPicker
from pdv.usecases.terminal import SalesTerminal


class OutputScreen(Screen):
    """Screen to display a renderable (receipt, messages)."""
    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("q", "app.pop_screen", "Back"),
    ]

    def __init__(self, title: str, content) -> None:
        super().__init__()
        self.title = title
        self.content = content

    def compose(self) -> ComposeResult:
        yield Header()
        with ScrollableContainer():
            yield Static(f"🧾 {self.title}", classes="output-title")
            yield Static(self.content)
        yield Footer()


class CustomerForm(ModalScreen):
    """Modal form for registering a customer."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Cancel"),
    ]

    FIELDS = [
        ("nombre", "Nome:", "Maria Pérez"),
        ("numeroIdentificacion", "Documento:", "1020304050"),
        ("email", "E-mail:", "maria@example.com"),
        ("telefono", "Telefone (10 dígitos):", "3001234567"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.inputs: Dict[str, Input] = {}

    def compose(self) -> ComposeResult:
        with Container(id="customer-form-modal"):
            yield Static("👤 Novo cliente", classes="modal-title")
            with Vertical():
                for key, label, placeholder in self.FIELDS:
                    yield Label(label)
                    self.inputs[key] = Input(placeholder=placeholder, id=f"{key}-input")
                    yield self.inputs[key]
                with Horizontal():
                    yield Button("💾 Salvar", variant="primary", id="save-btn")
                    yield Button("❌ Cancelar", id="cancel-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "save-btn":
            self.dismiss({key: inp.value.strip() for key, inp in self.inputs.items()})
        elif event.button.id == "cancel-btn":
            self.app.pop_screen()


class CheckoutScreen(ModalScreen[Optional[CompletedSale]]):
    """Checkout em 4 passos sobre uma sessão já aberta."""

    BINDINGS = [
        ("escape", "cancel_checkout", "Cancel"),
    ]

    def __init__(self, terminal: SalesTerminal) -> None:
        super().__init__()
        self.terminal = terminal
        self.workflow = terminal.checkout
        self.picker = CustomerPicker(terminal.directory)
        self._search_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        with Container(id="checkout-modal"):
            yield Static("", id="step-title", classes="modal-title")
            yield Static("", id="step-body")
            with Vertical(id="customer-pane"):
                yield Input(placeholder="Buscar por nome, documento ou e-mail", id="customer-search")
                customers = DataTable(zebra_stripes=True, cursor_type="row", id="customers")
                customers.add_columns("Nome", "Documento", "E-mail", "Desconto")
                yield customers
                with Horizontal():
                    yield Button("◀ Página", id="prev-page-btn")
                    yield Button("Página ▶", id="next-page-btn")
                    yield Button("➕ Novo cliente", id="new-customer-btn")
            with Horizontal(id="payment-pane"):
                for method in PaymentMethod:
                    yield Button(PAYMENT_LABELS[method], id=f"pay-{method.name}")
            yield Checkbox("Aplicar desconto do cliente", id="discount-checkbox")
            yield Static("", id="error-line")
            with Horizontal():
                yield Button("◀ Voltar", id="back-btn")
                yield Button("Avançar ▶", variant="primary", id="next-btn")
                yield Button("✅ Confirmar", variant="success", id="confirm-btn")
                yield Button("❌ Cancelar", variant="error", id="cancel-btn")

    def on_mount(self) -> None:
        self.picker.load()
        self.refresh_customers()
        self.refresh_view()

    # -----------------------
    # render
    # -----------------------

    def refresh_customers(self) -> None:
        table = self.query_one("#customers", DataTable)
        table.clear()
        for c in self.picker.items:
            table.add_row(c.name, c.document, c.email or "", f"{c.discount_percent:g}%" if c.has_discount else "")
        if self.picker.error:
            self.show_error(self.picker.error)

    def show_error(self, message: str) -> None:
        self.query_one("#error-line", Static).update(f"[red]{message}[/red]" if message else "")

    def refresh_view(self) -> None:
        session = self.workflow.session
        if session is None:
            return
        step = session.step
        self.query_one("#step-title", Static).update(
            f"🛒 Passo {int(step)}/4 — {step.label}   (código {session.code})"
        )

        body = self.query_one("#step-body", Static)
        if step is CheckoutStep.PRODUCTS:
            lines = [f"{i.quantity} x {i.product.name} = {fmt_money(i.line_total)}" for i in self.terminal.cart.items]
            lines.append(f"\nTotal: {fmt_money(self.terminal.cart.total)}")
            body.update("\n".join(lines))
        elif step is CheckoutStep.CUSTOMER:
            body.update(f"Cliente: {session.customer.name if session.customer else '(nenhum)'}")
        elif step is CheckoutStep.PAYMENT:
            method = session.payment_method
            body.update(f"Pagamento: {PAYMENT_LABELS[method] if method else '(escolha abaixo)'}")
        else:
            body.update(summary_panel(
                session.code, session.customer, session.payment_method, self.workflow.summary(),
                self.workflow.discount_available, session.discount_applied,
            ))

        self.query_one("#customer-pane").display = step is CheckoutStep.CUSTOMER
        self.query_one("#payment-pane").display = step is CheckoutStep.PAYMENT
        checkbox = self.query_one("#discount-checkbox", Checkbox)
        checkbox.display = step is CheckoutStep.SUMMARY and self.workflow.discount_available
        checkbox.value = session.discount_applied
        self.query_one("#next-btn", Button).display = step is not CheckoutStep.SUMMARY
        self.query_one("#next-btn", Button).disabled = not self.workflow.can_advance()
        self.query_one("#confirm-btn", Button).display = step is CheckoutStep.SUMMARY

    # -----------------------
    # events
    # -----------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "customer-search":
            return
        self.picker.type_search(event.value)
        if self._search_timer is not None:
            self._search_timer.stop()
        self._search_timer = self.set_timer(self.picker.debouncer.delay, self._run_search)

    def _run_search(self) -> None:
        if self.picker.poll():
            self.refresh_customers()
        elif self.picker.debouncer.pending:
            self._search_timer = self.set_timer(0.05, self._run_search)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.data_table.id != "customers":
            return
        if 0 <= event.cursor_row < len(self.picker.items):
            self.workflow.select_customer(self.picker.items[event.cursor_row])
            self.refresh_view()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if self.workflow.is_open and self.workflow.session.step is CheckoutStep.SUMMARY:
            if event.value != self.workflow.session.discount_applied:
                self.workflow.set_discount(event.value)
                self.refresh_view()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        bid = event.button.id or ""
        self.show_error("")
        try:
            if bid.startswith("pay-"):
                self.workflow.choose_payment(PaymentMethod[bid[4:]])
            elif bid == "back-btn":
                self.workflow.back()
            elif bid == "next-btn":
                self.workflow.next()
            elif bid == "prev-page-btn":
                self.picker.previous_page()
                self.refresh_customers()
            elif bid == "next-page-btn":
                self.picker.next_page()
                self.refresh_customers()
            elif bid == "new-customer-btn":
                self.app.push_screen(CustomerForm(), self.on_customer_form_result)
            elif bid == "confirm-btn":
                self.confirm()
                return
            elif bid == "cancel-btn":
                self.action_cancel_checkout()
                return
        except PdvError as e:
            self.show_error(e.message)
        self.refresh_view()

    def on_customer_form_result(self, fields: Optional[Dict[str, str]]) -> None:
        if not fields:
            return
        try:
            customer = self.workflow.register_customer(fields)
            self.notify(f"✅ Cliente {customer.name} cadastrado")
        except ValidationError as e:
            self.show_error("; ".join(e.errors.values()) or e.message)
        except PdvError as e:
            self.show_error(e.message)
        self.refresh_view()

    def confirm(self) -> None:
        button = self.query_one("#confirm-btn", Button)
        button.disabled = True
        try:
            sale = self.workflow.commit()
        except CommitError as e:
            hint = " Tente novamente." if e.retryable else ""
            self.show_error(f"Venda não registrada: {e.message}.{hint}")
            return
        except PdvError as e:
            self.show_error(e.message)
            return
        finally:
            button.disabled = False
        self.dismiss(sale)

    def action_cancel_checkout(self) -> None:
        self.workflow.close()
        self.dismiss(None)


class PdvApp(App):

    """Main TUI Application for the sales terminal."""

    CSS = """
    Screen {
        background: #001122;
    }

    .modal-title {
        background: #003366;
        color: #ffffff;
        text-align: center;
        padding: 1;
        margin-bottom: 1;
    }

    .output-title {
        background: #004488;
        color: #ffffff;
        text-align: center;
        padding: 1;
        margin-bottom: 1;
    }

    Container#checkout-modal {
        background: #112233;
        border: solid #00aaff;
        width: 90;
        height: auto;
        margin: 2;
    }

    Container#customer-form-modal {
        background: #112233;
        border: solid #00aaff;
        width: 60;
        height: 24;
        margin: 2;
    }

    #cart-total {
        background: #003366;
        color: #ffffff;
        padding: 1;
    }

    Button {
        margin: 1;
    }
    """

    TITLE = "🛒 PDV - Caixa"
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f", "checkout", "Finalizar"),
        ("c", "cancel_sale", "Cancelar venda"),
        ("plus", "increment", "+1"),
        ("minus", "decrement", "-1"),
        ("delete", "remove_item", "Remover"),
    ]

    def __init__(self, terminal: SalesTerminal) -> None:
        super().__init__()
        self.terminal = terminal

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            with Vertical():
                yield Input(placeholder="Buscar produto por nome ou código", id="search")
                catalog = DataTable(zebra_stripes=True, cursor_type="row", id="catalog")
                catalog.add_columns("Código", "Produto", "Preço", "Estoque")
                yield catalog
            with Vertical():
                cart = DataTable(zebra_stripes=True, cursor_type="row", id="cart")
                cart.add_columns("Produto", "Qtd", "Total")
                yield cart
                yield Static("", id="cart-total")
                with Horizontal():
                    yield Button("✅ Finalizar", variant="primary", id="checkout-btn")
                    yield Button("❌ Cancelar venda", id="cancel-sale-btn")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_catalog()
        self.refresh_cart()

    # -----------------------
    # render
    # -----------------------

    def refresh_catalog(self, term: str = "") -> None:
        table = self.query_one("#catalog", DataTable)
        table.clear()
        products = self.terminal.catalog.search(term) if term.strip() else self.terminal.catalog.all()
        for p in products:
            stock = f"[bold red]{p.stock}[/]" if is_low_stock(p.stock) else str(p.stock)
            table.add_row(p.code, p.name, fmt_money(p.price), stock, key=p.id)

    def refresh_cart(self) -> None:
        cart = self.terminal.cart
        table = self.query_one("#cart", DataTable)
        table.clear()
        for item in cart.items:
            table.add_row(item.product.name, str(item.quantity), fmt_money(item.line_total), key=item.product.id)
        customer = f" — {cart.customer.name}" if cart.customer else ""
        self.query_one("#cart-total", Static).update(f"{cart.count} itens{customer}   Total: {fmt_money(cart.total)}")

    def refresh_all(self) -> None:
        self.refresh_catalog(self.query_one("#search", Input).value)
        self.refresh_cart()

    # -----------------------
    # events
    # -----------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self.refresh_catalog(event.value)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.data_table.id != "catalog":
            return
        try:
            self.terminal.add(event.row_key.value)
        except PdvError as e:
            self.notify(f"❌ {e.message}", severity="warning")
        self.refresh_all()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "checkout-btn":
            self.action_checkout()
        elif event.button.id == "cancel-sale-btn":
            self.action_cancel_sale()

    def _selected_cart_product(self) -> Optional[str]:
        table = self.query_one("#cart", DataTable)
        items = self.terminal.cart.items
        if 0 <= table.cursor_row < len(items):
            return items[table.cursor_row].product.id
        return None

    def action_increment(self) -> None:
        pid = self._selected_cart_product()
        if pid is None:
            return
        try:
            self.terminal.increment(pid)
        except PdvError as e:
            self.notify(f"❌ {e.message}", severity="warning")
        self.refresh_all()

    def action_decrement(self) -> None:
        pid = self._selected_cart_product()
        if pid is not None:
            self.terminal.decrement(pid)
            self.refresh_all()

    def action_remove_item(self) -> None:
        pid = self._selected_cart_product()
        if pid is not None:
            self.terminal.remove(pid)
            self.refresh_all()

    def action_cancel_sale(self) -> None:
        if self.terminal.cart.is_empty:
            return
        self.terminal.cancel_sale()
        self.notify("Venda cancelada; estoque devolvido.")
        self.refresh_all()

    def action_checkout(self) -> None:
        try:
            self.terminal.checkout.open()
        except PdvError as e:
            self.notify(f"❌ {e.message}", severity="error")
            return
        self.push_screen(CheckoutScreen(self.terminal), self.on_checkout_result)

    def on_checkout_result(self, sale: Optional[CompletedSale]) -> None:
        self.refresh_all()
        if sale is not None:
            self.push_screen(OutputScreen(f"Venda {sale.code}", receipt_panel(sale)))

    async def action_quit(self) -> None:
        self.terminal.cancel_sale()
        log_system_event("tui_exit")
        self.exit()


def main(terminal: SalesTerminal) -> None:
    """Run the sales terminal TUI."""
    app = PdvApp(terminal)
    app.run()
