import json

import pytest
from typer.testing import CliRunner

from pdv.adapters import cli
from pdv.adapters.cli import app
from pdv.domain.errors import TransportError
from pdv.usecases.terminal import SalesTerminal

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_terminal(monkeypatch, backend):
    monkeypatch.setattr(cli, "_build_terminal", lambda *a, **k: SalesTerminal(backend))


def test_catalogo_lists_products():
    result = runner.invoke(app, ["catalogo"])
    assert result.exit_code == 0, result.output
    assert "Lápiz HB" in result.output
    assert "Borrador" in result.output


def test_catalogo_busca():
    result = runner.invoke(app, ["catalogo", "--busca", "cua"])
    assert result.exit_code == 0, result.output
    assert "Cuaderno" in result.output
    assert "Lápiz" not in result.output


def test_catalogo_from_file(tmp_path):
    path = tmp_path / "catalogo.csv"
    path.write_text("codigo,nome,preco,estoque\nA-1,Apontador,2500,4\n", encoding="utf-8")
    result = runner.invoke(app, ["catalogo", "--arquivo", str(path)])
    assert result.exit_code == 0, result.output
    assert "Apontador" in result.output


def test_catalogo_api_offline(backend):
    backend.fail_next("GET", "productos", TransportError("offline"))
    result = runner.invoke(app, ["catalogo"])
    assert result.exit_code == 1
    assert "offline" in result.output


def test_codigo_ultimo(backend):
    result = runner.invoke(app, ["codigo", "ultimo"])
    assert result.stdout.strip() == "VTA-007"


def test_codigo_reservar_libera_ao_sair(backend):
    result = runner.invoke(app, ["codigo", "reservar"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "VTA-008"
    # nenhum código fica preso depois do comando
    assert backend.reserved == set()
    assert backend.released == ["VTA-008"]
    assert backend.committed == set()


def test_codigo_reservar_falha_ao_liberar(backend):
    backend.fail_next("POST", "ventas/codigos/liberar", TransportError("offline"))
    result = runner.invoke(app, ["codigo", "reservar"])
    assert result.exit_code == 1
    assert "VTA-008" in result.output
    assert len(backend.calls_to("POST", "ventas/codigos/liberar")) == 1


def test_codigo_liberar_orfao(backend):
    backend.reserved.add("VTA-008")
    result = runner.invoke(app, ["codigo", "liberar", "VTA-008"])
    assert result.exit_code == 0, result.output
    assert backend.released == ["VTA-008"]
    assert backend.reserved == set()


def test_clientes_listar_json():
    result = runner.invoke(app, ["clientes", "listar", "--json", "--limite", "2"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [c["nome"] for c in data["items"]] == ["Ana Gómez", "Bruno Díaz"]
    assert data["pagination"]["pages"] == 2


def test_clientes_novo(backend):
    result = runner.invoke(app, [
        "clientes", "novo", "--nome", "Diego", "--documento", "555",
        "--email", "diego@example.com", "--telefone", "3005556677", "--desconto", "5",
    ])
    assert result.exit_code == 0, result.output
    assert "Diego" in result.stdout
    assert backend.customers[-1]["descuentoPersonalizado"] == 5.0


def test_clientes_novo_invalido(backend):
    result = runner.invoke(app, [
        "clientes", "novo", "--nome", "Diego", "--documento", "555",
        "--email", "diego", "--telefone", "123",
    ])
    assert result.exit_code == 1
    assert "E-mail inválido" in result.output
    assert len(backend.customers) == 3


def test_logs_unknown_type():
    result = runner.invoke(app, ["logs", "--tipo", "nenhum"])
    assert result.exit_code == 0
    assert "não encontrado" in result.stdout
