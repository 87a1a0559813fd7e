from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

import livros_fiscais.config as config_module


def salvar_planilha(caminho: Path, linhas, titulo: str = "Livro") -> Path:
    """Grava as linhas na primeira aba de uma pasta de trabalho nova."""
    workbook = Workbook()
    aba = workbook.active
    aba.title = titulo
    for linha in linhas:
        aba.append(list(linha))
    workbook.save(caminho)
    return caminho


LINHAS_COMPRAS = [
    ["Empresa Exemplo Ltda"],
    ["Livro de entradas - janeiro/2024"],
    ["Fornecedor", "Data", "Nº NF-e", "CFOP", "Valor Total", "ICMS", "IPI", "Observação"],
    ["Alfa Insumos", "15/01/2024", "1001", "1102", "R$ 1.234,56", "222,22", "0", "urgente"],
    ["Beta Comércio", "16/01/2024", "1002", 1102, "(123,45)", "0", "0", ""],
    ["Gama Peças", 45000, "1003", "2102", 500, 90, 10, ""],
    ["Delta Serviços", datetime(2024, 2, 1), "1004", "1556", "1,234.56", "0", "0", ""],
    ["", "2024-02-05", "1005", "1102", "10,00", "1,80", "0", ""],
    ["TOTAL GERAL", "", "", "", "2.855,67", "", "", ""],
]


@pytest.fixture
def planilha_compras(tmp_path) -> Path:
    return salvar_planilha(tmp_path / "compras.xlsx", LINHAS_COMPRAS)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "livros.duckdb"


@pytest.fixture(autouse=True)
def configuracao_padrao(monkeypatch, tmp_path):
    """Isola cada teste do arquivo de configuração do projeto."""
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "inexistente.toml")
    with config_module._configuracao_lock:
        config_module._configuracao_cache = None
    yield
    with config_module._configuracao_lock:
        config_module._configuracao_cache = None
