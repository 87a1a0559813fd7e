from datetime import datetime, timezone

import pytest

from livros_fiscais.parsers import RegistroVenda, parse_planilha
from livros_fiscais.resumo import montar_resumo, registros_para_dataframe


def _venda(cliente, valor, mes, **extras):
    return RegistroVenda(
        cliente=cliente,
        data_emissao=datetime(2024, mes, 15, tzinfo=timezone.utc),
        valor_total=valor,
        **extras,
    )


def test_resumo_de_compras_lidas(planilha_compras):
    registros = parse_planilha(planilha_compras, "compras")

    resumo = montar_resumo(registros, "purchases")

    assert resumo["tipo"] == "compras"
    assert resumo["resumo"]["total_registros"] == 5
    assert resumo["resumo"]["total_valor"] == pytest.approx(2855.67)
    assert resumo["resumo"]["valor_medio"] == pytest.approx(2855.67 / 5)
    assert [t["nome"] for t in resumo["tributos"]] == ["ICMS", "IPI", "COFINS", "PIS"]
    assert resumo["tributos"][0]["valor"] == pytest.approx(314.02)
    assert len(resumo["registros"]) == 5
    assert "Não informado" in {e["nome"] for e in resumo["por_entidade"]}


def test_agrupamento_por_entidade_e_mes():
    registros = [
        _venda("Loja Um", 100.0, 1),
        _venda("Loja Dois", 300.0, 1),
        _venda("Loja Um", 50.0, 2),
        _venda("  ", 5.0, 3, numero_nfe="9"),
    ]

    resumo = montar_resumo(registros, "vendas")

    assert resumo["por_entidade"] == [
        {"nome": "Loja Dois", "total": 300.0, "quantidade": 1},
        {"nome": "Loja Um", "total": 150.0, "quantidade": 2},
        {"nome": "Não informado", "total": 5.0, "quantidade": 1},
    ]
    assert [m["mes"] for m in resumo["por_mes"]] == ["2024-01", "2024-02", "2024-03"]
    assert resumo["por_mes"][0]["total"] == pytest.approx(400.0)


def test_limites_de_entidades_e_previa():
    registros = [_venda(f"Cliente {i:03d}", float(i), 1) for i in range(120)]

    resumo = montar_resumo(registros, "vendas")

    assert len(resumo["por_entidade"]) == 10
    assert resumo["por_entidade"][0]["nome"] == "Cliente 119"
    assert len(resumo["registros"]) == 100


def test_resumo_sem_registros():
    resumo = montar_resumo([], "vendas")

    assert resumo["resumo"]["total_registros"] == 0
    assert resumo["resumo"]["valor_medio"] == 0.0
    assert resumo["por_entidade"] == []
    assert resumo["por_mes"] == []


def test_dataframe_tem_colunas_neutras():
    df = registros_para_dataframe([_venda("Loja Um", 10.0, 4)])
    assert list(df.columns[:2]) == ["entidade", "data"]
    assert df.loc[0, "entidade"] == "Loja Um"
