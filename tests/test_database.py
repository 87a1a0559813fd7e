from datetime import datetime, timezone

import pytest

from livros_fiscais.database import (
	calcular_estatisticas,
	conexao,
	contar_registros,
	inicializar_banco,
	inserir_lote,
	listar_registros,
	obter_resumo_persistido,
	obter_ultima_sincronizacao,
	registrar_sincronizacao,
	registros_vazios,
	remover_registros,
)
from livros_fiscais.parsers import RegistroCompra, RegistroVenda


def _compra(indice: int, fornecedor: str, valor: float, dia: int, mes: int = 1, **extras) -> RegistroCompra:
	return RegistroCompra(
		fornecedor=fornecedor,
		data_compra=datetime(2024, mes, dia, tzinfo=timezone.utc),
		numero_nfe=str(1000 + indice),
		cfop="1102",
		valor_total=valor,
		icms=valor * 0.18,
		source_row_index=indice,
		**extras,
	)


def _popular(db_path, tenant_id="empresa-a"):
	registros = [
		_compra(1, "Alfa Insumos", 100.0, 5),
		_compra(2, "Beta Comércio", 250.5, 20),
		_compra(3, "Alfa Insumos", 49.5, 3, mes=2, outras_info={"obs": "urgente"}),
		_compra(4, "", 10.0, 10, mes=2),
	]
	with conexao(db_path) as con:
		inserir_lote(con, tenant_id, "compras", registros)
	return registros


def test_inicializar_banco_cria_tabelas(db_path):
	con = inicializar_banco(db_path=db_path)
	try:
		tabelas = {row[0] for row in con.execute("SHOW TABLES").fetchall()}
	finally:
		con.close()

	assert {"registros_compras", "registros_vendas", "historico_sincronizacoes"} <= tabelas


def test_inserir_e_calcular_estatisticas(db_path):
	_popular(db_path)

	with conexao(db_path) as con:
		estatisticas = calcular_estatisticas(con, "empresa-a", "compras")

	assert estatisticas.quantidade == 4
	assert estatisticas.total_valor == pytest.approx(410.0)
	assert estatisticas.total_icms == pytest.approx(73.8)
	assert estatisticas.para_dict()["count"] == 4
	assert set(estatisticas.para_dict()) == {
		"totalValue",
		"totalICMS",
		"totalIPI",
		"totalPIS",
		"totalCOFINS",
		"count",
	}


def test_estatisticas_de_empresa_sem_registros(db_path):
	with conexao(db_path) as con:
		estatisticas = calcular_estatisticas(con, "ninguem", "vendas")
	assert estatisticas.quantidade == 0
	assert estatisticas.total_valor == 0.0


def test_remover_registros_isola_empresas(db_path):
	_popular(db_path, "empresa-a")
	_popular(db_path, "empresa-b")

	with conexao(db_path) as con:
		removidos = remover_registros(con, "empresa-a", "compras")

	assert removidos == 4
	assert registros_vazios("empresa-a", "compras", db_path=db_path)
	assert contar_registros("empresa-b", "compras", db_path=db_path) == 4


def test_registros_de_venda_ficam_em_tabela_propria(db_path):
	venda = RegistroVenda(
		cliente="Loja Um",
		data_emissao=datetime(2024, 3, 1, tzinfo=timezone.utc),
		numero_nfe="55",
		valor_total=80.0,
	)
	with conexao(db_path) as con:
		inserir_lote(con, "empresa-a", "sales", [venda])

	assert contar_registros("empresa-a", "vendas", db_path=db_path) == 1
	assert contar_registros("empresa-a", "compras", db_path=db_path) == 0

	listagem = listar_registros("empresa-a", "vendas", db_path=db_path)
	assert listagem["registros"][0]["cliente"] == "Loja Um"
	assert listagem["registros"][0]["data_emissao"].startswith("2024-03-01")


def test_listar_registros_ordena_busca_e_pagina(db_path):
	_popular(db_path)

	primeira = listar_registros("empresa-a", "compras", tamanho_pagina=3, db_path=db_path)
	assert [r["numero_nfe"] for r in primeira["registros"]] == ["1004", "1003", "1002"]
	assert primeira["paginacao"] == {
		"pagina": 0,
		"tamanho_pagina": 3,
		"total": 4,
		"total_paginas": 2,
	}
	assert primeira["registros"][1]["outras_info"] == {"obs": "urgente"}

	segunda = listar_registros("empresa-a", "compras", pagina=1, tamanho_pagina=3, db_path=db_path)
	assert [r["numero_nfe"] for r in segunda["registros"]] == ["1001"]

	busca = listar_registros("empresa-a", "compras", busca="alfa", db_path=db_path)
	assert busca["paginacao"]["total"] == 2
	assert {r["fornecedor"] for r in busca["registros"]} == {"Alfa Insumos"}

	por_nota = listar_registros("empresa-a", "compras", busca="1002", db_path=db_path)
	assert [r["fornecedor"] for r in por_nota["registros"]] == ["Beta Comércio"]


def test_resumo_persistido(db_path):
	_popular(db_path)

	resumo = obter_resumo_persistido("empresa-a", "compras", db_path=db_path)

	assert resumo["estatisticas"]["count"] == 4
	assert resumo["valor_medio"] == pytest.approx(102.5)
	assert resumo["por_entidade"][0] == {"nome": "Beta Comércio", "total": pytest.approx(250.5), "quantidade": 1}
	assert resumo["por_entidade"][1]["nome"] == "Alfa Insumos"
	assert resumo["por_entidade"][1]["quantidade"] == 2
	assert resumo["por_entidade"][2]["nome"] == "Não informado"
	assert [m["mes"] for m in resumo["por_mes"]] == ["2024-01", "2024-02"]
	assert resumo["por_mes"][0]["total"] == pytest.approx(350.5)


def test_historico_de_sincronizacao(db_path):
	assert obter_ultima_sincronizacao("empresa-a", "compras", db_path=db_path) is None

	with conexao(db_path) as con:
		registrar_sincronizacao(
			con, "empresa-a", "compras", 3, datetime(2024, 5, 1, 12, tzinfo=timezone.utc), arquivo="jan.xlsx"
		)
		registrar_sincronizacao(
			con, "empresa-a", "compras", 7, datetime(2024, 5, 2, 12, tzinfo=timezone.utc), arquivo="fev.xlsx"
		)

	ultima = obter_ultima_sincronizacao("empresa-a", "purchases", db_path=db_path)
	assert ultima == {
		"inseridos": 7,
		"arquivo": "fev.xlsx",
		"sincronizado_em": datetime(2024, 5, 2, 12, tzinfo=timezone.utc),
	}
	assert obter_ultima_sincronizacao("empresa-a", "vendas", db_path=db_path) is None
