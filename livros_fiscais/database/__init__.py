"""Camada de persistência em DuckDB.

Guarda os registros canônicos de compras e vendas particionados por empresa
(``tenant_id``). O conjunto de uma empresa/tipo nunca é atualizado linha a
linha: cada sincronização remove tudo e insere o lote novo.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Sequence

import duckdb

from livros_fiscais.config import caminho_banco_padrao
from livros_fiscais.logger import setup_logging
from livros_fiscais.parsers.aliases import TipoRegistro, resolver_tipo
from livros_fiscais.parsers.modelos import RegistroCanonico

logger = setup_logging("database")

_TABELAS: dict[TipoRegistro, str] = {
	TipoRegistro.COMPRAS: "registros_compras",
	TipoRegistro.VENDAS: "registros_vendas",
}

_SCHEMA_DEFINITIONS: tuple[str, ...] = (
	"""
	CREATE TABLE IF NOT EXISTS registros_compras (
		tenant_id VARCHAR NOT NULL,
		fornecedor TEXT,
		data_compra TIMESTAMP NOT NULL,
		numero_nfe VARCHAR,
		cfop VARCHAR,
		valor_total DECIMAL(18, 2) DEFAULT 0,
		icms DECIMAL(18, 2) DEFAULT 0,
		ipi DECIMAL(18, 2) DEFAULT 0,
		pis DECIMAL(18, 2) DEFAULT 0,
		cofins DECIMAL(18, 2) DEFAULT 0,
		bruto DECIMAL(18, 2) DEFAULT 0,
		outras_info TEXT,
		source_row_index INTEGER,
		criado_em TIMESTAMP DEFAULT CURRENT_TIMESTAMP
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS registros_vendas (
		tenant_id VARCHAR NOT NULL,
		cliente TEXT,
		data_emissao TIMESTAMP NOT NULL,
		numero_nfe VARCHAR,
		cfop VARCHAR,
		valor_total DECIMAL(18, 2) DEFAULT 0,
		icms DECIMAL(18, 2) DEFAULT 0,
		ipi DECIMAL(18, 2) DEFAULT 0,
		pis DECIMAL(18, 2) DEFAULT 0,
		cofins DECIMAL(18, 2) DEFAULT 0,
		bruto DECIMAL(18, 2) DEFAULT 0,
		outras_info TEXT,
		source_row_index INTEGER,
		criado_em TIMESTAMP DEFAULT CURRENT_TIMESTAMP
	)
	""",
	"""
	CREATE SEQUENCE IF NOT EXISTS seq_historico_sincronizacoes START 1
	""",
	"""
	CREATE TABLE IF NOT EXISTS historico_sincronizacoes (
		id INTEGER PRIMARY KEY DEFAULT nextval('seq_historico_sincronizacoes'),
		tenant_id VARCHAR NOT NULL,
		tipo VARCHAR NOT NULL,
		inseridos INTEGER NOT NULL,
		arquivo TEXT,
		sincronizado_em TIMESTAMP NOT NULL
	)
	""",
)


@dataclass(slots=True)
class EstatisticasAgregadas:
	total_valor: float = 0.0
	total_icms: float = 0.0
	total_ipi: float = 0.0
	total_pis: float = 0.0
	total_cofins: float = 0.0
	quantidade: int = 0

	def para_dict(self) -> dict[str, Any]:
		return {
			"totalValue": self.total_valor,
			"totalICMS": self.total_icms,
			"totalIPI": self.total_ipi,
			"totalPIS": self.total_pis,
			"totalCOFINS": self.total_cofins,
			"count": self.quantidade,
		}


def _resolver_caminho_banco(db_path: Path | str | None = None) -> Path:
	caminho = Path(db_path) if db_path is not None else caminho_banco_padrao()
	caminho.parent.mkdir(parents=True, exist_ok=True)
	return caminho


def _aplicar_schema(con: duckdb.DuckDBPyConnection) -> None:
	for ddl in _SCHEMA_DEFINITIONS:
		con.execute(ddl)


def _tabela(tipo: TipoRegistro | str) -> tuple[TipoRegistro, str]:
	tipo = resolver_tipo(tipo)
	return tipo, _TABELAS[tipo]


@contextmanager
def conexao(db_path: Path | str | None = None) -> Iterator[duckdb.DuckDBPyConnection]:
	"""Abre uma conexão com o DuckDB garantindo que o schema exista."""

	con = duckdb.connect(str(_resolver_caminho_banco(db_path)))
	try:
		_aplicar_schema(con)
		yield con
	except duckdb.Error as e:
		logger.error(f"Erro no banco de dados: {e}")
		raise
	finally:
		con.close()


def inicializar_banco(db_path: Path | str | None = None) -> duckdb.DuckDBPyConnection:
	"""Cria (se necessário) e retorna uma conexão pronta para uso."""

	con = duckdb.connect(str(_resolver_caminho_banco(db_path)))
	_aplicar_schema(con)
	logger.info("Schema do banco de dados inicializado com sucesso.")
	return con


def _timestamp_utc(valor: datetime) -> datetime:
	"""DuckDB guarda TIMESTAMP sem fuso; gravamos sempre em UTC."""
	if valor.tzinfo is None:
		return valor
	return valor.astimezone(timezone.utc).replace(tzinfo=None)


def _para_float(valor: Any) -> float:
	if valor is None:
		return 0.0
	return float(valor)


def _linha_para_insercao(tenant_id: str, registro: RegistroCanonico) -> list[Any]:
	return [
		tenant_id,
		registro.entidade,
		_timestamp_utc(registro.data),
		registro.numero_nfe,
		registro.cfop,
		registro.valor_total,
		registro.icms,
		registro.ipi,
		registro.pis,
		registro.cofins,
		registro.bruto,
		json.dumps(registro.outras_info, ensure_ascii=False) if registro.outras_info else None,
		registro.source_row_index,
	]


def remover_registros(
	con: duckdb.DuckDBPyConnection, tenant_id: str, tipo: TipoRegistro | str
) -> int:
	"""Remove todo o conjunto persistido da empresa/tipo e retorna quantos saíram."""
	_, tabela = _tabela(tipo)
	existentes = con.execute(
		f"SELECT COUNT(*) FROM {tabela} WHERE tenant_id = ?", [tenant_id]
	).fetchone()
	con.execute(f"DELETE FROM {tabela} WHERE tenant_id = ?", [tenant_id])
	return int(existentes[0]) if existentes else 0


def inserir_lote(
	con: duckdb.DuckDBPyConnection,
	tenant_id: str,
	tipo: TipoRegistro | str,
	registros: Sequence[RegistroCanonico],
) -> int:
	if not registros:
		return 0
	tipo, tabela = _tabela(tipo)
	con.executemany(
		f"""
		INSERT INTO {tabela} (
			tenant_id,
			{tipo.campo_entidade},
			{tipo.campo_data},
			numero_nfe,
			cfop,
			valor_total,
			icms,
			ipi,
			pis,
			cofins,
			bruto,
			outras_info,
			source_row_index
		) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
		""",
		[_linha_para_insercao(tenant_id, registro) for registro in registros],
	)
	return len(registros)


def calcular_estatisticas(
	con: duckdb.DuckDBPyConnection, tenant_id: str, tipo: TipoRegistro | str
) -> EstatisticasAgregadas:
	_, tabela = _tabela(tipo)
	row = con.execute(
		f"""
		SELECT
			COALESCE(SUM(valor_total), 0),
			COALESCE(SUM(icms), 0),
			COALESCE(SUM(ipi), 0),
			COALESCE(SUM(pis), 0),
			COALESCE(SUM(cofins), 0),
			COUNT(*)
		FROM {tabela}
		WHERE tenant_id = ?
		""",
		[tenant_id],
	).fetchone()
	if row is None:
		return EstatisticasAgregadas()
	return EstatisticasAgregadas(
		total_valor=_para_float(row[0]),
		total_icms=_para_float(row[1]),
		total_ipi=_para_float(row[2]),
		total_pis=_para_float(row[3]),
		total_cofins=_para_float(row[4]),
		quantidade=int(row[5] or 0),
	)


def registrar_sincronizacao(
	con: duckdb.DuckDBPyConnection,
	tenant_id: str,
	tipo: TipoRegistro | str,
	inseridos: int,
	sincronizado_em: datetime,
	arquivo: str | None = None,
) -> None:
	tipo = resolver_tipo(tipo)
	con.execute(
		"""
		INSERT INTO historico_sincronizacoes (tenant_id, tipo, inseridos, arquivo, sincronizado_em)
		VALUES (?, ?, ?, ?, ?)
		""",
		[tenant_id, tipo.value, inseridos, arquivo, _timestamp_utc(sincronizado_em)],
	)


def obter_ultima_sincronizacao(
	tenant_id: str, tipo: TipoRegistro | str, *, db_path: Path | str | None = None
) -> dict[str, Any] | None:
	"""Retorna a sincronização mais recente registrada para a empresa/tipo."""
	tipo = resolver_tipo(tipo)
	with conexao(db_path) as con:
		row = con.execute(
			"""
			SELECT inseridos, arquivo, sincronizado_em
			FROM historico_sincronizacoes
			WHERE tenant_id = ? AND tipo = ?
			ORDER BY sincronizado_em DESC, id DESC
			LIMIT 1
			""",
			[tenant_id, tipo.value],
		).fetchone()
	if row is None:
		return None
	return {
		"inseridos": int(row[0]),
		"arquivo": row[1],
		"sincronizado_em": row[2].replace(tzinfo=timezone.utc) if row[2] else None,
	}


def contar_registros(
	tenant_id: str, tipo: TipoRegistro | str, *, db_path: Path | str | None = None
) -> int:
	_, tabela = _tabela(tipo)
	with conexao(db_path) as con:
		row = con.execute(
			f"SELECT COUNT(*) FROM {tabela} WHERE tenant_id = ?", [tenant_id]
		).fetchone()
	return int(row[0]) if row else 0


def registros_vazios(
	tenant_id: str, tipo: TipoRegistro | str, *, db_path: Path | str | None = None
) -> bool:
	return contar_registros(tenant_id, tipo, db_path=db_path) == 0


def _linha_persistida_para_dict(tipo: TipoRegistro, row: Sequence[Any]) -> dict[str, Any]:
	data = row[1]
	registro: dict[str, Any] = {
		tipo.campo_entidade: row[0],
		tipo.campo_data: data.replace(tzinfo=timezone.utc).isoformat() if data else None,
		"numero_nfe": row[2],
		"cfop": row[3],
		"valor_total": _para_float(row[4]),
		"icms": _para_float(row[5]),
		"ipi": _para_float(row[6]),
		"pis": _para_float(row[7]),
		"cofins": _para_float(row[8]),
		"bruto": _para_float(row[9]),
		"source_row_index": row[11],
	}
	if row[10]:
		registro["outras_info"] = json.loads(row[10])
	return registro


def listar_registros(
	tenant_id: str,
	tipo: TipoRegistro | str,
	*,
	busca: str = "",
	pagina: int = 0,
	tamanho_pagina: int = 10,
	db_path: Path | str | None = None,
) -> dict[str, Any]:
	"""Lista registros persistidos, mais recentes primeiro, com busca textual.

	A busca compara (sem diferenciar maiúsculas) fornecedor/cliente, número da
	NF-e e CFOP.
	"""
	tipo, tabela = _tabela(tipo)
	pagina = max(int(pagina), 0)
	tamanho_pagina = max(int(tamanho_pagina), 1)

	where_clause = "WHERE tenant_id = ?"
	params: list[Any] = [tenant_id]
	termo = (busca or "").strip()
	if termo:
		where_clause += (
			f" AND ({tipo.campo_entidade} ILIKE ? OR numero_nfe ILIKE ? OR cfop ILIKE ?)"
		)
		padrao = f"%{termo}%"
		params.extend([padrao, padrao, padrao])

	with conexao(db_path) as con:
		total_row = con.execute(f"SELECT COUNT(*) FROM {tabela} {where_clause}", params).fetchone()
		rows = con.execute(
			f"""
			SELECT
				{tipo.campo_entidade},
				{tipo.campo_data},
				numero_nfe,
				cfop,
				valor_total,
				icms,
				ipi,
				pis,
				cofins,
				bruto,
				outras_info,
				source_row_index
			FROM {tabela}
			{where_clause}
			ORDER BY {tipo.campo_data} DESC, source_row_index ASC
			LIMIT ? OFFSET ?
			""",
			[*params, tamanho_pagina, pagina * tamanho_pagina],
		).fetchall()

	total = int(total_row[0]) if total_row else 0
	return {
		"registros": [_linha_persistida_para_dict(tipo, row) for row in rows],
		"paginacao": {
			"pagina": pagina,
			"tamanho_pagina": tamanho_pagina,
			"total": total,
			"total_paginas": -(-total // tamanho_pagina),
		},
	}


def obter_resumo_persistido(
	tenant_id: str,
	tipo: TipoRegistro | str,
	*,
	limite_entidades: int = 10,
	db_path: Path | str | None = None,
) -> dict[str, Any]:
	"""Resumo agregado do conjunto persistido: totais, maiores parceiros e série mensal."""
	tipo, tabela = _tabela(tipo)
	with conexao(db_path) as con:
		estatisticas = calcular_estatisticas(con, tenant_id, tipo)
		entidades = con.execute(
			f"""
			SELECT
				COALESCE(NULLIF(TRIM({tipo.campo_entidade}), ''), 'Não informado') AS nome,
				SUM(valor_total) AS total,
				COUNT(*) AS quantidade
			FROM {tabela}
			WHERE tenant_id = ?
			GROUP BY 1
			ORDER BY 2 DESC, 1 ASC
			LIMIT ?
			""",
			[tenant_id, limite_entidades],
		).fetchall()
		meses = con.execute(
			f"""
			SELECT strftime({tipo.campo_data}, '%Y-%m') AS mes, SUM(valor_total), COUNT(*)
			FROM {tabela}
			WHERE tenant_id = ?
			GROUP BY 1
			ORDER BY 1
			""",
			[tenant_id],
		).fetchall()

	media = estatisticas.total_valor / estatisticas.quantidade if estatisticas.quantidade else 0.0
	return {
		"estatisticas": estatisticas.para_dict(),
		"valor_medio": media,
		"por_entidade": [
			{"nome": row[0], "total": _para_float(row[1]), "quantidade": int(row[2])}
			for row in entidades
		],
		"por_mes": [
			{"mes": row[0], "total": _para_float(row[1]), "quantidade": int(row[2])}
			for row in meses
		],
	}


__all__ = [
	"EstatisticasAgregadas",
	"calcular_estatisticas",
	"conexao",
	"contar_registros",
	"inicializar_banco",
	"inserir_lote",
	"listar_registros",
	"obter_resumo_persistido",
	"obter_ultima_sincronizacao",
	"registrar_sincronizacao",
	"registros_vazios",
	"remover_registros",
]
