"""Sincronização de planilhas fiscais com o banco (estratégia de substituição).

Cada chamada percorre os estados abaixo; qualquer falha leva a ``FALHOU``::

	OCIOSO → PARSING → REMOVENDO → INSERINDO (lotes 1..n) → AGREGANDO → CONCLUIDO

No modo transacional (padrão) remoção e inserção acontecem em uma única
transação do DuckDB. Fora dele cada lote é confirmado isoladamente e uma falha
no lote *k* mantém os lotes anteriores gravados (``InsercaoParcialError``).

Dentro do processo, sincronizações da mesma empresa/tipo são serializadas por
uma trava por chave. Processos distintos precisam coordenar entre si.
"""

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Sequence

import duckdb

from livros_fiscais.arquivos import resolver_caminho_planilha
from livros_fiscais.config import ConfiguracaoPlanilhas, obter_configuracao
from livros_fiscais.database import (
	EstatisticasAgregadas,
	calcular_estatisticas,
	conexao,
	inserir_lote,
	registrar_sincronizacao,
	registros_vazios,
	remover_registros,
)
from livros_fiscais.erros import ArquivoNaoEncontradoError, InsercaoParcialError
from livros_fiscais.logger import setup_logging
from livros_fiscais.parsers.aliases import TipoRegistro, resolver_tipo
from livros_fiscais.parsers.modelos import RegistroCanonico
from livros_fiscais.parsers.planilha import parse_planilha

logger = setup_logging("sincronizacao")

ResolverPlanilha = Callable[[Path | str], Path | None]


class EstadoSincronizacao(str, Enum):
	OCIOSO = "ocioso"
	PARSING = "parsing"
	REMOVENDO = "removendo"
	INSERINDO = "inserindo"
	AGREGANDO = "agregando"
	CONCLUIDO = "concluido"
	FALHOU = "falhou"


@dataclass(slots=True)
class ResultadoSincronizacao:
	tenant_id: str
	tipo: TipoRegistro
	inseridos: int
	removidos: int
	estatisticas: EstatisticasAgregadas
	sincronizado_em: datetime

	def para_dict(self) -> dict[str, Any]:
		return {
			"inserted": self.inseridos,
			"stats": self.estatisticas.para_dict(),
			"syncedAt": self.sincronizado_em.isoformat(),
		}


# entradas somem quando nenhuma sincronização segura a trava
_travas: weakref.WeakValueDictionary[tuple[str, TipoRegistro], threading.Lock] = (
	weakref.WeakValueDictionary()
)
_travas_lock = threading.Lock()


def _trava_para(tenant_id: str, tipo: TipoRegistro) -> threading.Lock:
	with _travas_lock:
		trava = _travas.get((tenant_id, tipo))
		if trava is None:
			trava = threading.Lock()
			_travas[(tenant_id, tipo)] = trava
		return trava


class _Acompanhamento:
	"""Registra as transições de estado de uma sincronização."""

	def __init__(self, tenant_id: str, tipo: TipoRegistro):
		self.tenant_id = tenant_id
		self.tipo = tipo
		self.estado = EstadoSincronizacao.OCIOSO

	def avancar(self, estado: EstadoSincronizacao, detalhe: str = "") -> None:
		logger.debug(
			"[SYNC] %s/%s: %s → %s %s",
			self.tenant_id,
			self.tipo.value,
			self.estado.value,
			estado.value,
			detalhe,
		)
		self.estado = estado


def _resolver_origem(
	origem: Path | str | BinaryIO, resolver: ResolverPlanilha | None
) -> tuple[Path | BinaryIO, str]:
	if isinstance(origem, (str, Path)):
		resolver = resolver or resolver_caminho_planilha
		caminho = resolver(origem)
		if caminho is None or not Path(caminho).exists():
			raise ArquivoNaoEncontradoError(origem)
		return Path(caminho), str(caminho)
	return origem, getattr(origem, "name", "<upload>")


def _lotes(registros: Sequence[RegistroCanonico], tamanho: int):
	for inicio in range(0, len(registros), tamanho):
		yield inicio // tamanho + 1, registros[inicio : inicio + tamanho]


def _inserir_transacional(
	con: duckdb.DuckDBPyConnection,
	tenant_id: str,
	tipo: TipoRegistro,
	registros: Sequence[RegistroCanonico],
	tamanho_lote: int,
	acompanhamento: _Acompanhamento,
) -> tuple[int, int]:
	con.execute("BEGIN TRANSACTION")
	try:
		acompanhamento.avancar(EstadoSincronizacao.REMOVENDO)
		removidos = remover_registros(con, tenant_id, tipo)
		inseridos = 0
		for numero, lote in _lotes(registros, tamanho_lote):
			acompanhamento.avancar(EstadoSincronizacao.INSERINDO, f"lote {numero}")
			inseridos += inserir_lote(con, tenant_id, tipo, lote)
			logger.info("[SYNC] Lote %s preparado: %s registros", numero, len(lote))
		con.execute("COMMIT")
	except Exception:
		con.execute("ROLLBACK")
		raise
	return removidos, inseridos


def _inserir_por_lote(
	con: duckdb.DuckDBPyConnection,
	tenant_id: str,
	tipo: TipoRegistro,
	registros: Sequence[RegistroCanonico],
	tamanho_lote: int,
	acompanhamento: _Acompanhamento,
) -> tuple[int, int]:
	acompanhamento.avancar(EstadoSincronizacao.REMOVENDO)
	removidos = remover_registros(con, tenant_id, tipo)
	inseridos = 0
	for numero, lote in _lotes(registros, tamanho_lote):
		acompanhamento.avancar(EstadoSincronizacao.INSERINDO, f"lote {numero}")
		con.execute("BEGIN TRANSACTION")
		try:
			gravados = inserir_lote(con, tenant_id, tipo, lote)
			con.execute("COMMIT")
		except Exception as exc:
			con.execute("ROLLBACK")
			raise InsercaoParcialError(inseridos, numero, exc) from exc
		inseridos += gravados
		logger.info("[SYNC] Lote %s inserido: %s registros", numero, len(lote))
	return removidos, inseridos


def sincronizar_planilha(
	tenant_id: str,
	tipo: TipoRegistro | str,
	origem: Path | str | BinaryIO,
	*,
	db_path: Path | str | None = None,
	resolver: ResolverPlanilha | None = None,
	tamanho_lote: int | None = None,
	transacional: bool | None = None,
	config: ConfiguracaoPlanilhas | None = None,
) -> ResultadoSincronizacao:
	"""Substitui os registros da empresa/tipo pelo conteúdo da planilha.

	``origem`` pode ser o caminho configurado para a empresa (resolvido por
	``resolver``) ou um arquivo binário já aberto, como um upload.
	"""
	tipo = resolver_tipo(tipo)
	config = config or obter_configuracao()
	tamanho_lote = tamanho_lote or config.tamanho_lote
	transacional = config.transacional if transacional is None else transacional
	acompanhamento = _Acompanhamento(tenant_id, tipo)

	with _trava_para(tenant_id, tipo):
		try:
			fonte, descricao = _resolver_origem(origem, resolver)

			acompanhamento.avancar(EstadoSincronizacao.PARSING, descricao)
			logger.info("[SYNC] Lendo planilha de %s: %s", tipo.value, descricao)
			registros = parse_planilha(fonte, tipo, config=config)
			logger.info("[SYNC] %s registros lidos da planilha", len(registros))

			with conexao(db_path) as con:
				inserir = _inserir_transacional if transacional else _inserir_por_lote
				removidos, inseridos = inserir(
					con, tenant_id, tipo, registros, tamanho_lote, acompanhamento
				)
				logger.info("[SYNC] %s registros antigos removidos", removidos)

				acompanhamento.avancar(EstadoSincronizacao.AGREGANDO)
				estatisticas = calcular_estatisticas(con, tenant_id, tipo)
				sincronizado_em = datetime.now(timezone.utc)
				registrar_sincronizacao(
					con, tenant_id, tipo, inseridos, sincronizado_em, arquivo=descricao
				)
		except Exception as exc:
			acompanhamento.avancar(EstadoSincronizacao.FALHOU, str(exc))
			logger.error("[SYNC] Falha ao sincronizar %s/%s: %s", tenant_id, tipo.value, exc)
			raise

	acompanhamento.avancar(EstadoSincronizacao.CONCLUIDO)
	logger.info("[SYNC] Concluído: %s registros inseridos", inseridos)
	logger.info("[SYNC] Estatísticas: %s", estatisticas.para_dict())
	return ResultadoSincronizacao(
		tenant_id=tenant_id,
		tipo=tipo,
		inseridos=inseridos,
		removidos=removidos,
		estatisticas=estatisticas,
		sincronizado_em=sincronizado_em,
	)


def sincronizar_se_vazio(
	tenant_id: str,
	tipo: TipoRegistro | str,
	origem: Path | str | BinaryIO,
	*,
	db_path: Path | str | None = None,
	**opcoes: Any,
) -> ResultadoSincronizacao | None:
	"""Sincroniza apenas quando ainda não há registros persistidos."""
	if not registros_vazios(tenant_id, tipo, db_path=db_path):
		return None
	logger.info("[SYNC] Nenhum registro para %s/%s; sincronizando automaticamente", tenant_id, resolver_tipo(tipo).value)
	return sincronizar_planilha(tenant_id, tipo, origem, db_path=db_path, **opcoes)


__all__ = [
	"EstadoSincronizacao",
	"ResultadoSincronizacao",
	"sincronizar_planilha",
	"sincronizar_se_vazio",
]
