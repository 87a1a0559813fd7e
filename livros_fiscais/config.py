"""Configuração do parser de planilhas e da sincronização.

Os parâmetros heurísticos (janela e pesos da detecção de cabeçalho, palavras
que marcam linhas de totalização, tamanho de lote) ficam em
``config/planilhas.toml``. Caminhos de banco e da pasta de planilhas vêm de
variáveis de ambiente, opcionalmente carregadas de um ``.env``.

Qualquer problema no TOML (arquivo ausente, sintaxe inválida, campo com tipo
errado) cai nos valores padrão definidos abaixo; a aplicação nunca deixa de
subir por causa da configuração.
"""

from __future__ import annotations

import os
import threading
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from livros_fiscais.logger import setup_logging

logger = setup_logging(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONFIG_FILE = PROJECT_ROOT / "config" / "planilhas.toml"

LINHAS_CABECALHO_PADRAO = 20
PESO_ALIAS_EXATO = 10
PESO_ALIAS_PARCIAL = 3
TAMANHO_LOTE_PADRAO = 1000
PALAVRAS_AGREGADO_PADRAO: tuple[str, ...] = (
	"total",
	"subtotal",
	"soma",
	"saldo",
	"consolidado",
)

ENV_DB_PATH = "LIVROS_FISCAIS_DB_PATH"
ENV_PLANILHAS_DIR = "LIVROS_FISCAIS_PLANILHAS_DIR"


@dataclass(frozen=True, slots=True)
class ConfiguracaoPlanilhas:
	linhas_inspecionadas: int = LINHAS_CABECALHO_PADRAO
	peso_alias_exato: int = PESO_ALIAS_EXATO
	peso_alias_parcial: int = PESO_ALIAS_PARCIAL
	exigir_cabecalho: bool = True
	palavras_agregado: tuple[str, ...] = PALAVRAS_AGREGADO_PADRAO
	tamanho_lote: int = TAMANHO_LOTE_PADRAO
	transacional: bool = True


_configuracao_cache: ConfiguracaoPlanilhas | None = None
_configuracao_lock = threading.Lock()
_ENV_LOADED = False


def _ensure_env() -> None:
	global _ENV_LOADED
	if _ENV_LOADED:
		return
	env_path = PROJECT_ROOT / ".env"
	if env_path.exists():
		load_dotenv(dotenv_path=str(env_path), override=False)
	else:
		load_dotenv(override=False)
	_ENV_LOADED = True


def _inteiro_positivo(secao: dict[str, Any], chave: str, padrao: int) -> int:
	valor = secao.get(chave, padrao)
	if isinstance(valor, bool) or not isinstance(valor, int) or valor <= 0:
		logger.warning("Valor inválido para '%s' (%r); usando %s", chave, valor, padrao)
		return padrao
	return valor


def _booleano(secao: dict[str, Any], chave: str, padrao: bool) -> bool:
	valor = secao.get(chave, padrao)
	if not isinstance(valor, bool):
		logger.warning("Valor inválido para '%s' (%r); usando %s", chave, valor, padrao)
		return padrao
	return valor


def _palavras(secao: dict[str, Any]) -> tuple[str, ...]:
	valor = secao.get("palavras_agregado")
	if valor is None:
		return PALAVRAS_AGREGADO_PADRAO
	if not isinstance(valor, list) or not all(isinstance(p, str) for p in valor):
		logger.warning("'palavras_agregado' deve ser uma lista de textos; usando padrão")
		return PALAVRAS_AGREGADO_PADRAO
	palavras = tuple(p.strip().lower() for p in valor if p.strip())
	return palavras or PALAVRAS_AGREGADO_PADRAO


def _carregar_configuracao_toml() -> ConfiguracaoPlanilhas:
	"""Lê o TOML de configuração, recorrendo aos padrões em caso de erro."""
	if not CONFIG_FILE.exists():
		logger.info("Arquivo %s não encontrado; usando configuração padrão", CONFIG_FILE)
		return ConfiguracaoPlanilhas()
	try:
		with CONFIG_FILE.open("rb") as arquivo:
			dados = tomllib.load(arquivo)
	except (tomllib.TOMLDecodeError, OSError) as exc:
		logger.error("Erro ao ler %s: %s. Usando configuração padrão.", CONFIG_FILE, exc)
		return ConfiguracaoPlanilhas()

	cabecalho = dados.get("cabecalho", {})
	validacao = dados.get("validacao", {})
	sincronizacao = dados.get("sincronizacao", {})
	if not all(isinstance(secao, dict) for secao in (cabecalho, validacao, sincronizacao)):
		logger.error("Seções inválidas em %s; usando configuração padrão", CONFIG_FILE)
		return ConfiguracaoPlanilhas()

	configuracao = ConfiguracaoPlanilhas(
		linhas_inspecionadas=_inteiro_positivo(
			cabecalho, "linhas_inspecionadas", LINHAS_CABECALHO_PADRAO
		),
		peso_alias_exato=_inteiro_positivo(cabecalho, "peso_alias_exato", PESO_ALIAS_EXATO),
		peso_alias_parcial=_inteiro_positivo(
			cabecalho, "peso_alias_parcial", PESO_ALIAS_PARCIAL
		),
		exigir_cabecalho=_booleano(cabecalho, "exigir_cabecalho", True),
		palavras_agregado=_palavras(validacao),
		tamanho_lote=_inteiro_positivo(sincronizacao, "tamanho_lote", TAMANHO_LOTE_PADRAO),
		transacional=_booleano(sincronizacao, "transacional", True),
	)
	logger.debug("Configuração carregada de %s: %s", CONFIG_FILE, configuracao)
	return configuracao


def obter_configuracao() -> ConfiguracaoPlanilhas:
	"""Retorna a configuração em cache, carregando o TOML na primeira chamada."""
	global _configuracao_cache
	with _configuracao_lock:
		if _configuracao_cache is None:
			_configuracao_cache = _carregar_configuracao_toml()
		return _configuracao_cache


def recarregar_configuracao() -> ConfiguracaoPlanilhas:
	global _configuracao_cache
	with _configuracao_lock:
		_configuracao_cache = _carregar_configuracao_toml()
		return _configuracao_cache


def com_sobrescritas(base: ConfiguracaoPlanilhas | None = None, **valores: Any) -> ConfiguracaoPlanilhas:
	"""Cria uma cópia da configuração alterando apenas os campos informados."""
	return replace(base or obter_configuracao(), **valores)


def caminho_banco_padrao() -> Path:
	_ensure_env()
	configurado = os.getenv(ENV_DB_PATH)
	if configurado:
		return Path(configurado)
	return PROJECT_ROOT / "data" / "livros_fiscais.duckdb"


def diretorio_planilhas_padrao() -> Path:
	_ensure_env()
	configurado = os.getenv(ENV_PLANILHAS_DIR)
	if configurado:
		return Path(configurado)
	return PROJECT_ROOT / "data" / "planilhas"


__all__ = [
	"CONFIG_FILE",
	"ConfiguracaoPlanilhas",
	"LINHAS_CABECALHO_PADRAO",
	"PALAVRAS_AGREGADO_PADRAO",
	"PESO_ALIAS_EXATO",
	"PESO_ALIAS_PARCIAL",
	"TAMANHO_LOTE_PADRAO",
	"caminho_banco_padrao",
	"com_sobrescritas",
	"diretorio_planilhas_padrao",
	"obter_configuracao",
	"recarregar_configuracao",
]
