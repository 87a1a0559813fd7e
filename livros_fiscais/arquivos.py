"""Localização das planilhas configuradas para cada empresa."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from livros_fiscais.config import diretorio_planilhas_padrao
from livros_fiscais.logger import setup_logging

logger = setup_logging("arquivos")

EXTENSAO_PLANILHA = ".xlsx"


@dataclass(slots=True)
class ArquivoPlanilha:
	nome: str
	caminho: Path
	caminho_relativo: str
	tamanho: int
	modificado_em: datetime


def _caminho_completo(caminho: Path | str, base_dir: Path | str | None) -> Path:
	candidato = Path(caminho)
	if candidato.is_absolute():
		return candidato
	base = Path(base_dir) if base_dir is not None else diretorio_planilhas_padrao()
	return (base / candidato).resolve()


def planilha_existe(caminho: Path | str | None, *, base_dir: Path | str | None = None) -> bool:
	if not caminho:
		return False
	completo = _caminho_completo(caminho, base_dir)
	return completo.is_file() and completo.suffix.lower() == EXTENSAO_PLANILHA


def resolver_caminho_planilha(
	caminho: Path | str | None, *, base_dir: Path | str | None = None
) -> Path | None:
	"""Converte o caminho configurado em caminho absoluto existente, ou None."""
	if not caminho:
		return None
	if not planilha_existe(caminho, base_dir=base_dir):
		logger.debug("Planilha não localizada: %s", caminho)
		return None
	return _caminho_completo(caminho, base_dir)


def descobrir_planilhas(diretorio: Path | str | None = None) -> list[ArquivoPlanilha]:
	"""Lista as planilhas .xlsx de um diretório, ordenadas por nome."""
	base = Path(diretorio) if diretorio is not None else diretorio_planilhas_padrao()
	if not base.is_dir():
		raise FileNotFoundError(f"Diretório não encontrado: {base}")

	arquivos: list[ArquivoPlanilha] = []
	for entrada in base.iterdir():
		if not entrada.is_file() or entrada.suffix.lower() != EXTENSAO_PLANILHA:
			continue
		stat = entrada.stat()
		arquivos.append(
			ArquivoPlanilha(
				nome=entrada.name,
				caminho=entrada.resolve(),
				caminho_relativo=entrada.name,
				tamanho=stat.st_size,
				modificado_em=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
			)
		)
	arquivos.sort(key=lambda arquivo: arquivo.nome.lower())
	return arquivos


def obter_mtime_arquivo(caminho: Path | str) -> datetime | None:
	try:
		return datetime.fromtimestamp(Path(caminho).stat().st_mtime, tz=timezone.utc)
	except OSError as exc:
		logger.debug("Não foi possível obter mtime de %s: %s", caminho, exc)
		return None


__all__ = [
	"ArquivoPlanilha",
	"EXTENSAO_PLANILHA",
	"descobrir_planilhas",
	"obter_mtime_arquivo",
	"planilha_existe",
	"resolver_caminho_planilha",
]
