"""Exceções levantadas pelo parser de planilhas e pela sincronização."""

from __future__ import annotations


class PlanilhaFiscalError(Exception):
	"""Base para todos os erros fatais de leitura ou sincronização."""


class ArquivoNaoEncontradoError(PlanilhaFiscalError, FileNotFoundError):
	def __init__(self, origem: object):
		self.origem = origem
		super().__init__(f"Arquivo de planilha não encontrado: {origem}")


class PlanilhaVaziaError(PlanilhaFiscalError, ValueError):
	def __init__(self, mensagem: str = "A planilha está vazia"):
		super().__init__(mensagem)


class NenhumRegistroValidoError(PlanilhaFiscalError, ValueError):
	def __init__(self, mensagem: str = "Nenhum registro válido encontrado após filtros"):
		super().__init__(mensagem)


class CabecalhoNaoDetectadoError(PlanilhaFiscalError, ValueError):
	def __init__(self, linhas_inspecionadas: int):
		self.linhas_inspecionadas = linhas_inspecionadas
		super().__init__(
			f"Nenhuma linha de cabeçalho reconhecida nas primeiras {linhas_inspecionadas} linhas"
		)


class TipoRegistroInvalidoError(PlanilhaFiscalError, ValueError):
	def __init__(self, tipo: object):
		self.tipo = tipo
		super().__init__(
			f"Tipo de registro inválido: {tipo!r}. Use 'compras' (purchases) ou 'vendas' (sales)."
		)


class InsercaoParcialError(PlanilhaFiscalError, RuntimeError):
	"""Falha em um lote quando a inserção não é transacional.

	Os lotes anteriores ao que falhou permanecem gravados; `inseridos` indica
	quantos registros chegaram ao banco antes da falha.
	"""

	def __init__(self, inseridos: int, lote: int, causa: BaseException):
		self.inseridos = inseridos
		self.lote = lote
		super().__init__(
			f"Falha ao inserir o lote {lote}: {causa}. "
			f"{inseridos} registro(s) já gravados não foram revertidos."
		)


__all__ = [
	"ArquivoNaoEncontradoError",
	"CabecalhoNaoDetectadoError",
	"InsercaoParcialError",
	"NenhumRegistroValidoError",
	"PlanilhaFiscalError",
	"PlanilhaVaziaError",
	"TipoRegistroInvalidoError",
]
