from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from .aliases import TipoRegistro

MatrizBruta = list[list[Any]]

CAMPOS_MONETARIOS: tuple[str, ...] = ("valor_total", "icms", "ipi", "pis", "cofins", "bruto")


@dataclass(slots=True)
class MapaCabecalho:
    """Resultado do mapeamento da linha de cabeçalho detectada."""

    indice_linha: int
    campos: dict[int, str] = field(default_factory=dict)
    cabecalhos: dict[int, str] = field(default_factory=dict)

    @property
    def colunas_nao_mapeadas(self) -> dict[int, str]:
        return {idx: nome for idx, nome in self.cabecalhos.items() if idx not in self.campos}


@dataclass(slots=True)
class LinhaPlanilha:
    indice_origem: int
    campos: dict[str, Any] = field(default_factory=dict)
    nao_mapeados: dict[str, Any] = field(default_factory=dict)

    def get(self, campo: str, padrao: Any = None) -> Any:
        return self.campos.get(campo, padrao)


@dataclass(slots=True, kw_only=True)
class RegistroCanonico:
    TIPO: ClassVar[TipoRegistro]

    numero_nfe: str = ""
    cfop: str = ""
    valor_total: float = 0.0
    icms: float = 0.0
    ipi: float = 0.0
    pis: float = 0.0
    cofins: float = 0.0
    bruto: float = 0.0
    outras_info: dict[str, str] = field(default_factory=dict)
    source_row_index: int = 0

    @property
    def tipo(self) -> TipoRegistro:
        return self.TIPO

    @property
    def entidade(self) -> str:
        return getattr(self, self.TIPO.campo_entidade)

    @property
    def data(self) -> datetime:
        return getattr(self, self.TIPO.campo_data)

    def para_dict(self) -> dict[str, Any]:
        """Forma serializável em JSON; ``outras_info`` só aparece se preenchido."""
        dados: dict[str, Any] = {
            "numero_nfe": self.numero_nfe,
            "cfop": self.cfop,
        }
        for campo in CAMPOS_MONETARIOS:
            dados[campo] = getattr(self, campo)
        if self.outras_info:
            dados["outras_info"] = dict(self.outras_info)
        dados["source_row_index"] = self.source_row_index
        dados[self.TIPO.campo_entidade] = self.entidade
        dados[self.TIPO.campo_data] = self.data.isoformat()
        return dados


@dataclass(slots=True, kw_only=True)
class RegistroCompra(RegistroCanonico):
    TIPO: ClassVar[TipoRegistro] = TipoRegistro.COMPRAS

    fornecedor: str = ""
    data_compra: datetime


@dataclass(slots=True, kw_only=True)
class RegistroVenda(RegistroCanonico):
    TIPO: ClassVar[TipoRegistro] = TipoRegistro.VENDAS

    cliente: str = ""
    data_emissao: datetime


CLASSES_REGISTRO: dict[TipoRegistro, type[RegistroCanonico]] = {
    TipoRegistro.COMPRAS: RegistroCompra,
    TipoRegistro.VENDAS: RegistroVenda,
}


__all__ = [
    "CAMPOS_MONETARIOS",
    "CLASSES_REGISTRO",
    "LinhaPlanilha",
    "MapaCabecalho",
    "MatrizBruta",
    "RegistroCanonico",
    "RegistroCompra",
    "RegistroVenda",
]
