"""Tabela de aliases de cabeçalho por tipo de registro.

Os campos compartilhados são declarados uma única vez; cada tipo acrescenta
seu campo de entidade, seu campo de data e variações próprias de CFOP. Todos
os aliases já estão na forma produzida por ``normalizar_cabecalho``.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from livros_fiscais.erros import TipoRegistroInvalidoError

AliasTable = Mapping[str, tuple[str, ...]]


class TipoRegistro(str, Enum):
    COMPRAS = "compras"
    VENDAS = "vendas"

    @property
    def campo_entidade(self) -> str:
        return "fornecedor" if self is TipoRegistro.COMPRAS else "cliente"

    @property
    def campo_data(self) -> str:
        return "data_compra" if self is TipoRegistro.COMPRAS else "data_emissao"

    @property
    def descricao(self) -> str:
        return "Compras" if self is TipoRegistro.COMPRAS else "Vendas"


_SINONIMOS_TIPO = {
    "compras": TipoRegistro.COMPRAS,
    "compra": TipoRegistro.COMPRAS,
    "purchases": TipoRegistro.COMPRAS,
    "vendas": TipoRegistro.VENDAS,
    "venda": TipoRegistro.VENDAS,
    "sales": TipoRegistro.VENDAS,
}


def resolver_tipo(tipo: TipoRegistro | str) -> TipoRegistro:
    """Aceita o enum, o nome em português ou o discriminador em inglês."""
    if isinstance(tipo, TipoRegistro):
        return tipo
    if isinstance(tipo, str):
        resolvido = _SINONIMOS_TIPO.get(tipo.strip().lower())
        if resolvido is not None:
            return resolvido
    raise TipoRegistroInvalidoError(tipo)


_ALIASES_COMUNS: dict[str, tuple[str, ...]] = {
    "cfop": ("cfop", "codigo_cfop"),
    "numero_nfe": (
        "numero_nfe", "nfe", "nota", "numero", "numero_nf", "n_nf", "n_nfe",
        "no_nf", "no_nfe", "num_nf", "numero_da_nfe", "n_nf_e", "nota_fiscal",
        "num_nota", "numero_nota",
    ),
    "valor_total": (
        "valor_total", "total", "valor", "valor_nota", "valor_da_nota",
        "valor_total_nf", "valor_total_da_nf", "valor_total_nfe", "vl_total",
        "valor_documento", "valor_total_da_nota", "total_de_mercadoria",
        "valor_mercadoria", "total_mercadoria",
    ),
    "icms": ("icms", "vl_icms", "valor_icms", "valor_do_icms"),
    "ipi": ("ipi", "vl_ipi", "valor_ipi", "valor_do_ipi"),
    "pis": ("pis", "vl_pis", "valor_pis", "valor_do_pis"),
    "cofins": ("cofins", "vl_cofins", "valor_cofins", "valor_do_cofins"),
    "bruto": (
        "bruto", "valor_bruto", "vl_bruto", "valor_produtos",
        "valor_mercadorias", "valor_bruto_mercadorias",
    ),
}

_ALIASES_ESPECIFICOS: dict[TipoRegistro, dict[str, tuple[str, ...]]] = {
    TipoRegistro.COMPRAS: {
        "fornecedor": (
            "fornecedor", "supplier", "vendedor", "emitente", "razao_social",
            "razao_social_fornecedor", "nome_fornecedor",
            "fornecedorcliente_nome_fantasia", "nome_fantasia", "fornecedor_cliente",
        ),
        "data_compra": (
            "data_compra", "data", "date", "data_emissao", "emissao",
            "data_da_emissao", "data_entrada", "data_lancamento", "dt_emissao",
            "dt_entrada", "data_de_registro_completa", "data_registro",
        ),
        "cfop": ("cfop_de_entrada",),
    },
    TipoRegistro.VENDAS: {
        "cliente": (
            "cliente", "customer", "comprador", "destinatario", "razao_social",
            "razao_social_cliente", "nome_cliente", "nome_fantasia",
            "cliente_nome_fantasia",
        ),
        "data_emissao": (
            "data_emissao", "data", "date", "data_venda", "emissao",
            "data_da_emissao", "data_saida", "data_lancamento", "dt_emissao",
            "dt_saida", "data_de_emissao_completa",
        ),
        "cfop": ("cfop_saida",),
    },
}


def _montar_tabela(tipo: TipoRegistro) -> AliasTable:
    especificos = _ALIASES_ESPECIFICOS[tipo]
    tabela: dict[str, tuple[str, ...]] = {
        tipo.campo_entidade: especificos[tipo.campo_entidade],
        tipo.campo_data: especificos[tipo.campo_data],
    }
    for campo, aliases in _ALIASES_COMUNS.items():
        tabela[campo] = aliases + especificos.get(campo, ())
    return MappingProxyType(tabela)


_TABELAS: dict[TipoRegistro, AliasTable] = {tipo: _montar_tabela(tipo) for tipo in TipoRegistro}


def aliases_para(tipo: TipoRegistro | str) -> AliasTable:
    return _TABELAS[resolver_tipo(tipo)]


def indice_reverso(aliases: AliasTable) -> dict[str, str]:
    """Mapeia cada alias ao seu campo; o primeiro campo declarado vence."""
    reverso: dict[str, str] = {}
    for campo, lista in aliases.items():
        for alias in lista:
            reverso.setdefault(alias, campo)
    return reverso


def todos_aliases(aliases: AliasTable) -> frozenset[str]:
    return frozenset(alias for lista in aliases.values() for alias in lista)


__all__ = [
    "AliasTable",
    "TipoRegistro",
    "aliases_para",
    "indice_reverso",
    "resolver_tipo",
    "todos_aliases",
]
