"""Resumo (dashboard) calculado diretamente sobre os registros lidos da planilha."""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from livros_fiscais.parsers.aliases import TipoRegistro, resolver_tipo
from livros_fiscais.parsers.modelos import RegistroCanonico

ENTIDADE_NAO_INFORMADA = "Não informado"
LIMITE_ENTIDADES = 10
LIMITE_REGISTROS_PREVIA = 100

_TRIBUTOS = (("ICMS", "icms"), ("IPI", "ipi"), ("COFINS", "cofins"), ("PIS", "pis"))


def registros_para_dataframe(registros: Sequence[RegistroCanonico]) -> pd.DataFrame:
    """Tabela com colunas neutras ``entidade`` e ``data`` além dos valores."""
    linhas = [
        {
            "entidade": registro.entidade,
            "data": registro.data,
            "numero_nfe": registro.numero_nfe,
            "cfop": registro.cfop,
            "valor_total": registro.valor_total,
            "icms": registro.icms,
            "ipi": registro.ipi,
            "pis": registro.pis,
            "cofins": registro.cofins,
            "bruto": registro.bruto,
        }
        for registro in registros
    ]
    colunas = ["entidade", "data", "numero_nfe", "cfop", "valor_total", "icms", "ipi", "pis", "cofins", "bruto"]
    return pd.DataFrame(linhas, columns=colunas)


def montar_resumo(registros: Sequence[RegistroCanonico], tipo: TipoRegistro | str) -> dict[str, Any]:
    """Totais, maiores parceiros, série mensal e quebra de tributos."""
    tipo = resolver_tipo(tipo)
    df = registros_para_dataframe(registros)
    quantidade = len(df)

    totais = {campo: float(df[campo].sum()) if quantidade else 0.0 for campo in ("valor_total", "icms", "ipi", "pis", "cofins")}

    if quantidade:
        entidades = df["entidade"].fillna("").str.strip().replace("", ENTIDADE_NAO_INFORMADA)
        por_entidade = (
            df.assign(entidade=entidades)
            .groupby("entidade", sort=False)["valor_total"]
            .agg(total="sum", quantidade="count")
            .reset_index()
            .sort_values("total", ascending=False, kind="stable")
            .head(LIMITE_ENTIDADES)
        )
        meses = pd.to_datetime(df["data"], utc=True).dt.strftime("%Y-%m")
        por_mes = (
            df.assign(mes=meses)
            .groupby("mes")["valor_total"]
            .agg(total="sum", quantidade="count")
            .reset_index()
            .sort_values("mes")
        )
    else:
        por_entidade = pd.DataFrame(columns=["entidade", "total", "quantidade"])
        por_mes = pd.DataFrame(columns=["mes", "total", "quantidade"])

    return {
        "tipo": tipo.value,
        "resumo": {
            "total_registros": quantidade,
            "total_valor": totais["valor_total"],
            "total_icms": totais["icms"],
            "total_ipi": totais["ipi"],
            "total_cofins": totais["cofins"],
            "total_pis": totais["pis"],
            "valor_medio": totais["valor_total"] / quantidade if quantidade else 0.0,
        },
        "por_entidade": [
            {"nome": row.entidade, "total": float(row.total), "quantidade": int(row.quantidade)}
            for row in por_entidade.itertuples(index=False)
        ],
        "por_mes": [
            {"mes": row.mes, "total": float(row.total), "quantidade": int(row.quantidade)}
            for row in por_mes.itertuples(index=False)
        ],
        "tributos": [{"nome": nome, "valor": totais[campo]} for nome, campo in _TRIBUTOS],
        "registros": [registro.para_dict() for registro in registros[:LIMITE_REGISTROS_PREVIA]],
    }
