"""Resumo dos registros persistidos por empresa."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from livros_fiscais.database import listar_registros, obter_resumo_persistido, obter_ultima_sincronizacao
from livros_fiscais.parsers import TipoRegistro


def render_pagina_relatorios() -> None:
    st.header("Resumo por empresa")

    col_a, col_b = st.columns([2, 1])
    tenant_id = col_a.text_input("Empresa (identificador)").strip()
    tipo = col_b.selectbox("Tipo", list(TipoRegistro), format_func=lambda t: t.descricao)
    if not tenant_id:
        st.info("Informe a empresa para consultar os registros sincronizados.")
        return

    ultima = obter_ultima_sincronizacao(tenant_id, tipo)
    if ultima is None:
        st.warning("Nenhuma sincronização registrada para esta empresa.")
        return
    st.caption(
        f"Última sincronização: {ultima['sincronizado_em']:%d/%m/%Y %H:%M} UTC "
        f"({ultima['inseridos']} registros, {ultima['arquivo']})"
    )

    resumo = obter_resumo_persistido(tenant_id, tipo)
    estatisticas = resumo["estatisticas"]
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Registros", estatisticas["count"])
    col2.metric("Valor total", f"R$ {estatisticas['totalValue']:,.2f}")
    col3.metric("Valor médio", f"R$ {resumo['valor_medio']:,.2f}")
    col4.metric("ICMS", f"R$ {estatisticas['totalICMS']:,.2f}")

    st.markdown("---")
    col_charts_1, col_charts_2 = st.columns(2)
    with col_charts_1:
        st.subheader("Evolução mensal")
        if resumo["por_mes"]:
            st.bar_chart(pd.DataFrame(resumo["por_mes"]), x="mes", y="total")
        else:
            st.info("Sem dados suficientes para gráfico mensal.")
    with col_charts_2:
        st.subheader(f"Maiores {'fornecedores' if tipo is TipoRegistro.COMPRAS else 'clientes'}")
        if resumo["por_entidade"]:
            st.dataframe(
                pd.DataFrame(resumo["por_entidade"]).style.format({"total": "R$ {:,.2f}"}),
                width="stretch",
                hide_index=True,
            )

    st.subheader("Registros")
    busca = st.text_input("Buscar por nome, NF-e ou CFOP")
    pagina = st.number_input("Página", min_value=1, value=1, step=1) - 1
    listagem = listar_registros(tenant_id, tipo, busca=busca, pagina=int(pagina), tamanho_pagina=25)
    st.dataframe(pd.DataFrame(listagem["registros"]), hide_index=True, width="stretch")
    st.caption(
        f"Página {listagem['paginacao']['pagina'] + 1} de "
        f"{max(listagem['paginacao']['total_paginas'], 1)} · {listagem['paginacao']['total']} registros"
    )
