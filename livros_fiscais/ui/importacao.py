from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from livros_fiscais.arquivos import ArquivoPlanilha, descobrir_planilhas
from livros_fiscais.config import diretorio_planilhas_padrao
from livros_fiscais.erros import PlanilhaFiscalError
from livros_fiscais.logger import setup_logging
from livros_fiscais.parsers import TipoRegistro, parse_planilha
from livros_fiscais.resumo import montar_resumo
from livros_fiscais.sincronizacao import sincronizar_planilha

logger = setup_logging("ui.importacao")

_MODO_UPLOAD = "Enviar arquivo"
_MODO_PASTA = "Pasta configurada"


def _registrar_historico(resultado: Dict[str, Any]) -> None:
	"""Guarda um histórico mínimo de sincronizações na sessão atual."""
	historico: List[Dict[str, Any]] = st.session_state.setdefault("historico_sincronizacoes", [])
	historico.insert(0, resultado)
	# manter somente os cinco mais recentes
	if len(historico) > 5:
		del historico[5:]


def _renderizar_historico() -> None:
	historico: List[Dict[str, Any]] = st.session_state.get("historico_sincronizacoes", [])
	if not historico:
		st.info("Nenhuma planilha sincronizada nesta sessão ainda.")
		return
	st.subheader("Histórico recente")
	st.table(historico)


def _exibir_previa(resumo: Dict[str, Any], tipo: TipoRegistro) -> None:
	"""Mostra totais e os primeiros registros lidos, antes de gravar."""
	dados = resumo["resumo"]
	col1, col2, col3 = st.columns(3)
	col1.metric("Registros", dados["total_registros"])
	col2.metric("Valor total", f"R$ {dados['total_valor']:,.2f}")
	col3.metric("ICMS", f"R$ {dados['total_icms']:,.2f}")
	with st.expander(f"Prévia dos registros de {tipo.descricao.lower()}", expanded=False):
		st.dataframe(pd.DataFrame(resumo["registros"]), height=300, hide_index=True)


def _listar_planilhas_configuradas() -> List[ArquivoPlanilha]:
	try:
		return descobrir_planilhas()
	except FileNotFoundError as exc:
		logger.info("Pasta de planilhas indisponível: %s", exc)
		return []


def _descrever_planilha(planilha: ArquivoPlanilha) -> str:
	return f"{planilha.nome} ({planilha.tamanho / 1024:.0f} KB, {planilha.modificado_em:%d/%m/%Y %H:%M})"


def render_pagina_importacao() -> None:
	"""Página de leitura e sincronização de livros fiscais em planilha."""
	st.header("Sincronizar livro fiscal")
	st.write(
		"Envie a planilha exportada pelo sistema contábil ou escolha uma da pasta configurada. "
		"A primeira aba é lida, o cabeçalho é detectado automaticamente e os registros da "
		"empresa são substituídos."
	)

	modo = st.radio("Origem da planilha", (_MODO_UPLOAD, _MODO_PASTA), horizontal=True)

	with st.form("form_sincronizacao"):
		tenant_id = st.text_input("Empresa (identificador)")
		tipo = st.radio(
			"Tipo de livro",
			list(TipoRegistro),
			format_func=lambda t: t.descricao,
			horizontal=True,
		)
		arquivo = None
		selecionada: ArquivoPlanilha | None = None
		if modo == _MODO_UPLOAD:
			arquivo = st.file_uploader("Planilha (.xlsx)", type=["xlsx"])
		else:
			planilhas = _listar_planilhas_configuradas()
			if not planilhas:
				st.caption(f"Nenhuma planilha .xlsx em {diretorio_planilhas_padrao()}")
			selecionada = st.selectbox("Planilha", planilhas, format_func=_descrever_planilha)
		col_a, col_b = st.columns([1, 1])
		with col_a:
			somente_previa = st.checkbox("Apenas pré-visualizar", value=True)
		with col_b:
			transacional = st.checkbox(
				"Substituição transacional",
				value=True,
				help="Desmarcado, cada lote de registros é gravado separadamente",
			)
		submetido = st.form_submit_button("Processar")

	if not submetido:
		_renderizar_historico()
		return

	if arquivo is not None:
		nome = arquivo.name
		conteudo = arquivo.getvalue()

		def abrir_origem() -> Any:
			buffer = BytesIO(conteudo)
			buffer.name = nome
			return buffer
	elif selecionada is not None:
		nome = selecionada.nome

		def abrir_origem() -> Any:
			return selecionada.caminho
	else:
		st.error("Selecione uma planilha.")
		_renderizar_historico()
		return

	try:
		if somente_previa:
			registros = parse_planilha(abrir_origem(), tipo)
			_exibir_previa(montar_resumo(registros, tipo), tipo)
			return
		if not tenant_id.strip():
			st.error("Informe o identificador da empresa para sincronizar.")
			return
		with st.spinner("Sincronizando registros..."):
			resultado = sincronizar_planilha(
				tenant_id.strip(), tipo, abrir_origem(), transacional=transacional
			)
	except PlanilhaFiscalError as exc:
		logger.warning("Falha ao processar planilha %s: %s", nome, exc)
		st.error(str(exc))
		_renderizar_historico()
		return

	st.success(f"{resultado.inseridos} registro(s) de {tipo.descricao.lower()} sincronizados.")
	estatisticas = resultado.estatisticas
	col1, col2, col3 = st.columns(3)
	col1.metric("Registros", estatisticas.quantidade)
	col2.metric("Valor total", f"R$ {estatisticas.total_valor:,.2f}")
	col3.metric("ICMS", f"R$ {estatisticas.total_icms:,.2f}")

	_registrar_historico(
		{
			"empresa": tenant_id.strip(),
			"tipo": tipo.descricao,
			"arquivo": nome,
			"inseridos": resultado.inseridos,
			"sincronizado_em": resultado.sincronizado_em.strftime("%d/%m/%Y %H:%M:%S"),
		}
	)
	_renderizar_historico()
