from __future__ import annotations

import streamlit as st
import traceback

from livros_fiscais.database import inicializar_banco
from livros_fiscais.ui import render_pagina_importacao, render_pagina_relatorios
from livros_fiscais.logger import setup_logging

logger = setup_logging("main")

def main() -> None:
	try:
		logger.info("Iniciando aplicação Livros Fiscais")
		st.set_page_config(page_title="Livros Fiscais", layout="wide")

		if "banco_inicializado" not in st.session_state:
			try:
				inicializar_banco().close()
				st.session_state["banco_inicializado"] = True
				logger.info("Banco de dados inicializado com sucesso")
			except Exception as e:
				logger.exception(f"Erro na inicialização do banco: {e}")
				st.error("Erro crítico ao iniciar banco de dados.")
				return

		st.sidebar.title("Navegação")
		paginas = ("Sincronizar planilha", "Resumo por empresa")
		opcao = st.sidebar.radio(
			"Selecione uma área",
			paginas,
			key="menu_navegacao",
		)

		if opcao == "Sincronizar planilha":
			render_pagina_importacao()
		else:
			render_pagina_relatorios()

	except Exception as e:
		logger.exception(f"Erro crítico na aplicação: {e}\n{traceback.format_exc()}")
		st.error(f"❌ Erro inesperado na aplicação: {e}")
		st.exception(e)


if __name__ == "__main__":
	main()
