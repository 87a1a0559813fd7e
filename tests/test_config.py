from pathlib import Path

import pytest

import livros_fiscais.config as config_module
from livros_fiscais.config import (
	LINHAS_CABECALHO_PADRAO,
	PALAVRAS_AGREGADO_PADRAO,
	TAMANHO_LOTE_PADRAO,
	ConfiguracaoPlanilhas,
	caminho_banco_padrao,
	com_sobrescritas,
	obter_configuracao,
	recarregar_configuracao,
)


def _usar_toml(monkeypatch, tmp_path: Path, conteudo: str) -> None:
	arquivo = tmp_path / "planilhas.toml"
	arquivo.write_text(conteudo, encoding="utf-8")
	monkeypatch.setattr(config_module, "CONFIG_FILE", arquivo)


def test_arquivo_ausente_usa_padroes():
	assert obter_configuracao() == ConfiguracaoPlanilhas()


def test_carrega_valores_do_toml(monkeypatch, tmp_path):
	_usar_toml(
		monkeypatch,
		tmp_path,
		"""
[cabecalho]
linhas_inspecionadas = 30
peso_alias_exato = 12
exigir_cabecalho = false

[validacao]
palavras_agregado = ["Total", "acumulado"]

[sincronizacao]
tamanho_lote = 250
transacional = false
""",
	)

	config = recarregar_configuracao()

	assert config.linhas_inspecionadas == 30
	assert config.peso_alias_exato == 12
	assert config.peso_alias_parcial == 3
	assert config.exigir_cabecalho is False
	assert config.palavras_agregado == ("total", "acumulado")
	assert config.tamanho_lote == 250
	assert config.transacional is False


def test_toml_malformado_usa_padroes(monkeypatch, tmp_path):
	_usar_toml(monkeypatch, tmp_path, "[cabecalho\nlinhas_inspecionadas = ")
	assert recarregar_configuracao() == ConfiguracaoPlanilhas()


@pytest.mark.parametrize(
	"conteudo",
	[
		"[cabecalho]\nlinhas_inspecionadas = -1\n",
		"[cabecalho]\nlinhas_inspecionadas = \"vinte\"\n",
		"[sincronizacao]\ntamanho_lote = true\n",
		"[validacao]\npalavras_agregado = \"total\"\n",
		"cabecalho = 5\n",
	],
)
def test_campos_invalidos_caem_no_padrao(monkeypatch, tmp_path, conteudo):
	_usar_toml(monkeypatch, tmp_path, conteudo)

	config = recarregar_configuracao()

	assert config.linhas_inspecionadas == LINHAS_CABECALHO_PADRAO
	assert config.tamanho_lote == TAMANHO_LOTE_PADRAO
	assert config.palavras_agregado == PALAVRAS_AGREGADO_PADRAO


def test_configuracao_fica_em_cache(monkeypatch, tmp_path):
	primeira = obter_configuracao()
	_usar_toml(monkeypatch, tmp_path, "[sincronizacao]\ntamanho_lote = 5\n")

	assert obter_configuracao() is primeira
	assert recarregar_configuracao().tamanho_lote == 5


def test_com_sobrescritas_nao_altera_a_base():
	base = ConfiguracaoPlanilhas()
	alterada = com_sobrescritas(base, tamanho_lote=10)

	assert alterada.tamanho_lote == 10
	assert base.tamanho_lote == TAMANHO_LOTE_PADRAO


def test_caminho_do_banco_vem_do_ambiente(monkeypatch, tmp_path):
	monkeypatch.setenv("LIVROS_FISCAIS_DB_PATH", str(tmp_path / "outro.duckdb"))
	assert caminho_banco_padrao() == tmp_path / "outro.duckdb"


def test_arquivo_do_projeto_e_valido():
	arquivo = Path(__file__).resolve().parents[1] / "config" / "planilhas.toml"
	assert arquivo.exists()
