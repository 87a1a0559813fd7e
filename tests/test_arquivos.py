import pytest

from livros_fiscais.arquivos import (
	descobrir_planilhas,
	obter_mtime_arquivo,
	planilha_existe,
	resolver_caminho_planilha,
)


def test_resolver_caminho_relativo(tmp_path):
	(tmp_path / "empresa").mkdir()
	planilha = tmp_path / "empresa" / "compras.xlsx"
	planilha.write_bytes(b"")

	assert resolver_caminho_planilha("empresa/compras.xlsx", base_dir=tmp_path) == planilha.resolve()
	assert resolver_caminho_planilha(planilha) == planilha


def test_resolver_recusa_ausentes_e_outras_extensoes(tmp_path):
	(tmp_path / "notas.csv").write_text("a;b", encoding="utf-8")

	assert resolver_caminho_planilha("notas.csv", base_dir=tmp_path) is None
	assert resolver_caminho_planilha("faltando.xlsx", base_dir=tmp_path) is None
	assert resolver_caminho_planilha(None) is None
	assert resolver_caminho_planilha("") is None
	assert not planilha_existe(tmp_path)


def test_descobrir_planilhas_ordena_por_nome(tmp_path):
	for nome in ("vendas.xlsx", "Compras.XLSX", "leia-me.txt"):
		(tmp_path / nome).write_bytes(b"conteudo")

	arquivos = descobrir_planilhas(tmp_path)

	assert [a.nome for a in arquivos] == ["Compras.XLSX", "vendas.xlsx"]
	assert arquivos[0].tamanho == len(b"conteudo")
	assert arquivos[0].modificado_em == obter_mtime_arquivo(tmp_path / "Compras.XLSX")


def test_descobrir_planilhas_em_diretorio_inexistente(tmp_path):
	with pytest.raises(FileNotFoundError):
		descobrir_planilhas(tmp_path / "nada")


def test_mtime_de_arquivo_inexistente(tmp_path):
	assert obter_mtime_arquivo(tmp_path / "nada.xlsx") is None
