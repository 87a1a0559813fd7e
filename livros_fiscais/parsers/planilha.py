"""Leitura de livros fiscais (compras/vendas) exportados em planilha.

Fluxo: matriz bruta da primeira aba → linha de cabeçalho detectada por
pontuação de aliases → mapa coluna→campo → linhas → linhas válidas →
registros canônicos.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO, Sequence

from openpyxl import load_workbook

from livros_fiscais.config import ConfiguracaoPlanilhas, obter_configuracao
from livros_fiscais.erros import (
    CabecalhoNaoDetectadoError,
    NenhumRegistroValidoError,
    PlanilhaVaziaError,
)
from livros_fiscais.logger import setup_logging

from .aliases import AliasTable, TipoRegistro, aliases_para, indice_reverso, resolver_tipo, todos_aliases
from .modelos import (
    CAMPOS_MONETARIOS,
    CLASSES_REGISTRO,
    LinhaPlanilha,
    MapaCabecalho,
    MatrizBruta,
    RegistroCanonico,
)
from .normalizacao import (
    celula_vazia,
    converter_data,
    converter_numero_br,
    normalizar_cabecalho,
    texto_celula,
)

logger = setup_logging("parsers.planilha")

OrigemPlanilha = Path | str | BinaryIO

__all__ = [
    "OrigemPlanilha",
    "canonicalizar_linha",
    "carregar_matriz",
    "construir_linhas",
    "detectar_linha_cabecalho",
    "linha_valida",
    "mapear_cabecalho",
    "parse_matriz",
    "parse_planilha",
    "pontuar_linha",
]


def carregar_matriz(origem: OrigemPlanilha) -> MatrizBruta:
    """Lê a primeira aba da pasta de trabalho como lista de linhas.

    Células vazias viram ``""``; as demais mantêm o tipo entregue pelo
    openpyxl (texto, número ou data).
    """
    fonte = str(origem) if isinstance(origem, Path) else origem
    workbook = load_workbook(fonte, read_only=True, data_only=True)
    try:
        primeira_aba = workbook.worksheets[0]
        # a dimensão gravada por alguns sistemas contábeis é inválida (ex.: "A1")
        primeira_aba.reset_dimensions()
        matriz: MatrizBruta = [
            ["" if valor is None else valor for valor in linha]
            for linha in primeira_aba.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()
    return matriz


def pontuar_linha(
    linha: Sequence[Any],
    aliases_conhecidos: frozenset[str],
    config: ConfiguracaoPlanilhas,
) -> int:
    pontos = 0
    for celula in linha:
        if celula_vazia(celula):
            continue
        normalizado = normalizar_cabecalho(celula)
        if not normalizado:
            continue
        if normalizado in aliases_conhecidos:
            pontos += config.peso_alias_exato
        elif any(normalizado in alias or alias in normalizado for alias in aliases_conhecidos):
            pontos += config.peso_alias_parcial
    return pontos


def detectar_linha_cabecalho(
    matriz: MatrizBruta,
    aliases: AliasTable,
    *,
    config: ConfiguracaoPlanilhas | None = None,
) -> int:
    """Retorna o índice da linha com maior pontuação de aliases.

    Empates ficam com a primeira linha avaliada.
    """
    config = config or obter_configuracao()
    if not matriz:
        return 0
    conhecidos = todos_aliases(aliases)
    melhor_indice = 0
    melhor_pontuacao = -1
    for indice, linha in enumerate(matriz[: config.linhas_inspecionadas]):
        pontuacao = pontuar_linha(linha, conhecidos, config)
        logger.debug("Linha %s pontuou %s como cabeçalho", indice, pontuacao)
        if pontuacao > melhor_pontuacao:
            melhor_pontuacao = pontuacao
            melhor_indice = indice
    if melhor_pontuacao <= 0:
        if config.exigir_cabecalho:
            raise CabecalhoNaoDetectadoError(min(config.linhas_inspecionadas, len(matriz)))
        logger.warning("Nenhuma linha pontuou como cabeçalho; usando a linha 0")
        return 0
    return melhor_indice


def mapear_cabecalho(linha: Sequence[Any], aliases: AliasTable, indice_linha: int = 0) -> MapaCabecalho:
    """Associa colunas a campos canônicos por busca exata de alias."""
    reverso = indice_reverso(aliases)
    mapa = MapaCabecalho(indice_linha=indice_linha)
    campos_usados: set[str] = set()
    for coluna, celula in enumerate(linha):
        normalizado = normalizar_cabecalho(celula)
        if not normalizado:
            continue
        mapa.cabecalhos[coluna] = normalizado
        campo = reverso.get(normalizado)
        if campo is None:
            continue
        if campo in campos_usados:
            logger.debug(
                "Coluna %s (%s) repete o campo %s; mantida como não mapeada",
                coluna,
                normalizado,
                campo,
            )
            continue
        campos_usados.add(campo)
        mapa.campos[coluna] = campo
    return mapa


def construir_linhas(matriz: MatrizBruta, mapa: MapaCabecalho) -> list[LinhaPlanilha]:
    linhas: list[LinhaPlanilha] = []
    for indice in range(mapa.indice_linha + 1, len(matriz)):
        linha = LinhaPlanilha(indice_origem=indice)
        for coluna, celula in enumerate(matriz[indice]):
            campo = mapa.campos.get(coluna)
            if campo is not None:
                linha.campos[campo] = celula
                continue
            cabecalho = mapa.cabecalhos.get(coluna)
            if cabecalho and not celula_vazia(celula):
                linha.nao_mapeados[cabecalho] = celula
        linhas.append(linha)
    return linhas


def linha_valida(
    linha: LinhaPlanilha,
    tipo: TipoRegistro | str,
    *,
    config: ConfiguracaoPlanilhas | None = None,
) -> bool:
    """Descarta linhas sem identificação e linhas de totalização."""
    config = config or obter_configuracao()
    tipo = resolver_tipo(tipo)
    entidade = texto_celula(linha.get(tipo.campo_entidade))
    numero_nfe = texto_celula(linha.get("numero_nfe"))
    if not entidade and not numero_nfe:
        return False
    entidade_minuscula = entidade.lower()
    return not any(palavra in entidade_minuscula for palavra in config.palavras_agregado)


def canonicalizar_linha(linha: LinhaPlanilha, tipo: TipoRegistro | str) -> RegistroCanonico:
    tipo = resolver_tipo(tipo)
    valores: dict[str, Any] = {
        "numero_nfe": texto_celula(linha.get("numero_nfe")),
        "cfop": texto_celula(linha.get("cfop")),
        "source_row_index": linha.indice_origem,
        "outras_info": {chave: texto_celula(valor) for chave, valor in linha.nao_mapeados.items()},
        tipo.campo_entidade: texto_celula(linha.get(tipo.campo_entidade)),
        tipo.campo_data: converter_data(linha.get(tipo.campo_data)),
    }
    for campo in CAMPOS_MONETARIOS:
        valores[campo] = converter_numero_br(linha.get(campo))
    return CLASSES_REGISTRO[tipo](**valores)


def parse_matriz(
    matriz: MatrizBruta,
    tipo: TipoRegistro | str,
    *,
    config: ConfiguracaoPlanilhas | None = None,
) -> list[RegistroCanonico]:
    """Converte uma matriz já carregada em registros canônicos, na ordem original."""
    config = config or obter_configuracao()
    tipo = resolver_tipo(tipo)
    if not any(not celula_vazia(celula) for linha in matriz for celula in linha):
        raise PlanilhaVaziaError()

    aliases = aliases_para(tipo)
    indice_cabecalho = detectar_linha_cabecalho(matriz, aliases, config=config)
    logger.info("Linha de cabeçalho detectada: %s", indice_cabecalho)

    mapa = mapear_cabecalho(matriz[indice_cabecalho], aliases, indice_cabecalho)
    if mapa.colunas_nao_mapeadas:
        logger.debug("Colunas sem alias conhecido: %s", list(mapa.colunas_nao_mapeadas.values()))

    linhas = construir_linhas(matriz, mapa)
    if not linhas:
        raise NenhumRegistroValidoError("Nenhum dado encontrado abaixo do cabeçalho")

    registros = [
        canonicalizar_linha(linha, tipo)
        for linha in linhas
        if linha_valida(linha, tipo, config=config)
    ]
    if not registros:
        raise NenhumRegistroValidoError()

    logger.info(
        "%s registros de %s processados (%s linhas descartadas)",
        len(registros),
        tipo.value,
        len(linhas) - len(registros),
    )
    return registros


def parse_planilha(
    origem: OrigemPlanilha,
    tipo: TipoRegistro | str,
    *,
    config: ConfiguracaoPlanilhas | None = None,
) -> list[RegistroCanonico]:
    """Lê a planilha de compras ou vendas e retorna os registros canônicos."""
    tipo = resolver_tipo(tipo)
    logger.info("Carregando planilha de %s: %s", tipo.value, getattr(origem, "name", origem))
    matriz = carregar_matriz(origem)
    return parse_matriz(matriz, tipo, config=config)
