from __future__ import annotations

import math
import re
import unicodedata
import warnings
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pandas as pd

from livros_fiscais.logger import setup_logging

logger = setup_logging("parsers.normalizacao")

EPOCA_SERIAL_PLANILHA = datetime(1899, 12, 30, tzinfo=timezone.utc)
# maior módulo que cabe em DECIMAL(18, 2)
LIMITE_VALOR_MONETARIO = 1e16

_PREFIXO_MOEDA_RE = re.compile(r"^(?:R\$|\$)\s*", re.IGNORECASE)
_SIMBOLOS_CABECALHO_RE = re.compile(r"[º°./\-()]")
_ESPACOS_RE = re.compile(r"\s+")
_UNDERSCORES_RE = re.compile(r"_+")

_DATA_BARRA_RE = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{2,4})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)
_DATA_HIFEN_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{2,4})$")
_DATA_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")

__all__ = [
    "EPOCA_SERIAL_PLANILHA",
    "LIMITE_VALOR_MONETARIO",
    "celula_vazia",
    "converter_data",
    "converter_numero_br",
    "normalizar_cabecalho",
    "texto_celula",
]


def celula_vazia(valor: Any) -> bool:
    if valor is None:
        return True
    if isinstance(valor, float) and math.isnan(valor):
        return True
    return isinstance(valor, str) and not valor.strip()


def texto_celula(valor: Any) -> str:
    """Representa uma célula como texto aparado.

    Números inteiros lidos como float (``5102.0``) voltam a ``"5102"``, para que
    CFOP e número da nota não carreguem o sufixo decimal do Excel.
    """
    if celula_vazia(valor):
        return ""
    if isinstance(valor, bool):
        return str(valor)
    if isinstance(valor, float) and valor.is_integer():
        return str(int(valor))
    if isinstance(valor, datetime):
        return valor.isoformat()
    if isinstance(valor, date):
        return valor.isoformat()
    return str(valor).strip()


def normalizar_cabecalho(texto: Any) -> str:
    """Chave canônica de um cabeçalho: minúsculas, sem acento e sem símbolos.

    >>> normalizar_cabecalho("Nº NF-e")
    'n_nfe'
    >>> normalizar_cabecalho("  Data de Emissão (completa) ")
    'data_de_emissao_completa'
    """
    if celula_vazia(texto):
        return ""
    minusculo = texto_celula(texto).lower()
    decomposto = unicodedata.normalize("NFD", minusculo)
    sem_acentos = "".join(c for c in decomposto if not unicodedata.combining(c))
    sem_simbolos = _SIMBOLOS_CABECALHO_RE.sub("", sem_acentos)
    com_underscore = _ESPACOS_RE.sub("_", sem_simbolos)
    return _UNDERSCORES_RE.sub("_", com_underscore).strip("_").strip()


def _valor_persistivel(numero: float, original: Any) -> float:
    if not math.isfinite(numero) or abs(numero) >= LIMITE_VALOR_MONETARIO:
        logger.debug("Valor numérico fora do intervalo aceito: %r", original)
        return 0.0
    return numero


def converter_numero_br(valor: Any) -> float:
    """Converte valores monetários em formato brasileiro ou americano.

    Aceita ``"R$ 1.234,56"``, ``"1,234.56"``, ``"(123,45)"`` (negativo contábil)
    e números já convertidos pelo Excel. Entradas que não formam um número
    finito, ou cujo módulo não cabe em ``DECIMAL(18, 2)``, retornam ``0``.
    """
    if isinstance(valor, (int, float, Decimal)) and not isinstance(valor, bool):
        return _valor_persistivel(float(valor), valor)
    if celula_vazia(valor):
        return 0.0

    texto = str(valor).strip()
    negativo = "(" in texto and ")" in texto

    limpo = texto.replace("(", "").replace(")", "").strip()
    limpo = _PREFIXO_MOEDA_RE.sub("", limpo)
    limpo = _ESPACOS_RE.sub("", limpo)

    tem_ponto = "." in limpo
    tem_virgula = "," in limpo
    if tem_ponto and tem_virgula:
        if limpo.rfind(",") > limpo.rfind("."):
            limpo = limpo.replace(".", "").replace(",", ".")
        else:
            limpo = limpo.replace(",", "")
    elif tem_virgula:
        partes = limpo.split(",")
        if len(partes) == 2 and len(partes[1]) == 2:
            limpo = limpo.replace(",", ".")
        else:
            limpo = limpo.replace(",", "")
    elif tem_ponto:
        partes = limpo.split(".")
        if len(partes) > 2 or (len(partes) == 2 and len(partes[1]) >= 3):
            limpo = limpo.replace(".", "")

    try:
        numero = float(limpo)
    except ValueError:
        logger.debug("Valor numérico não reconhecido: %r", valor)
        return 0.0
    numero = _valor_persistivel(numero, valor)
    return -abs(numero) if negativo else numero


def _ano_quatro_digitos(ano: int) -> int:
    if ano < 100:
        return ano + (2000 if ano < 50 else 1900)
    return ano


def _montar_data(ano: int, mes: int, dia: int, hora: int = 0, minuto: int = 0, segundo: int = 0) -> datetime | None:
    try:
        return datetime(ano, mes, dia, hora, minuto, segundo, tzinfo=timezone.utc)
    except ValueError:
        return None


def _para_utc(valor: datetime) -> datetime:
    if valor.tzinfo is None:
        return valor.replace(tzinfo=timezone.utc)
    return valor.astimezone(timezone.utc)


def _data_com_barras(texto: str) -> datetime | None:
    match = _DATA_BARRA_RE.match(texto)
    if not match:
        return None
    primeiro = int(match.group(1))
    segundo = int(match.group(2))
    ano = _ano_quatro_digitos(int(match.group(3)))
    if primeiro > 12:
        dia, mes = primeiro, segundo
    elif segundo > 12:
        mes, dia = primeiro, segundo
    else:
        # ambíguo: mantém a convenção brasileira (dia primeiro)
        dia, mes = primeiro, segundo
    hora = int(match.group(4) or 0)
    minuto = int(match.group(5) or 0)
    segundo_relogio = int(match.group(6) or 0)
    return _montar_data(ano, mes, dia, hora, minuto, segundo_relogio)


def _data_com_hifen(texto: str) -> datetime | None:
    match = _DATA_HIFEN_RE.match(texto)
    if not match:
        return None
    dia, mes = int(match.group(1)), int(match.group(2))
    return _montar_data(_ano_quatro_digitos(int(match.group(3))), mes, dia)


def _data_iso(texto: str) -> datetime | None:
    match = _DATA_ISO_RE.match(texto)
    if not match:
        return None
    return _montar_data(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _data_generica(texto: str) -> datetime | None:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        convertido = pd.to_datetime(texto, dayfirst=True, errors="coerce")
    if convertido is None or pd.isna(convertido):
        return None
    return _para_utc(convertido.to_pydatetime())


def converter_data(valor: Any) -> datetime:
    """Converte uma célula de data em ``datetime`` com fuso UTC.

    Números são datas seriais do Excel (dias desde 1899-12-30). Textos são
    testados como ``D/M/A[ hh:mm[:ss]]``, ``D-M-A`` e ISO ``A-M-D``; se nada
    casar, tenta-se o parser genérico do pandas. Quando tudo falha retorna o
    instante atual, nunca ``None``.
    """
    if isinstance(valor, datetime):
        return _para_utc(valor)
    if isinstance(valor, date):
        return datetime(valor.year, valor.month, valor.day, tzinfo=timezone.utc)
    if isinstance(valor, (int, float, Decimal)) and not isinstance(valor, bool):
        serial = float(valor)
        if math.isfinite(serial):
            try:
                return EPOCA_SERIAL_PLANILHA + timedelta(days=serial)
            except OverflowError:
                logger.debug("Data serial fora do intervalo: %r", valor)
        return datetime.now(timezone.utc)
    if celula_vazia(valor):
        return datetime.now(timezone.utc)

    texto = str(valor).strip()
    for conversor in (_data_com_barras, _data_com_hifen, _data_iso, _data_generica):
        resultado = conversor(texto)
        if resultado is not None:
            return resultado

    logger.debug("Data não reconhecida, usando instante atual: %r", valor)
    return datetime.now(timezone.utc)
