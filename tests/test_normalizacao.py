from datetime import date, datetime, timedelta, timezone

import pytest

from livros_fiscais.parsers.normalizacao import (
    converter_data,
    converter_numero_br,
    normalizar_cabecalho,
    texto_celula,
)


@pytest.mark.parametrize(
    ("entrada", "esperado"),
    [
        ("Nº NF-e", "n_nfe"),
        ("  Data de Emissão (completa) ", "data_de_emissao_completa"),
        ("Valor   Total", "valor_total"),
        ("Razão Social / Fornecedor", "razao_social_fornecedor"),
        ("CFOP", "cfop"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalizar_cabecalho(entrada, esperado):
    assert normalizar_cabecalho(entrada) == esperado


@pytest.mark.parametrize(
    ("entrada", "esperado"),
    [
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("(123,45)", -123.45),
        ("R$ 10,00", 10.0),
        ("$ 99.90", 99.9),
        ("1.234.567", 1234567.0),
        ("1.500", 1500.0),
        ("1.5", 1.5),
        ("12,5", 125.0),
        ("", 0.0),
        ("abc", 0.0),
        (None, 0.0),
        (42, 42.0),
        (3.75, 3.75),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        ("1e20", 0.0),
        ("123456789012345678901", 0.0),
        (1e17, 0.0),
        (-2e16, 0.0),
        ("9.999.999.999.999,99", 9999999999999.99),
    ],
)
def test_converter_numero_br(entrada, esperado):
    assert converter_numero_br(entrada) == pytest.approx(esperado)


def test_numero_entre_parenteses_sempre_negativo():
    assert converter_numero_br("(R$ 1.000,00)") == pytest.approx(-1000.0)
    assert converter_numero_br("R$ (50,00)") == pytest.approx(-50.0)


@pytest.mark.parametrize(
    ("entrada", "esperado"),
    [
        ("31/12/2023", date(2023, 12, 31)),
        ("12/31/2023", date(2023, 12, 31)),
        ("05/03/2024", date(2024, 3, 5)),
        ("5/3/24", date(2024, 3, 5)),
        ("15-01-2024", date(2024, 1, 15)),
        ("2023-01-05", date(2023, 1, 5)),
        ("2023-01-05T14:30:00", date(2023, 1, 5)),
        (45000, date(2023, 3, 15)),
        (45000.5, date(2023, 3, 15)),
        (date(2024, 7, 1), date(2024, 7, 1)),
    ],
)
def test_converter_data(entrada, esperado):
    convertido = converter_data(entrada)
    assert convertido.tzinfo is not None
    assert convertido.date() == esperado


def test_converter_data_mantem_horario_com_barras():
    convertido = converter_data("31/12/2023 18:45")
    assert (convertido.hour, convertido.minute) == (18, 45)


def test_converter_data_datetime_sem_fuso_vira_utc():
    convertido = converter_data(datetime(2024, 2, 1, 10, 0))
    assert convertido == datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("entrada", ["sem data", "", None, "99/99/9999"])
def test_converter_data_invalida_retorna_agora(entrada):
    antes = datetime.now(timezone.utc)
    convertido = converter_data(entrada)
    depois = datetime.now(timezone.utc)
    assert antes - timedelta(seconds=1) <= convertido <= depois + timedelta(seconds=1)


def test_texto_celula_remove_sufixo_decimal_do_excel():
    assert texto_celula(5102.0) == "5102"
    assert texto_celula(" 123 ") == "123"
    assert texto_celula(None) == ""
