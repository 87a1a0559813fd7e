"""Parser de livros fiscais de compras e vendas em planilha."""

from .aliases import TipoRegistro, aliases_para, resolver_tipo
from .modelos import RegistroCanonico, RegistroCompra, RegistroVenda
from .normalizacao import converter_data, converter_numero_br, normalizar_cabecalho
from .planilha import carregar_matriz, parse_matriz, parse_planilha

__all__ = [
	"RegistroCanonico",
	"RegistroCompra",
	"RegistroVenda",
	"TipoRegistro",
	"aliases_para",
	"carregar_matriz",
	"converter_data",
	"converter_numero_br",
	"normalizar_cabecalho",
	"parse_matriz",
	"parse_planilha",
	"resolver_tipo",
]
