"""Canonicalização e sincronização de livros fiscais exportados em planilha."""

__version__ = "0.1.0"
