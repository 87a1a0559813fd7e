"""Páginas Streamlit para sincronizar planilhas e consultar os registros."""

from .importacao import render_pagina_importacao
from .relatorios import render_pagina_relatorios

__all__ = ["render_pagina_importacao", "render_pagina_relatorios"]
