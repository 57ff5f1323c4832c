from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable
from typing import Any

from .cells import cell_text

"""Header normalization.

"Código Producto", "codigo-producto" and "CODIGO.PRODUCTO" all become
"codigoproducto" so that keyword matching does not depend on how a client
spelled the column.
"""

__all__ = [
    "normalize_header",
    "normalize_headers",
]

_STRIP_RE = re.compile(r"\s+|[./-]")


def normalize_header(raw: Any) -> str:
    """Lower-case, strip diacritics, drop whitespace and . / - characters."""
    text = cell_text(raw).lower()
    decomposed = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _STRIP_RE.sub("", text)


def normalize_headers(header_row: Iterable[Any]) -> list[str]:
    return [normalize_header(h) for h in header_row]
