# src/services/slugify.py
import re
import unicodedata
from typing import Callable


def slugify(text: str) -> str:
    """Transforma texto em slug: minúsculo, sem acentos, com hifens."""
    # remove acentos
    t = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    # troca tudo que não é letra/número por "-"
    t = re.sub(r"[^a-zA-Z0-9]+", "-", t).strip("-").lower()
    return t or "recipe"


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Adiciona sufixo numérico (-1, -2, ...) até achar um slug livre."""
    if not exists(base):
        return base
    counter = 1
    while exists(f"{base}-{counter}"):  # ex.: bolo-de-chocolate-2
        counter += 1
    return f"{base}-{counter}"
