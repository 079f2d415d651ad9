"""
Утилиты для работы с текстом.
Нормализация строк для поиска и безопасный вывод пользовательского ввода.
"""
import html
import unicodedata
from typing import Iterable, Optional


def normalize_search_text(text: Optional[str]) -> str:
    """
    Приведение строки к виду для поиска: нижний регистр, без диакритических знаков,
    с одиночными пробелами.

    Example:
        >>> normalize_search_text("  Juan PÉREZ ")
        'juan perez'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text))
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(without_marks.casefold().split())


def build_search_key(parts: Iterable[Optional[str]]) -> str:
    """Ключ поиска из нескольких полей (имя, email, телефон)"""
    return " | ".join(normalize_search_text(part) for part in parts if part)


def escape_html(text: Optional[str]) -> str:
    """
    Экранирует пользовательский ввод для сообщений с parse_mode=HTML.

    Example:
        >>> escape_html("<b>Acme & Co</b>")
        '&lt;b&gt;Acme &amp; Co&lt;/b&gt;'
    """
    if text is None:
        return ""
    return html.escape(str(text), quote=False)
