import re
from typing import Any, Dict, Iterable, List, Optional

SEO_TITLE_MAX = 70
SEO_DESCRIPTION_MAX = 160
KEYWORD_MAX = 48
KEYWORD_LIMIT = 12

_TAG = re.compile(r"<[^>]*>")
_SPACES = re.compile(r"\s+")
_WORD_SPLIT = re.compile(r"[\s,]+")


def strip_tags(html: Any) -> str:
    return _TAG.sub(" ", str(html or ""))


def collapse_spaces(text: Any) -> str:
    return _SPACES.sub(" ", str(text or "")).strip()


def truncate_string(text: Any, max_length: int) -> str:
    value = str(text or "")
    if len(value) <= max_length:
        return value
    return value[: max_length - 1].rstrip()


def _description_source(data: Dict[str, Any]) -> str:
    source = data.get("short_description") or ""
    if not source and isinstance(data.get("description"), str):
        source = strip_tags(data["description"])
    return source


def build_default_seo(
    data: Dict[str, Any],
    category_name: Optional[str],
    category_code: Optional[str],
    brand: str,
    brand_keywords: Iterable[str],
) -> Dict[str, Any]:
    """
    Default English website SEO entry for a product.
    """
    base_name = collapse_spaces(data.get("name") or "")
    title = truncate_string(" | ".join(part for part in (base_name, brand) if part), SEO_TITLE_MAX)
    description = truncate_string(collapse_spaces(_description_source(data)), SEO_DESCRIPTION_MAX)

    keywords: List[str] = []

    def add(word: str):
        if word and word not in keywords:
            keywords.append(word)

    if base_name:
        add(base_name.lower())
        for word in _WORD_SPLIT.split(base_name):
            add(word.strip().lower())
    if category_name:
        add(str(category_name).lower())
    if category_code:
        add(str(category_code).lower())
    for word in brand_keywords:
        add(word)

    return {
        "title": title,
        "description": description,
        "lang": "en",
        "channel": "website",
        "keywords": [{"value": truncate_string(word, KEYWORD_MAX)} for word in keywords][:KEYWORD_LIMIT],
    }


def default_alt_names(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    if not data.get("name"):
        return []
    return [{"value": data["name"], "lang": "en"}]


def default_translations(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    description = None
    if isinstance(data.get("description"), str):
        description = collapse_spaces(strip_tags(data["description"]))
    return [{
        "locale": "en",
        "name": data.get("name") or None,
        "short_description": data.get("short_description") or None,
        "description": description,
    }]
