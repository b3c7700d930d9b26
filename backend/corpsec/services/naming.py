"""Text normalization for names, company names, addresses and slugs."""
import re


NAME_PARTICLES = {"bin", "binte", "binti", "bte", "s/o", "d/o", "a/l", "a/p"}

COMPANY_ACRONYMS = {"LLP", "LLC", "PLC", "VCC", "LP", "UEN", "SG", "UK", "USA", "JV"}

COMPANY_CONNECTORS = {"and", "of", "the", "for", "in", "on", "at", "by"}

ROMAN_NUMERAL = re.compile(r"^[IVX]{2,}$")


def _is_mixed_case(value: str) -> bool:
    return value != value.upper() and value != value.lower()


def _capitalize_words(token: str, after_apostrophe: bool) -> str:
    """Upper-case the first letter of each alphabetic run in a lower-cased token."""
    boundary = r"(^|[^a-z])([a-z])" if after_apostrophe else r"(^|[^a-z'’])([a-z])"
    return re.sub(boundary, lambda m: m.group(1) + m.group(2).upper(), token.lower())


def _prepare(value: str | None) -> str | None:
    if not value or not value.strip():
        return None
    return " ".join(value.split())


def normalize_name(value: str | None) -> str | None:
    """Title-case a personal name, e.g. "TAN AH KOW" -> "Tan Ah Kow"."""
    text = _prepare(value)
    if text is None or _is_mixed_case(text):
        return text
    
    words = []
    for i, token in enumerate(text.split(" ")):
        if i > 0 and token.lower() in NAME_PARTICLES:
            words.append(token.lower())
        elif any(ch.isdigit() for ch in token):
            words.append(token)
        else:
            words.append(_capitalize_words(token, after_apostrophe=True))
    return " ".join(words)


def normalize_company_name(value: str | None) -> str | None:
    """
    Title-case a company name.
    
    Acronyms, roman numerals and tokens with digits stay upper case,
    connectors after the first word are lower-cased and "(S)" style
    single letters are kept as-is.
    """
    text = _prepare(value)
    if text is None or _is_mixed_case(text):
        return text
    
    words = []
    for i, token in enumerate(text.split(" ")):
        key = re.sub(r"[^A-Za-z]", "", token).upper()
        if any(ch.isdigit() for ch in token):
            words.append(token.upper())
        elif len(key) == 1 and len(token) <= 3:
            words.append(token.upper())
        elif key in COMPANY_ACRONYMS or ROMAN_NUMERAL.match(key):
            words.append(token.upper())
        elif i > 0 and token.lower() in COMPANY_CONNECTORS:
            words.append(token.lower())
        else:
            words.append(_capitalize_words(token, after_apostrophe=False))
    return " ".join(words)


def normalize_address(value: str | None) -> str | None:
    """Title-case an address while keeping unit numbers and postal codes intact."""
    text = _prepare(value)
    if text is None or _is_mixed_case(text):
        return text
    
    words = []
    for token in text.split(" "):
        if "#" in token or any(ch.isdigit() for ch in token):
            words.append(token.upper())
        else:
            words.append(_capitalize_words(token, after_apostrophe=False))
    return " ".join(words)


def slugify(text: str) -> str:
    """URL-safe slug: lower-case words joined by hyphens."""
    slug = text.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")
