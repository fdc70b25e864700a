"""
Token normalization utilities.

Pure helpers shared by the vocabulary builder, the card filter, and the
CSV parsers. None of them raise on missing input; blank values normalize
to empty results.
"""

import math
import re

ENERGY_RANK_FALLBACK = 999

_GENDER_LABELS = {"0": "Male", "1": "Female", "2": "Other"}

_BRACKETED = re.compile(r"\[([^\]]+)\]")
_WHITESPACE = re.compile(r"\s+")
_DIGITS = re.compile(r"(\d+)")


def normalize_energy_token(token: str | None) -> str | None:
    """Trim and uppercase an energy token; blank tokens become None."""
    if not token:
        return None
    raw = token.strip()
    if not raw:
        return None
    return raw.upper()


def parse_energy_tokens(csv_value: str | None) -> list[str]:
    """Normalized energy tokens of a comma-separated list, first occurrence order."""
    if not csv_value:
        return []
    tokens: list[str] = []
    for part in csv_value.split(","):
        token = normalize_energy_token(part)
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def split_tokens(csv_value: str | None) -> list[str]:
    """Trimmed, non-empty parts of a comma-separated token list."""
    if not csv_value:
        return []
    return [part.strip() for part in csv_value.split(",") if part.strip()]


def energy_code_rank(code: str | None) -> float:
    """
    Sort rank of an energy code.

    Numeric codes rank by value, single letters after them (A=10, B=11, ...),
    anything else last.
    """
    if not code:
        return ENERGY_RANK_FALLBACK
    norm = str(code).strip().upper()
    if not norm:
        return ENERGY_RANK_FALLBACK
    try:
        numeric = float(norm)
    except ValueError:
        numeric = math.nan
    if math.isfinite(numeric):
        return numeric
    first = norm[0]
    if "A" <= first <= "Z":
        return 10 + (ord(first) - ord("A"))
    return ENERGY_RANK_FALLBACK


def gender_label(code: str | None) -> str:
    """Display label for a stored gender code. Unknown codes pass through."""
    if code is None:
        return ""
    value = str(code).strip()
    return _GENDER_LABELS.get(value, value)


def normalize_search_value(value: object) -> str:
    """
    Lowercase a searchable value, unwrap [bracketed] words and collapse whitespace.

    "Deal [2] damage to [Bolt]" -> "deal 2 damage to bolt"
    """
    if value is None:
        return ""
    text = str(value)
    if not text:
        return ""
    expanded = _BRACKETED.sub(r" \1 ", text.lower())
    return _WHITESPACE.sub(" ", expanded).strip()


def is_basic_action_type(type_name: str | None) -> bool:
    return "basic action" in (type_name or "").lower()


def natural_sort_key(value: str | None) -> tuple[tuple[int, int | str], ...]:
    """Sort key comparing digit runs numerically: "2" < "10" < "10a"."""
    parts = _DIGITS.split(value or "")
    key: list[tuple[int, int | str]] = []
    for part in parts:
        if not part:
            continue
        if part.isdigit():
            key.append((0, int(part)))
        else:
            key.append((1, part.casefold()))
    return tuple(key)
