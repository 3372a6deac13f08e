"""
Value transforms used by the mapping rules.

Everything here is a pure function of record values. Name splitting is a
strategy looked up by name so a deployment can swap the heuristic without
touching the rule table.
"""

import math
from typing import Callable, Optional

from .setters import coerce_bool


# ── Names ───────────────────────────────────────────────────────────
def split_name_last_token(full_name) -> tuple[str, str]:
    """(given names, family name): the last whitespace token is the family name.

    "Jean Pierre Martin" -> ("Jean Pierre", "Martin"). A single token is
    kept as the given name. Compound family names ("de la Fontaine") are
    split wrongly; use the uppercase strategy for those records.
    """
    if not isinstance(full_name, str):
        return "", ""
    parts = full_name.split()
    if len(parts) > 1:
        return " ".join(parts[:-1]), parts[-1]
    return full_name.strip(), ""


def split_name_uppercase_family(full_name) -> tuple[str, str]:
    """French administrative convention: the family name is written in capitals.

    "Jean DE LA FONTAINE" -> ("Jean", "DE LA FONTAINE"). Falls back to the
    last-token split when no trailing uppercase run is found or when the
    whole name is uppercase.
    """
    if not isinstance(full_name, str):
        return "", ""
    parts = full_name.split()
    cut = len(parts)
    while cut > 0 and parts[cut - 1].isupper():
        cut -= 1
    if 0 < cut < len(parts):
        return " ".join(parts[:cut]), " ".join(parts[cut:])
    return split_name_last_token(full_name)


NAME_SPLITTERS: dict[str, Callable[[object], tuple[str, str]]] = {
    "last-token": split_name_last_token,
    "uppercase-family": split_name_uppercase_family,
}


def get_name_splitter(strategy: str):
    try:
        return NAME_SPLITTERS[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown name strategy {strategy!r} (known: {', '.join(NAME_SPLITTERS)})"
        ) from None


# ── Addresses ───────────────────────────────────────────────────────
def first_line(text) -> Optional[str]:
    if not isinstance(text, str):
        return None
    return text.replace("\r", "").split("\n")[0]


# ── Numbers ─────────────────────────────────────────────────────────
def format_percentage(rate) -> Optional[str]:
    """0.3 -> "30.00 %". Non-numeric input gives None."""
    if isinstance(rate, bool) or rate is None:
        return None
    try:
        n = float(str(rate).replace(",", ".").strip()) if isinstance(rate, str) else float(rate)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n):
        return None
    return f"{n * 100:.2f} %"


# ── Yes/No sentinels ────────────────────────────────────────────────
def yes_no_sentinel(value, prefix: str) -> Optional[str]:
    """Translate an "Oui"/"Non" answer to the form's prefixed option label.

    ("Non", "US") -> "US non". Anything that is not a clear yes or no gives
    None so the field is left alone.
    """
    if not isinstance(value, str):
        return None
    token = value.strip().lower()
    if token in ("oui", "yes"):
        return f"{prefix} oui"
    if token in ("non", "no"):
        return f"{prefix} non"
    return None


def oui_non(value) -> Optional[str]:
    """Boolean intent to the plain "oui"/"non" option labels."""
    if value is None or value == "":
        return None
    flag = coerce_bool(value)
    if flag is None:
        return None
    return "oui" if flag else "non"
