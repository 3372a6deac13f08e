"""
Field setters: one function per field kind.

Every setter takes the document, the target field name(s) and a raw value,
mutates the document in place and returns a list of FillWarning (empty on
success). A field the template does not have is skipped silently; forms
differ between template revisions.
"""

import math
import re
from decimal import Decimal
from typing import Optional

from .errors import FillWarning, WarningKind
from .fields import ChoiceFieldRef, FieldRef, FormDocument, MarkFieldRef, TextFieldRef
from .logging_config import get_logger

logger = get_logger(__name__)

TRUTHY = frozenset({"true", "1", "yes", "on", "oui"})
FALSY = frozenset({"false", "0", "no", "non", ""})

YES_WORDS = ("oui", "yes")
NO_WORDS = ("non", "no")

# (candidate, option) pairs tried in order when a choice has no exact match
DEFAULT_FALLBACKS = (
    ("non", "US non"),
    ("oui", "US oui"),
    ("non", "LCB non"),
    ("oui", "LCB oui"),
    ("no", "non"),
    ("yes", "oui"),
)

DATE_RE = re.compile(
    r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2}|\d{4})$"
    r"|^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$",
    re.ASCII,
)


# ── Value helpers ───────────────────────────────────────────────────
def is_absent(value) -> bool:
    return value is None or isinstance(value, (dict, list, tuple, set))


def render_number(value) -> str:
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return ""
    d = Decimal(repr(value))
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def render_value(value) -> str:
    """Canonical text for a scalar record value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return render_number(value)
    return str(value)


def coerce_bool(value) -> Optional[bool]:
    """True/False for a recognised boolean intent, None when unresolvable."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in FALSY:
            return False
        if token in TRUTHY:
            return True
        return None
    if isinstance(value, (int, float)):
        return value == 1
    return None


def _norm(text: str) -> str:
    return text.strip().casefold()


def _lookup(form: FormDocument, name, expected):
    """Return (ref, warnings); ref is None when the field cannot be used."""
    ref: Optional[FieldRef] = form.field(name)
    if ref is None:
        return None, []
    if not isinstance(ref, expected):
        return None, [FillWarning(
            WarningKind.FIELD_KIND_MISMATCH, name,
            f"{name}: expected a {expected.kind} field, template has a {ref.kind} field",
        )]
    return ref, []


# ── Text ────────────────────────────────────────────────────────────
def fill_text(form: FormDocument, name: str, value, *, skip_empty: bool = True) -> list[FillWarning]:
    if is_absent(value):
        return []
    text = render_value(value)
    if text == "" and skip_empty:
        return []

    ref, warnings = _lookup(form, name, TextFieldRef)
    if ref is None:
        return warnings

    try:
        max_len = ref.get_max_length() or 0
        if max_len > 0 and len(text) > max_len:
            warnings.append(FillWarning(
                WarningKind.VALUE_TRUNCATED, name,
                f"Truncated {name} to {max_len} characters: {text!r}",
            ))
            text = text[:max_len]
        ref.set_text(text)
    except Exception as e:
        warnings.append(FillWarning(
            WarningKind.FIELD_ERROR, name, f"Could not set text on {name}: {e}",
        ))
    return warnings


# ── Choice ──────────────────────────────────────────────────────────
def resolve_option(candidate: str, options: list[str], fallbacks=DEFAULT_FALLBACKS):
    """Find the option to select for ``candidate``.

    Returns ``(option, is_fallback)``; option is None when nothing fits.
    Exact matches compare trimmed, case-folded text and hand back the
    document's own spelling.
    """
    wanted = _norm(candidate)
    by_norm = {}
    for opt in options:
        by_norm.setdefault(_norm(opt), opt)

    if wanted in by_norm:
        return by_norm[wanted], False

    for source, target in fallbacks:
        if _norm(source) == wanted and _norm(target) in by_norm:
            return by_norm[_norm(target)], True

    if wanted in YES_WORDS:
        polarity = YES_WORDS
    elif wanted in NO_WORDS:
        polarity = NO_WORDS
    else:
        return None, False
    for opt in options:
        if any(w in opt.casefold() for w in polarity):
            return opt, True
    return None, False


def select_choice(form: FormDocument, name: str, value, *, fallbacks=DEFAULT_FALLBACKS) -> list[FillWarning]:
    if isinstance(value, str):
        candidate = value.strip()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        candidate = render_number(value)
    else:
        return []
    if not candidate:
        return []

    ref, warnings = _lookup(form, name, ChoiceFieldRef)
    if ref is None:
        return warnings

    try:
        options = list(ref.get_options())
        option, is_fallback = resolve_option(candidate, options, fallbacks)
        if option is None:
            warnings.append(FillWarning(
                WarningKind.OPTION_NOT_MATCHED, name,
                f"{name}: option {candidate!r} not found among [{', '.join(options)}]",
                tuple(options),
            ))
            return warnings
        if is_fallback:
            warnings.append(FillWarning(
                WarningKind.OPTION_FALLBACK, name,
                f"{name}: option {candidate!r} not found exactly, using fallback "
                f"{option!r}. Options: [{', '.join(options)}]",
                tuple(options),
            ))
        ref.select(option)
    except Exception as e:
        warnings.append(FillWarning(
            WarningKind.FIELD_ERROR, name, f"Could not select option on {name}: {e}",
        ))
    return warnings


# ── Mark ────────────────────────────────────────────────────────────
def set_mark(form: FormDocument, name: str, value) -> list[FillWarning]:
    should_check = coerce_bool(value)
    if should_check is None:
        logger.debug("Unresolvable boolean for %s: %r", name, value)
        return []

    ref, warnings = _lookup(form, name, MarkFieldRef)
    if ref is None:
        return warnings

    try:
        if should_check:
            ref.check()
        else:
            ref.uncheck()
    except Exception as e:
        warnings.append(FillWarning(
            WarningKind.FIELD_ERROR, name, f"Could not set check box {name}: {e}",
        ))
    return warnings


# ── Date ────────────────────────────────────────────────────────────
def expand_year(year: str, width: int = 4, pivot: Optional[int] = None) -> str:
    """Render ``year`` to 2 or 4 digits.

    Without a pivot a short year is left-padded with "20" ("99" -> "2099").
    With a pivot, two-digit years up to the pivot go to 20xx, the rest to 19xx.
    """
    if width == 2:
        return year[-2:]
    if len(year) >= 4:
        return year
    if pivot is None:
        return "2020"[: 4 - len(year)] + year
    yy = year[-2:].rjust(2, "0")
    return ("20" if int(yy) <= pivot else "19") + yy


def split_date(value) -> Optional[tuple[str, str, str]]:
    """(day, month, year) strings from a D/M/Y or Y-M-D date, else None."""
    if not isinstance(value, str):
        return None
    match = DATE_RE.match(value.strip())
    if not match:
        return None
    if match.group(1):
        day, month, year = match.group(1), match.group(2), match.group(3)
    else:
        year, month, day = match.group(4), match.group(5), match.group(6)
    return day, month, year


def fill_date(form: FormDocument, fields: tuple[str, str, str], value, *, year_width: int = 4,
              century_pivot: Optional[int] = None) -> list[FillWarning]:
    parts = split_date(value)
    if parts is None:
        if not is_absent(value) and value != "":
            logger.debug("Malformed date for %s: %r", fields[0], value)
        return []
    day, month, year = parts
    day_field, month_field, year_field = fields

    warnings = []
    warnings += fill_text(form, day_field, day.zfill(2))
    warnings += fill_text(form, month_field, month.zfill(2))
    warnings += fill_text(form, year_field, expand_year(year, year_width, century_pivot))
    return warnings


# ── Segmented codes (IBAN boxes) ────────────────────────────────────
def fill_segments(form: FormDocument, base_name: str, count: int, value, *,
                  segment_length: int = 4) -> list[FillWarning]:
    if is_absent(value):
        return []
    cleaned = re.sub(r"\s", "", render_value(value)).upper()
    if not cleaned:
        return []

    warnings = []
    for i in range(count):
        segment = cleaned[i * segment_length:(i + 1) * segment_length]
        warnings += fill_text(form, f"{base_name}-{i + 1}", segment)
    return warnings
