"""Fill the subscription bulletin PDF from a flat extraction record."""

__version__ = "0.1.0"

from .errors import (  # noqa: E402
    BulletinFillerError,
    FillWarning,
    InvalidRecordError,
    TemplateLoadError,
    UnknownTemplateVersion,
    WarningKind,
)
from .filler import FillResult, fill_bulletin  # noqa: E402
from .mapping import FillReport, MappingRule, apply_rules  # noqa: E402
from .pdf_form import PdfForm  # noqa: E402
from .rulesets import DEFAULT_VERSION, RULESETS, build_rules  # noqa: E402

__all__ = [
    "BulletinFillerError",
    "DEFAULT_VERSION",
    "FillReport",
    "FillResult",
    "FillWarning",
    "InvalidRecordError",
    "MappingRule",
    "PdfForm",
    "RULESETS",
    "TemplateLoadError",
    "UnknownTemplateVersion",
    "WarningKind",
    "apply_rules",
    "build_rules",
    "fill_bulletin",
]
