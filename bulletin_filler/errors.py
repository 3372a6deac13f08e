"""
Exceptions and per-field warnings.

Fatal problems (template cannot be opened, body is not a flat object) are
raised. Everything that happens while filling a single field is returned
as a FillWarning instead.
"""

from dataclasses import dataclass
from enum import Enum


class BulletinFillerError(Exception):
    """Base class for the errors this package raises."""


class TemplateLoadError(BulletinFillerError):
    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot load PDF template {source}: {reason}")


class InvalidRecordError(BulletinFillerError):
    """The input record is not a flat JSON object."""


class UnknownTemplateVersion(BulletinFillerError):
    def __init__(self, version, known):
        self.version = version
        self.known = tuple(known)
        super().__init__(
            f"No mapping rules for template version {version!r} "
            f"(known: {', '.join(self.known) or 'none'})"
        )


class WarningKind(str, Enum):
    VALUE_TRUNCATED = "value_truncated"
    OPTION_FALLBACK = "option_fallback"
    OPTION_NOT_MATCHED = "option_not_matched"
    FIELD_KIND_MISMATCH = "field_kind_mismatch"
    FIELD_ERROR = "field_error"
    RULE_ERROR = "rule_error"


@dataclass(frozen=True)
class FillWarning:
    kind: WarningKind
    field: str
    message: str
    options: tuple = ()

    def __str__(self):
        return self.message

    def as_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "field": self.field,
            "message": self.message,
            "options": list(self.options),
        }
