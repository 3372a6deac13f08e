"""
Bulletin PDF filler.

Takes a flat JSON record produced by the extraction step and fills the
subscription bulletin template.

Usage:
    bulletin-fill record.json [--out bulletin.pdf] [--template PATH] [--version 2024.1]
    bulletin-fill --dump-fields [--template PATH]
"""

import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .config import get_settings
from .errors import BulletinFillerError, InvalidRecordError
from .logging_config import configure_logging, get_logger
from .mapping import apply_rules
from .pdf_form import PdfForm
from .rulesets import DEFAULT_VERSION, build_rules
from .transforms import get_name_splitter, split_name_last_token

logger = get_logger(__name__)


@dataclass
class FillResult:
    pdf: bytes
    warnings: list = field(default_factory=list)
    missing: list = field(default_factory=list)


def fill_bulletin(template: Union[str, Path, bytes], record, version: str = DEFAULT_VERSION, *,
                  century_pivot: Optional[int] = None,
                  name_splitter=split_name_last_token) -> FillResult:
    """Fill a fresh copy of ``template`` from ``record``.

    Raises InvalidRecordError when the record is not a flat object,
    UnknownTemplateVersion for an unregistered version and
    TemplateLoadError when the template cannot be opened. Everything
    else ends up in ``FillResult.warnings``.
    """
    if not isinstance(record, Mapping):
        raise InvalidRecordError(
            f"Record must be a flat JSON object, got {type(record).__name__}"
        )
    rules = build_rules(version, name_splitter=name_splitter)
    form = PdfForm.load(template)
    report = apply_rules(form, record, rules, century_pivot=century_pivot)
    pdf = form.save()
    logger.info("Filled bulletin %s: %d rules, %d warnings",
                version, report.rules_applied, len(report.warnings))
    return FillResult(pdf=pdf, warnings=report.warnings, missing=report.missing)


# ── CLI ─────────────────────────────────────────────────────────────

def _dump_fields(template):
    form = PdfForm.load(template)
    rows = form.field_inventory()
    width = max((len(name) for name, _, _ in rows), default=0)
    for name, kind, detail in rows:
        print(f"  {name.ljust(width)}  {kind:<6}  {detail}")
    print(f"\n  {len(rows)} field(s)")


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    record_path = None
    out = "output/bulletin-rempli.pdf"
    template = settings.template_path
    version = settings.template_version
    dump = False
    i = 0
    while i < len(args):
        if args[i] == "--out" and i + 1 < len(args):
            out = args[i + 1]
            i += 2
        elif args[i] == "--template" and i + 1 < len(args):
            template = args[i + 1]
            i += 2
        elif args[i] == "--version" and i + 1 < len(args):
            version = args[i + 1]
            i += 2
        elif args[i] == "--dump-fields":
            dump = True
            i += 1
        elif record_path is None and not args[i].startswith("--"):
            record_path = args[i]
            i += 1
        else:
            print(f"Unknown argument: {args[i]}")
            return 2

    try:
        if dump:
            _dump_fields(template)
            return 0

        if record_path is None:
            print(__doc__.strip())
            return 1

        record = json.loads(Path(record_path).read_text(encoding="utf-8"))
        print(f"\n{'=' * 60}")
        print("  Bulletin Filler")
        print(f"  Record:   {record_path}")
        print(f"  Template: {template} (version {version})")
        print(f"{'=' * 60}")

        result = fill_bulletin(template, record, version,
                               century_pivot=settings.century_pivot,
                               name_splitter=get_name_splitter(settings.name_strategy))
    except (BulletinFillerError, OSError, ValueError) as e:
        print(f"  ✗ {e}")
        return 1

    Path(out).parent.mkdir(parents=True, exist_ok=True)
    Path(out).write_bytes(result.pdf)

    print(f"  ✓ Filled → {out}")
    if result.warnings:
        print(f"  ⚠ {len(result.warnings)} warning(s):")
        for w in result.warnings:
            print(f"      - {w}")
    if result.missing:
        print(f"  ⚠ {len(result.missing)} mapped fields not found in PDF:")
        for name in result.missing[:10]:
            print(f"      - {name}")
        if len(result.missing) > 10:
            print(f"      ... and {len(result.missing) - 10} more")
    print(f"{'=' * 60}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
