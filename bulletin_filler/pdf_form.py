"""
PDF AcroForm adapter on top of pypdf.

Loads a template into a PdfWriter, indexes every terminal field by its
fully-qualified name and resolves its kind once, then hands out typed
field handles for the setters. ``save()`` returns the filled PDF as bytes.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from pypdf import PdfReader, PdfWriter
from pypdf.errors import DependencyError, PyPdfError
from pypdf.generic import NameObject, TextStringObject

from .errors import TemplateLoadError
from .fields import ChoiceFieldRef, FieldRef, MarkFieldRef, TextFieldRef
from .logging_config import get_logger

logger = get_logger(__name__)

# Field flags (PDF 32000-1 §12.7.4)
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16
FF_MULTISELECT = 1 << 21

OFF = "/Off"


def _obj(o):
    return o.get_object() if hasattr(o, "get_object") else o


def _inherited(node, key, default=None):
    """Look ``key`` up on the field and then on its /Parent chain."""
    value = node.get(key)
    if value is not None:
        return _obj(value)
    parent = node.get("/Parent")
    while parent:
        po = _obj(parent)
        value = po.get(key)
        if value is not None:
            return _obj(value)
        parent = po.get("/Parent")
    return default


def _on_state(widget) -> Optional[str]:
    """The widget's "on" appearance name, e.g. "/Yes" or "/US non"."""
    ap = widget.get("/AP")
    if not ap:
        return None
    normal = _obj(ap).get("/N")
    if normal is None:
        return None
    n_obj = _obj(normal)
    if hasattr(n_obj, "keys"):
        for key in n_obj.keys():
            if str(key) != OFF:
                return str(key)
    return None


def _widgets(node) -> list:
    kids = node.get("/Kids")
    if kids is None:
        return [node]
    return [_obj(k) for k in _obj(kids)]


# ── Field handles ───────────────────────────────────────────────────
class PdfTextField(TextFieldRef):
    def __init__(self, name, node):
        super().__init__(name)
        self.node = node

    def get_max_length(self) -> int:
        value = _inherited(self.node, "/MaxLen", 0)
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    def get_text(self) -> Optional[str]:
        value = self.node.get("/V")
        return None if value is None else str(_obj(value))

    def set_text(self, text: str) -> None:
        self.node[NameObject("/V")] = TextStringObject(text)
        # Stale appearance streams would keep showing the template's value
        for widget in _widgets(self.node):
            if "/AP" in widget:
                del widget["/AP"]


class PdfRadioGroup(ChoiceFieldRef):
    def __init__(self, name, node):
        super().__init__(name)
        self.node = node
        self.widgets = _widgets(node)
        self.states = [_on_state(w) for w in self.widgets]
        opt = _inherited(node, "/Opt")
        if opt is not None and len(opt) == len(self.widgets):
            self.labels = [str(_obj(o)) for o in opt]
        else:
            self.labels = [s[1:] if s else "" for s in self.states]

    def get_options(self) -> list[str]:
        options = []
        for label, state in zip(self.labels, self.states):
            if state and label not in options:
                options.append(label)
        return options

    def select(self, option: str) -> None:
        try:
            index = next(i for i, label in enumerate(self.labels)
                         if label == option and self.states[i])
        except StopIteration:
            raise ValueError(f"{option!r} is not an option of {self.name}") from None
        state = self.states[index]
        self.node[NameObject("/V")] = NameObject(state)
        for widget, widget_state in zip(self.widgets, self.states):
            widget[NameObject("/AS")] = NameObject(state if widget_state == state else OFF)

    def get_selected(self) -> Optional[str]:
        value = self.node.get("/V")
        if value is None or str(value) == OFF:
            return None
        for label, state in zip(self.labels, self.states):
            if state == str(value):
                return label
        return None


class PdfChoiceField(ChoiceFieldRef):
    """Single-select combo or list box (/Ch)."""

    def __init__(self, name, node):
        super().__init__(name)
        self.node = node
        self.exports = []
        self.labels = []
        for entry in _obj(_inherited(node, "/Opt", [])):
            entry = _obj(entry)
            if isinstance(entry, list) and len(entry) == 2:
                self.exports.append(str(_obj(entry[0])))
                self.labels.append(str(_obj(entry[1])))
            else:
                self.exports.append(str(entry))
                self.labels.append(str(entry))

    def get_options(self) -> list[str]:
        return list(self.labels)

    def select(self, option: str) -> None:
        if option not in self.labels:
            raise ValueError(f"{option!r} is not an option of {self.name}")
        self.node[NameObject("/V")] = TextStringObject(self.exports[self.labels.index(option)])
        for widget in _widgets(self.node):
            if "/AP" in widget:
                del widget["/AP"]

    def get_selected(self) -> Optional[str]:
        value = self.node.get("/V")
        if value is None:
            return None
        value = str(_obj(value))
        if value in self.exports:
            return self.labels[self.exports.index(value)]
        return None


class PdfCheckBox(MarkFieldRef):
    def __init__(self, name, node):
        super().__init__(name)
        self.node = node
        self.widgets = _widgets(node)

    def _set(self, on: bool):
        value = OFF
        for widget in self.widgets:
            state = (_on_state(widget) or "/Yes") if on else OFF
            widget[NameObject("/AS")] = NameObject(state)
            value = state
        self.node[NameObject("/V")] = NameObject(value)

    def check(self) -> None:
        self._set(True)

    def uncheck(self) -> None:
        self._set(False)

    def is_checked(self) -> bool:
        value = self.node.get("/V")
        return value is not None and str(value) != OFF


# ── Document ────────────────────────────────────────────────────────
def _make_ref(name, node) -> Optional[FieldRef]:
    ft = str(_inherited(node, "/FT", ""))
    flags = int(_inherited(node, "/Ff", 0) or 0)
    if ft == "/Tx":
        return PdfTextField(name, node)
    if ft == "/Btn":
        if flags & FF_PUSHBUTTON:
            return None
        if flags & FF_RADIO:
            return PdfRadioGroup(name, node)
        return PdfCheckBox(name, node)
    if ft == "/Ch" and not flags & FF_MULTISELECT:
        return PdfChoiceField(name, node)
    return None


def _walk_fields(refs, parent_name=""):
    """Yield (qualified name, field dictionary) for every terminal field."""
    for ref in refs:
        node = _obj(ref)
        partial = node.get("/T")
        if partial is None:
            name = parent_name
        elif parent_name:
            name = f"{parent_name}.{partial}"
        else:
            name = str(partial)
        kids = node.get("/Kids")
        if kids is not None and any("/T" in _obj(k) for k in _obj(kids)):
            yield from _walk_fields(_obj(kids), name)
        elif name:
            yield name, node


class PdfForm:
    def __init__(self, writer: PdfWriter):
        self.writer = writer
        self._fields: dict[str, FieldRef] = {}
        acroform = writer._root_object.get("/AcroForm")
        if acroform is None:
            return
        for name, node in _walk_fields(_obj(_obj(acroform).get("/Fields", []))):
            ref = _make_ref(name, node)
            if ref is not None and name not in self._fields:
                self._fields[name] = ref

    @classmethod
    def load(cls, source: Union[str, Path, bytes]) -> "PdfForm":
        label = "<bytes>" if isinstance(source, bytes) else str(source)
        try:
            stream = BytesIO(source) if isinstance(source, bytes) else BytesIO(Path(source).read_bytes())
            reader = PdfReader(stream)
            if reader.is_encrypted:
                reader.decrypt("")
            writer = PdfWriter(clone_from=reader)
        except (OSError, PyPdfError, DependencyError, ValueError) as e:
            raise TemplateLoadError(label, e) from e
        form = cls(writer)
        logger.debug("Loaded template %s with %d fields", label, len(form._fields))
        return form

    def field(self, name: str) -> Optional[FieldRef]:
        return self._fields.get(name)

    def field_names(self) -> list[str]:
        return list(self._fields)

    def field_inventory(self) -> list[tuple[str, str, str]]:
        """(name, kind, detail) for every usable field, in template order."""
        rows = []
        for name, ref in self._fields.items():
            if isinstance(ref, TextFieldRef):
                max_len = ref.get_max_length()
                detail = f"max {max_len}" if max_len > 0 else ""
            elif isinstance(ref, ChoiceFieldRef):
                detail = ", ".join(ref.get_options())
            else:
                detail = ""
            rows.append((name, ref.kind, detail))
        return rows

    def values(self) -> dict:
        """Current value of every field, keyed by name."""
        out = {}
        for name, ref in self._fields.items():
            if isinstance(ref, TextFieldRef):
                out[name] = ref.get_text()
            elif isinstance(ref, ChoiceFieldRef):
                out[name] = ref.get_selected()
            else:
                out[name] = ref.is_checked()
        return out

    def save(self) -> bytes:
        if "/AcroForm" in self.writer._root_object:
            self.writer.set_need_appearances_writer(True)
        buf = BytesIO()
        self.writer.write(buf)
        return buf.getvalue()
