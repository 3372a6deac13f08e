# tests/conftest.py

from io import BytesIO

import pytest
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    NameObject,
    NumberObject,
    RectangleObject,
    TextStringObject,
)

from bulletin_filler.fields import ChoiceFieldRef, MarkFieldRef, TextFieldRef


# ── In-memory document ──────────────────────────────────────────────
class FakeText(TextFieldRef):
    def __init__(self, name, max_length=0, text=None):
        super().__init__(name)
        self.max_length = max_length
        self.text = text
        self.writes = 0

    def set_text(self, text):
        self.text = text
        self.writes += 1

    def get_text(self):
        return self.text

    def get_max_length(self):
        return self.max_length


class BrokenText(FakeText):
    def set_text(self, text):
        raise RuntimeError("stream is read-only")


class FakeChoice(ChoiceFieldRef):
    def __init__(self, name, options, selected=None):
        super().__init__(name)
        self.options = list(options)
        self.selected = selected

    def get_options(self):
        return list(self.options)

    def select(self, option):
        assert option in self.options
        self.selected = option

    def get_selected(self):
        return self.selected


class FakeMark(MarkFieldRef):
    def __init__(self, name, checked=False):
        super().__init__(name)
        self.checked = checked

    def check(self):
        self.checked = True

    def uncheck(self):
        self.checked = False

    def is_checked(self):
        return self.checked


class FakeForm:
    def __init__(self, *refs):
        self.fields = {r.name: r for r in refs}
        self.lookups = []

    def field(self, name):
        self.lookups.append(name)
        return self.fields.get(name)

    def field_names(self):
        return list(self.fields)

    def __getitem__(self, name):
        return self.fields[name]


# ── Generated AcroForm template ─────────────────────────────────────
def build_template_pdf(text_fields=None, checkboxes=(), radios=None, *, indexed_radios=None,
                       combos=None, multiselects=None, pushbuttons=(),
                       user_password=None) -> bytes:
    """Single-page PDF with the given fields.

    ``text_fields`` maps name -> max length (0 for unbounded); dotted names
    get a parent field so the qualified name matches. ``radios`` maps group
    name -> option labels. ``indexed_radios`` does the same with /0, /1...
    on-states and the labels in /Opt. ``combos`` and ``multiselects`` map
    name -> [(export, label)]. ``user_password`` encrypts the file (RC4).
    """
    writer = PdfWriter()
    page = writer.add_blank_page(width=595, height=842)
    annots = ArrayObject()
    fields = ArrayObject()
    parents = {}

    def appearance(*states):
        return DictionaryObject({
            NameObject("/N"): DictionaryObject({
                NameObject(s): writer._add_object(DecodedStreamObject()) for s in states
            })
        })

    def widget(extra):
        d = DictionaryObject({
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/Rect"): RectangleObject([0, 0, 100, 20]),
        })
        for key, value in extra.items():
            d[key] = value
        return d

    def register(name, node):
        if "." in name:
            parent_name, partial = name.rsplit(".", 1)
            if parent_name not in parents:
                parent = DictionaryObject({
                    NameObject("/T"): TextStringObject(parent_name),
                    NameObject("/Kids"): ArrayObject(),
                })
                parents[parent_name] = writer._add_object(parent)
                fields.append(parents[parent_name])
            node[NameObject("/T")] = TextStringObject(partial)
            node[NameObject("/Parent")] = parents[parent_name]
            ref = writer._add_object(node)
            parents[parent_name].get_object()["/Kids"].append(ref)
        else:
            node[NameObject("/T")] = TextStringObject(name)
            ref = writer._add_object(node)
            fields.append(ref)
        annots.append(ref)

    for name, max_len in (text_fields or {}).items():
        node = widget({NameObject("/FT"): NameObject("/Tx")})
        if max_len:
            node[NameObject("/MaxLen")] = NumberObject(max_len)
        register(name, node)

    for name in checkboxes:
        node = widget({
            NameObject("/FT"): NameObject("/Btn"),
            NameObject("/AS"): NameObject("/Off"),
            NameObject("/AP"): appearance("/Yes", "/Off"),
        })
        register(name, node)

    def radio_group(name, states, labels=None):
        group = writer._add_object(DictionaryObject({
            NameObject("/FT"): NameObject("/Btn"),
            NameObject("/Ff"): NumberObject(1 << 15),
            NameObject("/T"): TextStringObject(name),
            NameObject("/V"): NameObject("/Off"),
        }))
        if labels is not None:
            group.get_object()[NameObject("/Opt")] = ArrayObject(
                TextStringObject(label) for label in labels
            )
        kids = ArrayObject()
        for state in states:
            ref = writer._add_object(widget({
                NameObject("/Parent"): group,
                NameObject("/AS"): NameObject("/Off"),
                NameObject("/AP"): appearance(state, "/Off"),
            }))
            kids.append(ref)
            annots.append(ref)
        group.get_object()[NameObject("/Kids")] = kids
        fields.append(group)

    def choice_field(name, entries, flags):
        node = widget({
            NameObject("/FT"): NameObject("/Ch"),
            NameObject("/Ff"): NumberObject(flags),
            NameObject("/Opt"): ArrayObject(
                ArrayObject([TextStringObject(export), TextStringObject(label)])
                for export, label in entries
            ),
        })
        register(name, node)

    for name, options in (radios or {}).items():
        radio_group(name, ["/" + opt for opt in options])

    for name, labels in (indexed_radios or {}).items():
        radio_group(name, [f"/{i}" for i in range(len(labels))], labels)

    for name, entries in (combos or {}).items():
        choice_field(name, entries, 1 << 17)

    for name, entries in (multiselects or {}).items():
        choice_field(name, entries, 1 << 21)

    for name in pushbuttons:
        register(name, widget({
            NameObject("/FT"): NameObject("/Btn"),
            NameObject("/Ff"): NumberObject(1 << 16),
        }))

    page[NameObject("/Annots")] = annots
    writer._root_object[NameObject("/AcroForm")] = writer._add_object(
        DictionaryObject({NameObject("/Fields"): fields})
    )
    if user_password is not None:
        writer.encrypt(user_password=user_password, owner_password="owner", algorithm="RC4-128")
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


BULLETIN_TEXT_FIELDS = {
    "S-prenom souscripteur 2": 0,
    "S-nom souscripteur 2": 0,
    "S-jour souscripteur 2": 2,
    "S-mois souscripteur 3": 2,
    "S-annee souscripteur 2": 4,
    "S-adresse souscripteur 2": 40,
    "S-mail souscripteur 2": 0,
    "TMI IR": 0,
    "Total Revenus": 0,
    "Date1_af_date.0": 2,
    "Date1_af_date.1": 2,
    "Date1_af_date.2": 2,
    **{f"S-IBAN-{i}": 4 for i in range(1, 8)},
}
BULLETIN_CHECKBOXES = ("fond epargne", "fond heritage")
BULLETIN_RADIOS = {
    "S-titre": ["Madame", "Monsieur"],
    "S-citoyen US": ["US oui", "US non"],
    "S-esxpose LCT": ["LCB oui", "LCB non"],
    "S-situation-famille": ["Celibataire", "Marie", "Pacse", "Divorce"],
}


@pytest.fixture(scope="session")
def template_bytes():
    return build_template_pdf(BULLETIN_TEXT_FIELDS, BULLETIN_CHECKBOXES, BULLETIN_RADIOS)


@pytest.fixture
def template_path(tmp_path, template_bytes):
    path = tmp_path / "Bulletin_template.pdf"
    path.write_bytes(template_bytes)
    return path


@pytest.fixture
def sample_record():
    return {
        "civility": "Madame",
        "fullName": "Marie Claire Dupont",
        "birthDate": "5/3/1984",
        "address": "12 rue des Lilas\n75011 Paris",
        "email": "marie.dupont@example.fr",
        "maritalStatus": "  marie ",
        "isUSPerson": "Non",
        "isPPE": "Non",
        "marginalTaxRate": 0.3,
        "totalIncome": 58250.5,
        "epargne": "oui",
        "heritage": False,
        "iban": "FR76 3000 6000 0112 3456 7890 189",
        "reinvestissement_signature_date": "2024-11-02",
    }
