# tests/test_mapping.py

import pytest

from bulletin_filler.errors import UnknownTemplateVersion, WarningKind
from bulletin_filler.mapping import (
    FieldKind,
    MappingRule,
    apply_rules,
    choice,
    date,
    missing_fields,
    segments,
    text,
    value_of,
)
from bulletin_filler.rulesets import RULESETS, build_rules
from bulletin_filler.transforms import split_name_uppercase_family
from conftest import FakeChoice, FakeForm, FakeMark, FakeText


def bulletin_form():
    return FakeForm(
        FakeChoice("S-titre", ["Madame", "Monsieur"]),
        FakeText("S-prenom souscripteur 2"),
        FakeText("S-nom souscripteur 2"),
        FakeText("S-jour souscripteur 2", 2),
        FakeText("S-mois souscripteur 3", 2),
        FakeText("S-annee souscripteur 2", 4),
        FakeText("S-adresse souscripteur 2", 20),
        FakeChoice("S-citoyen US", ["US oui", "US non"]),
        FakeChoice("S-esxpose LCT", ["LCB oui", "LCB non"]),
        FakeChoice("S-associe", ["oui", "non "]),
        FakeMark("fond epargne"),
        FakeText("TMI IR"),
        FakeText("Total Actifs Bruts"),
        FakeText("Date1_af_date.0"),
        FakeText("Date1_af_date.1"),
        FakeText("Date1_af_date.2"),
    )


def test_value_of_treats_nested_values_as_absent():
    record = {"a": "x", "b": {"c": 1}, "d": [1, 2]}
    assert value_of(record, "a") == "x"
    assert value_of(record, "b") is None
    assert value_of(record, "d") is None
    assert value_of(record, "missing") is None


def test_bulletin_rules_fill_expected_fields():
    form = bulletin_form()
    record = {
        "civility": "monsieur",
        "fullName": "Jean Pierre Martin",
        "birthDate": "1975-08-09",
        "address": "4 avenue Foch, Batiment B, Escalier 2\nLyon",
        "isUSPerson": "Oui",
        "isPPE": "Non",
        "deja_associe": False,
        "epargne": True,
        "marginalTaxRate": 0.41,
        "assetsTotal": 250000,
        "reinvestissement_signature_date": "02/11/2024",
    }
    report = apply_rules(form, record, build_rules())

    assert form["S-titre"].selected == "Monsieur"
    assert form["S-prenom souscripteur 2"].text == "Jean Pierre"
    assert form["S-nom souscripteur 2"].text == "Martin"
    assert [form[n].text for n in ("S-jour souscripteur 2", "S-mois souscripteur 3",
                                   "S-annee souscripteur 2")] == ["09", "08", "1975"]
    assert form["S-adresse souscripteur 2"].text == "4 avenue Foch, Batim"
    assert form["S-citoyen US"].selected == "US oui"
    assert form["S-esxpose LCT"].selected == "LCB non"
    assert form["S-associe"].selected == "non "
    assert form["fond epargne"].checked is True
    assert form["TMI IR"].text == "41.00 %"
    assert form["Total Actifs Bruts"].text == "250000"
    assert [form[f"Date1_af_date.{i}"].text for i in range(3)] == ["02", "11", "24"]

    assert [w.kind for w in report.warnings] == [WarningKind.VALUE_TRUNCATED]
    assert report.rules_applied == len(build_rules())


def test_unknown_keys_only_alter_nothing():
    form = bulletin_form()
    report = apply_rules(form, {"favouriteColour": "blue", "shoeSize": 42}, build_rules())

    assert report.warnings == []
    assert all(getattr(ref, "text", None) is None for ref in form.fields.values())
    assert all(getattr(ref, "selected", None) is None for ref in form.fields.values())
    assert all(getattr(ref, "checked", False) is False for ref in form.fields.values())


def test_unclear_us_person_answer_is_not_selected():
    form = bulletin_form()
    apply_rules(form, {"isUSPerson": "Je ne sais pas"}, build_rules())
    assert form["S-citoyen US"].selected is None


def test_failing_rule_becomes_warning_and_pass_continues():
    def explode(record):
        raise KeyError("boom")

    form = FakeForm(FakeText("a"), FakeText("b"))
    rules = [text("a", explode, "explode"), text("b", "b")]
    report = apply_rules(form, {"b": "ok"}, rules)

    assert form["b"].text == "ok"
    assert report.warnings[0].kind is WarningKind.RULE_ERROR
    assert "explode" in report.warnings[0].message


def test_non_mapping_record_is_treated_as_empty():
    form = FakeForm(FakeText("a"))
    report = apply_rules(form, ["not", "a", "dict"], [text("a", "a")])
    assert report.warnings == []
    assert form["a"].text is None


def test_rules_apply_in_declaration_order():
    form = FakeForm(FakeText("f"))
    rules = [text("f", "first"), text("f", "second")]
    apply_rules(form, {"first": "1", "second": "2"}, rules)
    assert form["f"].text == "2"


def test_century_pivot_is_passed_to_date_rules():
    form = FakeForm(FakeText("d"), FakeText("m"), FakeText("y"))
    rules = [date("d", "m", "y", "born")]

    apply_rules(form, {"born": "01/01/50"}, rules)
    assert form["y"].text == "2050"

    apply_rules(form, {"born": "01/01/50"}, rules, century_pivot=30)
    assert form["y"].text == "1950"


def test_missing_fields_expands_segments():
    form = FakeForm(FakeText("S-IBAN-1"), FakeChoice("c", ["x"]))
    rules = [segments("S-IBAN", 3, "iban"), choice("c", "c"), text("gone", "gone")]
    assert missing_fields(form, rules) == ["S-IBAN-2", "S-IBAN-3", "gone"]


def test_report_lists_targets_absent_from_template():
    report = apply_rules(FakeForm(), {}, build_rules())
    assert "S-nom souscripteur 2" in report.missing
    assert "S-IBAN-7" in report.missing
    assert report.missing == sorted(report.missing)


def test_name_splitter_is_replaceable():
    form = FakeForm(FakeText("S-prenom souscripteur 2"), FakeText("S-nom souscripteur 2"))
    rules = build_rules(name_splitter=split_name_uppercase_family)
    apply_rules(form, {"fullName": "Jean DE LA FONTAINE"}, rules)

    assert form["S-prenom souscripteur 2"].text == "Jean"
    assert form["S-nom souscripteur 2"].text == "DE LA FONTAINE"


def test_unknown_template_version():
    with pytest.raises(UnknownTemplateVersion) as exc:
        build_rules("1999.0")
    assert exc.value.known == tuple(RULESETS)


def test_rule_description():
    rule = MappingRule(FieldKind.TEXT, ("S-BIC",), "bic")
    assert rule.describe() == "bic -> S-BIC (text)"
