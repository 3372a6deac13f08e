"""
Bulletin Filler: operator console

Load an extraction record (JSON) → review / edit attributes →
generate the filled subscription bulletin → download.

Usage:
    streamlit run app.py
"""

import base64
import json
import time

import streamlit as st

from bulletin_filler import RULESETS, TemplateLoadError, fill_bulletin
from bulletin_filler.config import get_settings
from bulletin_filler.logging_config import configure_logging
from bulletin_filler.pdf_form import PdfForm
from bulletin_filler.transforms import NAME_SPLITTERS, get_name_splitter

settings = get_settings()
configure_logging(settings.log_level)

# ── Page config ──────────────────────────────────────────────────────

st.set_page_config(
    page_title="Bulletin Filler",
    page_icon="📋",
    layout="wide",
)

SECTIONS = {
    "Souscripteur": [
        ("civility", "Civilité"),
        ("fullName", "Nom complet"),
        ("birthName", "Nom de naissance"),
        ("birthDate", "Date de naissance"),
        ("nationality", "Nationalité"),
        ("address", "Adresse"),
        ("phoneMobile", "Téléphone mobile"),
        ("email", "Email"),
    ],
    "Situation": [
        ("housingStatus", "Statut logement"),
        ("maritalStatus", "Situation de famille"),
        ("maritalRegime", "Régime matrimonial"),
        ("protectionMeasure", "Capacité juridique"),
        ("fiscalResidenceCountry", "Résidence fiscale"),
        ("isUSPerson", "US Person (Oui/Non)"),
        ("isPPE", "PPE (Oui/Non)"),
        ("socioProfessionalCategory", "Catégorie socio-professionnelle"),
        ("profession", "Profession"),
    ],
    "Finances": [
        ("precautionSavings", "Épargne de précaution"),
        ("assetsTotal", "Total actifs bruts"),
        ("liabilitiesTotal", "Total passifs"),
        ("totalIncome", "Total revenus"),
        ("totalExpenses", "Total charges"),
        ("taxYear", "Année N"),
        ("grossSalary", "Salaires et assimilés"),
        ("marginalTaxRate", "TMI (ex: 0.3)"),
        ("grossIncome", "Revenu brut global"),
        ("netTaxAmount", "Impôt sur le revenu net"),
    ],
    "SEPA": [
        ("nom_titulaire", "Titulaire"),
        ("iban", "IBAN"),
        ("bic", "BIC"),
        ("signature_lieu", "Fait à"),
        ("signature_date", "Le"),
    ],
}


def _edit_value(key, label, current):
    shown = "" if current is None else str(current)
    new_val = st.text_input(label, shown, key=f"rec_{key}")
    if new_val == shown:
        return current
    if new_val == "":
        return None
    if isinstance(current, (int, float)) and not isinstance(current, bool):
        try:
            return float(new_val.replace(",", ".")) if "." in new_val or "," in new_val else int(new_val)
        except ValueError:
            return new_val
    return new_val


def main():
    st.title("Bulletin Filler")
    st.caption("Flat extraction record → filled subscription bulletin (PDF)")

    # ── Sidebar ──────────────────────────────────────────────────────
    with st.sidebar:
        st.header("Settings")
        template_path = st.text_input("Template path", str(settings.template_path))
        versions = list(RULESETS)
        version = st.selectbox(
            "Template version", versions,
            index=versions.index(settings.template_version) if settings.template_version in versions else 0,
        )
        strategies = list(NAME_SPLITTERS)
        strategy = st.selectbox(
            "Name split strategy", strategies,
            index=strategies.index(settings.name_strategy) if settings.name_strategy in strategies else 0,
        )
        pivot_enabled = st.checkbox("Century pivot for 2-digit years", settings.century_pivot is not None)
        century_pivot = None
        if pivot_enabled:
            century_pivot = st.number_input("Pivot (yy ≤ pivot → 20yy)", 0, 99, settings.century_pivot or 30)

        st.divider()
        st.header("Status")
        if "elapsed" in st.session_state:
            st.metric("Last generation", f"{st.session_state['elapsed']:.2f}s")
        if "warnings" in st.session_state:
            st.metric("Warnings", len(st.session_state["warnings"]))

    # ── Section 1: Load Record ───────────────────────────────────────
    st.header("1. Load Record")
    uploaded = st.file_uploader("Upload the extraction JSON", type=["json"])
    pasted = st.text_area("…or paste it here", height=150)

    if st.button("📥 Load", type="primary", disabled=not (uploaded or pasted.strip())):
        raw = uploaded.read().decode("utf-8") if uploaded else pasted
        try:
            record = json.loads(raw)
        except ValueError as e:
            st.error(f"Invalid JSON: {e}")
            st.stop()
        if not isinstance(record, dict):
            st.error("The record must be a flat JSON object")
            st.stop()
        st.session_state["record"] = record
        st.session_state.pop("generated", None)

    if "record" not in st.session_state:
        return

    record = st.session_state["record"]
    nested = [k for k, v in record.items() if isinstance(v, (dict, list))]
    if nested:
        st.warning(f"Nested values are ignored: {', '.join(nested)}")

    # ── Section 2: Review Record ─────────────────────────────────────
    st.header("2. Review Record")
    st.caption("Modify any attribute before generating the PDF")

    tabs = st.tabs(list(SECTIONS) + ["Raw JSON"])
    for tab, (section, fields) in zip(tabs, SECTIONS.items()):
        with tab:
            col1, col2 = st.columns(2)
            for i, (key, label) in enumerate(fields):
                with (col1 if i % 2 == 0 else col2):
                    value = _edit_value(key, label, record.get(key))
                    if value is None:
                        record.pop(key, None)
                    else:
                        record[key] = value
    with tabs[-1]:
        st.json(record)

    st.session_state["record"] = record

    # ── Section 3: Generate PDF ──────────────────────────────────────
    st.header("3. Generate PDF")

    if st.button("📄 Generate PDF", type="primary"):
        with st.spinner("Filling bulletin..."):
            start = time.time()
            try:
                result = fill_bulletin(
                    template_path, record, version,
                    century_pivot=century_pivot,
                    name_splitter=get_name_splitter(strategy),
                )
            except TemplateLoadError as e:
                st.error(f"Template not found or unreadable: {e}")
                st.stop()
            st.session_state["elapsed"] = time.time() - start
            st.session_state["generated"] = result
            st.session_state["warnings"] = result.warnings

    result = st.session_state.get("generated")
    if result is None:
        return

    st.download_button(
        "⬇️ Download bulletin",
        data=result.pdf,
        file_name=settings.download_name,
        mime="application/pdf",
        key="dl_bulletin",
    )

    if result.warnings:
        with st.expander(f"Warnings ({len(result.warnings)})", expanded=True):
            for w in result.warnings:
                st.write(f"- `{w.kind.value}` **{w.field}**: {w.message}")
    else:
        st.success("Filled without warnings")

    if result.missing:
        with st.expander(f"Mapped fields not in template ({len(result.missing)})", expanded=False):
            for name in result.missing:
                st.write(f"- {name}")

    with st.expander("Filled values", expanded=False):
        filled = {k: v for k, v in PdfForm.load(result.pdf).values().items() if v not in (None, False)}
        st.json(filled)

    b64_pdf = base64.b64encode(result.pdf).decode("utf-8")
    st.markdown(
        f'<iframe src="data:application/pdf;base64,{b64_pdf}" '
        f'width="100%" height="800" type="application/pdf"></iframe>',
        unsafe_allow_html=True,
    )


if __name__ == "__main__":
    main()
