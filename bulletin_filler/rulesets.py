"""
Mapping tables, one per template revision.

Field names are the fully-qualified AcroForm names of the bulletin
template (run ``bulletin-fill --dump-fields`` to list them). When the
template changes, add a new version here rather than editing an old one.
"""

from .errors import UnknownTemplateVersion
from .mapping import choice, date, mark, segments, text, value_of
from .transforms import (
    first_line,
    format_percentage,
    oui_non,
    split_name_last_token,
    yes_no_sentinel,
)


# ═════════════════════════════════════════════════════════════════════
# Bulletin de souscription 2024.1
# ═════════════════════════════════════════════════════════════════════
def bulletin_2024_rules(name_splitter=split_name_last_token):
    def given(d): return name_splitter(value_of(d, "fullName"))[0]
    def family(d): return name_splitter(value_of(d, "fullName"))[1]

    return [
        # ── Souscripteur ────────────────────────────────────────────
        choice("S-proprietaire", "housingStatus"),
        choice("S-titre", "civility"),
        text("S-prenom souscripteur 2", given, "fullName/given"),
        text("S-nom souscripteur 2", family, "fullName/family"),
        text("S-nom-fille souscripteur 2", "birthName"),
        date("S-jour souscripteur 2", "S-mois souscripteur 3", "S-annee souscripteur 2",
             "birthDate"),
        text("S-nationalite souscripteur 2", "nationality"),
        text("S-commune-naissance souscripteur 2", "lieu_naissance"),
        text("S-departement-naissance souscripteur 2", "departement_naissance"),
        text("S-pays-naissance souscripteur 2", "pays_naissance"),
        text("S-adresse souscripteur 2", lambda d: first_line(value_of(d, "address")),
             "address/first line"),
        text("S-pays souscripteur 2", "fiscalResidenceCountry"),
        text("S-telephone souscripteur 2", "phoneMobile"),
        text("S-mail souscripteur 2", "email"),
        choice("S-situation-famille", "maritalStatus"),
        choice("S-regime-matrimonial", "maritalRegime"),
        choice("S-associe", lambda d: oui_non(value_of(d, "deja_associe")), "deja_associe"),
        text("code associe", "code_associe"),
        choice("S-capacite", "protectionMeasure"),
        text("S-capacite souscripteur_autre 3", "capacite_juridique_autre"),
        choice("S-residence", "fiscalResidenceCountry"),
        text("S-residence souscripteur_autre 4", "residence_fiscale_autre"),
        choice("S-regime fiscal", "regime_fiscal"),
        choice("S-citoyen US", lambda d: yes_no_sentinel(value_of(d, "isUSPerson"), "US"),
               "isUSPerson"),
        choice("S-esxpose LCT", lambda d: yes_no_sentinel(value_of(d, "isPPE"), "LCB"),
               "isPPE"),
        choice("QPP-SPR-activite", "socioProfessionalCategory"),
        text("QPP-SPR-profession souscripteur", "profession"),
        text("QPP-SPR-secteur activite Co_sous", "secteur_activite"),

        # ── Souscription ────────────────────────────────────────────
        text("S-nb-part", "nb_parts"),
        text("S-total-souscription", "total_souscription"),
        text("S-somme-reglee", "somme_reglee"),
        text("S-nom-prenom-cheque", "nom_prenom_cheque"),
        text("S-pays-fonds", "pays_fonds"),
        text("S-montant-financement", "montant_financement"),
        text("S-banque", "banque"),

        # ── Origine des fonds ───────────────────────────────────────
        mark("fond epargne", "epargne"),
        text("S-pourcent-epargne", "epargne_pct"),
        mark("fond heritage", "heritage"),
        text("S-pourcent-heritage", "heritage_pct"),
        mark("fond donation", "donation"),
        text("S-pourcent-donation", "donation_pct"),
        mark("fond credit", "credit"),
        text("S-pourcent-credit", "credit_pct"),
        mark("fond cession activite", "cession_activite"),
        text("S-pourcent-cessation", "cession_activite_pct"),
        mark("fond idemnites", "prestations"),
        text("S-pourcent-indemnites", "prestations_pct"),
        mark("fond autre", "autres"),
        text("S-pourcent-autres", "autres_pct"),
        text("fond autre quid", "autres_details"),

        # ── Versements programmés ───────────────────────────────────
        choice("S-souscrip-vers prog", "frequence"),
        text("S-somme investie 2", "montant"),
        text("S-versement fait a", "signature_lieu"),
        date("S-versement le", "S-versement mois", "S-versement annee", "signature_date"),

        # ── Réinvestissement ────────────────────────────────────────
        # trailing space is part of the template's field name
        choice("S-Somme reinvestie ", "reinvestissement_option"),
        text("S-% somme re-investie", "reinvestissement_taux"),
        text("S-Fait à", "reinvestissement_signature_lieu"),
        date("Date1_af_date.0", "Date1_af_date.1", "Date1_af_date.2",
             "reinvestissement_signature_date", year_width=2),

        # ── Préférences de communication ────────────────────────────
        choice("Convoc assemblees", lambda d: oui_non(value_of(d, "convocation_ag_demat")),
               "convocation_ag_demat"),
        choice("bordereau fiscal", lambda d: oui_non(value_of(d, "bordereau_fiscal_demat")),
               "bordereau_fiscal_demat"),
        text("S-fait-a", "pref_signature_lieu"),
        date("S-fait-a-date-jj#BS SIGNAT", "S-fait-a-date-mm#BS SIGNAT",
             "S-fait-a-date-yyyy#BS SIGNAT", "pref_signature_date"),

        # ── Mandat SEPA ─────────────────────────────────────────────
        text("S-nom 6", "nom_titulaire"),
        text("S-no-adresse 5", "adresse_no"),
        text("S-adresse7", "adresse_rue"),
        text("S-code-postal 5", "cp"),
        text("S-ville 5", "ville"),
        text("S-pays 5", "pays"),
        segments("S-IBAN", 7, "iban"),
        text("S-BIC", "bic"),
        mark("paiement ponctuel", "type_paiement_ponctuel"),
        mark("paiement recurrent", "type_paiement_recurrent"),
        text("S-fait a 5", "signature_lieu"),
        date("S-fait-a-date-jj", "S-fait-a-date-mm", "S-fait-a-date-yyyy", "signature_date"),

        # ── Situation financière et fiscale ─────────────────────────
        text("Epargne Precaution Souhaitee", "precautionSavings"),
        text("Total Actifs Bruts", "assetsTotal"),
        text("Total Passifs", "liabilitiesTotal"),
        text("Total Revenus", "totalIncome"),
        text("Total Charges", "totalExpenses"),
        text("Annee N", "taxYear"),
        text("Total Salaires Assimiles", "grossSalary"),
        text("TMI IR", lambda d: format_percentage(value_of(d, "marginalTaxRate")),
             "marginalTaxRate"),
        text("Revenu brut global", "grossIncome"),
        text("Impot sur le revenu net", "netTaxAmount"),
    ]


RULESETS = {
    "2024.1": bulletin_2024_rules,
}

DEFAULT_VERSION = "2024.1"


def build_rules(version: str = DEFAULT_VERSION, name_splitter=split_name_last_token):
    try:
        factory = RULESETS[version]
    except KeyError:
        raise UnknownTemplateVersion(version, RULESETS) from None
    return factory(name_splitter=name_splitter)
