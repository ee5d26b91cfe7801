"""Built-in SKR03 chart table.

Balance sheet tree after HGB §266, GuV positions after HGB §275 Abs. 2
(Gesamtkostenverfahren), account categories, presentation rules and account
name templates. A JSON file with the same top-level keys can replace this
table (see ``bilanz.chart.loader``).
"""

BALANCE_SHEET_TREE = {
    "id": "b",
    "title": "Bilanz",
    "children": [
        {
            "id": "aktiva",
            "title": "Aktiva",
            "children": [
                {
                    "id": "anlagevermoegen",
                    "title": "A. Anlagevermögen",
                    "children": [
                        {"id": "immaterielle_vermoegensgegenstaende", "title": "I. Immaterielle Vermögensgegenstände"},
                        {"id": "sachanlagen", "title": "II. Sachanlagen"},
                        {"id": "finanzanlagen", "title": "III. Finanzanlagen"},
                    ],
                },
                {
                    "id": "umlaufvermoegen",
                    "title": "B. Umlaufvermögen",
                    "children": [
                        {"id": "vorraete", "title": "I. Vorräte"},
                        {
                            "id": "forderungen",
                            "title": "II. Forderungen und sonstige Vermögensgegenstände",
                            "children": [
                                {
                                    "id": "forderungen_lieferungen_leistungen",
                                    "title": "1. Forderungen aus Lieferungen und Leistungen",
                                },
                                {
                                    "id": "forderungen_verbundene_unternehmen",
                                    "title": "2. Forderungen gegen verbundene Unternehmen",
                                },
                                {
                                    "id": "sonstige_vermoegensgegenstaende",
                                    "title": "4. Sonstige Vermögensgegenstände",
                                },
                            ],
                        },
                        {"id": "wertpapiere", "title": "III. Wertpapiere"},
                        {
                            "id": "kassenbestand_guthaben",
                            "title": "IV. Kassenbestand, Guthaben bei Kreditinstituten",
                        },
                    ],
                },
                {"id": "rechnungsabgrenzungsposten", "title": "C. Rechnungsabgrenzungsposten"},
            ],
        },
        {
            "id": "passiva",
            "title": "Passiva",
            "children": [
                {
                    "id": "eigenkapital",
                    "title": "A. Eigenkapital",
                    "children": [
                        {"id": "gezeichnetes_kapital", "title": "I. Gezeichnetes Kapital"},
                        {"id": "kapitalruecklage", "title": "II. Kapitalrücklage"},
                        {"id": "gewinnruecklagen", "title": "III. Gewinnrücklagen"},
                        {"id": "gewinnvortrag_verlustvortrag", "title": "IV. Gewinnvortrag/Verlustvortrag"},
                    ],
                },
                {"id": "rueckstellungen", "title": "B. Rückstellungen"},
                {
                    "id": "verbindlichkeiten",
                    "title": "C. Verbindlichkeiten",
                    "children": [
                        {
                            "id": "verbindlichkeiten_kreditinstitute",
                            "title": "2. Verbindlichkeiten gegenüber Kreditinstituten",
                        },
                        {
                            "id": "verbindlichkeiten_lieferungen_leistungen",
                            "title": "4. Verbindlichkeiten aus Lieferungen und Leistungen",
                        },
                        {
                            "id": "verbindlichkeiten_verbundene_unternehmen",
                            "title": "6. Verbindlichkeiten gegenüber verbundenen Unternehmen",
                        },
                        {"id": "sonstige_verbindlichkeiten", "title": "8. Sonstige Verbindlichkeiten"},
                    ],
                },
                {"id": "rechnungsabgrenzungsposten", "title": "D. Rechnungsabgrenzungsposten"},
            ],
        },
    ],
}

_A = "b.aktiva"
_P = "b.passiva"
_FORDERUNGEN = f"{_A}.umlaufvermoegen.forderungen"
_KASSE_BANK = f"{_A}.umlaufvermoegen.kassenbestand_guthaben"
_VERBINDLICHKEITEN = f"{_P}.verbindlichkeiten"

CATEGORIES = [
    # Aktiva
    {"cid": f"{_A}.anlagevermoegen.immaterielle_vermoegensgegenstaende", "title": "Immaterielle Vermögensgegenstände", "accounts": ["0010-0099"], "rule": "asset_only"},
    {"cid": f"{_A}.anlagevermoegen.sachanlagen", "title": "Sachanlagen", "accounts": ["0100-0499"], "rule": "asset_only"},
    {"cid": f"{_A}.anlagevermoegen.finanzanlagen", "title": "Finanzanlagen", "accounts": ["0500-0599"], "rule": "asset_only"},
    {"cid": f"{_A}.umlaufvermoegen.vorraete", "title": "Vorräte", "accounts": ["3970-3999"], "rule": "asset_only"},
    {"cid": f"{_FORDERUNGEN}.forderungen_lieferungen_leistungen", "title": "Forderungen aus Lieferungen und Leistungen", "accounts": ["1400-1499"], "rule": "fll_standard"},
    {"cid": f"{_FORDERUNGEN}.forderungen_verbundene_unternehmen", "title": "Forderungen gegen verbundene Unternehmen", "accounts": ["1300-1399"], "rule": "receivable_affiliated"},
    {"cid": f"{_FORDERUNGEN}.sonstige_vermoegensgegenstaende.allgemein", "title": "Sonstige Vermögensgegenstände", "accounts": ["1500-1569"], "rule": "sonstige_bidirectional"},
    {"cid": f"{_FORDERUNGEN}.sonstige_vermoegensgegenstaende.vorsteuer", "title": "Abziehbare Vorsteuer", "accounts": ["1570-1589"], "rule": "tax_standard"},
    {"cid": f"{_KASSE_BANK}.kasse", "title": "Kasse", "accounts": ["1000-1099"], "rule": "asset_only"},
    {"cid": f"{_KASSE_BANK}.bank", "title": "Bank", "accounts": ["1100-1299"], "rule": "bank_bidirectional"},
    {"cid": f"{_A}.rechnungsabgrenzungsposten", "title": "Aktive Rechnungsabgrenzung", "accounts": ["0980-0989"], "rule": "asset_only"},
    # Passiva
    {"cid": f"{_P}.eigenkapital.gezeichnetes_kapital", "title": "Gezeichnetes Kapital", "accounts": ["0800-0839"], "rule": "equity_only"},
    {"cid": f"{_P}.eigenkapital.kapitalruecklage", "title": "Kapitalrücklage", "accounts": ["0840-0849"], "rule": "equity_only"},
    {"cid": f"{_P}.eigenkapital.gewinnruecklagen", "title": "Gewinnrücklagen", "accounts": ["0850-0859"], "rule": "equity_only"},
    {"cid": f"{_P}.eigenkapital.gewinnvortrag_verlustvortrag", "title": "Gewinnvortrag/Verlustvortrag", "accounts": ["0860-0869"], "rule": "equity_only"},
    {"cid": f"{_P}.rueckstellungen", "title": "Rückstellungen", "accounts": ["0950-0979"], "rule": "liability_only"},
    {"cid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_kreditinstitute", "title": "Verbindlichkeiten gegenüber Kreditinstituten", "accounts": ["0630-0699"], "rule": "liability_only"},
    {"cid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_lieferungen_leistungen", "title": "Verbindlichkeiten aus Lieferungen und Leistungen", "accounts": ["1600-1699"], "rule": "vll_standard"},
    {"cid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_verbundene_unternehmen", "title": "Verbindlichkeiten gegenüber verbundenen Unternehmen", "accounts": ["0700-0749"], "rule": "payable_affiliated"},
    {"cid": f"{_VERBINDLICHKEITEN}.sonstige_verbindlichkeiten.allgemein", "title": "Sonstige Verbindlichkeiten", "accounts": ["0750-0799", "1700-1769", "1790-1799"], "rule": "sonstige_bidirectional"},
    {"cid": f"{_VERBINDLICHKEITEN}.sonstige_verbindlichkeiten.umsatzsteuer", "title": "Umsatzsteuer", "accounts": ["1770-1789"], "rule": "tax_standard"},
    {"cid": f"{_P}.rechnungsabgrenzungsposten", "title": "Passive Rechnungsabgrenzung", "accounts": ["0990-0999"], "rule": "liability_only"},
    # GuV Erträge
    {"cid": "g.ertraege.umsatzerloese", "title": "Umsatzerlöse", "accounts": ["4000-4999", "8000-8959"], "rule": "pnl_only"},
    {"cid": "g.ertraege.bestandsveraenderungen", "title": "Bestandsveränderungen", "accounts": ["8960-8979"], "rule": "pnl_only"},
    {"cid": "g.ertraege.aktivierte_eigenleistungen", "title": "Andere aktivierte Eigenleistungen", "accounts": ["8990-8999"], "rule": "pnl_only"},
    {"cid": "g.ertraege.sonstige_betriebliche_ertraege", "title": "Sonstige betriebliche Erträge", "accounts": ["2700-2749"], "rule": "pnl_only"},
    {"cid": "g.ertraege.ertraege_beteiligungen", "title": "Erträge aus Beteiligungen", "accounts": ["2600-2619"], "rule": "pnl_only"},
    {"cid": "g.ertraege.ertraege_wertpapiere", "title": "Erträge aus anderen Wertpapieren", "accounts": ["2620-2649"], "rule": "pnl_only"},
    {"cid": "g.ertraege.sonstige_zinsen_ertraege", "title": "Sonstige Zinsen und ähnliche Erträge", "accounts": ["2650-2699"], "rule": "pnl_only"},
    # GuV Aufwendungen
    {"cid": "g.aufwendungen.materialaufwand.roh_hilfs_betriebsstoffe", "title": "Roh-, Hilfs- und Betriebsstoffe", "accounts": ["3000-3969", "5000-5899"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.materialaufwand.bezogene_leistungen", "title": "Bezogene Leistungen", "accounts": ["5900-5999"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.personalaufwand.loehne_gehaelter", "title": "Löhne und Gehälter", "accounts": ["6000-6099"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.personalaufwand.soziale_abgaben", "title": "Soziale Abgaben", "accounts": ["6100-6199"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.abschreibungen.anlagevermoegen", "title": "Abschreibungen auf Anlagevermögen", "accounts": ["7600-7649"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.abschreibungen.umlaufvermoegen", "title": "Abschreibungen auf Umlaufvermögen", "accounts": ["7650-7699"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.sonstige_betriebliche_aufwendungen", "title": "Sonstige betriebliche Aufwendungen", "accounts": ["6200-6999", "7000-7599", "7700-7999"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.zinsen_aufwendungen", "title": "Zinsen und ähnliche Aufwendungen", "accounts": ["2100-2149"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.abschreibungen_finanzanlagen", "title": "Abschreibungen auf Finanzanlagen", "accounts": ["2150-2199"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.steuern_einkommen_ertrag", "title": "Steuern vom Einkommen und vom Ertrag", "accounts": ["2200-2299"], "rule": "pnl_only"},
    {"cid": "g.aufwendungen.sonstige_steuern", "title": "Sonstige Steuern", "accounts": ["2300-2399"], "rule": "pnl_only"},
]

# The 17 items of §275 Abs. 2 as account-bearing positions: items 5, 6 and 7
# are split into their a/b sub-items, item 15 (Ergebnis nach Steuern) and
# item 17 (Jahresüberschuss/Jahresfehlbetrag) are results computed from the
# positions and carry no accounts.
GUV_SECTIONS = [
    {"key": "umsatzerloese", "title": "1. Umsatzerlöse", "cid": "g.ertraege.umsatzerloese", "kind": "revenue"},
    {"key": "bestandsveraenderungen", "title": "2. Erhöhung oder Verminderung des Bestands an fertigen und unfertigen Erzeugnissen", "cid": "g.ertraege.bestandsveraenderungen", "kind": "revenue"},
    {"key": "aktivierte_eigenleistungen", "title": "3. Andere aktivierte Eigenleistungen", "cid": "g.ertraege.aktivierte_eigenleistungen", "kind": "revenue"},
    {"key": "sonstige_betriebliche_ertraege", "title": "4. Sonstige betriebliche Erträge", "cid": "g.ertraege.sonstige_betriebliche_ertraege", "kind": "revenue"},
    {"key": "materialaufwand_roh_hilfs_betriebsstoffe", "title": "5a. Aufwendungen für Roh-, Hilfs- und Betriebsstoffe und für bezogene Waren", "cid": "g.aufwendungen.materialaufwand.roh_hilfs_betriebsstoffe", "kind": "expense"},
    {"key": "materialaufwand_bezogene_leistungen", "title": "5b. Aufwendungen für bezogene Leistungen", "cid": "g.aufwendungen.materialaufwand.bezogene_leistungen", "kind": "expense"},
    {"key": "personalaufwand_loehne_gehaelter", "title": "6a. Löhne und Gehälter", "cid": "g.aufwendungen.personalaufwand.loehne_gehaelter", "kind": "expense"},
    {"key": "personalaufwand_soziale_abgaben", "title": "6b. Soziale Abgaben und Aufwendungen für Altersversorgung und für Unterstützung", "cid": "g.aufwendungen.personalaufwand.soziale_abgaben", "kind": "expense"},
    {"key": "abschreibungen_anlagevermoegen", "title": "7a. Abschreibungen auf immaterielle Vermögensgegenstände des Anlagevermögens und Sachanlagen", "cid": "g.aufwendungen.abschreibungen.anlagevermoegen", "kind": "expense"},
    {"key": "abschreibungen_umlaufvermoegen", "title": "7b. Abschreibungen auf Vermögensgegenstände des Umlaufvermögens, soweit diese die üblichen Abschreibungen überschreiten", "cid": "g.aufwendungen.abschreibungen.umlaufvermoegen", "kind": "expense"},
    {"key": "sonstige_betriebliche_aufwendungen", "title": "8. Sonstige betriebliche Aufwendungen", "cid": "g.aufwendungen.sonstige_betriebliche_aufwendungen", "kind": "expense"},
    {"key": "ertraege_beteiligungen", "title": "9. Erträge aus Beteiligungen", "cid": "g.ertraege.ertraege_beteiligungen", "kind": "revenue"},
    {"key": "ertraege_wertpapiere", "title": "10. Erträge aus anderen Wertpapieren und Ausleihungen des Finanzanlagevermögens", "cid": "g.ertraege.ertraege_wertpapiere", "kind": "revenue"},
    {"key": "sonstige_zinsen_ertraege", "title": "11. Sonstige Zinsen und ähnliche Erträge", "cid": "g.ertraege.sonstige_zinsen_ertraege", "kind": "revenue"},
    {"key": "abschreibungen_finanzanlagen", "title": "12. Abschreibungen auf Finanzanlagen und auf Wertpapiere des Umlaufvermögens", "cid": "g.aufwendungen.abschreibungen_finanzanlagen", "kind": "expense"},
    {"key": "zinsen_aufwendungen", "title": "13. Zinsen und ähnliche Aufwendungen", "cid": "g.aufwendungen.zinsen_aufwendungen", "kind": "expense"},
    {"key": "steuern_einkommen_ertrag", "title": "14. Steuern vom Einkommen und vom Ertrag", "cid": "g.aufwendungen.steuern_einkommen_ertrag", "kind": "expense"},
    {"key": "sonstige_steuern", "title": "16. Sonstige Steuern", "cid": "g.aufwendungen.sonstige_steuern", "kind": "expense"},
]

_SONSTIGE_VG = f"{_FORDERUNGEN}.sonstige_vermoegensgegenstaende"
_SONSTIGE_VB = f"{_VERBINDLICHKEITEN}.sonstige_verbindlichkeiten"

PRESENTATION_RULES = [
    {"key": "asset_only", "name": "Always Aktiva", "description": "Account always appears on the Aktiva side", "account_type": "asset"},
    {"key": "liability_only", "name": "Always Passiva", "description": "Account always appears under Verbindlichkeiten or Rückstellungen", "account_type": "liability"},
    {"key": "equity_only", "name": "Always Eigenkapital", "description": "Account always appears under Eigenkapital", "account_type": "equity"},
    {"key": "pnl_only", "name": "GuV only", "description": "Account appears in the GuV, never on the balance sheet"},
    {
        "key": "fll_standard",
        "name": "Forderungen LuL",
        "description": "Debit balance as receivable, credit balance as sonstige Verbindlichkeit",
        "debit_rsid": f"{_FORDERUNGEN}.forderungen_lieferungen_leistungen",
        "credit_rsid": _SONSTIGE_VB,
    },
    {
        "key": "vll_standard",
        "name": "Verbindlichkeiten LuL",
        "description": "Credit balance as payable, debit balance as sonstiger Vermögensgegenstand",
        "debit_rsid": _SONSTIGE_VG,
        "credit_rsid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_lieferungen_leistungen",
    },
    {
        "key": "bank_bidirectional",
        "name": "Bank",
        "description": "Debit balance as Guthaben, credit balance as Verbindlichkeit gegenüber Kreditinstituten",
        "debit_rsid": _KASSE_BANK,
        "credit_rsid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_kreditinstitute",
    },
    {
        "key": "tax_standard",
        "name": "Steuerkonten",
        "description": "Debit balance as tax claim, credit balance as tax liability",
        "debit_rsid": _SONSTIGE_VG,
        "credit_rsid": _SONSTIGE_VB,
    },
    {
        "key": "receivable_affiliated",
        "name": "Forderungen verbundene Unternehmen",
        "description": "Debit balance as receivable, credit balance as payable to affiliated companies",
        "debit_rsid": f"{_FORDERUNGEN}.forderungen_verbundene_unternehmen",
        "credit_rsid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_verbundene_unternehmen",
    },
    {
        "key": "payable_affiliated",
        "name": "Verbindlichkeiten verbundene Unternehmen",
        "description": "Credit balance as payable, debit balance as receivable from affiliated companies",
        "debit_rsid": f"{_FORDERUNGEN}.forderungen_verbundene_unternehmen",
        "credit_rsid": f"{_VERBINDLICHKEITEN}.verbindlichkeiten_verbundene_unternehmen",
    },
    {
        "key": "sonstige_bidirectional",
        "name": "Sonstige",
        "description": "Debit balance as sonstiger Vermögensgegenstand, credit balance as sonstige Verbindlichkeit",
        "debit_rsid": _SONSTIGE_VG,
        "credit_rsid": _SONSTIGE_VB,
    },
]

TYPE_FALLBACK_SECTIONS = {
    "asset": _SONSTIGE_VG,
    "liability": _SONSTIGE_VB,
    "equity": f"{_P}.eigenkapital",
}

VAT_ACCOUNTS = {
    "input_19": "1576",
    "input_7": "1571",
    "output_19": "1776",
    "output_7": "1771",
    "rc_input": "1577",
    "rc_output": "1787",
}

CLOSING_ACCOUNTS = {
    "ebk_sbk": "9000",
    "saldenvortrag_debitoren": "9008",
    "saldenvortrag_kreditoren": "9009",
    "summenvortrag": "9090",
}

RETAINED_EARNINGS_ACCOUNTS = {
    "profit": "0860",
    "loss": "0868",
}

ACCOUNT_NAMES = {
    "0027": "EDV-Software",
    "0420": "Technische Anlagen und Maschinen",
    "0480": "Geringwertige Wirtschaftsgüter",
    "0650": "Verbindlichkeiten gegenüber Kreditinstituten",
    "0700": "Verbindlichkeiten gegenüber Gesellschaftern",
    "0750": "Darlehen",
    "0800": "Gezeichnetes Kapital",
    "0840": "Kapitalrücklage",
    "0860": "Gewinnvortrag vor Verwendung",
    "0868": "Verlustvortrag vor Verwendung",
    "0970": "Sonstige Rückstellungen",
    "0980": "Aktive Rechnungsabgrenzung",
    "0990": "Passive Rechnungsabgrenzung",
    "1000": "Kasse",
    "1200": "Bank",
    "1300": "Forderungen gegen verbundene Unternehmen",
    "1400": "Forderungen aus Lieferungen und Leistungen",
    "1529": "Zurückzuzahlende Vorsteuer",
    "1548": "Vorsteuer im Folgejahr abziehbar",
    "1571": "Abziehbare Vorsteuer 7%",
    "1576": "Abziehbare Vorsteuer 19%",
    "1577": "Abziehbare Vorsteuer nach §13b UStG 19%",
    "1600": "Verbindlichkeiten aus Lieferungen und Leistungen",
    "1740": "Verbindlichkeiten aus Lohn und Gehalt",
    "1771": "Umsatzsteuer 7%",
    "1776": "Umsatzsteuer 19%",
    "1787": "Umsatzsteuer nach §13b UStG 19%",
    "1790": "Umsatzsteuer Vorjahr",
    "2100": "Zinsen und ähnliche Aufwendungen",
    "2200": "Körperschaftsteuer",
    "2280": "Steuernachzahlungen Vorjahre für Steuern vom Einkommen und Ertrag",
    "2650": "Sonstige Zinsen und ähnliche Erträge",
    "2700": "Sonstige Erträge",
    "3400": "Wareneingang 19% Vorsteuer",
    "4000": "Umsatzerlöse",
    "4400": "Erlöse 19% USt",
    "4300": "Erlöse 7% USt",
    "5900": "Fremdleistungen",
    "6000": "Löhne und Gehälter",
    "6110": "Gesetzliche soziale Aufwendungen",
    "6300": "Sonstige betriebliche Aufwendungen",
    "6310": "Miete",
    "6805": "Telefon",
    "6815": "Bürobedarf",
    "6827": "Abschluss- und Prüfungskosten",
    "6855": "Nebenkosten des Geldverkehrs",
    "7610": "Abschreibungen auf Sachanlagen",
    "8400": "Erlöse 19% USt",
    "9000": "Saldenvorträge, Sachkonten",
    "9008": "Saldenvorträge, Debitoren",
    "9009": "Saldenvorträge, Kreditoren",
    "9090": "Summenvortragskonto",
}
