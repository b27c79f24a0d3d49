"""
Maps provider codes from the regulator tables to display names.
Unknown codes fall back to the code itself.
"""

PROVIDERS = {
    "GALP": "Galp",
    "EDP": "EDP",
    "EDPC": "EDP Comercial",
    "EDPSU": "SU Eletricidade",
    "SU": "SU Eletricidade",
    "GOLD": "Goldenergy",
    "END": "Endesa",
    "IBER": "Iberdrola",
    "IBD": "Iberdrola",
    "MEO": "MEO Energia",
    "MEOENERGIA": "MEO Energia",
    "REPSOL": "Repsol",
    "ENI": "Eni Plenitude",
    "ENIPLENITUDE": "Eni Plenitude",
    "PLEN": "Plenitude",
    "COOP": "Coopérnico",
    "COOPERNICO": "Coopérnico",
    "NOS": "NOS Energia",
    "PRIO": "Prio",
    "AUDAX": "Audax",
    "IBELECTRA": "Ibelectra",
    "LUZBOA": "Luzboa",
    "LUZIGAS": "Luzigas",
    "MUON": "Muon Electric",
    "YLCE": "YLce",
    "ENAT": "Energia Natural",
    "PLUZ": "Pluz",
    "ACCIONA": "Acciona",
    "AXPO": "Axpo",
    "CLEANWATTS": "Cleanwatts",
    "EASYC": "Easy Energia",
    "FACTOR": "Factor Energia",
    "HOLA": "Holaluz",
    "AQUILA": "Aquila",
}


def get_provider_name(code) -> str:
    code = "" if code is None else str(code).strip()
    return PROVIDERS.get(code.upper(), code)


def find_provider_code(name) -> str:
    """Reverse lookup used for invoices, which only show the brand name."""
    wanted = "" if name is None else str(name).strip().lower()
    if not wanted:
        return ""
    for code, display in PROVIDERS.items():
        if display.lower() == wanted or display.lower().startswith(wanted + " "):
            return code
    return ""
