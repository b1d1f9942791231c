"""
Codec de UIDs de plantas: composición, parseo y validación.

Formato semilla:  CODE_DDMMYY_NN          ej: BLU_150124_01
Formato clon:     <UID madre>_cNN         ej: BLU_150124_01_c01_c02

Funciones puras: no acceden a la base de datos.
"""

import re
from datetime import date, datetime

from app.core.exceptions import MalformedUid
from app.schemas.strain import StrainCodeValidation
from app.schemas.uid import ParsedUid, UidValidation

SEED_UID_PATTERN = re.compile(r"^[A-Z]{3}_\d{6}_\d{2}$")
CLONE_UID_PATTERN = re.compile(r"^[A-Z]{3}_\d{6}_\d{2}(_c\d{2})+$")
STRAIN_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")

# Groserías, siglas ambiguas y de agencias
RESERVED_CODES = frozenset({
    "XXX", "BAD", "ASS", "SEX", "GAY", "FAG", "WTF", "FUK", "DIE", "KKK",
    "HIV", "SOS", "FBI", "CIA", "DEA", "ATF", "ICE", "TSA",
    "GOD", "JEW", "KGB", "IRA", "PLO", "NAZ",
})

FILLER_CODE = "GEN"
MAX_SEQUENCE = 99

_INVALID_UID_ERROR = (
    "UID format is invalid. Expected format: XXX_DDMMYY_NN or XXX_DDMMYY_NN_cNN"
)


# ── Normalización ────────────────────────────────────

def normalize_strain_code(code: str | None) -> str:
    """Fuerza mayúsculas y recorta espacios."""
    return code.strip().upper() if code else ""


def normalize_strain_name(name: str | None) -> str:
    """Clave de búsqueda de una cepa: sin espacios extra y sin mayúsculas."""
    if not name:
        return ""
    return " ".join(name.split()).casefold()


def validate_strain_code(code: str | None) -> StrainCodeValidation:
    """Valida formato (3 letras A-Z) y lista de códigos reservados."""
    if not isinstance(code, str) or not STRAIN_CODE_PATTERN.match(code):
        return StrainCodeValidation(
            valid=False,
            error="Strain code must be exactly 3 uppercase letters (A-Z)",
        )
    if code in RESERVED_CODES:
        return StrainCodeValidation(
            valid=False,
            error="This code is reserved. Please choose a different 3-letter code.",
        )
    return StrainCodeValidation(valid=True)


def derive_strain_code(strain_name: str | None) -> str:
    """
    Propone un código a partir de las tres primeras letras del nombre.
    Nombres cortos se completan con letras de relleno ("Oz" → "OZG").
    """
    letters = re.sub(r"[^A-Za-z]", "", strain_name or "").upper()
    if not letters:
        return FILLER_CODE
    return (letters + FILLER_CODE)[:3]


# ── Composición ──────────────────────────────────────

def format_date(value: date | datetime) -> str:
    """Fecha como DDMMYY."""
    return value.strftime("%d%m%y")


def compose_seed_uid(strain_code: str, date_born: str, seed_seq: int) -> str:
    return f"{strain_code}_{date_born}_{seed_seq:02d}"


def compose_clone_uid(parent_uid: str, clone_seq: int) -> str:
    return f"{parent_uid}_c{clone_seq:02d}"


# ── Validación y parseo ──────────────────────────────

def validate(uid: object) -> UidValidation:
    if not uid or not isinstance(uid, str):
        return UidValidation(valid=False, kind="invalid", error="UID is required")

    if SEED_UID_PATTERN.match(uid):
        kind = "seed"
    elif CLONE_UID_PATTERN.match(uid):
        kind = "clone"
    else:
        return UidValidation(valid=False, kind="invalid", error=_INVALID_UID_ERROR)

    code_check = validate_strain_code(uid[:3])
    if not code_check.valid:
        return UidValidation(valid=False, kind="invalid", error=code_check.error)

    return UidValidation(valid=True, kind=kind)


def parse(uid: object) -> ParsedUid:
    """Descompone un UID válido; lanza MalformedUid si no lo es."""
    validation = validate(uid)
    if not validation.valid:
        raise MalformedUid(uid, validation.error)

    parts = uid.split("_")
    return ParsedUid(
        strain_code=parts[0],
        date_born=parts[1],
        seed_seq=parts[2],
        clone_seqs=parts[3:],
        kind=validation.kind,
    )


def generation_depth(uid: str) -> int:
    """Cantidad de eventos de clonación codificados en el UID (0 = semilla)."""
    return len(parse(uid).clone_seqs)


def seed_root(uid: str) -> str:
    """UID de la semilla que originó el linaje."""
    parsed = parse(uid)
    return compose_seed_uid(parsed.strain_code, parsed.date_born, int(parsed.seed_seq))
