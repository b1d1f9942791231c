from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

UidKind = Literal["seed", "clone", "invalid"]


# ── Codec ──────────────────────────────────────────────────────

class UidValidation(BaseModel):
    valid: bool
    kind: UidKind
    error: str | None = None


class ParsedUid(BaseModel):
    strain_code: str
    date_born: str  # DDMMYY
    seed_seq: str  # con ceros a la izquierda, ej: "01"
    clone_seqs: list[str] = Field(default_factory=list)  # ej: ["c01", "c02"]
    kind: Literal["seed", "clone"]


# ── Generación ─────────────────────────────────────────────────

class SeedUidRequest(BaseModel):
    strain_name: str = Field(..., min_length=1, max_length=200)
    proposed_strain_code: str | None = Field(None, max_length=10)
    date_born: date | None = None  # Si es None, se usa la fecha de hoy


class SeedUidResult(BaseModel):
    uid: str
    strain_code: str
    is_new_strain: bool
    warning: str | None = None


class CloneUidRequest(BaseModel):
    parent_uid: str | None = None
    parent_plant_id: str | None = None


class CloneUidResult(BaseModel):
    uid: str
    clone_seq: int


class UidUniqueness(BaseModel):
    uid: str
    unique: bool
