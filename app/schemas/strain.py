from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Registro de cepas ──────────────────────────────────────────

class StrainResolveRequest(BaseModel):
    strain_name: str = Field(..., min_length=1, max_length=200)
    proposed_code: str | None = Field(None, max_length=10)

    @field_validator("strain_name")
    @classmethod
    def validate_strain_name(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("El nombre de la cepa no puede estar vacío")
        return cleaned


class StrainResolution(BaseModel):
    code: str
    is_new: bool
    warning: str | None = None


class StrainCodeItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    strain_name: str
    strain_code: str


class StrainCodeValidation(BaseModel):
    valid: bool
    error: str | None = None
