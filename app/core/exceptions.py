"""
Excepciones HTTP personalizadas para la API y errores del subsistema de UIDs.
"""

from fastapi import HTTPException, status


class ConflictException(HTTPException):
    """Conflicto de datos (409) — ej: código de cepa duplicado."""

    def __init__(self, detail: str = "El recurso ya existe"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class ValidationException(HTTPException):
    """Error de validación de negocio (422)."""

    def __init__(self, detail: str = "Error de validación"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class ServiceUnavailableException(HTTPException):
    """El backend no pudo completar la operación por contención (503)."""

    def __init__(self, detail: str = "Servicio no disponible, reintente"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            headers={"Retry-After": "1"},
        )


# ── Taxonomía de errores de UIDs ─────────────────────

class InvalidStrainCode(ValidationException):
    """Código de cepa con formato inválido o reservado."""


class StrainCodeTaken(ConflictException):
    """El código ya pertenece a otra cepa del mismo usuario."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(
            f'Strain code "{code}" is already used by another strain. '
            "Please choose a different code."
        )


class MalformedUid(ValidationException):
    """El UID no cumple el formato semilla ni clon."""

    def __init__(self, uid: object, reason: str | None = None):
        self.uid = uid
        super().__init__(f"Invalid UID {uid!r}: {reason or 'malformed'}")


class MissingParentReference(ValidationException):
    """Un clon requiere UID y ID de la planta madre."""


class SequenceAllocationFailed(ServiceUnavailableException):
    """Se agotaron los reintentos del contador atómico."""

    def __init__(self, counter_key: str, attempts: int):
        self.counter_key = counter_key
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a sequence number for {counter_key} "
            f"after {attempts} attempts"
        )


class PerPlantMigrationError(Exception):
    """Fallo al migrar una planta concreta; no detiene el batch."""

    def __init__(self, plant_id: object, cause: BaseException):
        self.plant_id = plant_id
        self.cause = cause
        super().__init__(f"Plant {plant_id}: {cause}")
