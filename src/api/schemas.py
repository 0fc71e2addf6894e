"""Pydantic response schemas for the FastAPI endpoints."""

from pydantic import BaseModel

from src.extraction.rule_extractor import VehicleRecord


class VehicleRecordResponse(BaseModel):
    """Fields read from a registration document, keyed for the front end."""

    chasis: str | None = None
    motor: str | None = None
    marca: str | None = None
    modelo: str | None = None
    anio: str | None = None
    cilindrada: str | None = None
    matricula: str | None = None
    titulares: str | None = None

    @classmethod
    def from_record(cls, record: VehicleRecord) -> "VehicleRecordResponse":
        return cls(**record.to_dict())


class ErrorResponse(BaseModel):
    """Error payload with a user-facing message."""

    error: str


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    ocr_backend: str
