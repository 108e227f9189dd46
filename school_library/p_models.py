import base64
from datetime import datetime
from typing import Literal, Optional

from pydantic import Base64Bytes
from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field, field_validator

from school_library.models import BookCondition


class BaseModel(PydanticBaseModel):
    model_config = ConfigDict(from_attributes=True)


def to_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored naive, in local time."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class StudentSchema(BaseModel):
    dni: str
    nombre: str
    apellido1: str
    apellido2: Optional[str] = None
    full_name: str


class NewStudentSchema(BaseModel):
    dni: str = Field(min_length=1, max_length=20)
    nombre: str = Field(min_length=1, max_length=50)
    apellido1: str = Field(min_length=1, max_length=50)
    apellido2: Optional[str] = Field(default=None, max_length=50)


class UpdateStudentSchema(BaseModel):
    nombre: Optional[str] = Field(default=None, min_length=1, max_length=50)
    apellido1: Optional[str] = Field(default=None, min_length=1, max_length=50)
    apellido2: Optional[str] = Field(default=None, max_length=50)


class BookSchema(BaseModel):
    codigo: int
    titulo: str
    autor: Optional[str] = None
    editorial: Optional[str] = None
    estado: BookCondition
    baja: bool = False
    portada: Optional[str] = None

    @field_validator("portada", mode="before")
    def encode_portada(cls, value):
        if isinstance(value, bytes):
            return base64.b64encode(value).decode("ascii")
        return value


class NewBookSchema(BaseModel):
    titulo: str = Field(min_length=1, max_length=150)
    autor: Optional[str] = Field(default=None, max_length=100)
    editorial: Optional[str] = Field(default=None, max_length=100)
    estado: BookCondition = BookCondition.NEW
    baja: bool = False
    portada: Optional[Base64Bytes] = None


class UpdateBookSchema(BaseModel):
    titulo: Optional[str] = Field(default=None, min_length=1, max_length=150)
    autor: Optional[str] = Field(default=None, max_length=100)
    editorial: Optional[str] = Field(default=None, max_length=100)
    estado: Optional[BookCondition] = None
    baja: Optional[bool] = None
    portada: Optional[Base64Bytes] = None

    @field_validator("titulo", "estado", "baja")
    def reject_null(cls, value):
        # Omit the field to leave it unchanged, null cannot clear it
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class LoanSchema(BaseModel):
    id_prestamo: int
    dni_alumno: str
    codigo_libro: int
    fecha_prestamo: datetime
    student: Optional[str] = None
    book: Optional[str] = None

    @field_validator("student", "book", mode="before")
    def convert_related_to_string(cls, value):
        return str(value) if value is not None else None


class LoanInputSchema(BaseModel):
    dni_alumno: str = Field(min_length=1)
    codigo_libro: int = Field(ge=0)
    fecha_prestamo: datetime

    @field_validator("fecha_prestamo", mode="after")
    def naive_fecha_prestamo(cls, value):
        return to_naive(value)


class ReturnLoanSchema(BaseModel):
    estado: BookCondition
    fecha_devolucion: datetime

    @field_validator("fecha_devolucion", mode="after")
    def naive_fecha_devolucion(cls, value):
        return to_naive(value)


class LoanHistorySchema(BaseModel):
    id_prestamo: int
    dni_alumno: str
    codigo_libro: int
    fecha_prestamo: datetime
    fecha_devolucion: datetime


class UpdateHistorySchema(BaseModel):
    fecha_devolucion: datetime
    estado: Optional[BookCondition] = None

    @field_validator("fecha_devolucion", mode="after")
    def naive_fecha_devolucion(cls, value):
        return to_naive(value)


class ConnectionSchema(BaseModel):
    url: str = Field(min_length=1)
    user: Optional[str] = None
    password: Optional[str] = None


class LanguageSchema(BaseModel):
    language: Literal["es", "en"]
