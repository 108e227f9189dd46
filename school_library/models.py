import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, LargeBinary, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from school_library.errors import ValidationError

ANONYMOUS_STUDENT = "ANONYMOUS"
DATE_FORMAT = "%d/%m/%Y %H:%M"


class BookCondition(str, enum.Enum):
    NEW = "new"
    USED_LIKE_NEW = "used-like-new"
    USED_FAIR = "used-fair"
    USED_DAMAGED = "used-damaged"
    RESTORED = "restored"


def to_condition(value) -> BookCondition:
    try:
        return BookCondition(value)
    except ValueError:
        raise ValidationError(f"Unknown book condition: {value}")


class Base(DeclarativeBase):
    pass

    def __str__(self):
        return self.__repr__()


def _require_text(value, message):
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return str(value).strip()


class Student(Base):
    __tablename__ = "Alumno"

    dni: Mapped[str] = mapped_column(String(20), primary_key=True)
    nombre: Mapped[str] = mapped_column(String(50), nullable=False)
    apellido1: Mapped[str] = mapped_column(String(50), nullable=False)
    apellido2: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    @validates("dni")
    def validate_dni(self, key, value):
        value = _require_text(value, "Student DNI cannot be empty")
        if value == ANONYMOUS_STUDENT:
            raise ValidationError(f"{ANONYMOUS_STUDENT} is reserved for anonymized loan history")
        if self.dni is not None and value != self.dni:
            raise ValidationError("Student DNI cannot be changed")
        return value

    @validates("nombre", "apellido1")
    def validate_required_name(self, key, value):
        return _require_text(value, f"Student {key} cannot be empty")

    @validates("apellido2")
    def validate_second_surname(self, key, value):
        if value is not None and not value.strip():
            return None
        return value

    @property
    def full_name(self):
        return " ".join(part for part in (self.nombre, self.apellido1, self.apellido2) if part)

    def __repr__(self):
        return self.full_name


class Book(Base):
    __tablename__ = "Libro"
    __table_args__ = {"sqlite_autoincrement": True}

    codigo: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    titulo: Mapped[str] = mapped_column(String(150), nullable=False)
    autor: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    editorial: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    estado: Mapped[BookCondition] = mapped_column(
        Enum(
            BookCondition,
            native_enum=False,
            length=20,
            values_callable=lambda conditions: [c.value for c in conditions],
        ),
        default=BookCondition.NEW,
        nullable=False,
        server_default=BookCondition.NEW.value,
    )
    baja: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, server_default="0")
    portada: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)

    @validates("codigo")
    def validate_codigo(self, key, value):
        # 0 means "not assigned yet", storage fills it in on insert
        if value is not None and value < 0:
            raise ValidationError("Book code cannot be negative")
        if self.codigo is not None and value != self.codigo:
            raise ValidationError("Book code cannot be changed once assigned")
        return value or None

    @validates("titulo")
    def validate_titulo(self, key, value):
        return _require_text(value, "Book title cannot be empty")

    @validates("estado")
    def validate_estado(self, key, value):
        if value is None:
            return BookCondition.NEW
        return to_condition(value)

    @validates("baja")
    def validate_baja(self, key, value):
        return bool(value)

    def __repr__(self):
        return f"{self.titulo} - {self.autor} ({self.estado.value if self.estado else None})"


class LoanFieldsMixin:
    """Checks shared by active loans and closed (history) loans."""

    @validates("id_prestamo")
    def validate_id_prestamo(self, key, value):
        if value is not None and value < 0:
            raise ValidationError("Loan id cannot be negative")
        return value or None

    @validates("dni_alumno")
    def validate_dni_alumno(self, key, value):
        return _require_text(value, "Student DNI cannot be empty")

    @validates("codigo_libro")
    def validate_codigo_libro(self, key, value):
        if value is None or value < 0:
            raise ValidationError("Book code cannot be negative")
        return value


class Loan(LoanFieldsMixin, Base):
    __tablename__ = "Prestamo"
    __table_args__ = {"sqlite_autoincrement": True}

    id_prestamo: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dni_alumno: Mapped[str] = mapped_column(String(20), ForeignKey("Alumno.dni"), nullable=False)
    codigo_libro: Mapped[int] = mapped_column(
        Integer, ForeignKey("Libro.codigo"), unique=True, nullable=False
    )
    fecha_prestamo: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    student: Mapped[Student] = relationship(viewonly=True)
    book: Mapped[Book] = relationship(viewonly=True)

    def close(self, returned_at: datetime) -> "LoanHistory":
        """Builds the history row that records this loan as returned at `returned_at`."""
        return LoanHistory(
            id_prestamo=self.id_prestamo,
            dni_alumno=self.dni_alumno,
            codigo_libro=self.codigo_libro,
            fecha_prestamo=self.fecha_prestamo,
            fecha_devolucion=returned_at,
        )

    def __repr__(self):
        loaned = self.fecha_prestamo.strftime(DATE_FORMAT) if self.fecha_prestamo else None
        return (
            f"Loan {self.id_prestamo} - Student {self.dni_alumno} - "
            f"Book {self.codigo_libro} - {loaned}"
        )


class LoanHistory(LoanFieldsMixin, Base):
    __tablename__ = "Historico_prestamo"

    id_prestamo: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    dni_alumno: Mapped[str] = mapped_column(String(20), nullable=False)
    codigo_libro: Mapped[int] = mapped_column(Integer, nullable=False)
    fecha_prestamo: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    fecha_devolucion: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @validates("fecha_prestamo", "fecha_devolucion")
    def validate_dates(self, key, value):
        loaned = value if key == "fecha_prestamo" else self.fecha_prestamo
        returned = value if key == "fecha_devolucion" else self.fecha_devolucion
        if loaned is not None and returned is not None and returned < loaned:
            raise ValidationError("The return date cannot be earlier than the loan date")
        return value

    @property
    def duration_hours(self) -> float:
        return (self.fecha_devolucion - self.fecha_prestamo).total_seconds() / 3600

    def __repr__(self):
        returned = self.fecha_devolucion.strftime(DATE_FORMAT) if self.fecha_devolucion else None
        return (
            f"Loan history {self.id_prestamo} - Student {self.dni_alumno} - "
            f"Book {self.codigo_libro} - Returned {returned}"
        )
