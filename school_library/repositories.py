"""
Repositories translate entity operations into parameterized SQL statements.

They only flush, never commit or roll back: the caller owns the transaction (see
`school_library.lifecycle.LibraryService`). Database failures surface as
`StorageError`; a missing key on update/delete is logged and reported as
``False``.
"""

import logging
from functools import wraps
from typing import Generic, Optional, TypeVar

from sqlalchemy import delete, inspect, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from school_library.errors import BookUnavailableError, DuplicateKeyError, StorageError
from school_library.models import ANONYMOUS_STUDENT, Base, Book, Loan, LoanHistory, Student

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)

DUPLICATE_MARKERS = ("UNIQUE constraint failed", "Duplicate entry")


def _is_duplicate(error: IntegrityError) -> bool:
    message = str(error.orig)
    return any(marker in message for marker in DUPLICATE_MARKERS)


def storage_errors(func):
    """Re-raises any SQLAlchemy error of a repository method as `StorageError`."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("%s.%s failed: %s", type(self).__name__, func.__name__, e)
            raise StorageError(f"Database error on {self.model.__tablename__}: {e}") from e

    return wrapper


class Repository(Generic[T]):
    model: type[T]
    key_column: str

    def __init__(self, session: Session):
        self.session = session

    @property
    def key(self):
        return getattr(self.model, self.key_column)

    @property
    def name(self) -> str:
        return self.model.__name__

    def _values(self, entity: T) -> dict:
        """Column values of `entity` except the key, skipping unset non-nullable columns."""
        values = {}
        for attr in inspect(self.model).column_attrs:
            if attr.key == self.key_column:
                continue
            value = getattr(entity, attr.key)
            if value is None and not attr.columns[0].nullable:
                continue
            values[attr.key] = value
        return values

    @storage_errors
    def insert(self, entity: T) -> T:
        key = getattr(entity, self.key_column)
        if key is not None and self.get(key) is not None:
            raise DuplicateKeyError(f"{self.name} {key} already exists")

        self.session.add(entity)
        try:
            self.session.flush()
        except IntegrityError as e:
            # Unique or primary key violated after the pre-check
            if _is_duplicate(e):
                raise DuplicateKeyError(f"{self.name} already exists: {e.orig}") from e
            raise StorageError(f"Could not insert {self.name}: {e.orig}") from e
        logger.info("Inserted %s %s", self.name, getattr(entity, self.key_column))
        return entity

    @storage_errors
    def get(self, key) -> Optional[T]:
        if key is None:
            return None
        return self.session.get(self.model, key)

    @storage_errors
    def get_all(self) -> list[T]:
        return list(self.session.scalars(select(self.model).order_by(self.key)))

    @storage_errors
    def update(self, entity: T) -> bool:
        key = getattr(entity, self.key_column)
        stmt = update(self.model).where(self.key == key).values(**self._values(entity))
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            logger.warning("No %s with key %s to update", self.name, key)
            return False
        return True

    @storage_errors
    def delete(self, key) -> bool:
        result = self.session.execute(delete(self.model).where(self.key == key))
        if result.rowcount == 0:
            logger.warning("No %s with key %s to delete", self.name, key)
            return False
        logger.info("Deleted %s %s", self.name, key)
        return True


class StudentRepository(Repository[Student]):
    model = Student
    key_column = "dni"


class BookRepository(Repository[Book]):
    model = Book
    key_column = "codigo"

    @storage_errors
    def get_all(self, include_withdrawn: bool = False) -> list[Book]:
        stmt = select(Book).order_by(Book.codigo)
        if not include_withdrawn:
            stmt = stmt.where(Book.baja.is_(False))
        return list(self.session.scalars(stmt))

    @storage_errors
    def withdraw(self, codigo: int) -> bool:
        result = self.session.execute(
            update(Book).where(Book.codigo == codigo).values(baja=True)
        )
        if result.rowcount == 0:
            logger.warning("No book with code %s to withdraw", codigo)
            return False
        logger.info("Book %s withdrawn", codigo)
        return True


class LoanRepository(Repository[Loan]):
    model = Loan
    key_column = "id_prestamo"

    def insert(self, entity: Loan) -> Loan:
        # Conditional insert, the UNIQUE constraint on codigo_libro backs it up
        if self.get_by_book(entity.codigo_libro) is not None:
            raise BookUnavailableError(f"Book {entity.codigo_libro} is already on loan")
        return super().insert(entity)

    @storage_errors
    def get_by_book(self, codigo_libro: int) -> Optional[Loan]:
        stmt = select(Loan).where(Loan.codigo_libro == codigo_libro)
        return self.session.scalars(stmt).first()

    @storage_errors
    def get_active(self) -> list[Loan]:
        """Loans with no history row for the same id."""
        stmt = (
            select(Loan)
            .where(Loan.id_prestamo.not_in(select(LoanHistory.id_prestamo)))
            .order_by(Loan.id_prestamo)
        )
        return list(self.session.scalars(stmt))

    @storage_errors
    def loaned_book_codes(self) -> set[int]:
        return set(self.session.scalars(select(Loan.codigo_libro)))

    @storage_errors
    def delete_by_student(self, dni: str) -> int:
        result = self.session.execute(delete(Loan).where(Loan.dni_alumno == dni))
        logger.info("Deleted %s loans of student %s", result.rowcount, dni)
        return result.rowcount

    @storage_errors
    def delete_by_book(self, codigo_libro: int) -> int:
        result = self.session.execute(delete(Loan).where(Loan.codigo_libro == codigo_libro))
        logger.info("Deleted %s loans of book %s", result.rowcount, codigo_libro)
        return result.rowcount


class LoanHistoryRepository(Repository[LoanHistory]):
    model = LoanHistory
    key_column = "id_prestamo"

    @storage_errors
    def update_return_date(self, entity: LoanHistory) -> bool:
        stmt = (
            update(LoanHistory)
            .where(LoanHistory.id_prestamo == entity.id_prestamo)
            .values(fecha_devolucion=entity.fecha_devolucion)
        )
        if self.session.execute(stmt).rowcount == 0:
            logger.warning("No loan history %s to update", entity.id_prestamo)
            return False
        return True

    @storage_errors
    def anonymize_student(self, dni: str) -> int:
        stmt = (
            update(LoanHistory)
            .where(LoanHistory.dni_alumno == dni)
            .values(dni_alumno=ANONYMOUS_STUDENT)
        )
        count = self.session.execute(stmt).rowcount
        if count == 0:
            logger.info("No loan history rows for student %s", dni)
        else:
            logger.info("Anonymized %s loan history rows of student %s", count, dni)
        return count

    @storage_errors
    def delete_by_student(self, dni: str) -> int:
        result = self.session.execute(delete(LoanHistory).where(LoanHistory.dni_alumno == dni))
        logger.info("Deleted %s loan history rows of student %s", result.rowcount, dni)
        return result.rowcount

    @storage_errors
    def delete_by_book(self, codigo_libro: int) -> int:
        result = self.session.execute(
            delete(LoanHistory).where(LoanHistory.codigo_libro == codigo_libro)
        )
        logger.info("Deleted %s loan history rows of book %s", result.rowcount, codigo_libro)
        return result.rowcount
