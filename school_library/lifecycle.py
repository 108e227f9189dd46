"""
Loan lifecycle operations spanning more than one repository.

A loan is either active (a `Loan` row) or returned (a `LoanHistory` row with
the same id). Each public method of `LibraryService` is one transaction:
committed when it returns, rolled back as a whole when it raises.
"""

import enum
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from school_library.errors import BookUnavailableError, NotFoundError, ValidationError
from school_library.models import Book, Loan, LoanHistory, Student, to_condition
from school_library.repositories import (
    BookRepository,
    LoanHistoryRepository,
    LoanRepository,
    StudentRepository,
)
from school_library.utils import atomic_transaction

logger = logging.getLogger(__name__)

STUDENT_FIELDS = ("nombre", "apellido1", "apellido2")
BOOK_FIELDS = ("titulo", "autor", "editorial", "estado", "baja", "portada")


class HistoryPolicy(str, enum.Enum):
    """What happens to the loan history of a deleted student."""

    ANONYMIZE = "anonymize"
    PURGE = "purge"


class LibraryService:
    def __init__(self, session: Session, history_policy=HistoryPolicy.ANONYMIZE):
        self.session = session
        self.history_policy = HistoryPolicy(history_policy)
        self.students = StudentRepository(session)
        self.books = BookRepository(session)
        self.loans = LoanRepository(session)
        self.history = LoanHistoryRepository(session)

    def _get_student(self, dni) -> Student:
        student = self.students.get(dni)
        if student is None:
            raise NotFoundError(f"Student {dni} not found")
        return student

    def _get_book(self, codigo) -> Book:
        book = self.books.get(codigo)
        if book is None:
            raise NotFoundError(f"Book {codigo} not found")
        return book

    def _get_loan(self, loan_id) -> Loan:
        loan = self.loans.get(loan_id)
        if loan is None:
            raise NotFoundError(f"Loan {loan_id} not found")
        return loan

    def _get_history(self, loan_id) -> LoanHistory:
        history = self.history.get(loan_id)
        if history is None:
            raise NotFoundError(f"Loan history {loan_id} not found")
        return history

    # Students

    def list_students(self) -> list[Student]:
        return self.students.get_all()

    def get_student(self, dni) -> Student:
        return self._get_student(dni)

    @atomic_transaction
    def create_student(self, student: Student) -> Student:
        return self.students.insert(student)

    @atomic_transaction
    def update_student(self, dni, **changes) -> Student:
        student = self._get_student(dni)
        for field in STUDENT_FIELDS:
            if field in changes:
                setattr(student, field, changes[field])
        self.students.update(student)
        return student

    @atomic_transaction
    def delete_student(self, dni, policy: Optional[HistoryPolicy] = None) -> bool:
        """
        Deletes a student together with everything that references it.

        Loan history rows are anonymized (default) or removed depending on
        `policy`; active loans of the student are deleted first so no
        foreign key is left dangling.
        """
        try:
            policy = HistoryPolicy(policy or self.history_policy)
        except ValueError:
            raise ValidationError(f"Unknown history policy: {policy}")
        if self.students.get(dni) is None:
            logger.warning("No student %s to delete", dni)
            return False
        if policy is HistoryPolicy.ANONYMIZE:
            self.history.anonymize_student(dni)
        else:
            self.history.delete_by_student(dni)
        self.loans.delete_by_student(dni)
        return self.students.delete(dni)

    # Books

    def list_books(self, include_withdrawn: bool = False) -> list[Book]:
        return self.books.get_all(include_withdrawn=include_withdrawn)

    def get_book(self, codigo) -> Book:
        return self._get_book(codigo)

    def available_books(self) -> list[Book]:
        """Books that are neither withdrawn nor on an active loan."""
        loaned = self.loans.loaned_book_codes()
        return [book for book in self.books.get_all() if book.codigo not in loaned]

    @atomic_transaction
    def create_book(self, book: Book) -> Book:
        return self.books.insert(book)

    @atomic_transaction
    def update_book(self, codigo, **changes) -> Book:
        book = self._get_book(codigo)
        for field in BOOK_FIELDS:
            if field in changes:
                setattr(book, field, changes[field])
        self.books.update(book)
        return book

    @atomic_transaction
    def withdraw_book(self, codigo) -> bool:
        return self.books.withdraw(codigo)

    @atomic_transaction
    def delete_book(self, codigo) -> bool:
        self.history.delete_by_book(codigo)
        self.loans.delete_by_book(codigo)
        return self.books.delete(codigo)

    # Loans

    def list_loans(self) -> list[Loan]:
        return self.loans.get_active()

    def get_loan(self, loan_id) -> Loan:
        return self._get_loan(loan_id)

    def _check_loan_fields(self, dni, codigo, fecha_prestamo, loan: Optional[Loan] = None):
        if fecha_prestamo is None:
            raise ValidationError("A loan date is required")
        self._get_student(dni)
        book = self._get_book(codigo)
        if loan is not None and loan.codigo_libro == book.codigo:
            return
        if book.baja:
            raise BookUnavailableError(f"Book {codigo} is withdrawn")
        if self.loans.get_by_book(codigo) is not None:
            raise BookUnavailableError(f"Book {codigo} is already on loan")

    @atomic_transaction
    def create_loan(self, dni, codigo, fecha_prestamo: datetime) -> Loan:
        self._check_loan_fields(dni, codigo, fecha_prestamo)
        loan = Loan(dni_alumno=dni, codigo_libro=codigo, fecha_prestamo=fecha_prestamo)
        return self.loans.insert(loan)

    @atomic_transaction
    def update_loan(self, loan_id, dni, codigo, fecha_prestamo: datetime) -> Loan:
        loan = self._get_loan(loan_id)
        self._check_loan_fields(dni, codigo, fecha_prestamo, loan=loan)
        loan.dni_alumno = dni
        loan.codigo_libro = codigo
        loan.fecha_prestamo = fecha_prestamo
        self.loans.update(loan)
        return loan

    @atomic_transaction
    def delete_loan(self, loan_id) -> bool:
        return self.loans.delete(loan_id)

    @atomic_transaction
    def return_loan(self, loan_id, condition, returned_at: datetime) -> LoanHistory:
        """
        Closes an active loan.

        The history row is inserted, the active loan deleted and the book
        condition updated in the same transaction.
        """
        if returned_at is None:
            raise ValidationError("A return date is required")
        condition = to_condition(condition)
        loan = self._get_loan(loan_id)
        history = loan.close(returned_at)
        self.history.insert(history)
        self.loans.delete(loan.id_prestamo)

        book = self.books.get(history.codigo_libro)
        if book is not None:
            book.estado = condition
            self.books.update(book)
        logger.info(
            "Loan %s returned, book %s is now %s", loan_id, history.codigo_libro, condition.value
        )
        return history

    # Loan history

    def list_history(self) -> list[LoanHistory]:
        return self.history.get_all()

    def get_history(self, loan_id) -> LoanHistory:
        return self._get_history(loan_id)

    @atomic_transaction
    def update_history(self, loan_id, returned_at: datetime, condition=None) -> LoanHistory:
        if returned_at is None:
            raise ValidationError("A return date is required")
        history = self._get_history(loan_id)
        history.fecha_devolucion = returned_at
        if condition is not None:
            book = self.books.get(history.codigo_libro)
            if book is not None:
                book.estado = to_condition(condition)
                self.books.update(book)
        self.history.update_return_date(history)
        return history

    @atomic_transaction
    def delete_history(self, loan_id) -> bool:
        return self.history.delete(loan_id)
