import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

import school_library.models as md
import school_library.p_models as pmd
from school_library.errors import ReportNotFoundError

logger = logging.getLogger(__name__)

TRUE_VALUES = (True, "true", "1", "yes")


class ReportGenerator:
    """
    Builds the data behind each printed report of the library.

    `generate` takes a report name and a parameter map, the same contract the
    report templates are filled with; rendering is left to the caller.
    """

    def __init__(self, session: Session):
        self.session = session
        self.reports = {
            "reporte_alumnos": self.students_report,
            "listado_libros": self.books_report,
            "prestamo_informe": self.loans_report,
            "estadisticas_prestamos": self.statistics_report,
        }

    def generate(self, name: str, parameters: Optional[dict] = None) -> dict:
        builder = self.reports.get(name)
        if builder is None:
            raise ReportNotFoundError(f"Report not found: {name}")
        parameters = dict(parameters or {})
        rows, summary = builder(parameters)
        logger.info("Report %s generated with %s rows", name, len(rows))
        return {
            "name": name,
            "generated_at": datetime.now().isoformat(timespec="seconds"),
            "parameters": parameters,
            "rows": rows,
            "summary": summary,
        }

    def students_report(self, parameters):
        stmt = select(md.Student).order_by(md.Student.apellido1, md.Student.nombre)
        students = self.session.scalars(stmt).all()
        rows = [pmd.StudentSchema.model_validate(s).model_dump(mode="json") for s in students]
        return rows, {"students": len(rows)}

    def books_report(self, parameters):
        stmt = select(md.Book).order_by(md.Book.titulo)
        if parameters.get("include_withdrawn") not in TRUE_VALUES:
            stmt = stmt.where(md.Book.baja.is_(False))
        books = self.session.scalars(stmt).all()
        rows = [
            pmd.BookSchema.model_validate(book).model_dump(mode="json", exclude={"portada"})
            for book in books
        ]
        return rows, {"books": len(rows), "withdrawn": sum(1 for row in rows if row["baja"])}

    def loans_report(self, parameters):
        stmt = (
            select(
                md.Loan.id_prestamo,
                md.Loan.dni_alumno,
                md.Loan.codigo_libro,
                md.Loan.fecha_prestamo,
                md.Book.titulo,
                md.Student.nombre,
                md.Student.apellido1,
            )
            .join(md.Book, md.Book.codigo == md.Loan.codigo_libro)
            .join(md.Student, md.Student.dni == md.Loan.dni_alumno)
            .order_by(md.Loan.fecha_prestamo.asc())
        )
        rows = []
        for row in self.session.execute(stmt):
            rows.append(
                {
                    "id_prestamo": row.id_prestamo,
                    "dni_alumno": row.dni_alumno,
                    "alumno": f"{row.nombre} {row.apellido1}",
                    "codigo_libro": row.codigo_libro,
                    "titulo": row.titulo,
                    "fecha_prestamo": row.fecha_prestamo.isoformat(),
                }
            )
        return rows, {"active_loans": len(rows)}

    def statistics_report(self, parameters):
        loans = func.count(md.LoanHistory.id_prestamo).label("loans")
        # History rows outlive deleted books, hence the outer join
        stmt = (
            select(md.LoanHistory.codigo_libro, md.Book.titulo, loans)
            .outerjoin(md.Book, md.Book.codigo == md.LoanHistory.codigo_libro)
            .group_by(md.LoanHistory.codigo_libro, md.Book.titulo)
            .order_by(loans.desc(), md.LoanHistory.codigo_libro)
        )
        rows = [dict(row) for row in self.session.execute(stmt).mappings()]

        history = self.session.scalars(select(md.LoanHistory)).all()
        durations = [h.duration_hours for h in history]
        summary = {
            "total_returns": len(history),
            "anonymized_returns": sum(
                1 for h in history if h.dni_alumno == md.ANONYMOUS_STUDENT
            ),
            "average_loan_hours": round(sum(durations) / len(durations), 2) if durations else None,
        }
        return rows, summary
