import pytest
from sqlalchemy import select

from app.models import Student
from app.services.student_import_service import (
    ImportFileError,
    build_template,
    import_students,
    read_student_file,
)
from conftest import add_students

CSV = (
    "student_id,firstname,surname,middle_initial,program,year,section,email\n"
    "2025-100,Ana,Santos,M,BSIT,1st,BSIT 1A,ana@example.com\n"
    ",,,,,,,\n"
    "2025-101,Ben,,,BSIT,1st,BSIT 1A,\n"
    "2025-001,Carl,Cruz,,BSIT,1st,BSIT 1A,\n"
    "2025-100,Dup,Row,,BSIT,1st,BSIT 1A,\n"
    "2025-102,Dina,Reyes,,BSCS,2nd,BSCS 2A,\n"
).encode()


async def test_import_csv_reports_errors_and_inserts_valid_rows(db):
    await add_students(db, [("2025-001", "Existing", "Student", "BSIT", "1st", "BSIT 1A")])

    result = await import_students(db, read_student_file(CSV, "students.csv"))
    await db.commit()

    assert result.total_rows == 6
    assert result.inserted == 2
    assert result.skipped_empty == 1
    assert [(e["row"], e["student_id"]) for e in result.errors] == [
        (4, "2025-101"),
        (5, "2025-001"),
        (6, "2025-100"),
    ]
    assert "surname" in result.errors[0]["error"]

    ids = set((await db.execute(select(Student.student_id))).scalars().all())
    assert ids == {"2025-001", "2025-100", "2025-102"}
    ana = (await db.execute(select(Student).where(Student.student_id == "2025-100"))).scalar_one()
    assert ana.middle_initial == "M"
    assert ana.email == "ana@example.com"


async def test_template_round_trips_through_import(db):
    df = read_student_file(build_template(), "template.xlsx")
    result = await import_students(db, df)

    assert result.inserted == 2
    assert result.errors == []


def test_missing_columns():
    with pytest.raises(ImportFileError, match="section"):
        read_student_file(b"student_id,firstname,surname,program,year\n1,a,b,c,d\n", "x.csv")


def test_unsupported_extension():
    with pytest.raises(ImportFileError):
        read_student_file(b"whatever", "students.txt")


def test_headers_are_normalized():
    df = read_student_file(
        b"Student ID,Firstname,Surname,Program,Year,Section\n1,a,b,c,d,e\n", "x.csv"
    )
    assert "student_id" in df.columns
