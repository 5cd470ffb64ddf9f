"""Bulk student import from .xlsx/.csv files, and the import template."""
import logging
from dataclasses import dataclass, field
from io import BytesIO

import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Student

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("student_id", "firstname", "surname", "program", "year", "section")
OPTIONAL_COLUMNS = ("middle_initial", "email", "contact_no")
TEMPLATE_COLUMNS = (
    "surname", "middle_initial", "firstname", "student_id",
    "program", "year", "section", "contact_no", "email",
)
TEMPLATE_EXAMPLES = [
    {
        "surname": "Doe", "middle_initial": "M", "firstname": "John", "student_id": "2023-001",
        "program": "Computer Science", "year": "1st", "section": "BSCS 1A",
        "contact_no": "09123456789", "email": "john.doe@example.com",
    },
    {
        "surname": "Smith", "middle_initial": "A", "firstname": "Jane", "student_id": "2023-002",
        "program": "Information Technology", "year": "2nd", "section": "BSIT 2B",
        "contact_no": "09123456780", "email": "jane.smith@example.com",
    },
]


class ImportFileError(ValueError):
    """The uploaded file cannot be read or lacks required columns."""


@dataclass
class ImportResult:
    total_rows: int = 0
    inserted: int = 0
    skipped_empty: int = 0
    errors: list[dict] = field(default_factory=list)


def _val(row: pd.Series, col: str) -> str | None:
    """Cell as a trimmed string, or None when empty/NaN."""
    v = row.get(col)
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return None
    s = str(v).strip()
    return s if s else None


def read_student_file(content: bytes, filename: str) -> pd.DataFrame:
    """Load an .xlsx or .csv upload into a DataFrame with normalized headers."""
    name = (filename or "").lower()
    try:
        if name.endswith(".xlsx"):
            df = pd.read_excel(BytesIO(content), engine="openpyxl", dtype=str)
        elif name.endswith(".csv"):
            df = pd.read_csv(BytesIO(content), dtype=str)
        else:
            raise ImportFileError("File must be .xlsx or .csv")
    except ImportFileError:
        raise
    except Exception as exc:
        raise ImportFileError(f"Could not read file: {exc}") from exc

    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ImportFileError(f"Missing required columns: {', '.join(missing)}")
    return df


async def import_students(db: AsyncSession, df: pd.DataFrame) -> ImportResult:
    """Validate every row and insert the valid ones in one batch.

    Fully empty rows are skipped. Rows with missing fields, or whose student_id
    already exists (in the table or earlier in the file), are reported as errors.
    """
    result = ImportResult(total_rows=len(df))

    existing = set((await db.execute(select(Student.student_id))).scalars().all())
    seen: set[str] = set()
    to_insert: list[Student] = []

    for idx, row in df.iterrows():
        row_num = int(idx) + 2  # header + 0-indexed
        values = {col: _val(row, col) for col in REQUIRED_COLUMNS + OPTIONAL_COLUMNS if col in df.columns}
        if not any(values.values()):
            result.skipped_empty += 1
            continue

        student_id = values.get("student_id")
        missing = [col for col in REQUIRED_COLUMNS if not values.get(col)]
        if missing:
            result.errors.append({
                "row": row_num,
                "student_id": student_id,
                "error": f"Missing required field(s): {', '.join(missing)}",
            })
            continue
        if student_id in existing or student_id in seen:
            result.errors.append({
                "row": row_num,
                "student_id": student_id,
                "error": f"Student ID '{student_id}' already exists",
            })
            continue

        seen.add(student_id)
        to_insert.append(Student(**values))

    if to_insert:
        db.add_all(to_insert)
        await db.flush()
    result.inserted = len(to_insert)
    logger.info(
        "Student import: %d row(s), %d inserted, %d empty, %d error(s)",
        result.total_rows, result.inserted, result.skipped_empty, len(result.errors),
    )
    return result


def build_template() -> bytes:
    """Excel template with the expected headers and two example rows."""
    buf = BytesIO()
    df = pd.DataFrame(TEMPLATE_EXAMPLES, columns=list(TEMPLATE_COLUMNS))
    df.to_excel(buf, index=False, sheet_name="Students", engine="openpyxl")
    return buf.getvalue()
