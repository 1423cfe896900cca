"""
Flat-file storage for student records.

One record per line, fields joined by a comma in the order
id, name, age, course. There is no header and no escaping, so a comma
inside a name or course can't be round-tripped.
"""
import os
import tempfile
from pathlib import Path
from typing import Iterable
from structlog import get_logger

from ._models import Student
from .exceptions import ParseError, PersistenceError

log = get_logger()

DELIMITER = ","
DEFAULT_DATA_FILE = "students.txt"


def encode_student(student: Student) -> str:
    return DELIMITER.join(
        [str(student.student_id), student.name, str(student.age), student.course]
    )


def decode_student(line: str) -> Student:
    """
    Decode a single stored line.

    Only the structure is checked: four fields with a numeric id and age.
    Values are kept as stored, even when they would fail validation on add,
    so nothing already on disk is lost on the next save.

    Raises:
        ParseError: if the line has too few fields or a non-numeric id/age
    """
    parts = line.rstrip("\r\n").split(DELIMITER)
    # trailing empty fields don't count, "1,Alice,20," has three
    while parts and parts[-1] == "":
        parts.pop()
    if len(parts) < 4:
        raise ParseError(f"expected 4 fields, got {len(parts)}: {line!r}")
    try:
        student_id = int(parts[0].strip())
        age = int(parts[2].strip())
    except ValueError as e:
        raise ParseError(f"non-numeric id or age: {line!r}") from e
    return Student.model_construct(
        student_id=student_id,
        name=parts[1].strip(),
        age=age,
        course=parts[3].strip(),
    )


def load_students(path: str | Path) -> list[Student]:
    """
    Read every decodable student from `path`, in file order.

    A missing or unreadable file loads as no students. Bytes that aren't
    UTF-8 are replaced, bad lines are logged and dropped.
    """
    path = Path(path)
    if not path.exists():
        return []
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").split("\n")
    except OSError as e:
        log.error("student file unreadable", path=str(path), exception=str(e))
        return []

    students: list[Student] = []
    seen: set[int] = set()
    for lineno, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            student = decode_student(line)
        except ParseError as e:
            log.warning("skipping bad line", path=str(path), line=lineno, error=str(e))
            continue
        if student.student_id in seen:
            log.warning(
                "skipping duplicate id",
                path=str(path),
                line=lineno,
                student_id=student.student_id,
            )
            continue
        seen.add(student.student_id)
        students.append(student)
    log.debug("students loaded", path=str(path), num_items=len(students))
    return students


def save_students(
    path: str | Path, students: Iterable[Student], *, atomic: bool = False
) -> None:
    """
    Rewrite `path` with every student, truncating what was there.

    With `atomic` the lines go to a temporary file in the same directory
    which then replaces `path`, so a crash leaves either the old or the new
    contents.

    Raises:
        PersistenceError: if the file can't be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if atomic:
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    for student in students:
                        fh.write(encode_student(student) + "\n")
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        else:
            with path.open("w", encoding="utf-8") as fh:
                for student in students:
                    fh.write(encode_student(student) + "\n")
    except OSError as e:
        raise PersistenceError(f"could not write {path}: {e}") from e
