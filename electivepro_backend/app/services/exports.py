"""CSV exports of pack selections, in English or Russian."""
import csv
import io
import re
from datetime import datetime
from urllib.parse import quote

from app.schemas.selection import SelectionRow

BOM = "\ufeff"

_COLUMNS = {
    "en": {
        "student_name": "Student Name",
        "student_number": "Student ID",
        "group": "Group",
        "program": "Program",
        "email": "Email",
        "courses": "Selected Courses",
        "universities": "Selected Universities",
        "date": "Selection Date",
        "status": "Status",
        "statement": "Statement",
    },
    "ru": {
        "student_name": "Имя студента",
        "student_number": "ID студента",
        "group": "Группа",
        "program": "Программа",
        "email": "Электронная почта",
        "courses": "Выбранные курсы",
        "universities": "Выбранные университеты",
        "date": "Дата выбора",
        "status": "Статус",
        "statement": "Заявление",
    },
}

_STATUS = {
    "en": {"approved": "approved", "pending": "pending", "rejected": "rejected"},
    "ru": {"approved": "Утверждено", "pending": "На рассмотрении", "rejected": "Отклонено"},
}

_NOT_UPLOADED = {"en": "Not uploaded", "ru": "Не загружено"}

_FILE_SUFFIX = {
    "en": {"all": "all_selections", "enrollments": "enrollments"},
    "ru": {"all": "все_выборы", "enrollments": "зачисления"},
}


def _lang(lang: str | None) -> str:
    return lang if lang in _COLUMNS else "en"


def format_date(value: datetime | None, lang: str = "en") -> str:
    if value is None:
        return ""
    if _lang(lang) == "ru":
        return value.strftime("%d.%m.%Y")
    return value.strftime("%b %d, %Y")


def _render(header: list[str], rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def selections_csv(
    kind: str,
    rows: list[SelectionRow],
    lang: str = "en",
    statement_url: str | None = None,
) -> str:
    """Every selection of a pack. ``statement_url`` is a format string taking the selection id."""
    lang = _lang(lang)
    cols = _COLUMNS[lang]
    header = [
        cols["student_name"],
        cols["student_number"],
        cols["group"],
        cols["program"],
        cols["email"],
        cols["courses"] if kind == "course" else cols["universities"],
        cols["date"],
        cols["status"],
        cols["statement"],
    ]
    body = []
    for row in rows:
        if row.statement_path:
            statement = statement_url.format(row.id) if statement_url else row.statement_path
        else:
            statement = _NOT_UPLOADED[lang]
        body.append(
            [
                row.student_name or "",
                row.student_number or "",
                row.group_name or "",
                row.program_name or "",
                row.student_email or "",
                "; ".join(item.name for item in row.items),
                format_date(row.created_at, lang),
                _STATUS[lang].get(row.status, row.status),
                statement,
            ]
        )
    return _render(header, body)


def enrollments_csv(rows: list[SelectionRow], item_id: int, lang: str = "en") -> str:
    """Students whose selection includes one course or university."""
    lang = _lang(lang)
    cols = _COLUMNS[lang]
    header = [
        cols["student_name"],
        cols["student_number"],
        cols["group"],
        cols["program"],
        cols["email"],
        cols["date"],
        cols["status"],
    ]
    body = [
        [
            row.student_name or "",
            row.student_number or "",
            row.group_name or "",
            row.program_name or "",
            row.student_email or "",
            format_date(row.created_at, lang),
            _STATUS[lang].get(row.status, row.status),
        ]
        for row in rows
        if any(item.id == item_id for item in row.items)
    ]
    return _render(header, body)


def export_filename(name: str | None, suffix: str, lang: str = "en") -> str:
    stem = re.sub(r"\s+", "_", (name or "").strip()) or "course_pack"
    return f"{stem}_{_FILE_SUFFIX[_lang(lang)][suffix]}.csv"


def content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode() or "export.csv"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
