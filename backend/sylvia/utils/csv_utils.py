"""CSV export/import helpers for library data."""
import csv
import io
from typing import Any, Dict, List, Mapping, Optional, Sequence


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def to_csv(rows: Sequence[Mapping[str, Any]], headers: Optional[List[str]] = None) -> str:
    """
    Serialize flat records to CSV text.

    Headers come from the first row unless given. None becomes an empty
    cell; cells containing quotes, commas or newlines are quoted with
    doubled inner quotes. Lines are joined with "\\n".
    """
    if not rows:
        return ""
    headers = headers or list(rows[0].keys())

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key in headers])
    return buffer.getvalue().rstrip("\n")


def parse_csv(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into records keyed by the (trimmed) header row.

    Blank lines are skipped, values are trimmed and short rows are padded
    with empty strings.
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        return []

    headers = [header.strip() for header in rows[0]]
    records = []
    for row in rows[1:]:
        records.append({
            header: (row[index] if index < len(row) else "").strip()
            for index, header in enumerate(headers)
        })
    return records
