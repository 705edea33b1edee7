"""
Export Helpers
CSV and JSON renditions of API results, delivered as file attachments.
"""
from typing import Any, Dict, List, Sequence
import csv
import io
import json

from fastapi import Response
from fastapi.encoders import jsonable_encoder

MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "json": "application/json",
}


def _as_records(data: Any) -> List[Dict[str, Any]]:
    encoded = jsonable_encoder(data)
    if isinstance(encoded, dict):
        return [encoded]
    return list(encoded or [])


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def to_csv(records: Sequence[Any]) -> str:
    """
    Render records as CSV.

    The header comes from the first record's fields. Fields containing a
    comma, a double quote or a line break are quoted with inner quotes
    doubled. Rows are separated by ``\\n`` with no trailing newline. Returns
    an empty string for no records.
    """
    rows = _as_records(records)
    if not rows:
        return ""

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=headers, lineterminator="\n", restval="", extrasaction="ignore",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({key: _cell(row.get(key)) for key in headers})
    return buffer.getvalue().rstrip("\n")


def to_json(data: Any) -> str:
    return json.dumps(jsonable_encoder(data), indent=2, default=str)


def export_response(data: Any, stem: str, fmt: str = "csv") -> Response:
    """Attachment response named ``{stem}.{fmt}``."""
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")

    content = to_csv(data if isinstance(data, list) else [data]) if fmt == "csv" else to_json(data)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{stem}.{fmt}"'},
    )
