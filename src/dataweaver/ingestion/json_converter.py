"""Help-desk ticket JSON to template-shaped rows."""

import json
import logging
from typing import Any, Dict, List, Optional

from .._types import ConvertResult, Dataset, Row
from ..reconciler.tickets import STATUS_FIELD, sort_by_ticket

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = (
    "Client Name,Customer Name,Status,Kolom kosong1,Ticket Category,Module,"
    "Detail Module,Created At,Title,Kolom kosong2,Resolved At,Ticket OP"
)

# Template headers with this prefix are placeholder columns
BLANK_HEADER_PREFIX = "kolom kosong"

STATUS_MAP = {
    "resolved": "Solved",
    "open": "L2",
    "pending": "L1",
    "on hold": "L3",
    "on-hold": "L3",
}


def flatten_json(obj: Any, path: str = "", res: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Flatten nested objects into dotted paths.

    Lists under a ``custom_fields`` path become ``{name: value}`` pairs;
    other lists are kept as JSON text. A string value that parses as a
    JSON object has its keys spliced in at the top level.
    """
    if res is None:
        res = {}

    if isinstance(obj, list):
        if path.endswith("custom_fields"):
            for field in obj:
                if isinstance(field, dict) and isinstance(field.get("name"), str) and "value" in field:
                    res[field["name"]] = field["value"]
        elif path:
            res[path] = json.dumps(obj, separators=(",", ":"))
        return res

    if not isinstance(obj, dict):
        if path:
            res[path] = obj
        return res

    for key, value in obj.items():
        new_path = f"{path}.{key}" if path else key
        if isinstance(value, (dict, list)):
            flatten_json(value, new_path, res)
        elif isinstance(value, str) and value.startswith("{") and value.endswith("}"):
            try:
                parsed = json.loads(value)
            except ValueError:
                res[new_path] = value
                continue
            if isinstance(parsed, dict):
                res.update(parsed)
            else:
                res[new_path] = value
        else:
            res[new_path] = value
    return res


def map_status(value: Any) -> Any:
    """Help-desk status to escalation level; unknown values pass through."""
    if not isinstance(value, str):
        return value
    return STATUS_MAP.get(value.lower(), value)


def project_row(flat: Dict[str, Any], headers: List[str]) -> Row:
    """Pick template columns from a flattened item, ignoring key case."""
    lowered = {}
    for key in flat:
        lowered.setdefault(key.lower(), key)

    row: Row = {}
    for header in headers:
        if header.lower().startswith(BLANK_HEADER_PREFIX):
            row[header] = ""
            continue
        key = lowered.get(header.lower())
        value = flat[key] if key is not None else ""
        if header.lower() == STATUS_FIELD.lower():
            value = map_status(value)
        row[header] = value
    return row


def convert_json(text: str, template: str = DEFAULT_TEMPLATE) -> ConvertResult:
    """Convert ticket JSON (an object or an array) into a template dataset.

    Rows are ordered by the ticket number in their Title; rows without
    one keep their relative order at the end.
    """
    if not text.strip():
        return ConvertResult(error="JSON input cannot be empty.")
    try:
        data = json.loads(text)
    except ValueError as exc:
        return ConvertResult(error=f"Invalid JSON: {exc}")

    if not isinstance(data, list):
        data = [data]
    if not data:
        return ConvertResult(error="JSON array is empty.")

    headers = [h.strip() for h in template.split(",")]
    rows = [project_row(flatten_json(item), headers) for item in data]
    rows = sort_by_ticket(rows)
    logger.info("Converted %d tickets onto %d template columns", len(rows), len(headers))
    return ConvertResult(dataset=Dataset(headers=headers, rows=rows))
