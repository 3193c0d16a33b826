"""JSONL helpers for submission records and results."""

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from pydantic import BaseModel


def read_jsonl(path: Path | str) -> Iterator[dict[str, Any]]:
    """Yield one submission record per non-blank line.

    Raises:
        ValueError: On a line that is not a JSON object.
    """
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_num}: {e}") from e
            if not isinstance(record, dict):
                raise ValueError(f"Line {line_num} is not a JSON object")
            yield record


def to_json_line(record: BaseModel | dict[str, Any], exclude: set[str] | None = None) -> str:
    """Serialize a result model or a plain record as one JSONL line.

    Dates and decimals in plain records are written as strings.
    """
    if isinstance(record, BaseModel):
        return record.model_dump_json(exclude=exclude) + "\n"
    if exclude:
        record = {key: value for key, value in record.items() if key not in exclude}
    return json.dumps(record, ensure_ascii=False, default=str) + "\n"


def write_jsonl(path: Path | str, records: Iterable[BaseModel | dict[str, Any]]) -> int:
    """Write records to a JSONL file and return how many were written."""
    count = 0
    with open(path, "w") as f:
        for record in records:
            f.write(to_json_line(record))
            count += 1
    return count
