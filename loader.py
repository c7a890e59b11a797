import csv
import logging
import os
from datetime import datetime
from typing import Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError

from errors import MalformedRecord, RideShareError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# e.g. 2018-05-25 11:52:40 -0700
TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def parse_time(value: Optional[str]) -> datetime:
    if value is None:
        raise MalformedRecord("missing timestamp")
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT)
    except ValueError as exc:
        raise MalformedRecord(f"unparseable timestamp {value!r}", {"value": value}) from exc


def require(row: Dict[str, Optional[str]], column: str) -> str:
    value = row.get(column)
    if value is None:
        raise MalformedRecord(f"missing required field {column!r}", {"column": column})
    return value


def _clean(row: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    # blank cells mean "absent"
    out = {}
    for key, value in row.items():
        if key is None:
            continue
        if value is not None:
            value = value.strip()
        out[key.strip()] = value or None
    return out


def load_records(directory: str, file_name: str, parse_row: Callable[[Dict[str, Optional[str]]], T]) -> List[T]:
    """Read every row of ``directory/file_name`` and build one entity per row.

    Rows are returned in file order. A row that fails to parse aborts the whole
    load with MalformedRecord; domain errors raised by ``parse_row`` pass through.
    """
    path = os.path.join(directory, file_name)
    if not os.path.isfile(path):
        raise MalformedRecord(f"no such file: {path}", {"path": path})
    records = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for lineno, row in enumerate(reader, start=1):
            try:
                records.append(parse_row(_clean(row)))
            except MalformedRecord as exc:
                raise MalformedRecord(
                    f"{file_name} row {lineno}: {exc.message}",
                    {"file": file_name, "row": lineno, **exc.details},
                ) from exc
            except RideShareError:
                raise
            except (KeyError, TypeError, ValueError, ValidationError) as exc:
                raise MalformedRecord(
                    f"{file_name} row {lineno}: {exc}",
                    {"file": file_name, "row": lineno},
                ) from exc
    logger.debug("loaded %d records from %s", len(records), path)
    return records
