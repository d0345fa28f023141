"""CSV loader for billing and email roster files"""

import csv
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..errors import FormatError

logger = logging.getLogger(__name__)

# utf-8-sig strips the BOM spreadsheet exports tend to prepend
CSV_ENCODING = "utf-8-sig"


@dataclass
class BillingTable:
    """Header row plus a lazy, single-pass iterator over the data rows."""

    path: Path
    headers: list[str]
    rows: Iterator[dict[str, str]]


def _open(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    try:
        return open(path, newline="", encoding=CSV_ENCODING)
    except OSError as e:
        raise OSError(f"Cannot read CSV file {path}: {e.strerror or e}") from e


def _iter_records(path: Path) -> Iterator[tuple[int, list[str], list[str]]]:
    """Yield (line_number, header, cells) for every data line that has cells.

    Rows whose cells are all empty (",,,") are still records. Only lines with
    no cells at all are skipped, with a warning.
    The header is yielded with each record so callers can stay lazy.
    Decoding happens while iterating, so decode errors surface here.
    """
    with _open(path) as f:
        reader = csv.reader(f)
        try:
            header = next(reader, None)
            if header is None:
                return
            for cells in reader:
                if not cells:
                    logger.warning(f"{path.name} line {reader.line_num}: skipped empty line")
                    continue
                yield reader.line_num, header, cells
        except UnicodeDecodeError as e:
            raise FormatError(f"{path.name} is not valid UTF-8 text: {e}") from e
        except csv.Error as e:
            raise FormatError(f"{path.name} could not be parsed as CSV: {e}") from e


def _to_row(header: list[str], cells: list[str], line_num: int, source: str) -> dict[str, str]:
    if len(cells) > len(header):
        extra = cells[len(header):]
        if any(cell.strip() for cell in extra):
            logger.warning(
                f"{source} line {line_num}: dropped {len(extra)} cell(s) beyond the header"
            )
    row = {}
    for i, name in enumerate(header):
        row[name] = cells[i] if i < len(cells) else ""
    return row


def read_header(path: str | Path) -> list[str]:
    """Read only the header row of a CSV file (empty list for an empty file)."""
    path = Path(path)
    with _open(path) as f:
        try:
            header = next(csv.reader(f), None)
        except UnicodeDecodeError as e:
            raise FormatError(f"{path.name} is not valid UTF-8 text: {e}") from e
        except csv.Error as e:
            raise FormatError(f"{path.name} could not be parsed as CSV: {e}") from e
    return header or []


def iter_rows(path: str | Path) -> Iterator[dict[str, str]]:
    """Stream a CSV file as header -> value mappings.

    Missing trailing cells become empty strings. Extra trailing cells are
    dropped with a warning. Raises OSError if the file is missing or
    unreadable and FormatError if it cannot be decoded.
    """
    path = Path(path)
    for line_num, header, cells in _iter_records(path):
        yield _to_row(header, cells, line_num, path.name)


def open_table(path: str | Path) -> BillingTable:
    """Open a CSV file, reading its header eagerly and its rows lazily."""
    path = Path(path)
    headers = read_header(path)
    return BillingTable(path=path, headers=headers, rows=iter_rows(path))


def load_rows(path: str | Path) -> list[dict[str, str]]:
    """Load every row of a CSV file into memory."""
    rows = list(iter_rows(path))
    logger.info(f"Loaded {len(rows)} rows from {Path(path).name}")
    return rows
