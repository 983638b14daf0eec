from __future__ import annotations

"""
Spreadsheet Unit Extractor.

Reads workbooks through openpyxl and turns the rows of one worksheet into
prompt units. The header row is the first row containing a non-empty cell;
columns are addressed by header name, case-insensitively. Formulas are not
evaluated: cached values are read as stored in the file.
"""

import datetime
import logging
import os
import zipfile
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from ragutil.domain.errors import ColumnNotFoundError, IoError, NotFoundError
from ragutil.domain.models import PromptUnit, SheetInfo, TabularConfig, WorkbookInspection

logger = logging.getLogger(__name__)

Row = Tuple[Any, ...]

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def inspect_workbook(path: str) -> WorkbookInspection:
    """
    List the resolved header names of every worksheet.

    Args:
        path: Workbook file path.

    Returns:
        WorkbookInspection: One SheetInfo per worksheet, in workbook order.

    Raises:
        NotFoundError: If the file does not exist.
        IoError: If the file cannot be opened as a workbook.
    """
    wb = _open_workbook(path)
    try:
        sheets: List[SheetInfo] = []
        for ws in wb.worksheets:
            rows = list(ws.iter_rows(values_only=True))
            _, header = _find_header(rows)
            sheets.append(SheetInfo(name=ws.title, columns=header))
    finally:
        wb.close()

    logger.debug(f"Inspected {len(sheets)} sheets in {path}")
    return WorkbookInspection(path=path, sheets=sheets)


def extract_units(
        path: str,
        sheet_name: Union[str, TabularConfig],
        id_column: Optional[str] = None,
        description_columns: Optional[Sequence[str]] = None,
) -> List[PromptUnit]:
    """
    Extract one prompt unit per data row of a worksheet.

    The second argument may be a full TabularConfig instead of a sheet name.
    Rows with a blank id or an empty concatenated description are skipped.

    Args:
        path: Workbook file path.
        sheet_name: Worksheet title, or a TabularConfig.
        id_column: Header name of the id column.
        description_columns: Header names joined, in order, into the body.

    Returns:
        List[PromptUnit]: Units with meta {'sheet', 'rowIndex'}.

    Raises:
        NotFoundError: If the file or the sheet does not exist.
        ColumnNotFoundError: If a named column is not in the header row.
        IoError: If the file cannot be opened as a workbook.
    """
    config = _as_config(sheet_name, id_column, description_columns)

    wb = _open_workbook(path)
    try:
        if config.sheet not in wb.sheetnames:
            raise NotFoundError(f"Sheet not found: {config.sheet}")
        rows = list(wb[config.sheet].iter_rows(values_only=True))
    finally:
        wb.close()

    header_idx, header = _find_header(rows)
    id_idx = _column_index(header, config.id_column, "ID column")
    desc_indices = [_column_index(header, name, "Description column") for name in config.description_columns]

    units: List[PromptUnit] = []
    skipped = 0
    for i, row in enumerate(rows):
        if header_idx is None or i <= header_idx:
            continue

        unit_id = (_cell_at(row, id_idx) or "").strip()
        if not unit_id:
            skipped += 1
            continue

        parts = [v.strip() for v in (_cell_at(row, di) for di in desc_indices) if v and v.strip()]
        body = "\n".join(parts)
        if not body:
            skipped += 1
            continue

        units.append(PromptUnit(id=unit_id, body=body, meta={"sheet": config.sheet, "rowIndex": i}))

    logger.info(f"Extracted {len(units)} units from sheet '{config.sheet}' ({skipped} rows skipped).")
    return units


def cell_to_string(value: Any) -> Optional[str]:
    """
    Render a cell value as text.

    Returns:
        Optional[str]: None for empty cells, the textual form otherwise.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _as_config(
        sheet_name: Union[str, TabularConfig],
        id_column: Optional[str],
        description_columns: Optional[Sequence[str]],
) -> TabularConfig:
    if isinstance(sheet_name, TabularConfig):
        return sheet_name
    if id_column is None:
        raise TypeError("id_column is required when no TabularConfig is given")
    return TabularConfig(
        sheet=sheet_name,
        id_column=id_column,
        description_columns=tuple(description_columns or ()),
    )


def _open_workbook(path: str):
    if not os.path.exists(path):
        raise NotFoundError(f"File not found: {path}")
    try:
        return openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise IoError(f"{path}: {e}") from e


def _is_empty(value: Any) -> bool:
    # Whitespace-only text is content here; only the header names treat it as blank
    return value is None or value == ""


def _find_header(rows: Sequence[Row]) -> Tuple[Optional[int], List[str]]:
    """
    Locate the header row and resolve its column names.

    Returns:
        Tuple[Optional[int], List[str]]: Header row index (None when every
        row is blank) and the column names.
    """
    for i, row in enumerate(rows):
        if any(not _is_empty(v) for v in row):
            return i, _header_names(row)

    if rows:
        return None, [f"col{j + 1}" for j in range(len(rows[0]))]
    return None, []


def _header_names(row: Iterable[Any]) -> List[str]:
    names: List[str] = []
    for j, value in enumerate(row):
        text = cell_to_string(value)
        names.append(text.strip() if text and text.strip() else f"col{j + 1}")
    return names


def _column_index(header: List[str], name: str, kind: str) -> int:
    wanted = name.strip().lower()
    for j, h in enumerate(header):
        if h.lower() == wanted:
            return j
    raise ColumnNotFoundError(name, kind=kind)


def _cell_at(row: Row, index: int) -> Optional[str]:
    if index >= len(row):
        return None
    return cell_to_string(row[index])
