from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import load_workbook
from sqlalchemy.orm import Session

from xlsmart.db.repositories import Repository
from xlsmart.errors import AuthenticationError, FileReadError, InputError
from xlsmart.types import NormalizationResult, ParsedFile

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
LEGACY_EXCEL_SUFFIXES = {".xls"}
CSV_SUFFIXES = {".csv"}


@dataclass(slots=True)
class UploadedFile:
    file_name: str
    content: bytes


def parse_spreadsheet(file_name: str, content: bytes) -> ParsedFile:
    """Read the first sheet of a workbook (xlsx, xlsm or legacy xls) or a CSV file into headers + rows.

    Row 0 is the header row. Blank headers are discarded and data rows whose
    cells are all empty are dropped.
    """
    suffix = Path(file_name).suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        raw_rows = _read_workbook_rows(file_name, content)
    elif suffix in LEGACY_EXCEL_SUFFIXES:
        raw_rows = _read_legacy_workbook_rows(file_name, content)
    elif suffix in CSV_SUFFIXES:
        raw_rows = _read_csv_rows(file_name, content)
    else:
        raise FileReadError(file_name, f"unsupported file type '{suffix or 'none'}'")

    if not raw_rows:
        return ParsedFile(file_name=file_name, headers=[], rows=[])

    headers = [str(cell).strip() for cell in raw_rows[0] if _has_value(cell)]
    rows = [[_json_safe(cell) for cell in row] for row in raw_rows[1:] if any(_has_value(cell) for cell in row)]
    return ParsedFile(file_name=file_name, headers=headers, rows=rows)


def _read_workbook_rows(file_name: str, content: bytes) -> list[tuple[Any, ...]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise FileReadError(file_name, str(exc) or exc.__class__.__name__) from exc

    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_legacy_workbook_rows(file_name: str, content: bytes) -> list[tuple[Any, ...]]:
    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, engine="xlrd", dtype=object)
    except Exception as exc:
        raise FileReadError(file_name, str(exc) or exc.__class__.__name__) from exc

    frame = frame.astype(object).where(frame.notna(), None)
    return [tuple(row) for row in frame.itertuples(index=False, name=None)]


def _read_csv_rows(file_name: str, content: bytes) -> list[tuple[Any, ...]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileReadError(file_name, "file is not valid UTF-8 text") from exc

    try:
        return [tuple(row) for row in csv.reader(io.StringIO(text))]
    except csv.Error as exc:
        raise FileReadError(file_name, str(exc)) from exc


def _has_value(cell: Any) -> bool:
    if cell is None:
        return False
    return bool(str(cell).strip())


def _json_safe(cell: Any) -> Any:
    if cell is None or isinstance(cell, (str, int, float, bool)):
        return cell
    if isinstance(cell, (datetime, date, time)):
        return cell.isoformat()
    if isinstance(cell, Decimal):
        return float(cell)
    return str(cell)


class CatalogNormalizer:
    def __init__(self, session: Session):
        self.repo = Repository(session)

    def create_session(self, files: list[UploadedFile], *, owner: str | None) -> NormalizationResult:
        if not owner or not owner.strip():
            raise AuthenticationError("Not authenticated: a signed-in user is required to upload roles")
        if not files:
            raise InputError("No files provided")

        parsed: list[ParsedFile] = []
        file_errors: list[str] = []
        for item in files:
            try:
                parsed.append(parse_spreadsheet(item.file_name, item.content))
            except FileReadError as exc:
                logger.warning("Skipping unreadable upload file=%s error=%s", item.file_name, exc.reason)
                file_errors.append(str(exc))

        if not parsed:
            raise InputError("None of the uploaded files could be read: " + "; ".join(file_errors))

        total_rows = sum(len(item.rows) for item in parsed)
        upload = self.repo.create_upload_session(
            session_name=" + ".join(item.file_name for item in parsed),
            file_names=[item.file_name for item in parsed],
            raw_data=[item.wire() for item in parsed],
            total_rows=total_rows,
            created_by=owner.strip(),
            status="analyzing",
        )
        logger.info(
            "Created upload session id=%s files=%s total_rows=%s",
            upload.id,
            len(parsed),
            total_rows,
        )
        return NormalizationResult(
            session_id=upload.id,
            total_rows=total_rows,
            files=parsed,
            file_errors=file_errors,
        )
