import hashlib
import io
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Union

import pandas as pd

from .schema import ExtractionPayload, RawRow

Source = Union[str, os.PathLike, bytes]


class SpreadsheetDecodeError(ValueError):
    """The uploaded blob could not be read as a spreadsheet."""


class BaseParser(ABC):
    sheet_name = ""

    @abstractmethod
    def read_frame(self, buffer: io.BytesIO) -> pd.DataFrame:
        pass

    def parse(self, source: Source, source_file: str = "") -> ExtractionPayload:
        """
        Returns the first sheet as header -> cell rows:
        {
            "document_hash": "...",
            "rows": [{"Clinic Code": "JKT01", "Amount": 310000, ...}, ...],
            "sheet_name": "...",
            "source_file": "..."
        }
        """
        blob = self._read_blob(source)
        if not source_file and not isinstance(source, bytes):
            source_file = os.fspath(source)

        logging.info(f"Reading spreadsheet: {source_file or '<upload>'} ({len(blob)} bytes)")
        try:
            df = self.read_frame(io.BytesIO(blob))
        except Exception as e:
            raise SpreadsheetDecodeError(f"Unreadable spreadsheet: {e}") from e

        return {
            "document_hash": self.get_blob_hash(blob),
            "rows": self.frame_to_rows(df),
            "sheet_name": self.sheet_name,
            "source_file": source_file,
        }

    def _read_blob(self, source: Source) -> bytes:
        if isinstance(source, bytes):
            return source
        with open(source, "rb") as f:
            return f.read()

    def get_blob_hash(self, blob: bytes) -> str:
        return hashlib.sha256(blob).hexdigest()

    @staticmethod
    def frame_to_rows(df: pd.DataFrame) -> List[RawRow]:
        # Blank cells become "" so every header is present on every row
        df = df.astype(object).where(pd.notna(df), "")
        # Rows without a single value are not records
        df = df[(df != "").any(axis=1)]
        df.columns = [str(c) for c in df.columns]
        return df.to_dict(orient="records")


class ExcelParser(BaseParser):
    def read_frame(self, buffer: io.BytesIO) -> pd.DataFrame:
        with pd.ExcelFile(buffer, engine="openpyxl") as workbook:
            if not workbook.sheet_names:
                return pd.DataFrame()
            self.sheet_name = workbook.sheet_names[0]
            return workbook.parse(self.sheet_name, dtype=object)


class CSVParser(BaseParser):
    def read_frame(self, buffer: io.BytesIO) -> pd.DataFrame:
        self.sheet_name = "csv"
        try:
            return pd.read_csv(buffer, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()


class ParserFactory:
    @staticmethod
    def get_parser(file_type: str) -> BaseParser:
        ft = file_type.lower().lstrip(".")
        if ft in ("xlsx", "xlsm"):
            return ExcelParser()
        elif ft == "csv":
            return CSVParser()
        else:
            raise ValueError(f"Unsupported file type: {file_type}")
