"""
Dataset Loader Service

Decodes uploaded files into row-oriented datasets for scan prompts:
- CSV / TSV via the csv module (header row, blank lines skipped)
- XLSX via openpyxl (every sheet, first row as headers)
- anything else as plain text
"""
import csv
import io
import json
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence

import structlog
from openpyxl import load_workbook

from decision_os.exceptions import DatasetDecodeError

logger = structlog.get_logger(__name__)

TYPE_CSV = "csv"
TYPE_EXCEL = "excel"
TYPE_TEXT = "text"


@dataclass
class Sheet:
    """One worksheet of an Excel dataset."""

    name: str
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass
class Dataset:
    """A decoded upload."""

    name: str
    type: str
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    sheets: List[Sheet] = field(default_factory=list)
    content: str = ""

    @property
    def row_count(self) -> int:
        if self.type == TYPE_EXCEL:
            return sum(sheet.row_count for sheet in self.sheets)
        return len(self.rows)

    @property
    def char_count(self) -> int:
        return len(self.content)


def _cell_value(value: Any) -> Any:
    """Normalise a cell to something JSON can render; empty cells become ""."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _decode_text(filename: str, data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("dataset_not_utf8", filename=filename)
        return data.decode("latin-1")


class DatasetLoader:
    """
    Turns raw upload bytes into Dataset records.

    The file extension picks the decoder; unknown extensions are text.
    """

    DELIMITED_EXTENSIONS = {".csv": ",", ".tsv": "\t"}
    EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xls")

    def load(self, filename: str, data: bytes) -> Dataset:
        """
        Decode one file.

        Raises:
            DatasetDecodeError: the file claims a structured format but
                cannot be read as one.
        """
        lower = filename.lower()
        for extension, delimiter in self.DELIMITED_EXTENSIONS.items():
            if lower.endswith(extension):
                return self._load_delimited(filename, data, delimiter)
        if lower.endswith(self.EXCEL_EXTENSIONS):
            return self._load_excel(filename, data)
        return self._load_text(filename, data)

    def _load_delimited(self, filename: str, data: bytes, delimiter: str) -> Dataset:
        text = _decode_text(filename, data)
        try:
            reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
            headers = list(reader.fieldnames or [])
            rows = []
            for row in reader:
                values = {key: ("" if value is None else value) for key, value in row.items() if key is not None}
                if any(str(v).strip() for v in values.values()):
                    rows.append(values)
        except csv.Error as e:
            raise DatasetDecodeError(filename, str(e))

        logger.info("dataset_loaded", filename=filename, type=TYPE_CSV, rows=len(rows))
        return Dataset(name=filename, type=TYPE_CSV, headers=headers, rows=rows)

    def _load_excel(self, filename: str, data: bytes) -> Dataset:
        try:
            workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as e:
            logger.error("excel_load_failed", filename=filename, error=str(e))
            raise DatasetDecodeError(filename, str(e))

        sheets = []
        try:
            for worksheet in workbook.worksheets:
                sheets.append(self._read_sheet(worksheet))
        finally:
            workbook.close()

        dataset = Dataset(name=filename, type=TYPE_EXCEL, sheets=sheets)
        logger.info(
            "dataset_loaded",
            filename=filename,
            type=TYPE_EXCEL,
            sheets=len(sheets),
            rows=dataset.row_count,
        )
        return dataset

    def _read_sheet(self, worksheet) -> Sheet:
        rows_iter = worksheet.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if header_row is None:
            return Sheet(name=worksheet.title)

        headers = [
            str(value) if value not in (None, "") else f"column_{index + 1}"
            for index, value in enumerate(header_row)
        ]

        rows = []
        for values in rows_iter:
            if values is None or all(v in (None, "") for v in values):
                continue
            padded = list(values) + [None] * (len(headers) - len(values))
            rows.append({header: _cell_value(value) for header, value in zip(headers, padded)})

        return Sheet(name=worksheet.title, headers=headers, rows=rows)

    def _load_text(self, filename: str, data: bytes) -> Dataset:
        content = _decode_text(filename, data)
        logger.info("dataset_loaded", filename=filename, type=TYPE_TEXT, chars=len(content))
        return Dataset(name=filename, type=TYPE_TEXT, content=content)


# Singleton instance
_loader_instance: Optional[DatasetLoader] = None


def get_dataset_loader() -> DatasetLoader:
    """Get singleton DatasetLoader instance."""
    global _loader_instance
    if _loader_instance is None:
        _loader_instance = DatasetLoader()
    return _loader_instance


def load_dataset(filename: str, data: bytes) -> Dataset:
    return get_dataset_loader().load(filename, data)


def _sample_json(rows: List[Dict[str, Any]]) -> str:
    return json.dumps(rows, indent=1, default=str, ensure_ascii=False)


def summarize_datasets(
    datasets: Sequence[Dataset],
    full_scan: bool = False,
    scan_rows: int = 15,
    chat_rows: int = 3,
    text_chars: int = 2000,
) -> str:
    """
    Render datasets as the data block of a prompt.

    Args:
        datasets: Decoded uploads.
        full_scan: Scans get scan_rows sample rows per table, chat gets chat_rows.
        text_chars: Characters of text files to include.

    Returns:
        One "--- DATA SOURCE n: name ---" section per dataset.
    """
    sample_size = scan_rows if full_scan else chat_rows
    parts = []
    for index, dataset in enumerate(datasets, start=1):
        lines = [f"\n--- DATA SOURCE {index}: {dataset.name} ---"]
        if dataset.type == TYPE_CSV:
            sample = dataset.rows[:sample_size]
            lines.append(
                f"Type: CSV | Rows: {dataset.row_count} | Columns: {', '.join(dataset.headers)}"
            )
            lines.append(f"Sample ({len(sample)} rows):\n{_sample_json(sample)}")
        elif dataset.type == TYPE_EXCEL:
            for sheet in dataset.sheets:
                lines.append(
                    f'Sheet "{sheet.name}": {sheet.row_count} rows | Columns: {", ".join(sheet.headers)}'
                )
                lines.append(f"Sample:\n{_sample_json(sheet.rows[:sample_size])}")
        else:
            lines.append(f"Type: Text | Length: {dataset.char_count} chars")
            lines.append(dataset.content[:text_chars])
        parts.append("\n".join(lines) + "\n")
    return "".join(parts)


def dataset_meta(datasets: Sequence[Dataset]) -> List[Dict[str, Any]]:
    """Name, type and row count of each dataset, the part kept between sessions."""
    return [
        {"name": dataset.name, "type": dataset.type, "row_count": dataset.row_count}
        for dataset in datasets
    ]
