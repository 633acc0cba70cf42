"""
Unit tests for DatasetLoader and prompt data summaries.
"""
import io
import json
from datetime import date

import pytest
from openpyxl import Workbook

from decision_os.exceptions import DatasetDecodeError
from decision_os.services.dataset_loader import (
    TYPE_CSV,
    TYPE_EXCEL,
    TYPE_TEXT,
    DatasetLoader,
    dataset_meta,
    summarize_datasets,
)


def workbook_bytes() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "AR"
    sheet.append(["Invoice", "Amount", None, "Due"])
    sheet.append(["INV-1", 12000, "x", date(2026, 1, 31)])
    sheet.append([None, None, None, None])
    sheet.append(["INV-2", 8000])
    second = workbook.create_sheet("Vendors")
    second.append(["Vendor"])
    second.append(["Acme"])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestDatasetLoader:
    """Tests for DatasetLoader class."""

    @pytest.fixture
    def loader(self) -> DatasetLoader:
        return DatasetLoader()

    def test_csv(self, loader: DatasetLoader):
        data = "﻿Region,Revenue\nNorth,1200\n,\nSouth,900\n".encode("utf-8")
        dataset = loader.load("sales.CSV", data)

        assert dataset.type == TYPE_CSV
        assert dataset.headers == ["Region", "Revenue"]
        assert dataset.rows == [{"Region": "North", "Revenue": "1200"}, {"Region": "South", "Revenue": "900"}]
        assert dataset.row_count == 2

    def test_tsv(self, loader: DatasetLoader):
        dataset = loader.load("ops.tsv", b"Team\tHours\nA\t40\n")
        assert dataset.rows == [{"Team": "A", "Hours": "40"}]

    def test_short_csv_row_padded(self, loader: DatasetLoader):
        dataset = loader.load("a.csv", b"a,b\n1\n")
        assert dataset.rows == [{"a": "1", "b": ""}]

    def test_latin1_fallback(self, loader: DatasetLoader):
        dataset = loader.load("notes.txt", "Café notes".encode("latin-1"))
        assert dataset.type == TYPE_TEXT
        assert dataset.content == "Café notes"

    def test_excel(self, loader: DatasetLoader):
        dataset = loader.load("book.xlsx", workbook_bytes())

        assert dataset.type == TYPE_EXCEL
        assert [s.name for s in dataset.sheets] == ["AR", "Vendors"]
        ar = dataset.sheets[0]
        assert ar.headers == ["Invoice", "Amount", "column_3", "Due"]
        assert ar.rows[0]["Due"].startswith("2026-01-31")
        assert ar.rows[1] == {"Invoice": "INV-2", "Amount": 8000, "column_3": "", "Due": ""}
        assert dataset.row_count == 3

    def test_corrupt_excel(self, loader: DatasetLoader):
        with pytest.raises(DatasetDecodeError) as exc_info:
            loader.load("broken.xlsx", b"not a zip file")
        assert exc_info.value.details["filename"] == "broken.xlsx"

    def test_unknown_extension_is_text(self, loader: DatasetLoader):
        dataset = loader.load("minutes.md", b"# Board minutes")
        assert dataset.type == TYPE_TEXT
        assert dataset.char_count == 15


class TestSummaries:

    def test_scan_summary_sample_sizes(self):
        rows = "\n".join(f"r{i},{i}" for i in range(40))
        dataset = DatasetLoader().load("big.csv", f"name,n\n{rows}\n".encode())

        scan = summarize_datasets([dataset], full_scan=True, scan_rows=15)
        chat = summarize_datasets([dataset], full_scan=False, chat_rows=3)

        assert "--- DATA SOURCE 1: big.csv ---" in scan
        assert "Type: CSV | Rows: 40 | Columns: name, n" in scan
        assert "Sample (15 rows)" in scan
        assert "Sample (3 rows)" in chat

    def test_text_truncated(self):
        dataset = DatasetLoader().load("long.txt", b"a" * 5000)
        summary = summarize_datasets([dataset], text_chars=100)
        assert "Length: 5000 chars" in summary
        assert "a" * 101 not in summary

    def test_excel_summary_per_sheet(self):
        dataset = DatasetLoader().load("book.xlsx", workbook_bytes())
        summary = summarize_datasets([dataset])
        assert 'Sheet "AR": 2 rows' in summary
        assert 'Sheet "Vendors": 1 rows' in summary

    def test_numbering_across_datasets(self):
        loader = DatasetLoader()
        summary = summarize_datasets([loader.load("a.txt", b"x"), loader.load("b.txt", b"y")])
        assert "DATA SOURCE 2: b.txt" in summary

    def test_meta(self):
        dataset = DatasetLoader().load("a.csv", b"x\n1\n2\n")
        assert dataset_meta([dataset]) == [{"name": "a.csv", "type": "csv", "row_count": 2}]
        json.dumps(dataset_meta([dataset]))
