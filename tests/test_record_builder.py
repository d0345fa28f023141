"""Tests for record_builder.py - patient document normalization."""

from datetime import date
from decimal import Decimal

from src.processors.classifier import DocumentType
from src.processors.record_builder import (
    build_patient_document,
    build_patient_documents,
    resolve_patient_name,
)


class TestResolvePatientName:
    """Tests for the name fallback chain."""

    def test_first_and_last(self):
        row = {"First Name": "Jane", "Last Name": "Doe"}
        assert resolve_patient_name(row, 1) == ("Jane", "Doe", "Jane Doe")

    def test_camel_case_headers(self):
        row = {"FirstName": "Jane", "LastName": "Doe"}
        assert resolve_patient_name(row, 1)[2] == "Jane Doe"

    def test_whole_name_fallback(self):
        row = {"First Name": "", "Last Name": "", "Patient": "John Smith"}
        assert resolve_patient_name(row, 4) == ("", "", "John Smith")

    def test_positional_placeholder(self):
        row = {"FirstName": "", "LastName": "", "Patient": ""}
        assert resolve_patient_name(row, 3)[2] == "Patient_3"


class TestBuildPatientDocument:
    """Tests for build_patient_document()."""

    def test_statement_row(self, today):
        row = {"FirstName": "Jane", "LastName": "Doe", "Due": "150.00", "CPT": "99213",
               "Date": "2024-01-15"}
        doc = build_patient_document(row, 1, DocumentType.STATEMENT, today)

        assert doc.name == "Jane Doe"
        assert doc.service_code == "99213"
        assert doc.due == Decimal("150.00")
        assert doc.charge == Decimal("150.00")  # falls back to Due
        assert doc.paid == Decimal("0.00")
        assert doc.formatted_date == "01-15-24"
        assert doc.text_filename == "Jane Doe Statement 01-15-24.txt"
        assert doc.pdf_filename == "Jane Doe Statement 01-15-24.pdf"
        assert doc.has_balance_field is True

    def test_charge_without_due(self, today):
        row = {"First Name": "Al", "Last Name": "Roe", "Charge": "$80"}
        doc = build_patient_document(row, 1, DocumentType.STATEMENT, today)
        assert doc.charge == Decimal("80.00")
        assert doc.due == Decimal("80.00")
        assert doc.has_balance_field is False

    def test_superbill_paid(self, today):
        row = {"First Name": "Al", "Last Name": "Roe", "Charge": "200", "Paid": "200"}
        doc = build_patient_document(row, 1, DocumentType.SUPERBILL, today)
        assert doc.paid == Decimal("200.00")
        assert doc.text_filename.startswith("Al Roe SuperBill ")

    def test_bad_amounts_default_to_zero(self, today):
        row = {"First Name": "Al", "Last Name": "Roe", "Charge": "n/a", "Due": ""}
        doc = build_patient_document(row, 1, DocumentType.STATEMENT, today)
        assert doc.charge == Decimal("0.00")
        assert doc.due == Decimal("0.00")

    def test_missing_date_uses_processing_date(self, today):
        doc = build_patient_document({"Name": "Al Roe"}, 1, DocumentType.STATEMENT, today)
        assert doc.service_date == today
        assert doc.formatted_date == "03-02-26"

    def test_unparsable_date_uses_processing_date(self, today):
        row = {"Name": "Al Roe", "Date": "last tuesday"}
        doc = build_patient_document(row, 1, DocumentType.STATEMENT, today)
        assert doc.service_date == today

    def test_placeholder_name_in_filename(self, today):
        doc = build_patient_document({"Charge": "5"}, 7, DocumentType.STATEMENT, today)
        assert doc.text_filename == "Patient_7 Statement 03-02-26.txt"

    def test_path_separators_replaced(self, today):
        row = {"First Name": "A/B", "Last Name": "C"}
        doc = build_patient_document(row, 1, DocumentType.STATEMENT, today)
        assert "/" not in doc.text_filename

    def test_filename_is_deterministic(self, today):
        row = {"First Name": "Jane", "Last Name": "Doe", "Date": "2024-01-15"}
        first = build_patient_document(row, 1, DocumentType.STATEMENT, today)
        second = build_patient_document(dict(row), 1, DocumentType.STATEMENT, today)
        assert first.text_filename == second.text_filename

    def test_clinical_fields(self, today):
        row = {"Name": "Al Roe", "Dx": "F41.1", "location": "Office", "Description": "Therapy"}
        doc = build_patient_document(row, 1, DocumentType.STATEMENT, today)
        assert doc.diagnosis == "F41.1"
        assert doc.location == "Office"
        assert doc.service_code == "Therapy"


class TestBuildPatientDocuments:
    """Tests for build_patient_documents()."""

    def test_one_document_per_row_in_order(self, today):
        rows = [
            {"FirstName": "Jane", "LastName": "Doe"},
            {"FirstName": "John", "LastName": "Roe"},
            {"FirstName": "", "LastName": "", "Patient": ""},
        ]
        docs = list(build_patient_documents(rows, DocumentType.STATEMENT, today))
        assert [d.name for d in docs] == ["Jane Doe", "John Roe", "Patient_3"]
        assert [d.index for d in docs] == [1, 2, 3]

    def test_document_type_is_uniform(self, today):
        rows = [{"Name": "A"}, {"Name": "B"}]
        docs = list(build_patient_documents(rows, DocumentType.SUPERBILL, today))
        assert {d.document_type for d in docs} == {DocumentType.SUPERBILL}

    def test_is_lazy(self, today):
        def rows():
            yield {"Name": "A"}
            raise AssertionError("should not be consumed")

        docs = build_patient_documents(rows(), DocumentType.STATEMENT, today)
        assert next(docs).name == "A"

    def test_defaults_today(self):
        docs = list(build_patient_documents([{"Name": "A"}], DocumentType.STATEMENT))
        assert docs[0].service_date == date.today()
