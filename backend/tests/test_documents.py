"""
Document numbering and unit-of-work rollback.
"""

import pytest
from sqlalchemy.exc import OperationalError

from orderdesk.extensions import db
from orderdesk.models import Customer, DocumentSequence
from orderdesk.services import document_service
from orderdesk.services.concurrency import run_with_retry
from orderdesk.services.document_service import DOC_INVOICE, DOC_ORDER, DocumentSequenceError


class TestDocumentNumbers:

    def test_sequences_are_per_document_type(self, app):
        assert document_service.next_document_number(DOC_ORDER) == "ORD-000001"
        assert document_service.next_document_number(DOC_ORDER) == "ORD-000002"
        assert document_service.next_document_number(DOC_INVOICE) == "INV-000001"
        db.session.commit()

    def test_rolled_back_number_is_reused(self, app):
        document_service.next_document_number(DOC_ORDER)
        db.session.rollback()
        assert document_service.next_document_number(DOC_ORDER) == "ORD-000001"

    def test_missing_sequence_row_is_created(self, app):
        db.session.query(DocumentSequence).filter_by(document_type=DOC_ORDER).delete()
        db.session.commit()
        assert document_service.next_document_number(DOC_ORDER) == "ORD-000001"
        assert document_service.next_document_number(DOC_ORDER) == "ORD-000002"

    def test_unknown_type(self, app):
        with pytest.raises(DocumentSequenceError):
            document_service.next_document_number("PACKING_SLIP")

    def test_ensure_is_idempotent(self, app):
        assert document_service.ensure_document_sequences() == 0


class TestRunWithRetry:

    def test_failure_rolls_back_staged_rows(self, app):
        def _op():
            db.session.add(Customer(company_name="Half Written"))
            db.session.flush()
            raise ValueError("boom")

        with pytest.raises(ValueError):
            run_with_retry(_op)
        assert db.session.query(Customer).count() == 0

    def test_retries_operational_errors(self, app):
        calls = []

        def _op():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE", {}, Exception("database is locked"))
            return "ok"

        assert run_with_retry(_op, backoff_base=0) == "ok"
        assert len(calls) == 3

    def test_gives_up_after_attempts(self, app):
        def _op():
            raise OperationalError("UPDATE", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            run_with_retry(_op, attempts=2, backoff_base=0)
