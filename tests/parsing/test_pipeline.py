"""
Tests for parse_statement, the end-to-end import of one statement.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from ofx_ingest.common.models import Direction, ImportScope
from ofx_ingest.parsing import InvalidStatementError, parse_statement, transactions_to_frame
from ofx_ingest.parsing.pipeline import TRANSACTION_COLUMNS

from conftest import build_block, build_ofx


class TestStatementScenarios:

    def test_bb_debit_with_corrupted_memo(self, bb_statement, fixed_now):
        result = parse_statement(bb_statement, now=fixed_now)

        assert not result.already_imported
        first = result.transactions[0]
        assert first.external_id == "T1"
        assert first.amount == Decimal("150.00")
        assert first.direction is Direction.DEBIT
        assert "Cobranca Servico" in first.description
        assert first.posted_at == datetime(2024, 3, 15)
        assert first.source_institution == "BANCO DO BRASIL"

    def test_reimport_is_rejected_as_a_whole(self, bb_statement, fixed_now):
        first = parse_statement(bb_statement, now=fixed_now)
        again = parse_statement(bb_statement, ImportScope({first.fingerprint}), now=fixed_now)

        assert again.already_imported
        assert again.transactions == []
        assert again.fingerprint == first.fingerprint
        assert "Statement already imported" in again.diagnostics.notes

    def test_name_used_when_memo_missing(self, bb_statement, fixed_now):
        result = parse_statement(bb_statement, now=fixed_now)
        second = result.transactions[1]
        assert second.description == "Jose Leitao"
        assert second.direction is Direction.CREDIT
        assert second.posted_at == datetime(2024, 3, 16, 10, 0, 0)

    def test_name_used_for_unknown_institution(self, fixed_now):
        text = build_ofx(
            [build_block(trntype="CREDIT", dtposted="20240316", trnamt="10.00", fitid="N1", name="Jos? Leit?o")],
            bank_id=None,
        )
        result = parse_statement(text, now=fixed_now)
        assert result.diagnostics.detected_institution == "UNKNOWN"
        assert result.transactions[0].description == "Jose Leitao"

    def test_unreadable_date_uses_processing_time(self, fixed_now):
        text = build_ofx([build_block(trntype="DEBIT", dtposted="ABCDEFGH", trnamt="-1.00", fitid="D1")])
        result = parse_statement(text, now=fixed_now)

        assert len(result.transactions) == 1
        assert result.transactions[0].posted_at == fixed_now
        assert result.transactions[0].date_is_fallback
        assert result.diagnostics.date_fallback_count == 1

    def test_entity_encoded_accents(self, fixed_now):
        text = build_ofx([
            build_block(dtposted="20240301", trnamt="-1.00", fitid="E1", memo="Cobran&ccedil;a"),
            build_block(dtposted="20240301", trnamt="-2.00", fitid="E2", memo="PAG &eacute; LOJA"),
        ])
        descriptions = [t.description for t in parse_statement(text, now=fixed_now).transactions]
        assert descriptions == ["Cobranca", "PAG LOJA"]

    def test_c6_name_and_memo_merged(self, c6_statement, fixed_now):
        result = parse_statement(c6_statement, now=fixed_now)
        descriptions = [t.description for t in result.transactions]

        assert result.diagnostics.detected_institution == "C6 BANK"
        assert descriptions == [
            "MERCADO CENTRAL - PAGAMENTO BOLETO",
            "EMPRESA XYZ LTDA - PIX RECEBIDO",
            "PADARIA",
        ]
        assert result.transactions[0].posted_at == datetime(2024, 3, 29, 12, 0, 0)


class TestDiagnostics:

    def test_counts_and_range(self, bb_statement, fixed_now):
        diagnostics = parse_statement(bb_statement, now=fixed_now).diagnostics

        assert diagnostics.total == 3
        assert diagnostics.credits == 1
        assert diagnostics.debits == 2
        assert diagnostics.skipped_missing_fields == 0
        assert diagnostics.skipped_bad_amount == 0
        assert diagnostics.date_range_start == datetime(2024, 3, 15)
        assert diagnostics.date_range_end == datetime(2024, 3, 20)
        assert diagnostics.detected_institution == "BANCO DO BRASIL"

    def test_count_conservation_with_bad_blocks(self, fixed_now):
        text = build_ofx([
            build_block(dtposted="20240301", trnamt="-5.00", fitid="OK1"),
            build_block(dtposted="20240301", fitid="NOAMT"),
            build_block(dtposted="20240301", trnamt="-3.00"),
            build_block(dtposted="20240301", trnamt="abc", fitid="BAD"),
            build_block(memo="nothing useful"),
            "<STMTTRN>\n<FITID>UNTERMINATED\n<TRNAMT>1.00",
            build_block(dtposted="20240302", trnamt="7.00", fitid="OK2"),
        ])
        result = parse_statement(text, now=fixed_now)
        d = result.diagnostics

        assert [t.external_id for t in result.transactions] == ["OK1", "OK2"]
        assert d.skipped_missing_fields == 3
        assert d.skipped_bad_amount == 1
        assert d.total == len(result.transactions) + d.skipped_missing_fields + d.skipped_bad_amount
        assert d.credits + d.debits == len(result.transactions)

    def test_repeated_fitid_gets_suffix(self, fixed_now):
        text = build_ofx([
            build_block(dtposted="20240301", trnamt="-5.00", fitid="DUP"),
            build_block(dtposted="20240302", trnamt="-6.00", fitid="DUP"),
            build_block(dtposted="20240303", trnamt="-7.00", fitid="DUP"),
        ])
        result = parse_statement(text, now=fixed_now)

        assert [t.external_id for t in result.transactions] == ["DUP", "DUP-2", "DUP-3"]
        assert result.diagnostics.duplicate_external_ids == 2
        assert result.diagnostics.total == 3

    def test_unknown_bank_code_is_noted(self, fixed_now):
        text = build_ofx([build_block(dtposted="20240301", trnamt="1", fitid="A")], bank_id="260")
        diagnostics = parse_statement(text, now=fixed_now).diagnostics
        assert diagnostics.detected_institution == "260"
        assert any("260" in note for note in diagnostics.notes)


class TestProperties:

    def test_deterministic(self, c6_statement, fixed_now):
        assert parse_statement(c6_statement, now=fixed_now) == parse_statement(c6_statement, now=fixed_now)

    def test_sign_lives_in_direction(self, bb_statement, c6_statement, fixed_now):
        for text in (bb_statement, c6_statement):
            for tx in parse_statement(text, now=fixed_now).transactions:
                assert tx.amount >= 0
                assert (tx.signed_amount > 0) == (tx.direction is Direction.CREDIT)

    def test_document_order_preserved(self, fixed_now):
        ids = ["Z", "A", "M", "B"]
        text = build_ofx([build_block(dtposted="20240301", trnamt="1.00", fitid=i) for i in ids])
        assert [t.external_id for t in parse_statement(text, now=fixed_now).transactions] == ids

    def test_statement_without_blocks(self, empty_statement, fixed_now):
        result = parse_statement(empty_statement, now=fixed_now)

        assert result.transactions == []
        assert not result.already_imported
        assert result.diagnostics.total == 0
        assert result.diagnostics.no_blocks_found
        assert result.diagnostics.date_range_start is None

    def test_garbage_text_is_not_an_error(self, fixed_now):
        result = parse_statement("this is not an OFX file", now=fixed_now)
        assert result.transactions == []
        assert result.diagnostics.no_blocks_found
        assert result.diagnostics.detected_institution == "UNKNOWN"

    @pytest.mark.parametrize("bad_input", ["", "   \n", None, b"<OFX>"])
    def test_invalid_input_raises(self, bad_input):
        with pytest.raises(InvalidStatementError):
            parse_statement(bad_input)


class TestFingerprint:

    def test_identity_tags(self, bb_statement, fixed_now):
        result = parse_statement(bb_statement, now=fixed_now)
        assert result.fingerprint == "001_12345-6_20240331120000[-3:BRT]"
        assert result.account.account_id == "12345-6"
        assert result.account.period_start == "20240301"

    def test_dtasof_when_dtserver_missing(self, fixed_now):
        text = build_ofx([], dtserver=None) + "<LEDGERBAL>\n<BALAMT>0\n<DTASOF>20240331\n</LEDGERBAL>\n"
        assert parse_statement(text, now=fixed_now).fingerprint == "001_12345-6_20240331"

    def test_content_hash_without_identity_tags(self, fixed_now):
        text = build_ofx([build_block(trnamt="1", fitid="A")], bank_id=None, acct_id=None, dtserver=None)
        first = parse_statement(text, now=fixed_now).fingerprint
        assert first.startswith("sha256:")
        assert parse_statement(text, now=fixed_now).fingerprint == first
        assert parse_statement(text + "\n", now=fixed_now).fingerprint != first

    def test_fingerprint_independent_of_transactions(self, fixed_now):
        a = build_ofx([build_block(trnamt="1", fitid="A")])
        b = build_ofx([build_block(trnamt="2", fitid="B")])
        assert parse_statement(a, now=fixed_now).fingerprint == parse_statement(b, now=fixed_now).fingerprint


class TestTransactionsFrame:

    def test_frame_columns_and_rows(self, bb_statement, fixed_now):
        df = transactions_to_frame(parse_statement(bb_statement, now=fixed_now).transactions)
        assert list(df.columns) == TRANSACTION_COLUMNS
        assert list(df['external_id']) == ["T1", "T2", "T3"]
        assert list(df['direction']) == ["DEBIT", "CREDIT", "DEBIT"]

    def test_empty_frame(self):
        df = transactions_to_frame([])
        assert df.empty
        assert list(df.columns) == TRANSACTION_COLUMNS
