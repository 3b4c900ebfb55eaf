"""
OFX File Parser

Reads OFX statement files (path, bytes or file object), decodes them and
runs them through the import pipeline.
"""
import re
from typing import Optional

import pandas as pd

from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import ImportResult, ImportScope
from ..exceptions import InvalidStatementError
from ..pipeline import parse_statement, transactions_to_frame

logger = get_logger(__name__)

UTF8_DECLARATION = re.compile(
    r'(?:^ENCODING:\s*UTF-?8|encoding=["\']UTF-?8["\'])',
    re.IGNORECASE | re.MULTILINE,
)


def read_raw(file_path_or_buffer) -> bytes:
    if isinstance(file_path_or_buffer, str):
        with open(file_path_or_buffer, 'rb') as f:
            return f.read()
    if isinstance(file_path_or_buffer, (bytes, bytearray)):
        return bytes(file_path_or_buffer)
    raw = file_path_or_buffer.read()
    if isinstance(raw, str):
        return raw.encode('utf-8')
    return raw


def decode_statement(raw: bytes, fallback_encoding: str = 'cp1252') -> str:
    """
    Decode statement bytes.

    Files whose header declares UTF-8 (or that start with a BOM) are decoded
    as UTF-8 when they really are; everything else goes through the fallback
    encoding, dropping undefined bytes.
    """
    if raw.startswith(b'\xef\xbb\xbf'):
        return raw.decode('utf-8-sig', errors='ignore')

    head = raw[:1024].decode('ascii', errors='ignore')
    if UTF8_DECLARATION.search(head):
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError:
            logger.warning("File declares UTF-8 but is not valid UTF-8, using fallback encoding",
                           encoding=fallback_encoding)
    return raw.decode(fallback_encoding, errors='ignore')


class OfxStatementParser:
    """
    Parser for OFX bank statement files.

    Handles encoding issues common in Brazilian bank OFX files.
    """

    def __init__(self, fallback_encoding: str = 'cp1252'):
        self.fallback_encoding = fallback_encoding

    def parse_result(self, file_path_or_buffer, scope: Optional[ImportScope] = None,
                     filename: str = None) -> ImportResult:
        raw = read_raw(file_path_or_buffer)
        if not raw or not raw.strip():
            raise InvalidStatementError("Arquivo OFX vazio", filename=filename)
        content = decode_statement(raw, self.fallback_encoding)
        logger.debug("OFX file read", characters=len(content), filename=filename)
        return parse_statement(content, scope)

    def parse(self, file_path_or_buffer, scope: Optional[ImportScope] = None) -> tuple[pd.DataFrame, dict]:
        """
        Returns (transactions_df, metadata).

        metadata: bank, account, start_date, end_date, fingerprint,
        already_imported, diagnostics (dict).
        """
        result = self.parse_result(file_path_or_buffer, scope)
        df = transactions_to_frame(result.transactions)

        metadata = {
            'bank': result.diagnostics.detected_institution,
            'account': result.account.account_id,
            'start_date': None,
            'end_date': None,
            'fingerprint': result.fingerprint,
            'already_imported': result.already_imported,
            'diagnostics': result.diagnostics.to_dict(),
        }
        if not df.empty:
            metadata['start_date'] = df['posted_at'].min().date()
            metadata['end_date'] = df['posted_at'].max().date()

        return df, metadata
