"""
OFX Record Extractor

Scans repaired statement text for <STMTTRN> blocks and pulls the raw tag
values out of each one. Works on both SGML (unclosed leaf tags) and XML
flavoured exports. Malformed input only ever yields fewer records.
"""
import re
from dataclasses import dataclass, field
from typing import List

from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import RawRecordFields
from ofx_ingest.common.tags import find_tag

logger = get_logger(__name__)

BLOCK_START = re.compile(r'<STMTTRN>', re.IGNORECASE)
BLOCK_END = re.compile(r'</STMTTRN>', re.IGNORECASE)

# Tag name -> RawRecordFields attribute
RECORD_TAGS = {
    'FITID': 'fitid',
    'DTPOSTED': 'posted',
    'TRNAMT': 'amount',
    'TRNTYPE': 'trn_type',
    'MEMO': 'memo',
    'NAME': 'name',
    'CHECKNUM': 'checknum',
    'REFNUM': 'refnum',
}


@dataclass
class ExtractionResult:
    records: List[RawRecordFields] = field(default_factory=list)
    blocks_seen: int = 0
    skipped_empty: int = 0
    malformed: int = 0


def iter_blocks(text: str):
    """
    Yields the body of each well-formed <STMTTRN> block in document order.

    An opening marker followed by another opening marker before any closing
    marker is unterminated; it is yielded as None and scanning resumes at the
    next opening marker.
    """
    pos = 0
    while True:
        start = BLOCK_START.search(text, pos)
        if not start:
            return
        end = BLOCK_END.search(text, start.end())
        if not end:
            logger.debug("Unterminated <STMTTRN> at end of document", offset=start.start())
            yield None
            return
        next_start = BLOCK_START.search(text, start.end(), end.start())
        if next_start:
            logger.debug("Unterminated <STMTTRN> block skipped", offset=start.start())
            yield None
            pos = next_start.start()
            continue
        yield text[start.end():end.start()]
        pos = end.end()


def extract_fields(block: str) -> RawRecordFields:
    """Looks up every known tag independently inside one block."""
    values = {attr: find_tag(block, tag) for tag, attr in RECORD_TAGS.items()}
    return RawRecordFields(**values)


def extract_records(text: str) -> ExtractionResult:
    """
    Extracts RawRecordFields for every transaction block.

    Blocks lacking both FITID and TRNAMT carry nothing usable and are
    skipped; they still count as seen.
    """
    result = ExtractionResult()
    for block in iter_blocks(text or ""):
        if block is None:
            result.malformed += 1
            continue
        result.blocks_seen += 1
        fields = extract_fields(block)
        if fields.fitid is None and fields.amount is None:
            result.skipped_empty += 1
            logger.debug("Block without FITID and TRNAMT skipped", block_index=result.blocks_seen)
            continue
        result.records.append(fields)

    logger.debug(
        "Record extraction finished",
        blocks=result.blocks_seen,
        records=len(result.records),
        malformed=result.malformed,
    )
    return result
