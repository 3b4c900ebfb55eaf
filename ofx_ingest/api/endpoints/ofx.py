import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from ofx_ingest.api.state import get_fingerprint_store, get_settings
from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import ImportScope
from ofx_ingest.common.settings import Settings
from ofx_ingest.core.fingerprint import FingerprintStore
from ofx_ingest.parsing.exceptions import StatementImportError
from ofx_ingest.parsing.sources.ofx import OfxStatementParser

logger = get_logger(__name__)
router = APIRouter()


class TransactionOut(BaseModel):
    external_id: str
    posted_at: str
    amount: str
    direction: str
    description: str
    raw_type: str
    source_institution: str
    reference: str
    date_is_fallback: bool


class DiagnosticsOut(BaseModel):
    total: int
    credits: int
    debits: int
    skipped_missing_fields: int
    skipped_bad_amount: int
    date_range_start: Optional[str] = None
    date_range_end: Optional[str] = None
    detected_institution: str
    date_fallback_count: int
    duplicate_external_ids: int
    no_blocks_found: bool
    notes: List[str]


class ParseResponse(BaseModel):
    success: bool
    already_imported: bool
    fingerprint: str
    bank_name: str
    account: str
    transactions: List[TransactionOut]
    diagnostics: DiagnosticsOut


@router.post("/parse", response_model=ParseResponse)
async def parse_ofx(
    wallet_id: str = Form(""),
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    store: FingerprintStore = Depends(get_fingerprint_store),
):
    """
    Parse an uploaded OFX statement for a wallet.

    The fingerprint is recorded as soon as the statement is accepted, so a
    second upload of the same file reports ``already_imported``.
    """
    if not wallet_id:
        logger.warning("OFX upload without wallet id")
        raise HTTPException(status_code=400, detail="ID da carteira não fornecido")
    if file is None or not file.filename:
        logger.warning("OFX upload without file", wallet_id=wallet_id)
        raise HTTPException(status_code=400, detail="Nenhum arquivo fornecido")

    suffix = os.path.splitext(file.filename)[1].lower()
    if suffix not in settings.allowed_extensions:
        logger.warning(f"Invalid file type: {file.filename}", wallet_id=wallet_id)
        raise HTTPException(status_code=400, detail="O arquivo deve ser do tipo OFX")

    raw = await file.read(settings.max_upload_bytes + 1)
    if len(raw) > settings.max_upload_bytes:
        logger.warning("OFX upload too large", wallet_id=wallet_id, limit=settings.max_upload_bytes)
        raise HTTPException(
            status_code=400,
            detail=f"O arquivo excede o tamanho máximo permitido ({settings.max_upload_bytes} bytes)",
        )

    logger.info(f"OFX upload started: {file.filename}", wallet_id=wallet_id, size=len(raw))

    parser = OfxStatementParser(settings.fallback_encoding)
    try:
        result = parser.parse_result(raw, ImportScope(store.snapshot(wallet_id)), filename=file.filename)
    except StatementImportError as e:
        logger.warning(f"OFX rejected: {e}", wallet_id=wallet_id)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Internal error while parsing OFX: {e}", exc_info=True, wallet_id=wallet_id)
        raise HTTPException(status_code=500, detail="Erro ao processar o arquivo OFX")

    already_imported = result.already_imported
    transactions = result.transactions
    if not already_imported and not store.add_if_absent(wallet_id, result.fingerprint):
        # Same file accepted concurrently by another request
        logger.warning("Statement imported concurrently", wallet_id=wallet_id, fingerprint=result.fingerprint)
        already_imported = True
        transactions = []

    logger.info(
        f"OFX upload processed: {file.filename}",
        wallet_id=wallet_id,
        already_imported=already_imported,
        tx_count=len(transactions),
    )
    return {
        "success": not already_imported,
        "already_imported": already_imported,
        "fingerprint": result.fingerprint,
        "bank_name": result.diagnostics.detected_institution,
        "account": result.account.account_id,
        "transactions": [t.to_dict() for t in transactions],
        "diagnostics": result.diagnostics.to_dict(),
    }
