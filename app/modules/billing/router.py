"""Billing API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.modules.billing.schemas import ProofSubmissionRead
from app.modules.billing.service import BillingService, UploadedProof, get_billing_service

router = APIRouter(prefix="/uploads", tags=["billing"])


@router.post("/payment-proof", response_model=ProofSubmissionRead)
async def upload_payment_proof(
    token: str = Form(...),
    reference_number: str = Form(""),
    bank_account: str = Form(""),
    amount: str = Form(""),
    file: UploadFile = File(...),
    service: BillingService = Depends(get_billing_service),
) -> ProofSubmissionRead:
    """Upload a transfer receipt using a single-use upload token."""
    max_bytes = service.settings.upload_max_bytes
    content = await file.read(max_bytes + 1)
    upload = UploadedProof(
        content=content,
        content_type=file.content_type or "",
        size=file.size if file.size is not None else len(content),
        filename=file.filename,
    )
    return await service.submit_payment_proof(
        token,
        {"reference_number": reference_number, "bank_account": bank_account, "amount": amount},
        upload,
    )
