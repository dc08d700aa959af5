"""Billing business logic: proof-of-payment submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.container import AppContainer, get_container
from app.core.database import get_db_session
from app.core.lifecycle import submit_proof
from app.core.proof_storage import ProofStorage, validate_file
from app.core.tokens import SingleUseTokenIssuer
from app.modules.billing.repository import BillingRepository
from app.modules.billing.schemas import PaymentProofSubmission, ProofSubmissionRead
from app.modules.validation import validate
from app.shared.exceptions import TokenInvalidException, ValidationFailedException
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UploadedProof:
    """File received with a proof-of-payment submission."""

    content: bytes
    content_type: str
    size: int
    filename: str | None = None

    @property
    def normalized_content_type(self) -> str:
        return self.content_type.split(";")[0].strip().lower()


class BillingService:
    """Accept proof-of-payment uploads authorized by single-use tokens."""

    def __init__(
        self,
        billing_repository: BillingRepository,
        token_issuer: SingleUseTokenIssuer,
        proof_storage: ProofStorage,
        settings: Settings,
    ) -> None:
        self.billing_repository = billing_repository
        self.token_issuer = token_issuer
        self.proof_storage = proof_storage
        self.settings = settings

    async def submit_payment_proof(
        self,
        token: str,
        fields: dict[str, Any],
        upload: UploadedProof,
    ) -> ProofSubmissionRead:
        """Consume the upload token and move the payment into review.

        Field and file checks run first so that a typo does not burn the
        customer's token.
        """
        result = validate("payment_proof", fields)
        field_errors = dict(result.field_errors)
        field_errors.update(
            validate_file(
                upload.content_type,
                upload.size,
                allowed_types=self.settings.upload_allowed_content_types,
                max_bytes=self.settings.upload_max_bytes,
            ),
        )
        if field_errors:
            raise ValidationFailedException(field_errors)
        submission: PaymentProofSubmission = result.unwrap()

        grant = await self.token_issuer.verify_and_consume(token)
        if grant is None:
            raise TokenInvalidException()

        content_type = upload.normalized_content_type
        allowed_types = tuple(grant.get("allowed_content_types") or ())
        if content_type not in allowed_types:
            raise ValidationFailedException(
                {
                    "file": (
                        f"File type {content_type} not allowed. "
                        f"Allowed types: {', '.join(allowed_types)}"
                    ),
                },
            )

        try:
            payment_id = UUID(str(grant["payment_id"]))
        except (KeyError, ValueError):
            logger.warning("Upload token carried no usable payment id")
            raise TokenInvalidException() from None

        payment = await self.billing_repository.get_payment_by_id(payment_id)
        if payment is None:
            raise TokenInvalidException()

        outcome = submit_proof(payment.status, booking_status=payment.booking.status)
        proof_url = await self.proof_storage.save(upload.content, content_type=content_type)

        payment.status = outcome.payment_status
        payment.verification_status = outcome.verification_status
        payment.reference_number = submission.reference_number
        payment.bank_account = submission.bank_account
        payment.declared_amount = submission.amount
        payment.proof_url = proof_url
        payment.submitted_at = utc_now()
        payment.verified_by = None
        payment.verified_at = None
        payment.booking.payment_status = outcome.payment_status
        await self.billing_repository.save(payment)

        logger.info(
            "Payment proof received for booking %s (%s)",
            payment.booking.booking_number,
            outcome.verification_status,
        )
        return ProofSubmissionRead(
            booking_number=payment.booking.booking_number,
            payment_status=payment.status,
            verification_status=outcome.verification_status,
            proof_url=proof_url,
        )


async def get_billing_service(
    session: AsyncSession = Depends(get_db_session),
    container: AppContainer = Depends(get_container),
) -> BillingService:
    """Dependency provider for billing service."""
    return BillingService(
        billing_repository=BillingRepository(session),
        token_issuer=container.token_issuer,
        proof_storage=container.proof_storage,
        settings=container.settings,
    )
