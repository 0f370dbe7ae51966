"""Quote document model for geopricing.

Expiry is computed on read from valid_until; there is no stored
"expired" status and no sweep job.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from geopricing.models.geopricing import GeopricingResult


class QuoteStatus(str, Enum):
    """Stored lifecycle status of a quote."""

    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    # Never stored; only returned by effective_status()
    EXPIRED = "expired"


# Statuses that are final and are not overridden by expiry
TERMINAL_STATUSES = {QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}


class GeopricingQuote(BaseModel):
    """A priced quote handed to a customer."""

    quote_id: str = Field(..., alias="quoteId")
    result: GeopricingResult
    status: QuoteStatus = Field(default=QuoteStatus.DRAFT)
    issued_at: datetime = Field(..., alias="issuedAt")
    valid_until: datetime = Field(..., alias="validUntil")

    class Config:
        populate_by_name = True

    @classmethod
    def from_result(
        cls,
        quote_id: str,
        result: GeopricingResult,
        validity_days: int = 30,
        issued_at: Optional[datetime] = None,
    ) -> "GeopricingQuote":
        """Create a draft quote valid for validity_days from issue."""
        issued = issued_at or datetime.now(timezone.utc)
        return cls(
            quote_id=quote_id,
            result=result,
            issued_at=issued,
            valid_until=issued + timedelta(days=validity_days),
        )

    def is_expired(self, as_of: Optional[datetime] = None) -> bool:
        """Check expiry against as_of (default: now, UTC)."""
        now = as_of or datetime.now(timezone.utc)
        return self.valid_until < now

    def effective_status(self, as_of: Optional[datetime] = None) -> QuoteStatus:
        """Stored status, or EXPIRED for open quotes past valid_until."""
        if self.status in TERMINAL_STATUSES:
            return self.status
        if self.is_expired(as_of):
            return QuoteStatus.EXPIRED
        return self.status

    def mark(self, status: QuoteStatus) -> None:
        """Move the quote to a new stored status."""
        if status == QuoteStatus.EXPIRED:
            raise ValueError("expired is computed from valid_until and cannot be stored")
        self.status = status
