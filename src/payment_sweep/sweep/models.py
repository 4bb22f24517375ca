"""Models for the reconciliation sweep."""

from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


class PendingPayment(BaseModel):
    """A pending payment as read from the store, with its display contact."""
    id: str = Field(..., description="Payment ID")
    utr: Optional[str] = Field(None, description="Payer-supplied transaction reference")
    created_at: datetime = Field(..., description="Payment creation time")
    display_contact: Optional[str] = Field(None, description="Owner's contact address")


class PendingListingEntry(BaseModel):
    """One line of the pending snapshot shown to a human reviewer."""
    id: str
    display_contact: Optional[str] = None
    utr: Optional[str] = None
    created_at: datetime
    age_seconds: float = Field(..., description="Age at the time of the sweep")
    stale: bool = Field(..., description="Whether the age reached the grace period")


class SweepReport(BaseModel):
    """Outcome of a single sweep."""
    id: str = Field(..., description="Sweep run ID")
    run_at: datetime = Field(..., description="Timestamp captured at the start of the sweep")
    cutoff: datetime = Field(..., description="Payments created at or before this were eligible")
    grace_period_seconds: float

    pending_count: int = Field(default=0)
    stale_count: int = Field(default=0, description="Stale payments in the snapshot")
    fresh_count: int = Field(default=0, description="Payments still within the grace period")
    expired_count: int = Field(default=0, description="Payments actually transitioned by the store")

    pending_listing: List[PendingListingEntry] = Field(default_factory=list)

    def to_summary_dict(self) -> Dict[str, Any]:
        """Return a summary of the report without the listing."""
        return {
            "id": self.id,
            "run_at": self.run_at.isoformat(),
            "cutoff": self.cutoff.isoformat(),
            "grace_period_seconds": self.grace_period_seconds,
            "statistics": {
                "pending_count": self.pending_count,
                "stale_count": self.stale_count,
                "fresh_count": self.fresh_count,
                "expired_count": self.expired_count,
            },
        }

    def to_full_dict(self) -> Dict[str, Any]:
        """Return the complete report including the pending listing."""
        result = self.to_summary_dict()
        result["pending_listing"] = [
            entry.model_dump(mode="json") for entry in self.pending_listing
        ]
        return result
