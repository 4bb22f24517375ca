"""Report rendering for sweep results."""

import json
import csv
import io
from datetime import datetime

from .models import SweepReport


def _format_minutes(seconds: float) -> str:
    return f"{seconds / 60:g} min"


class ReportGenerator:
    """Generator for sweep reports in various formats."""

    def __init__(self, report: SweepReport):
        """Initialize the report generator.

        Args:
            report: The sweep report to generate output from.
        """
        self.report = report

    def to_json(self, include_details: bool = True, indent: int = 2) -> str:
        """Generate JSON representation of the report.

        Args:
            include_details: If True, include the pending listing.
            indent: JSON indentation level.
        """
        if include_details:
            data = self.report.to_full_dict()
        else:
            data = self.report.to_summary_dict()

        def json_serializer(obj):
            if isinstance(obj, datetime):
                return obj.isoformat()
            raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

        return json.dumps(data, indent=indent, default=json_serializer)

    def to_csv(self) -> str:
        """Generate CSV of the pending snapshot."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([
            "id", "display_contact", "utr", "created_at", "age_seconds", "stale"
        ])
        for entry in self.report.pending_listing:
            writer.writerow([
                entry.id,
                entry.display_contact or "",
                entry.utr or "",
                entry.created_at.isoformat(),
                f"{entry.age_seconds:.0f}",
                "yes" if entry.stale else "no",
            ])
        return output.getvalue()

    def to_summary_text(self) -> str:
        """Generate a human-readable text summary of the report."""
        summary = self.report.to_summary_dict()
        stats = summary["statistics"]

        lines = [
            "=" * 60,
            "PAYMENT SWEEP SUMMARY",
            "=" * 60,
            f"Sweep ID: {summary['id']}",
            f"Run At: {summary['run_at']}",
            f"Grace Period: {_format_minutes(summary['grace_period_seconds'])}",
            f"Cutoff: {summary['cutoff']}",
            "",
            "Statistics:",
            f"  Pending Payments: {stats['pending_count']}",
            f"  Stale In Snapshot: {stats['stale_count']}",
            f"  Within Grace Period: {stats['fresh_count']}",
            f"  Expired: {stats['expired_count']}",
            "=" * 60,
        ]
        return "\n".join(lines)

    def to_detailed_text(self) -> str:
        """Generate the summary followed by one line per pending payment."""
        lines = [self.to_summary_text(), ""]

        if self.report.pending_listing:
            lines.extend([
                f"PENDING PAYMENTS ({self.report.pending_count})",
                "-" * 40,
            ])
            for entry in self.report.pending_listing:
                marker = " [stale]" if entry.stale else ""
                lines.append(
                    f"- {entry.id} | {entry.display_contact or 'N/A'} | "
                    f"UTR: {entry.utr or 'N/A'} | "
                    f"Created: {entry.created_at.isoformat()}{marker}"
                )
            lines.append("")
        else:
            lines.append("No pending payments.")

        lines.append(f"Expired {self.report.expired_count} old pending payments")
        return "\n".join(lines)
