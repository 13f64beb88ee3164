"""Per-reviewer approval records of one engineering drawing."""

from datetime import datetime, timezone

from app.constants.error_codes import ErrorCode
from app.core.exceptions import NotFoundError
from app.models.enums.drawing_status import ApprovalStatus, ReviewCommentStatus


def _status(record) -> ApprovalStatus:
    return ApprovalStatus(record.status)


class ApprovalWorkflow:
    """Wraps a drawing's approval records.

    A rejection stays in place until a human resubmits the drawing
    (`reset_rejections`); other reviewers' approvals are never cleared.
    """

    def __init__(self, approvals):
        self.approvals = approvals

    def find(self, approval_id):
        for record in self.approvals:
            if record.id == approval_id:
                return record
        raise NotFoundError("Approval not found", ErrorCode.APPROVAL_NOT_FOUND)

    def is_fully_approved(self) -> bool:
        return bool(self.approvals) and all(
            _status(r) == ApprovalStatus.approved for r in self.approvals
        )

    def has_rejection(self) -> bool:
        return any(_status(r) == ApprovalStatus.rejected for r in self.approvals)

    def pending_roles(self) -> list[str]:
        return [r.role for r in self.approvals if _status(r) == ApprovalStatus.pending]

    def rejected_roles(self) -> list[str]:
        return [r.role for r in self.approvals if _status(r) == ApprovalStatus.rejected]

    def record_decision(
        self,
        approval_id,
        approved: bool,
        comments: str | None = None,
        approver: str | None = None,
        decided_at: datetime | None = None,
    ) -> bool:
        """Apply one reviewer's decision.

        Returns True only when this decision moved the drawing from not
        fully approved to fully approved.
        """
        record = self.find(approval_id)
        was_complete = self.is_fully_approved()

        record.status = ApprovalStatus.approved if approved else ApprovalStatus.rejected
        record.decided_at = decided_at or datetime.now(timezone.utc)
        if comments is not None:
            record.comments = comments
        if approver is not None:
            record.approver = approver

        return not was_complete and self.is_fully_approved()

    def reset_rejections(self) -> list[str]:
        reset = []
        for record in self.approvals:
            if _status(record) == ApprovalStatus.rejected:
                record.status = ApprovalStatus.pending
                record.decided_at = None
                reset.append(record.role)
        return reset


def open_comment_count(comments) -> int:
    return sum(1 for c in comments if ReviewCommentStatus(c.status) == ReviewCommentStatus.open)
