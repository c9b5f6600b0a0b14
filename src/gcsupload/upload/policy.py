"""Upload policy: MIME-type allow-list and size ceiling."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from gcsupload.upload.exceptions import PolicyRejectionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB

DEFAULT_ALLOWED_MIME_TYPES: FrozenSet[str] = frozenset(
    {
        "text/csv",
        "application/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/json",
    }
)


class RejectionReason(str, Enum):
    """Why an upload falls outside the policy."""

    TYPE_NOT_ALLOWED = "type-not-allowed"
    SIZE_EXCEEDED = "size-exceeded"


@dataclass(frozen=True)
class UploadPolicyConfig:
    """Immutable upload limits, built once at startup."""

    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_mime_types: FrozenSet[str] = field(default=DEFAULT_ALLOWED_MIME_TYPES)

    def __post_init__(self):
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if not self.allowed_mime_types:
            raise ValueError("allowed_mime_types must not be empty")


@dataclass(frozen=True)
class UploadPolicyDecision:
    """Outcome of evaluating one upload against the policy."""

    mime_type: str
    size_bytes: Optional[int]
    reasons: Tuple[RejectionReason, ...] = ()

    @property
    def accepted(self) -> bool:
        return not self.reasons

    @property
    def reason(self) -> Optional[RejectionReason]:
        """First rejection reason, or None when accepted."""
        return self.reasons[0] if self.reasons else None


class UploadPolicy:
    """Evaluate uploads against an UploadPolicyConfig."""

    def __init__(self, config: UploadPolicyConfig):
        self.config = config

    def evaluate(self, mime_type: str, size_bytes: Optional[int]) -> UploadPolicyDecision:
        """Check type and size; both checks always run.

        Args:
            mime_type: Resolved MIME type of the upload
            size_bytes: Observed or declared size, None when unknown. An
                unknown size is left to the writer's streaming limit.

        Returns:
            UploadPolicyDecision listing every violated rule
        """
        reasons = []
        if size_bytes is not None and size_bytes > self.config.max_bytes:
            reasons.append(RejectionReason.SIZE_EXCEEDED)
        if mime_type not in self.config.allowed_mime_types:
            reasons.append(RejectionReason.TYPE_NOT_ALLOWED)
        return UploadPolicyDecision(mime_type=mime_type, size_bytes=size_bytes, reasons=tuple(reasons))

    def enforce(self, mime_type: str, size_bytes: Optional[int]) -> UploadPolicyDecision:
        """Evaluate and raise if the upload is rejected.

        Raises:
            PolicyRejectionError: If any rule is violated
        """
        decision = self.evaluate(mime_type, size_bytes)
        if decision.accepted:
            return decision

        details = []
        for reason in decision.reasons:
            if reason is RejectionReason.SIZE_EXCEEDED:
                details.append(
                    f"File size {size_bytes} bytes exceeds maximum allowed size of "
                    f"{self.config.max_bytes} bytes"
                )
            else:
                allowed = ", ".join(sorted(self.config.allowed_mime_types))
                details.append(f"Invalid file type: {mime_type}. Allowed types: {allowed}")

        logger.warning(
            "Upload rejected by policy",
            extra={
                "mime_type": mime_type,
                "size_bytes": size_bytes,
                "reasons": [r.value for r in decision.reasons],
            },
        )
        raise PolicyRejectionError(
            details[0],
            reasons=[r.value for r in decision.reasons],
            details=details,
        )
