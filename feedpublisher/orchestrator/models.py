"""Orchestrator data models."""
from dataclasses import dataclass, field
from typing import List

from ..models import OutcomeStatus, UploadOutcome


@dataclass
class PublishReport:
    """Outcomes of a publish run plus run-level errors."""
    outcomes: List[UploadOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def created(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.CREATED]

    @property
    def skipped(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.SKIPPED_IDENTICAL]

    @property
    def failed(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def has_failures(self) -> bool:
        return bool(self.errors) or any(not o.success for o in self.outcomes)

    @property
    def success(self) -> bool:
        return not self.has_failures

    def failure_summary(self) -> str:
        """One line per failure, run-level errors first."""
        lines = list(self.errors)
        for outcome in self.failed:
            reason = outcome.reason.value if outcome.reason else "unknown"
            lines.append(f"{outcome.item.remote_key} [{reason}]: {outcome.detail}")
        return "\n".join(lines)

    @classmethod
    def combine(cls, *reports: "PublishReport") -> "PublishReport":
        combined = cls()
        for report in reports:
            combined.outcomes.extend(report.outcomes)
            combined.errors.extend(report.errors)
        return combined
