from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from vodcatalog.models.refresh_execution import RefreshStatus
from vodcatalog.services.vod.reaper import ReapResult

PHASE_CREDENTIALS = "credentials"
PHASE_SCHEMA = "schema"
PHASE_PLAYLIST = "playlist"
PHASE_CATEGORIES = "categories"
PHASE_MOVIES = "movies"
PHASE_SERIES = "series"
PHASE_CLEANUP = "cleanup"

PHASE_LABELS = {
    PHASE_CREDENTIALS: "Credential check",
    PHASE_SCHEMA: "Schema check",
    PHASE_PLAYLIST: "M3U playlist",
    PHASE_CATEGORIES: "Category processing",
    PHASE_MOVIES: "Movie processing",
    PHASE_SERIES: "Series processing",
    PHASE_CLEANUP: "Cleanup",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class PhaseOutcome:
    name: str
    ok: bool
    processed: int = 0
    error: Optional[str] = None


@dataclass
class RefreshReport:
    provider_id: int
    provider_name: str
    scan_started_at: Optional[datetime] = None
    phases: List[PhaseOutcome] = field(default_factory=list)
    reap: Optional[ReapResult] = None
    aborted: bool = False

    def record(self, name: str, ok: bool, processed: int = 0, error: str = None) -> PhaseOutcome:
        outcome = PhaseOutcome(name=name, ok=ok, processed=processed, error=error)
        self.phases.append(outcome)
        return outcome

    def phase(self, name: str) -> Optional[PhaseOutcome]:
        for outcome in self.phases:
            if outcome.name == name:
                return outcome
        return None

    def processed(self, name: str) -> int:
        outcome = self.phase(name)
        return outcome.processed if outcome else 0

    @property
    def failed_phases(self) -> List[str]:
        return [outcome.name for outcome in self.phases if not outcome.ok]

    @property
    def succeeded(self) -> bool:
        return not self.aborted and not self.failed_phases

    @property
    def status(self) -> RefreshStatus:
        if self.aborted:
            return RefreshStatus.FAILED
        if self.failed_phases:
            return RefreshStatus.PARTIAL
        return RefreshStatus.SUCCESS

    @property
    def error_message(self) -> Optional[str]:
        errors = [f"{outcome.name}: {outcome.error}" for outcome in self.phases if outcome.error]
        return "; ".join(errors) or None
