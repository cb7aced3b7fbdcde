"""Per-item stage tracker for viral validation."""

from datetime import datetime, timezone

# Ordered validation stages
STAGES = ["collected", "social_queried", "scored", "decided"]


class StageOrderError(ValueError):
    """A stage was completed before its predecessor, or twice."""


class ValidationState:
    """Tracks completion per stage for one validated item.

    Stages must complete strictly in order; each records status, timestamp
    and optional artifacts.
    """

    def __init__(self, title: str):
        self.title = title
        self.state: dict = {}

    def is_done(self, stage: str) -> bool:
        """Check if a stage completed successfully."""
        return self.state.get(stage, {}).get("status") == "done"

    def is_failed(self, stage: str) -> bool:
        return self.state.get(stage, {}).get("status") == "failed"

    @property
    def current(self) -> str | None:
        """Last completed stage, or None before collection."""
        done = [s for s in STAGES if self.is_done(s)]
        return done[-1] if done else None

    def _check_order(self, stage: str):
        if stage not in STAGES:
            raise StageOrderError(f"unknown stage: {stage}")
        if self.is_done(stage):
            raise StageOrderError(f"{stage} already completed for {self.title!r}")
        index = STAGES.index(stage)
        if index and not self.is_done(STAGES[index - 1]):
            raise StageOrderError(
                f"{stage} before {STAGES[index - 1]} for {self.title!r}"
            )

    def complete_stage(self, stage: str, artifacts: dict | None = None):
        """Mark a stage as completed with optional artifact metadata."""
        self._check_order(stage)
        self.state[stage] = {
            "status": "done",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if artifacts:
            self.state[stage]["artifacts"] = artifacts

    def fail_stage(self, stage: str, error: str = ""):
        """Mark a stage as failed."""
        self._check_order(stage)
        self.state[stage] = {
            "status": "failed",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": error,
        }

    def get_artifact(self, stage: str, key: str, default=None):
        """Get an artifact value from a completed stage."""
        return self.state.get(stage, {}).get("artifacts", {}).get(key, default)

    def summary(self) -> str:
        """Human-readable status of all stages."""
        lines = []
        for stage in STAGES:
            status = self.state.get(stage, {}).get("status", "pending")
            marker = {"done": "+", "failed": "!", "pending": " "}.get(status, "?")
            lines.append(f"  [{marker}] {stage}")
        return "\n".join(lines)
