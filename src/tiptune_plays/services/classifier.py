"""Rules deciding whether a listen event counts as a play."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tiptune_plays.core.settings import settings
from tiptune_plays.services.dedup import DedupKey, DuplicateDetector, describe_window


@dataclass(frozen=True)
class ClassifiableListen:
    """The subset of a listen event the classifier reads."""

    track_id: str
    user_id: str | None
    session_id: str
    ip_hash: str
    listen_duration_seconds: int


@dataclass(frozen=True)
class Verdict:
    """Outcome of classifying one listen event."""

    counted: bool
    reason: str | None = None
    matched_key: DedupKey | None = None


class PlayClassifier:
    """Applies the counting rules in order; the first failing rule wins.

    1. the listen must last at least ``minimum_listen_seconds`` (inclusive);
    2. no earlier counted play of the track may match a dedup key inside
       that key's window.

    ``completed_full`` and ``source`` are stored for analytics only and never
    gate the decision.
    """

    def __init__(
        self,
        detector: DuplicateDetector,
        *,
        minimum_listen_seconds: int | None = None,
    ) -> None:
        self.detector = detector
        self.minimum_listen_seconds = (
            settings.minimum_listen_seconds
            if minimum_listen_seconds is None
            else minimum_listen_seconds
        )

    def classify(self, candidate: ClassifiableListen, as_of: datetime) -> Verdict:
        """Return the verdict for ``candidate`` evaluated at ``as_of``."""
        if candidate.listen_duration_seconds < self.minimum_listen_seconds:
            return Verdict(
                counted=False,
                reason=f"Listen duration below {self.minimum_listen_seconds} seconds minimum",
            )

        matched = self.detector.find_recent_counted_play(
            candidate.track_id,
            candidate.user_id,
            candidate.session_id,
            candidate.ip_hash,
            as_of,
        )
        if matched is not None:
            window = describe_window(self.detector.windows[matched])
            return Verdict(
                counted=False,
                reason=f"Duplicate play within {window} {matched.subject}",
                matched_key=matched,
            )

        return Verdict(counted=True)
