# src/tiptune_plays/services/__init__.py
"""Business logic services for play validation and counting."""

from .analytics import PlayAnalyticsService
from .classifier import PlayClassifier, Verdict
from .counter import AggregateCounter, ReconcileResult
from .dedup import DedupKey, DuplicateDetector
from .locks import PlayLockService
from .play_service import PlayCandidate, PlayCountService, PlayVerdict

__all__ = [
    "AggregateCounter",
    "DedupKey",
    "DuplicateDetector",
    "PlayAnalyticsService",
    "PlayCandidate",
    "PlayClassifier",
    "PlayCountService",
    "PlayLockService",
    "PlayVerdict",
    "ReconcileResult",
    "Verdict",
]
