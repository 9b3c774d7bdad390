"""核心业务逻辑."""

from feeddigest.core.batcher import make_batches
from feeddigest.core.eligibility import (
    EligibilityClassifier,
    EligibilityVerdict,
    VerdictKind,
    annotate_skipped,
)
from feeddigest.core.processor import DigestProcessor, FeedDigestStats
from feeddigest.core.repository import ConfigStore, EntryRepository, FeedRepository
from feeddigest.core.writer import ArtifactWriter

__all__ = [
    "ArtifactWriter",
    "ConfigStore",
    "DigestProcessor",
    "EligibilityClassifier",
    "EligibilityVerdict",
    "EntryRepository",
    "FeedDigestStats",
    "FeedRepository",
    "VerdictKind",
    "annotate_skipped",
    "make_batches",
]
