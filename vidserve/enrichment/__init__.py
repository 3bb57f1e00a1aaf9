"""Metadata enrichment: release-name parsing and catalog identity lookup."""

from .classifier import classify_release
from .identity import IdentityResolver, ImdbSuggestResolver
from .merge import merge_release, parse_release
from .models import (
    EnrichedInfo,
    IdentityMatch,
    ParsedRelease,
    ReleaseClassification,
    ReleaseTokens,
    Revision,
)
from .pipeline import EnrichmentPipeline
from .tokens import tokenize_release

__all__ = [
    "classify_release",
    "tokenize_release",
    "merge_release",
    "parse_release",
    "EnrichedInfo",
    "IdentityMatch",
    "ParsedRelease",
    "ReleaseClassification",
    "ReleaseTokens",
    "Revision",
    "IdentityResolver",
    "ImdbSuggestResolver",
    "EnrichmentPipeline",
]
