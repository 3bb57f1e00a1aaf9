"""Combine both release-name parsers into one structural record."""

from vidserve.database.models import MediaKind

from .classifier import classify_release
from .models import ParsedRelease, ReleaseClassification, ReleaseTokens
from .tokens import tokenize_release


def parse_release(file_name: str) -> ParsedRelease:
    classification = classify_release(file_name)
    tokens = tokenize_release(file_name, is_series=classification.kind is MediaKind.SERIES)
    return merge_release(classification, tokens, file_name)


def merge_release(
    classification: ReleaseClassification,
    tokens: ReleaseTokens,
    file_name: str,
) -> ParsedRelease:
    """
    Merge the two parses field by field.

    Season and episode, source and release group prefer the classification.
    Title, year, resolution and audio prefer the token extraction. Languages
    and flags are unions. The result depends only on the inputs.
    """
    dub_codec, dub_channels = _split_dub(classification.dub)

    edition_keys = [key for key, enabled in tokens.edition.items() if enabled]

    flags = list(classification.flags)
    if tokens.revision.version > 1:
        flags.append("PROPER")
    flags += edition_keys

    return ParsedRelease(
        title=tokens.title or classification.title or file_name,
        kind=classification.kind,
        year=tokens.year or classification.year,
        season=_first(classification.season, tokens.seasons),
        episode=_first(classification.episode, tokens.episodes),
        resolution=tokens.resolution or classification.resolution,
        source=classification.source or (tokens.sources[0] if tokens.sources else None),
        video_codec=classification.encoding or tokens.video_codec,
        audio_codec=tokens.audio_codec or dub_codec,
        audio_channels=tokens.audio_channels or dub_channels,
        languages=_dedupe(classification.languages + tokens.languages),
        release_group=classification.group or tokens.group,
        flags=_dedupe([flag.upper() for flag in flags]),
        edition=", ".join(edition_keys) or None,
    )


def _first(preferred: int | None, fallback: list[int]) -> int | None:
    if preferred is not None:
        return preferred
    return fallback[0] if fallback else None


def _split_dub(dub: str | None) -> tuple[str | None, str | None]:
    if not dub:
        return None, None
    codec, _, channels = dub.partition("-")
    return codec or None, channels or None


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))
