"""First-pass release name classification (movie vs. series).

Markers are looked up anywhere in the name. The title is whatever precedes the
series marker or the year, or failing both, the first quality tag.
"""

import re

from vidserve.database.models import MediaKind

from .models import ReleaseClassification
from .patterns import (
    LANGUAGE_PATTERNS,
    RESOLUTION,
    bounded,
    clean_title,
    find_channels,
    find_group,
    find_year,
    first_marker,
    strip_extension,
)

# (pattern, season group, episode group), most specific first
SERIES_PATTERNS: list[tuple[re.Pattern[str], int, int | None]] = [
    (bounded(r"S(\d{1,2})[ ._-]?E(\d{1,3})(?:[ ._-]?-?E\d{1,3})*"), 1, 2),
    (bounded(r"(\d{1,2})x(\d{2,3})"), 1, 2),
    (bounded(r"Season[ ._-]?(\d{1,2})[ ._-]*Episode[ ._-]?(\d{1,3})"), 1, 2),
    (bounded(r"S(\d{1,2})"), 1, None),
    (bounded(r"Season[ ._-]?(\d{1,2})"), 1, None),
]

SOURCES: list[tuple[str, re.Pattern[str]]] = [
    ("BDRIP", bounded(r"bd-?rip|br-?rip")),
    ("BLURAY", bounded(r"blu-?ray|bd-?remux|bd25|bd50")),
    ("WEB-DL", bounded(r"web-?dl")),
    ("WEBRIP", bounded(r"web-?rip")),
    ("WEB", bounded(r"web")),
    ("HDTV", bounded(r"hdtv|pdtv")),
    ("DVDRIP", bounded(r"dvd-?rip")),
    ("DVD", bounded(r"dvd(?:-?r|5|9)?")),
    ("HDRIP", bounded(r"hd-?rip")),
    ("CAM", bounded(r"cam(?:rip)?|hdcam")),
    ("TS", bounded(r"telesync|hdts")),
]

ENCODINGS: list[tuple[str, re.Pattern[str]]] = [
    ("x264", bounded(r"x264")),
    ("x265", bounded(r"x265")),
    ("h264", bounded(r"h\.?264|avc")),
    ("h265", bounded(r"h\.?265|hevc")),
    ("XviD", bounded(r"xvid")),
    ("DivX", bounded(r"divx")),
    ("AV1", bounded(r"av1")),
]

AUDIO: list[tuple[str, re.Pattern[str]]] = [
    ("TRUEHD", re.compile(r"truehd", re.IGNORECASE)),
    ("EAC3", re.compile(r"(?<![A-Za-z0-9])(?:e-?ac-?3|ddp|dd\+)", re.IGNORECASE)),
    ("DTS", re.compile(r"(?<![A-Za-z0-9])dts", re.IGNORECASE)),
    ("AC3", re.compile(r"(?<![A-Za-z0-9])(?:ac-?3|dd)(?=[0-9 ._-]|$)", re.IGNORECASE)),
    ("AAC", re.compile(r"(?<![A-Za-z0-9])aac", re.IGNORECASE)),
    ("FLAC", bounded(r"flac")),
    ("MP3", bounded(r"mp3")),
]

FLAGS: list[tuple[str, re.Pattern[str]]] = [
    ("PROPER", bounded(r"proper")),
    ("REPACK", bounded(r"repack|rerip")),
    ("LIMITED", bounded(r"limited")),
    ("INTERNAL", bounded(r"internal|int")),
    ("EXTENDED", bounded(r"extended")),
    ("UNRATED", bounded(r"unrated")),
    ("REMASTERED", bounded(r"remastered")),
    ("UNCUT", bounded(r"uncut")),
    ("DIRECTORS", bounded(r"director'?s[ ._-]?cut")),
    ("DUBBED", bounded(r"dubbed")),
    ("SUBBED", bounded(r"subbed|hardsub|hc")),
]

MULTI_LANGUAGE = bounded(r"multi")


def classify_release(file_name: str) -> ReleaseClassification:
    stem = strip_extension(file_name)

    kind = MediaKind.MOVIE
    season = episode = None
    series_start = None
    for pattern, season_group, episode_group in SERIES_PATTERNS:
        match = pattern.search(stem)
        if match and match.start() > 0:
            kind = MediaKind.SERIES
            season = int(match.group(season_group))
            episode = int(match.group(episode_group)) if episode_group else None
            series_start = match.start()
            break

    year_match = find_year(stem)
    group_match = find_group(stem)

    title_end = _title_end(stem, series_start, year_match)
    if group_match and group_match.start() <= title_end:
        group_match = None
    tail = stem[title_end:]

    languages = []
    if MULTI_LANGUAGE.search(tail):
        languages.append("Multi")
    languages += [name for name, p in LANGUAGE_PATTERNS.items() if p.search(tail)]

    return ReleaseClassification(
        kind=kind,
        title=clean_title(stem[:title_end]),
        year=int(year_match.group(1)) if year_match else None,
        season=season,
        episode=episode,
        resolution=_resolution(tail),
        source=_first_label(SOURCES, tail),
        encoding=_first_label(ENCODINGS, tail),
        dub=_dub(tail),
        languages=languages,
        group=group_match.group(1) if group_match else None,
        flags=[label for label, p in FLAGS if p.search(tail)],
    )


def _title_end(
    stem: str,
    series_start: int | None,
    year_match: re.Match[str] | None,
) -> int:
    """The title runs up to the series marker or year, else the first quality tag."""
    anchors = [pos for pos in (series_start, year_match.start() if year_match else None) if pos]
    if anchors:
        return min(anchors)

    markers = [
        RESOLUTION,
        MULTI_LANGUAGE,
        *(p for _, p in SOURCES),
        *(p for _, p in ENCODINGS),
        *(p for _, p in FLAGS),
    ]
    return first_marker(stem, markers) or len(stem)


def _first_label(table: list[tuple[str, re.Pattern[str]]], text: str) -> str | None:
    for label, pattern in table:
        if pattern.search(text):
            return label
    return None


def _resolution(text: str) -> str | None:
    match = RESOLUTION.search(text)
    if not match:
        return None
    if match.group(2):
        return "2160p"
    return f"{match.group(1)}p"


def _dub(text: str) -> str | None:
    codec = _first_label(AUDIO, text)
    if not codec:
        return None
    channels = find_channels(text)
    return f"{codec}-{channels}" if channels else codec
