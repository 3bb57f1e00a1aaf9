"""Detailed token extraction from release names.

Works on the classification from the first pass: series names are cut at the
episode marker, movie names at the release year.
"""

import re

from .models import ReleaseTokens, Revision
from .patterns import (
    FRAME_SIZE,
    LANGUAGE_PATTERNS,
    LEADING_TAGS,
    RESOLUTION,
    bounded,
    clean_title,
    find_channels,
    find_group,
    find_year,
    first_marker,
    strip_extension,
)

EPISODE_RUN = bounded(r"S(\d{1,2})[ ._-]?E(\d{1,3})((?:[ ._]?-?[ ._]?E\d{1,3})*)(?:-(\d{1,3}))?")
CROSSREF = bounded(r"(\d{1,2})x(\d{2,3})")
SEASON_EPISODE_WORDS = bounded(r"Season[ ._-]?(\d{1,2})[ ._-]*Episode[ ._-]?(\d{1,3})")
SEASON_RANGE = bounded(r"S(\d{1,2})(?:[ ._]?-[ ._]?S?(\d{1,2}))?")
SEASON_WORD = bounded(r"Season[ ._-]?(\d{1,2})")

SOURCES: dict[str, re.Pattern[str]] = {
    "BLURAY": bounded(r"blu-?ray|bd-?rip|br-?rip|bd-?remux|bd25|bd50|uhd-?bluray"),
    "WEBDL": bounded(r"web-?dl|web|amzn|nf|dsnp|hmax|atvp"),
    "WEBRIP": bounded(r"web-?rip"),
    "TV": bounded(r"hdtv|pdtv|sdtv|dsr|tvrip"),
    "DVD": bounded(r"dvd(?:-?rip|-?r|5|9)?"),
    "CAM": bounded(r"cam(?:rip)?|hdcam"),
    "TELESYNC": bounded(r"telesync|hdts"),
    "SCREENER": bounded(r"scr|screener|dvdscr"),
}

VIDEO_CODECS: list[tuple[str, re.Pattern[str]]] = [
    ("x265", bounded(r"x265")),
    ("x264", bounded(r"x264")),
    ("h265", bounded(r"h\.?265|hevc")),
    ("h264", bounded(r"h\.?264|avc")),
    ("XVID", bounded(r"xvid")),
    ("DIVX", bounded(r"divx")),
    ("AV1", bounded(r"av1")),
    ("VP9", bounded(r"vp9")),
    ("MPEG2", bounded(r"mpeg-?2")),
]

AUDIO_CODECS: list[tuple[str, re.Pattern[str]]] = [
    ("TrueHD", re.compile(r"truehd", re.IGNORECASE)),
    ("DTS-HD", re.compile(r"(?<![A-Za-z0-9])dts[ .-]?(?:hd|x|ma)", re.IGNORECASE)),
    ("DTS", re.compile(r"(?<![A-Za-z0-9])dts", re.IGNORECASE)),
    ("Dolby Digital Plus", re.compile(r"(?<![A-Za-z0-9])(?:e-?ac-?3|ddp|dd\+)", re.IGNORECASE)),
    ("Dolby Digital", re.compile(r"(?<![A-Za-z0-9])(?:ac-?3|dd)(?=[0-9 ._-]|$)", re.IGNORECASE)),
    ("AAC", re.compile(r"(?<![A-Za-z0-9])aac", re.IGNORECASE)),
    ("FLAC", bounded(r"flac")),
    ("Opus", bounded(r"opus")),
    ("MP3", bounded(r"mp3")),
    ("PCM", bounded(r"l?pcm")),
]

EDITIONS: dict[str, re.Pattern[str]] = {
    "extended": bounded(r"extended(?:[ ._-]?(?:cut|edition))?"),
    "theatrical": bounded(r"theatrical"),
    "directors": bounded(r"director'?s[ ._-]?cut"),
    "unrated": bounded(r"unrated"),
    "remastered": bounded(r"remastered"),
    "imax": bounded(r"imax"),
    "criterion": bounded(r"criterion"),
    "limited": bounded(r"limited"),
    "internal": bounded(r"internal"),
    "uncut": bounded(r"uncut"),
    "hdr": bounded(r"hdr(?:10)?\+?"),
    "dolby_vision": bounded(r"dv|dovi|dolby[ ._-]?vision"),
    "three_d": bounded(r"3d|hsbs|h-sbs|half-sbs"),
}

PROPER = bounded(r"proper|repack|rerip")
VERSION = bounded(r"v([2-9])")
REAL = bounded(r"real")

QUALITY_MARKERS = [
    RESOLUTION,
    FRAME_SIZE,
    *SOURCES.values(),
    *(p for _, p in VIDEO_CODECS),
    *EDITIONS.values(),
    PROPER,
]


def tokenize_release(file_name: str, is_series: bool = False) -> ReleaseTokens:
    stem = strip_extension(file_name)

    leading = LEADING_TAGS.match(stem)
    leading_group = None
    if leading:
        leading_group = leading.group(1).strip() or None
        stem = stem[leading.end():]

    seasons: list[int] = []
    episodes: list[int] = []
    series_start = None
    if is_series:
        seasons, episodes, series_start = _series_numbers(stem)

    year_match = find_year(stem)
    anchors = [pos for pos in (series_start, year_match.start() if year_match else None) if pos]
    if anchors:
        title_end = min(anchors)
    else:
        title_end = first_marker(stem, QUALITY_MARKERS) or len(stem)

    group_match = find_group(stem)
    if group_match and group_match.start() <= title_end:
        group_match = None
    tail = stem[title_end:]

    return ReleaseTokens(
        title=_clean(stem[:title_end]),
        year=int(year_match.group(1)) if year_match else None,
        seasons=seasons,
        episodes=episodes,
        resolution=_resolution(tail),
        sources=[name for name, pattern in SOURCES.items() if pattern.search(tail)],
        video_codec=_first_label(VIDEO_CODECS, tail),
        audio_codec=_first_label(AUDIO_CODECS, tail),
        audio_channels=find_channels(tail),
        languages=[name for name, p in LANGUAGE_PATTERNS.items() if p.search(tail)],
        group=group_match.group(1) if group_match else leading_group,
        revision=_revision(tail),
        edition={key: bool(pattern.search(tail)) for key, pattern in EDITIONS.items()},
    )


def _series_numbers(stem: str) -> tuple[list[int], list[int], int | None]:
    """Return (seasons, episodes, marker position) for a series name."""
    match = EPISODE_RUN.search(stem)
    if match:
        first = int(match.group(2))
        extra = [int(n) for n in re.findall(r"\d{1,3}", match.group(3))]
        if match.group(4):
            return [int(match.group(1))], list(range(first, int(match.group(4)) + 1)), match.start()
        if extra and match.group(3).lstrip(" ._").startswith("-"):
            return [int(match.group(1))], list(range(first, extra[-1] + 1)), match.start()
        return [int(match.group(1))], [first, *extra], match.start()

    for pattern in (CROSSREF, SEASON_EPISODE_WORDS):
        match = pattern.search(stem)
        if match:
            return [int(match.group(1))], [int(match.group(2))], match.start()

    match = SEASON_RANGE.search(stem)
    if match:
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else start
        return list(range(start, end + 1)), [], match.start()

    match = SEASON_WORD.search(stem)
    if match:
        return [int(match.group(1))], [], match.start()

    return [], [], None


def _clean(text: str) -> str | None:
    title = clean_title(text)
    if title is None:
        return None
    # "Title (" left over when the year sat inside brackets
    title = re.sub(r"[\s(\[]+$", "", title)
    return title or None


def _resolution(text: str) -> str | None:
    match = RESOLUTION.search(text)
    if match:
        return "2160p" if match.group(2) else f"{match.group(1)}p"
    match = FRAME_SIZE.search(text)
    if match:
        return f"{match.group(1)}p"
    return None


def _first_label(table: list[tuple[str, re.Pattern[str]]], text: str) -> str | None:
    for label, pattern in table:
        if pattern.search(text):
            return label
    return None


def _revision(text: str) -> Revision:
    revision = Revision()
    version = VERSION.search(text)
    if version:
        revision.version = int(version.group(1))
    elif PROPER.search(text):
        revision.version = 2
    if REAL.search(text):
        revision.real = 1
    return revision
