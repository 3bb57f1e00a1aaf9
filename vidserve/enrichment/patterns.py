"""Regex building blocks shared by the release-name parsers."""

import re

VIDEO_EXTENSIONS = {
    ".mkv",
    ".mp4",
    ".m4v",
    ".avi",
    ".mov",
    ".wmv",
    ".mpg",
    ".mpeg",
    ".ts",
    ".m2ts",
    ".webm",
    ".flv",
}

# Name tokens are delimited by anything that is not a letter or digit.
_EDGE = r"(?<![A-Za-z0-9]){}(?![A-Za-z0-9])"


def bounded(pattern: str) -> re.Pattern[str]:
    """Compile ``pattern`` so it only matches whole name tokens, case-insensitively."""
    return re.compile(_EDGE.format(f"(?:{pattern})"), re.IGNORECASE)


YEAR = bounded(r"(19\d{2}|20\d{2})")
RESOLUTION = bounded(r"(\d{3,4})[pi]|(4k|uhd)")
FRAME_SIZE = bounded(r"\d{3,4}x(\d{3,4})")
AUDIO_CHANNELS = re.compile(r"(?<![0-9])([1-9])[ .]([01])(?![0-9])")
GROUP_SUFFIX = re.compile(r"-([A-Za-z0-9]+)(?:\[[^\]]*\])?$")
LEADING_TAGS = re.compile(r"^(?:\s*\[([^\]]*)\])+\s*")

NOT_GROUPS = {"DL", "RIP", "HD", "SD", "X264", "X265", "H264", "H265", "AAC", "AC3", "DTS"}

# Canonical language names and the tokens that announce them.
LANGUAGES: dict[str, str] = {
    "English": r"english|eng",
    "French": r"french|truefrench|vff|vfq|vf2|vostfr",
    "German": r"german|ger|deutsch",
    "Spanish": r"spanish|esp|castellano|latino",
    "Italian": r"italian|ita",
    "Japanese": r"japanese|jpn|jap",
    "Korean": r"korean|kor",
    "Russian": r"russian|rus",
    "Portuguese": r"portuguese|por|dublado",
    "Dutch": r"dutch|nl",
    "Swedish": r"swedish|swe",
    "Hindi": r"hindi",
    "Chinese": r"chinese|chi|mandarin|cantonese",
}


def strip_extension(file_name: str) -> str:
    dot_index = file_name.rfind(".")
    if dot_index > 0 and file_name[dot_index:].lower() in VIDEO_EXTENSIONS:
        return file_name[:dot_index]
    return file_name


def find_year(text: str) -> re.Match[str] | None:
    """Return the last year token that does not start the name.

    A leading year is treated as part of the title ("2012", "1917").
    """
    candidates = [m for m in YEAR.finditer(text) if m.start() > 0]
    return candidates[-1] if candidates else None


def find_group(stem: str) -> re.Match[str] | None:
    match = GROUP_SUFFIX.search(stem)
    if not match or match.group(1).upper() in NOT_GROUPS:
        return None
    return match


def first_marker(text: str, patterns: list[re.Pattern[str]]) -> int | None:
    """Position of the earliest match of any pattern, ignoring matches at 0."""
    positions = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            if match.start() > 0:
                positions.append(match.start())
                break
    return min(positions) if positions else None


def clean_title(text: str) -> str | None:
    title = re.sub(r"[._]+", " ", text)
    title = re.sub(r"\s+", " ", title)
    title = title.strip(" -([{")
    return title or None


def find_channels(text: str) -> str | None:
    match = AUDIO_CHANNELS.search(text)
    if not match:
        return None
    return f"{match.group(1)}.{match.group(2)}"


def find_languages(text: str, table: dict[str, re.Pattern[str]]) -> list[str]:
    return [name for name, pattern in table.items() if pattern.search(text)]


def compile_table(table: dict[str, str]) -> dict[str, re.Pattern[str]]:
    return {name: bounded(pattern) for name, pattern in table.items()}


LANGUAGE_PATTERNS = compile_table(LANGUAGES)
