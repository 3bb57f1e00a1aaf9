"""External identity lookup for parsed titles."""

import difflib
import logging
import re
from typing import Protocol
from urllib.parse import quote

import requests

from vidserve.database.models import MediaKind
from vidserve.errors import EnrichmentError

from .models import IdentityMatch

logger = logging.getLogger(__name__)

SUGGEST_URL = "https://v3.sg.media-imdb.com/suggestion"

# IMDb title types accepted for each parsed kind
TITLE_TYPES = {
    MediaKind.MOVIE: {"movie", "tvMovie", "video"},
    MediaKind.SERIES: {"tvSeries", "tvMiniSeries"},
}


class IdentityResolver(Protocol):
    def resolve(self, title: str, year: int | None, kind: MediaKind) -> IdentityMatch | None:
        """Return the best catalog match, None when nothing matches.

        Raises EnrichmentError when the catalog cannot be reached.
        """


class ImdbSuggestResolver:
    """Resolves titles against the public IMDb suggestion endpoint."""

    def __init__(
        self,
        session: requests.Session | None = None,
        base_url: str = SUGGEST_URL,
        timeout: float = 10.0,
        min_similarity: float = 0.6,
    ):
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.min_similarity = min_similarity

    def resolve(self, title: str, year: int | None, kind: MediaKind) -> IdentityMatch | None:
        candidates = self._suggest(title)

        accepted = TITLE_TYPES.get(kind, set())
        best: IdentityMatch | None = None
        for candidate in candidates:
            match = self._score(candidate, title, year, accepted)
            if match and (best is None or match.similarity > best.similarity):
                best = match

        if best is None:
            logger.debug("No catalog match for %r (%s, %s)", title, year, kind.value)
        return best

    def _suggest(self, title: str) -> list[dict]:
        query = _normalize(title)
        if not query:
            return []

        first = query[0] if query[0].isalnum() else "x"
        url = f"{self.base_url}/{first}/{quote(query)}.json"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise EnrichmentError(f"Catalog lookup failed for {title!r}: {e}") from e
        except ValueError as e:
            raise EnrichmentError(f"Catalog returned invalid JSON for {title!r}") from e

        return payload.get("d", []) if isinstance(payload, dict) else []

    def _score(
        self,
        candidate: dict,
        title: str,
        year: int | None,
        accepted: set[str],
    ) -> IdentityMatch | None:
        imdb_id = candidate.get("id", "")
        name = candidate.get("l")
        if not imdb_id.startswith("tt") or not name:
            return None

        title_type = candidate.get("qid") or candidate.get("q")
        if accepted and title_type not in accepted:
            return None

        candidate_year = candidate.get("y")
        if year and candidate_year and abs(candidate_year - year) > 1:
            return None

        similarity = difflib.SequenceMatcher(None, _normalize(title), _normalize(name)).ratio()
        if year and candidate_year == year:
            similarity = min(1.0, similarity + 0.1)
        if similarity < self.min_similarity:
            return None

        return IdentityMatch(
            imdb_id=imdb_id,
            name=name,
            year=candidate_year,
            type=title_type,
            year_range=candidate.get("yr"),
            image=candidate.get("i"),
            starring=candidate.get("s"),
            similarity=round(similarity, 4),
        )


def _normalize(text: str) -> str:
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()
