"""
Semantic Matcher - rank catalog rows against a free-text query

The catalog is serialized into a compact numbered list, sent once to a ranking
model, and the ids it returns are mapped back onto the original rows. Ranking
is best effort: any failure yields an empty list and the caller shows the
unranked rows instead.
"""

import json
import logging
import re
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

import httpx
from openai import AsyncOpenAI, OpenAIError

from heysheets.core.config import Settings
from heysheets.services.functions.rows import row_name, row_value

logger = logging.getLogger("heysheets.semantic_matcher")

MatchKind = Literal["service", "product"]

_FIELD_LIMIT = 80
_DESCRIPTION_LIMIT = 160


class RankingError(Exception):
    """Raised by a RankingClient when the ranking call cannot produce ids."""
    pass


class RankingClient(Protocol):
    async def rank(self, query: str, candidates: str, kind: str) -> List[str]:
        """Return candidate ids, most relevant first. Raise RankingError on failure."""
        ...


def _clip(value: Any, limit: int) -> str:
    text = " ".join(str(value).split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def serialize_candidate(candidate_id: str, row: Dict[str, Any]) -> str:
    parts = [f"{candidate_id}. {_clip(row_name(row) or 'Unnamed', _FIELD_LIMIT)}"]
    for label, key, limit in (
        ("type", "_type", _FIELD_LIMIT),
        ("category", "category", _FIELD_LIMIT),
        ("tags", "tags", _FIELD_LIMIT),
        ("price", "price", _FIELD_LIMIT),
        ("description", "description", _DESCRIPTION_LIMIT),
    ):
        value = row_value(row, key)
        if value not in (None, ""):
            parts.append(f"{label}: {_clip(value, limit)}")
    return " | ".join(parts)


def parse_ranked_ids(content: str) -> List[str]:
    """
    Pull the id list out of a model reply.

    Accepts {"ids": [...]} with or without markdown fences, // and /* */
    comments, or trailing commas.
    """
    json_match = re.search(r"\{[\s\S]*\}", content or "")
    if not json_match:
        raise RankingError("Ranking reply contained no JSON object")

    clean_json = json_match.group(0)
    clean_json = re.sub(r"//[^\n]*", "", clean_json)
    clean_json = re.sub(r"/\*[\s\S]*?\*/", "", clean_json)
    clean_json = re.sub(r",\s*}", "}", clean_json)
    clean_json = re.sub(r",\s*]", "]", clean_json)

    try:
        parsed = json.loads(clean_json)
    except ValueError as e:
        raise RankingError(f"Ranking reply was not valid JSON: {e}") from e

    ids = parsed.get("ids") if isinstance(parsed, dict) else None
    if not isinstance(ids, list):
        raise RankingError("Ranking reply has no ids list")
    return [str(i).strip() for i in ids]


class OpenRouterRankingClient:
    """Ranking collaborator backed by any OpenAI-compatible API, OpenRouter by default."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str,
        timeout: float = 20.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._http_client = http_client
        self._client: Optional[AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenRouterRankingClient":
        return cls(
            base_url=settings.RANKING_BASE_URL,
            api_key=settings.RANKING_API_KEY,
            model=settings.RANKING_MODEL,
            timeout=settings.RANKING_REQUEST_TIMEOUT,
        )

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Ranking is best effort; a slow or failing ranker is skipped, not retried
            self._client = AsyncOpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def build_prompt(self, query: str, candidates: str, kind: str) -> str:
        return f"""Rank the {kind}s below by how well they match the user's request.

User request: "{query}"

Available {kind}s (id. name | details):
{candidates}

MATCHING RULES:
- Semantic similarity counts: "sake" matches "sake bottle building"
- Synonyms count: "beginner" = "intro" = "starter" = "first time"
- Weigh the name highest, then tags, category and description
- Leave out {kind}s that are clearly unrelated

Return JSON only, most relevant first:
{{"ids": ["3", "0", "7"]}}"""

    async def rank(self, query: str, candidates: str, kind: str) -> List[str]:
        if not self.api_key:
            raise RankingError("Ranking API key not configured")

        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self.build_prompt(query, candidates, kind)}],
                max_tokens=500,
                temperature=0.2,
            )
        except OpenAIError as e:
            raise RankingError(f"Ranking request failed: {e}") from e

        if not response.choices:
            raise RankingError("Ranking response has no choices")
        content = response.choices[0].message.content
        if not content:
            raise RankingError("Ranking reply was empty")

        return parse_ranked_ids(content)


class SemanticMatcher:
    """
    Narrow catalog rows to the ones relevant to a query.

    Usage:
        matcher = SemanticMatcher(OpenRouterRankingClient.from_settings(settings))
        ranked = await matcher.match("pottery for beginners", rows, "service")
        rows_to_show = ranked or rows
    """

    def __init__(
        self,
        ranking_client: RankingClient,
        max_candidates: int = 50,
        max_payload_chars: int = 12000,
    ):
        self.ranking_client = ranking_client
        self.max_candidates = max_candidates
        self.max_payload_chars = max_payload_chars

    @classmethod
    def from_settings(cls, settings: Settings) -> "SemanticMatcher":
        return cls(
            OpenRouterRankingClient.from_settings(settings),
            max_candidates=settings.RANKING_MAX_CANDIDATES,
            max_payload_chars=settings.RANKING_MAX_PAYLOAD_CHARS,
        )

    def build_candidates(self, rows: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Serialize up to max_candidates rows, stopping before the payload ceiling.

        Returns {"text": str, "ids": {candidate_id: row}}.
        """
        lines: List[str] = []
        by_id: Dict[str, Dict[str, Any]] = {}
        size = 0
        for index, row in enumerate(rows[: self.max_candidates]):
            candidate_id = str(index)
            line = serialize_candidate(candidate_id, row)
            if lines and size + len(line) + 1 > self.max_payload_chars:
                break
            lines.append(line[: self.max_payload_chars])
            by_id[candidate_id] = row
            size += len(line) + 1
        return {"text": "\n".join(lines), "ids": by_id}

    async def match(self, query: str, rows: Sequence[Dict[str, Any]], kind: MatchKind) -> List[Dict[str, Any]]:
        """
        Rank rows against query, most relevant first.

        Returns an empty list on any failure; the caller falls back to the unranked rows.
        """
        if not query or not query.strip() or not rows:
            return []

        candidates = self.build_candidates(rows)
        if len(rows) > len(candidates["ids"]):
            logger.info(f"Ranking the first {len(candidates['ids'])} of {len(rows)} {kind}s")

        try:
            ranked_ids = await self.ranking_client.rank(query.strip(), candidates["text"], kind)
        except Exception as e:
            logger.warning(f"Semantic ranking failed, falling back to unranked {kind}s: {e}")
            return []

        ranked: List[Dict[str, Any]] = []
        seen = set()
        for candidate_id in ranked_ids:
            row = candidates["ids"].get(candidate_id)
            if row is None or candidate_id in seen:
                continue
            seen.add(candidate_id)
            ranked.append(row)

        logger.debug(f"Ranked {len(ranked)} of {len(candidates['ids'])} {kind}s for query {query!r}")
        return ranked

    async def close(self) -> None:
        close = getattr(self.ranking_client, "close", None)
        if close is not None:
            await close()
