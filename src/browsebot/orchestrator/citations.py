"""Citation envelope parsing.

With citations enabled the model is asked to reply with
``{"answer": str, "citations": [{"id": int, "source_quote": str}, ...]}``
and to mark supported statements with ``[id]`` in the answer text.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from browsebot.errors import MalformedCitationError

logger = logging.getLogger(__name__)

_MARKER = re.compile(r"\[(\d+)\]")


@dataclass(slots=True, frozen=True)
class Citation:
    id: int
    source_quote: str


@dataclass(slots=True)
class ParsedAnswer:
    answer: str
    citations: list[Citation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "citations": [{"id": c.id, "source_quote": c.source_quote} for c in self.citations],
        }

    def referenced_ids(self) -> list[int]:
        """Marker ids in order of first appearance in the answer text."""
        seen: list[int] = []
        for match in _MARKER.finditer(self.answer):
            value = int(match.group(1))
            if value not in seen:
                seen.append(value)
        return seen

    def citation_for(self, citation_id: int) -> Citation | None:
        for citation in self.citations:
            if citation.id == citation_id:
                return citation
        return None


def _coerce_citations(raw: Any) -> list[Citation]:
    """Keep well-formed entries; the first entry wins when ids repeat."""
    if not isinstance(raw, list):
        return []
    citations: list[Citation] = []
    seen: set[int] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        quote = item.get("source_quote")
        try:
            citation_id = int(item.get("id"))
        except (TypeError, ValueError):
            continue
        if not isinstance(quote, str) or citation_id in seen:
            continue
        seen.add(citation_id)
        citations.append(Citation(id=citation_id, source_quote=quote))
    return citations


def decode_citation_envelope(text: str) -> ParsedAnswer:
    """Strict decode; raises MalformedCitationError."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedCitationError(f"citation envelope is not JSON: {exc}") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("answer"), str):
        raise MalformedCitationError("citation envelope missing string 'answer'")
    return ParsedAnswer(answer=payload["answer"], citations=_coerce_citations(payload.get("citations")))


def parse_model_response_text(text: str, *, citations_enabled: bool = True) -> ParsedAnswer:
    """Never raises: anything that is not a valid envelope becomes a plain answer."""
    if not citations_enabled:
        return ParsedAnswer(answer=text)
    try:
        return decode_citation_envelope(text)
    except MalformedCitationError as exc:
        logger.warning("Failed to parse model text as citation envelope: %s", exc)
        return ParsedAnswer(answer=text)
