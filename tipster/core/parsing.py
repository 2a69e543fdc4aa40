"""Extract prediction candidates from free-form model output.

Models are asked for JSON but routinely wrap it in prose, markdown fences or
chain-of-thought blocks. The parser runs an ordered cascade of small pure
strategies, each mapping text to a decoded JSON value or None, and returns the
first result that normalizes to at least one candidate object.

The parser only extracts structure. Whether a candidate is a valid prediction
is decided by tipster.core.validation, so an object like {"type": "object"}
parses successfully and is rejected later.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from tipster.core import constants

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Optional[Any]]

THINKING_TAGS = ("think", "thinking", "reasoning")

_CLOSED_THINKING_RE = re.compile(
    r"<(think|thinking|reasoning)\b[^>]*>.*?</\1\s*>", re.DOTALL | re.IGNORECASE
)
_OPEN_THINKING_RE = re.compile(r"<(think|thinking|reasoning)\b[^>]*>", re.IGNORECASE)
_ORPHAN_CLOSE_RE = re.compile(r"</(think|thinking|reasoning)\s*>", re.IGNORECASE)
_FENCED_BLOCK_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
_OPEN_BRACKET_RE = re.compile(r"[\[{]")
_CJK_RE = re.compile(r"[\u3400-\u4DBF\u4E00-\u9FFF\u3040-\u30FF\uAC00-\uD7AF]")

# Keys a model may wrap its list of predictions in
CONTAINER_KEYS = ("predictions", "results", "matches", "data")

KEY_ALIASES: Dict[str, Tuple[str, ...]] = {
    "match_id": ("matchId", "matchID", "id", "fixture_id"),
    "home_score": ("homeScore", "home", "home_goals", "homeGoals"),
    "away_score": ("awayScore", "away", "away_goals", "awayGoals"),
}

SCORE_KEYS = frozenset(
    {"home_score", "away_score"} | set(KEY_ALIASES["home_score"]) | set(KEY_ALIASES["away_score"])
)

# Upper bound on bracket positions tried by the scan strategy
MAX_SCAN_ATTEMPTS = 200

_decoder = json.JSONDecoder()


@dataclass
class ParseSuccess:
    """Candidates extracted from a response, plus the strategy that found them."""

    candidates: List[Dict[str, Any]]
    strategy: str
    ok: bool = field(default=True, init=False)


@dataclass
class ParseFailure:
    """No candidate could be extracted."""

    reason: str
    raw_sample: str
    ok: bool = field(default=False, init=False)

ParseResult = Union[ParseSuccess, ParseFailure]


def truncate_sample(text: Optional[str], limit: Optional[int] = None) -> str:
    """Bound a raw output sample so failures never carry the whole payload."""
    if not text:
        return ""
    limit = constants.RAW_SAMPLE_LENGTH if limit is None else limit
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def strip_thinking_tags(text: str) -> str:
    """Remove chain-of-thought blocks emitted by reasoning models.

    Handles closed <think>/<thinking>/<reasoning> blocks, output whose opening
    tag was swallowed by the API (everything up to a stray closing tag is
    reasoning), and a trailing block left unclosed by a truncated response.
    """
    stripped = _CLOSED_THINKING_RE.sub("", text)

    orphan_closes = list(_ORPHAN_CLOSE_RE.finditer(stripped))
    if orphan_closes:
        stripped = stripped[orphan_closes[-1].end():]

    unclosed = _OPEN_THINKING_RE.search(stripped)
    if unclosed:
        stripped = stripped[: unclosed.start()]

    return stripped.strip()


# =============================================================================
# Strategies
# =============================================================================


def parse_direct(text: str) -> Optional[Any]:
    """Whole-string JSON parse."""
    candidate = text.strip()
    if not candidate or candidate[0] not in "[{":
        return None
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def parse_fenced_block(text: str) -> Optional[Any]:
    """JSON inside a ``` or ```json fenced code block."""
    for match in _FENCED_BLOCK_RE.finditer(text):
        value = parse_direct(match.group(1))
        if value is not None:
            return value
    return None


def _resembles_prediction(value: Any) -> bool:
    if isinstance(value, dict):
        if SCORE_KEYS & value.keys():
            return True
        return any(
            isinstance(value.get(key), list) and _resembles_prediction(value[key])
            for key in CONTAINER_KEYS
        )
    if isinstance(value, list):
        return any(_resembles_prediction(item) for item in value)
    return False


def parse_bracket_scan(text: str) -> Optional[Any]:
    """Scan for balanced {...} or [...] structures embedded in prose.

    Prefers the first structure that looks like a prediction (has score keys);
    otherwise returns the first object or array that decodes at all. Brackets
    inside an already decoded structure are skipped and do not use up the
    MAX_SCAN_ATTEMPTS decode budget.
    """
    first_decoded = None
    resume_at = 0
    attempts = 0
    for match in _OPEN_BRACKET_RE.finditer(text):
        start = match.start()
        if start < resume_at:
            continue
        if attempts >= MAX_SCAN_ATTEMPTS:
            break
        attempts += 1
        try:
            value, end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            continue
        if not isinstance(value, (dict, list)):
            continue
        if _resembles_prediction(value):
            return value
        if first_decoded is None:
            first_decoded = value
        resume_at = end
    return first_decoded


STRATEGIES: Sequence[Tuple[str, Strategy]] = (
    ("direct", parse_direct),
    ("fenced_block", parse_fenced_block),
    ("bracket_scan", parse_bracket_scan),
)


# =============================================================================
# Normalization
# =============================================================================


def _canonical_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    normalized = dict(item)
    for canonical, aliases in KEY_ALIASES.items():
        if canonical in normalized:
            continue
        for alias in aliases:
            if alias in normalized:
                normalized[canonical] = normalized.pop(alias)
                break
    return normalized


def normalize_candidates(value: Any, expected_match_ids: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Coerce a decoded JSON value into a list of candidate objects.

    A single object becomes a one-element list, a container object such as
    {"predictions": [...]} is unwrapped, key spellings are canonicalized and a
    missing match_id is filled in when exactly one match was requested. Score
    values are left untouched.
    """
    if isinstance(value, dict):
        for key in CONTAINER_KEYS:
            inner = value.get(key)
            if isinstance(inner, list):
                value = inner
                break
            if isinstance(inner, dict) and len(value) == 1:
                value = inner
                break

    items = [value] if isinstance(value, dict) else value
    if not isinstance(items, list):
        return []

    candidates = [_canonical_keys(item) for item in items if isinstance(item, dict)]

    expected = list(expected_match_ids)
    if len(expected) == 1 and len(candidates) == 1 and "match_id" not in candidates[0]:
        candidates[0]["match_id"] = expected[0]

    return candidates


# =============================================================================
# Failure categorization
# =============================================================================


def categorize_failure(raw_text: Optional[str]) -> str:
    """Human-readable reason for a response no strategy could parse."""
    if raw_text is None or not raw_text.strip():
        return "empty response"
    if _CJK_RE.search(raw_text):
        return "non-English output (CJK characters)"
    if _OPEN_THINKING_RE.search(raw_text) or _ORPHAN_CLOSE_RE.search(raw_text):
        return "unstripped thinking tags with no answer after them"
    return "no JSON prediction found in response"


# =============================================================================
# Entry point
# =============================================================================


def parse_response(raw_text: Optional[str], expected_match_ids: Iterable[str] = ()) -> ParseResult:
    """Run the strategy cascade over a model response.

    The thinking-stripped text is tried first. When stripping changed the text,
    the untouched response is tried again so an answer a model placed inside
    its reasoning block is still recovered.

    Args:
        raw_text: Text returned by the provider
        expected_match_ids: Match ids the prompt asked about

    Returns:
        ParseSuccess with candidate dicts, or ParseFailure with a reason and a
        truncated raw sample
    """
    expected = list(expected_match_ids)
    if raw_text is None or not raw_text.strip():
        return ParseFailure(categorize_failure(raw_text), truncate_sample(raw_text))

    stripped = strip_thinking_tags(raw_text)
    texts = [stripped]
    if stripped != raw_text.strip():
        texts.append(raw_text)

    for index, text in enumerate(texts):
        for name, strategy in STRATEGIES:
            value = strategy(text)
            if value is None:
                continue
            candidates = normalize_candidates(value, expected)
            if candidates:
                strategy_name = name if index == 0 else f"{name}_unstripped"
                logger.debug(f"Parsed {len(candidates)} candidate(s) via {strategy_name}")
                return ParseSuccess(candidates=candidates, strategy=strategy_name)

    return ParseFailure(categorize_failure(raw_text), truncate_sample(raw_text))
