"""Fallback chain resolution of interaction targets.

A target such as "start button" can be phrased many ways. Candidates are an
ordered, deduplicated list; resolution walks it and stops at the first
phrasing the automation capability can locate.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

LITERAL_TEMPLATES = (
    "find the {target}",
    "find {target}",
    "locate the {target}",
    "locate {target}",
    "click the {target}",
    "click {target}",
)

# (keywords, phrasings) checked in order; every matching group is appended
SYNONYM_GROUPS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("start", "play", "begin"),
        (
            "find the start button",
            "find the play button",
            "find the begin button",
            "locate start game button",
            "locate play game button",
        ),
    ),
    (
        ("restart", "again", "retry"),
        (
            "find the restart button",
            "find the play again button",
            "find the retry button",
            "locate restart game button",
        ),
    ),
    (
        ("pause", "menu"),
        (
            "find the pause button",
            "find the menu button",
            "locate pause button",
        ),
    ),
)

Locate = Callable[[str, float], Awaitable[list[Any]]]


@dataclass(frozen=True)
class Resolution:
    handle: Any
    candidate: str


def normalize_target(target: str) -> str:
    return " ".join(target.strip().lower().split())


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def candidate_phrasings(target: str) -> list[str]:
    """Ordered phrasings to try for ``target``: literal forms, then synonyms."""
    normalized = normalize_target(target)
    if not normalized:
        return []

    candidates = [t.format(target=normalized) for t in LITERAL_TEMPLATES]
    for keywords, phrasings in SYNONYM_GROUPS:
        if any(k in normalized for k in keywords):
            candidates.extend(phrasings)
    return _dedupe(candidates)


async def resolve(
    candidates: Iterable[str],
    locate: Locate,
    timeout: float,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> Resolution | None:
    """Return the first handle any candidate locates, or None.

    A locate call that raises counts as finding nothing.
    """
    log = log or logger
    for candidate in candidates:
        try:
            handles = await locate(candidate, timeout)
        except Exception as e:
            log.debug(f"locate({candidate!r}) failed: {e}")
            continue
        if handles:
            log.debug(f"Resolved via {candidate!r}")
            return Resolution(handle=handles[0], candidate=candidate)
    return None


async def resolve_target(
    target: str,
    locate: Locate,
    timeout: float,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> Resolution | None:
    return await resolve(candidate_phrasings(target), locate, timeout, log=log)
