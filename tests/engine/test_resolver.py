"""Tests for fallback chain resolution."""

import pytest

from game_qa.engine.resolver import (
    LITERAL_TEMPLATES,
    Resolution,
    candidate_phrasings,
    normalize_target,
    resolve,
    resolve_target,
)


class RecordingLocate:
    def __init__(self, results=None):
        self.results = results or {}
        self.calls: list[str] = []

    async def __call__(self, description: str, timeout: float):
        self.calls.append(description)
        result = self.results.get(description, [])
        if isinstance(result, BaseException):
            raise result
        return result


class TestCandidatePhrasings:
    def test_literal_forms_come_first(self) -> None:
        candidates = candidate_phrasings("Settings")

        assert candidates == [t.format(target="settings") for t in LITERAL_TEMPLATES]

    def test_normalizes_whitespace_and_case(self) -> None:
        assert normalize_target("  Big   RED  Lever ") == "big red lever"
        assert candidate_phrasings("  Big   RED  Lever ")[0] == "find the big red lever"

    def test_synonyms_appended_after_literals(self) -> None:
        candidates = candidate_phrasings("play")

        assert candidates[: len(LITERAL_TEMPLATES)] == [
            t.format(target="play") for t in LITERAL_TEMPLATES
        ]
        assert "find the start button" in candidates
        assert candidates.index("find the start button") >= len(LITERAL_TEMPLATES)

    def test_duplicates_are_removed_keeping_first_position(self) -> None:
        candidates = candidate_phrasings("start button")

        assert len(candidates) == len(set(candidates))
        assert candidates[0] == "find the start button"
        # six literals plus five start synonyms, one of which repeats a literal
        assert len(candidates) == 10

    def test_every_matching_group_contributes(self) -> None:
        candidates = candidate_phrasings("restart")

        assert "find the play button" in candidates
        assert "find the retry button" in candidates
        assert candidates.index("find the play button") < candidates.index("find the retry button")

    def test_empty_target_has_no_candidates(self) -> None:
        assert candidate_phrasings("   ") == []


class TestResolve:
    @pytest.mark.asyncio
    async def test_first_non_empty_result_wins(self) -> None:
        locate = RecordingLocate({"c": ["handle-c"], "d": ["handle-d"]})

        resolution = await resolve(["a", "b", "c", "d"], locate, timeout=1.0)

        assert resolution == Resolution(handle="handle-c", candidate="c")
        assert locate.calls == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_locate_error_counts_as_not_found(self) -> None:
        locate = RecordingLocate({"a": RuntimeError("locator blew up"), "b": ["handle-b"]})

        resolution = await resolve(["a", "b"], locate, timeout=1.0)

        assert resolution is not None
        assert resolution.candidate == "b"

    @pytest.mark.asyncio
    async def test_returns_none_when_nothing_found(self) -> None:
        locate = RecordingLocate()

        assert await resolve(["a", "b"], locate, timeout=1.0) is None
        assert locate.calls == ["a", "b"]

    @pytest.mark.asyncio
    async def test_resolve_target_walks_synonyms(self) -> None:
        locate = RecordingLocate({"find the play button": ["play-btn"]})

        resolution = await resolve_target("Begin", locate, timeout=2.0)

        assert resolution is not None
        assert resolution.handle == "play-btn"
        assert locate.calls[: len(LITERAL_TEMPLATES)] == [
            t.format(target="begin") for t in LITERAL_TEMPLATES
        ]
