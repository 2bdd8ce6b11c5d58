"""Heuristic prompt-injection scorer.

Each pattern carries a weight; the weights of every matching pattern are
summed and a message is suspicious once the total reaches the threshold.
With the default weights no single signal reaches the threshold on its own:
a support bot sees plenty of innocent "ignore my last message" or "which
system do you use" traffic. Two independent signals together are treated as
intent.

Weights and threshold are hand-tuned, not learned; treat them as a starting
configuration.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 3


@dataclass(frozen=True)
class InjectionPattern:
    name: str
    pattern: re.Pattern[str]
    weight: int


@dataclass(frozen=True)
class InjectionScore:
    score: int
    matched: tuple[str, ...]
    threshold: int

    @property
    def suspicious(self) -> bool:
        return self.score >= self.threshold


def _rx(expr: str) -> re.Pattern[str]:
    return re.compile(expr, re.IGNORECASE)


DEFAULT_PATTERNS: tuple[InjectionPattern, ...] = (
    InjectionPattern(
        "ignore_instructions",
        _rx(
            r"\b(?:ignore|disregard|forget|bypass|skip)\b[\w\s,'\"-]{0,40}?"
            r"\b(?:previous|prior|above|earlier|all|your|the|any|these|those)\b[\w\s,'\"-]{0,20}?"
            r"\b(?:instructions?|rules?|prompts?|guidelines?|directives?|constraints?)\b"
        ),
        2,
    ),
    InjectionPattern(
        "ignore_instructions_ro",
        _rx(
            r"\b(?:ignor[aă]|uit[aă]|nu\s+mai\s+respecta)\w*\b[\w\s,-]{0,40}?"
            r"\b(?:instruc[tțţ]iuni\w*|reguli\w*|regulile)\b"
        ),
        2,
    ),
    InjectionPattern(
        "role_prefix_mid_text",
        _rx(r"(?:^|[.!?;\n]\s*|\s)(?:system|developer)\s*:\s*\S"),
        1,
    ),
    InjectionPattern(
        "role_marker_token",
        _rx(r"\[/?(?:system|inst|sys)\]|<\|?(?:system|im_start|im_end|endoftext)\|?>"),
        1,
    ),
    InjectionPattern(
        "jailbreak_keyword",
        _rx(
            r"\b(?:jailbreak\w*|DAN\s+mode|developer\s+mode|god\s+mode|do\s+anything\s+now"
            r"|override\s+(?:your|the|all|any)\s+(?:rules|instructions|safety|restrictions|guidelines)"
            r"|without\s+(?:any\s+)?(?:restrictions|filters|limitations))\b"
        ),
        2,
    ),
    InjectionPattern(
        "reveal_prompt",
        _rx(
            r"\b(?:reveal|show|print|repeat|display|tell\s+me|output|leak|dump)\b[\w\s,'\"-]{0,30}?"
            r"\b(?:system|hidden|initial|original|secret|internal)\s+"
            r"(?:prompt|instructions?|message|rules)\b"
        ),
        2,
    ),
    InjectionPattern(
        "act_as_privileged",
        _rx(
            r"\b(?:act|behave|respond|operate)\s+as\s+(?:the\s+|a\s+|an\s+|if\s+you\s+were\s+(?:the\s+|a\s+)?)?"
            r"(?:system|developer|admin(?:istrator)?|root)\b"
            r"|\b(?:pretend|imagine)\s+(?:to\s+be|you\s+are|you're)\s+(?:the\s+|a\s+)?"
            r"(?:system|developer|admin(?:istrator)?)\b"
            r"|\byou\s+are\s+now\s+(?:the\s+|a\s+|an\s+|in\s+)?"
            r"(?:system|developer|admin(?:istrator)?|unrestricted|unfiltered)\b"
        ),
        2,
    ),
)


class InjectionHeuristicScorer:
    """Weighted pattern scorer for likely prompt-injection text."""

    def __init__(
        self,
        patterns: Sequence[InjectionPattern] = DEFAULT_PATTERNS,
        *,
        threshold: int = DEFAULT_THRESHOLD,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self._patterns = tuple(patterns)
        self._threshold = threshold

    @property
    def threshold(self) -> int:
        return self._threshold

    def score(self, text: str) -> InjectionScore:
        """Sum the weights of all patterns found in ``text``."""
        total = 0
        matched: list[str] = []
        for candidate in self._patterns:
            if candidate.pattern.search(text):
                total += candidate.weight
                matched.append(candidate.name)
        return InjectionScore(score=total, matched=tuple(matched), threshold=self._threshold)

    def is_suspicious(self, text: str) -> bool:
        result = self.score(text)
        if result.suspicious:
            logger.warning(
                "injection.suspected",
                extra={"score": result.score, "matched": list(result.matched)},
            )
        elif result.matched:
            logger.debug(
                "injection.below_threshold",
                extra={"score": result.score, "matched": list(result.matched)},
            )
        return result.suspicious
