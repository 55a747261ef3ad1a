"""Keyword and domain scoring of a tab into one topic."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from tab_hoarder.tab_policy.taxonomy import UNCATEGORIZED

from .rules import DEFAULT_RULES, RuleTable

KEYWORD_IN_URL_WEIGHT = 2
KEYWORD_IN_TITLE_WEIGHT = 3
DOMAIN_WEIGHT = 5
MIN_WINNING_SCORE = 2


@dataclass(frozen=True)
class Classification:
    topic: str
    confidence: float
    scores: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"topic": self.topic, "confidence": self.confidence, "scores": dict(self.scores)}


class Categorizer:
    """Score a tab against every topic of a rule table and keep the best one.

    Topics are scored independently; a tab may hit several. The winner must
    score strictly higher than every earlier topic, so ties resolve to table
    order. Below MIN_WINNING_SCORE the tab is uncategorized with confidence 0.
    """

    def __init__(self, rules: RuleTable = DEFAULT_RULES):
        self.rules = rules

    def score_topics(self, url: str, title: str) -> Dict[str, int]:
        url_lower = (url or "").lower()
        title_lower = (title or "").lower()
        scores: Dict[str, int] = {}
        for rule in self.rules.rules:
            score = 0
            for keyword in rule.keywords:
                if keyword in url_lower:
                    score += KEYWORD_IN_URL_WEIGHT
                if keyword in title_lower:
                    score += KEYWORD_IN_TITLE_WEIGHT
            for domain in rule.domains:
                if domain in url_lower:
                    score += DOMAIN_WEIGHT
            scores[rule.topic] = score
        return scores

    def classify(self, url: str, title: str) -> Classification:
        scores = self.score_topics(url, title)
        best_topic = None
        best_score = 0
        for topic, score in scores.items():
            if best_topic is None or score > best_score:
                best_topic, best_score = topic, score

        if best_topic is None or best_score < MIN_WINNING_SCORE:
            return Classification(topic=UNCATEGORIZED, confidence=0.0, scores=scores)

        total = sum(scores.values())
        confidence = best_score / total if total > 0 else 0.0
        return Classification(topic=best_topic, confidence=min(confidence, 1.0), scores=scores)
