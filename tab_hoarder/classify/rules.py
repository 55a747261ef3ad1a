"""Topic rule tables for the categorizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from tab_hoarder.tab_policy.text import normalize_label


@dataclass(frozen=True)
class TopicRule:
    topic: str
    keywords: Tuple[str, ...]
    domains: Tuple[str, ...]


@dataclass(frozen=True)
class RuleTable:
    rules: Tuple[TopicRule, ...]

    @property
    def topics(self) -> Tuple[str, ...]:
        return tuple(rule.topic for rule in self.rules)

    def restricted_to(self, topics: Iterable[str]) -> "RuleTable":
        """Keep only the named topics, in table order. Unknown labels are ignored."""
        wanted = {normalize_label(t) for t in topics or []}
        return RuleTable(rules=tuple(rule for rule in self.rules if rule.topic in wanted))


# Order matters: ties go to the earlier topic.
DEFAULT_RULES = RuleTable(
    rules=(
        TopicRule(
            topic="reading",
            keywords=(
                "blog",
                "article",
                "news",
                "medium",
                "post",
                "read",
                "wiki",
                "tutorial",
                "guide",
                "documentation",
                "docs",
            ),
            domains=("medium.com", "dev.to", "reddit.com", "wikipedia.org", "stackoverflow.com", "github.com"),
        ),
        TopicRule(
            topic="shopping",
            keywords=("shop", "buy", "cart", "product", "price", "store", "amazon", "checkout", "order", "purchase"),
            domains=("amazon.com", "ebay.com", "walmart.com", "etsy.com", "shopify.com", "aliexpress.com"),
        ),
        TopicRule(
            topic="reference",
            keywords=("documentation", "api", "reference", "spec", "manual", "docs", "help", "support", "faq"),
            domains=("docs.", "developer.", "api.", "reference."),
        ),
        TopicRule(
            topic="entertainment",
            keywords=("video", "watch", "youtube", "stream", "movie", "music", "game", "play", "twitch", "spotify"),
            domains=("youtube.com", "netflix.com", "twitch.tv", "spotify.com", "hulu.com", "vimeo.com"),
        ),
        TopicRule(
            topic="social",
            keywords=("social", "twitter", "facebook", "instagram", "linkedin", "post", "tweet", "profile"),
            domains=("twitter.com", "facebook.com", "instagram.com", "linkedin.com", "tiktok.com"),
        ),
        TopicRule(
            topic="work",
            keywords=("dashboard", "admin", "analytics", "manage", "console", "workspace", "project", "task"),
            domains=("slack.com", "notion.so", "trello.com", "asana.com", "monday.com", "jira."),
        ),
        TopicRule(
            topic="research",
            keywords=("research", "paper", "study", "academic", "journal", "scholar", "publication", "thesis"),
            domains=("scholar.google.com", "arxiv.org", "researchgate.net", "jstor.org", "pubmed."),
        ),
    )
)
