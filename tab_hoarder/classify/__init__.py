"""Rule-based topic classification for archived tabs."""

from .rules import DEFAULT_RULES, RuleTable, TopicRule
from .scorer import Categorizer, Classification

__all__ = ["DEFAULT_RULES", "RuleTable", "TopicRule", "Categorizer", "Classification"]
