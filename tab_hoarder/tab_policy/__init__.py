"""Shared tab semantics: taxonomy, url matching and eviction policy helpers.

The eviction policy itself lives in ``tab_hoarder.tab_policy.eviction`` and is
imported from there; it depends on ``tab_hoarder.config``, which reads this
package's taxonomy.
"""

from .matching import contains_any, domain_of, has_reserved_scheme, has_resolvable_address
from .models import OpenTab
from .text import clean_string_list, normalize_label, time_ago
from .taxonomy import (
    ARCHIVE_REASON_ORDER,
    ARCHIVE_REASONS,
    REASON_AGE,
    REASON_CAPACITY,
    REASON_MANUAL,
    RESERVED_SCHEME_PREFIXES,
    TOPIC_INFO,
    TOPIC_ORDER,
    UNCATEGORIZED,
    topic_info,
)

__all__ = [
    "contains_any",
    "domain_of",
    "has_reserved_scheme",
    "has_resolvable_address",
    "OpenTab",
    "clean_string_list",
    "normalize_label",
    "time_ago",
    "ARCHIVE_REASON_ORDER",
    "ARCHIVE_REASONS",
    "REASON_AGE",
    "REASON_CAPACITY",
    "REASON_MANUAL",
    "RESERVED_SCHEME_PREFIXES",
    "TOPIC_INFO",
    "TOPIC_ORDER",
    "UNCATEGORIZED",
    "topic_info",
]
