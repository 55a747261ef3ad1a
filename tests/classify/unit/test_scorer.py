import pytest

from tab_hoarder.classify.rules import DEFAULT_RULES, RuleTable, TopicRule
from tab_hoarder.classify.scorer import Categorizer, Classification
from tab_hoarder.tab_policy.taxonomy import TOPIC_ORDER, UNCATEGORIZED

SAMPLES = [
    ("https://amazon.com/cart", "My Shopping Cart at Amazon"),
    ("https://www.youtube.com/watch?v=abc", "Lo-fi beats to study to"),
    ("https://arxiv.org/abs/2401.12345", "A study of sparse attention"),
    ("https://docs.python.org/3/library/asyncio.html", "asyncio - Asynchronous I/O"),
    ("https://example.com/", "Example Domain"),
    ("", ""),
]


def test_default_rule_table_follows_topic_order():
    assert DEFAULT_RULES.topics == TOPIC_ORDER


def test_shopping_cart_scores_keywords_and_domain():
    result = Categorizer().classify("https://amazon.com/cart", "My Shopping Cart at Amazon")

    assert result.topic == "shopping"
    # shop(title 3) + cart(url 2, title 3) + amazon(url 2, title 3) + amazon.com domain 5
    assert result.scores["shopping"] == 18
    assert result.confidence > 0.5
    assert set(result.scores) == set(TOPIC_ORDER)


def test_below_floor_is_uncategorized_with_zero_confidence():
    result = Categorizer().classify("https://example.com/", "Example Domain")

    assert result.topic == UNCATEGORIZED
    assert result.confidence == 0.0
    assert all(score == 0 for score in result.scores.values())


def test_confidence_is_share_of_total_score():
    rules = RuleTable(
        rules=(
            TopicRule(topic="alpha", keywords=("foo",), domains=()),
            TopicRule(topic="beta", keywords=("bar",), domains=()),
        )
    )
    result = Categorizer(rules).classify("https://x.test/foo/bar", "foo")

    assert result.scores == {"alpha": 5, "beta": 2}
    assert result.topic == "alpha"
    assert result.confidence == pytest.approx(5 / 7)


def test_ties_go_to_the_earlier_topic_in_the_table():
    rules = RuleTable(
        rules=(
            TopicRule(topic="first", keywords=("same",), domains=()),
            TopicRule(topic="second", keywords=("same",), domains=()),
        )
    )
    result = Categorizer(rules).classify("https://x.test/same", "")

    assert result.topic == "first"
    assert result.confidence == pytest.approx(0.5)


def test_restricted_rule_table_keeps_order_and_ignores_unknown_labels():
    restricted = DEFAULT_RULES.restricted_to(["Research", "shopping", "astrology"])
    assert restricted.topics == ("shopping", "research")

    result = Categorizer(restricted).classify("https://amazon.com/cart", "cart")
    assert set(result.scores) == {"shopping", "research"}


def test_empty_rule_table_is_uncategorized():
    result = Categorizer(RuleTable(rules=())).classify("https://amazon.com", "buy")
    assert result == Classification(topic=UNCATEGORIZED, confidence=0.0, scores={})


@pytest.mark.parametrize("url,title", SAMPLES)
def test_classify_is_deterministic_and_bounded(url, title):
    categorizer = Categorizer()
    first = categorizer.classify(url, title)
    second = Categorizer().classify(url, title)

    assert first == second
    assert 0.0 <= first.confidence <= 1.0
    assert (first.confidence == 0.0) == (first.topic == UNCATEGORIZED)


def test_to_dict_copies_scores():
    result = Categorizer().classify("https://amazon.com/cart", "cart")
    payload = result.to_dict()
    payload["scores"]["shopping"] = -1
    assert result.scores["shopping"] != -1
