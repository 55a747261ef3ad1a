import pytest

from tab_hoarder.errors import ValidationError
from tab_hoarder.tab_policy.matching import contains_any, domain_of, has_reserved_scheme, has_resolvable_address


def test_domain_of_returns_lowercase_host():
    assert domain_of("https://Docs.Python.org/3/tutorial/") == "docs.python.org"
    assert domain_of("http://localhost:8080/x") == "localhost"


def test_domain_of_groups_hostless_non_network_urls():
    assert domain_of("file:///tmp/notes.txt") == "(unknown)"
    assert domain_of("chrome://settings") == "settings"


@pytest.mark.parametrize("url", ["", "   ", "example.com/path", "https:///nohost", "http://[::1"])
def test_domain_of_rejects_malformed_urls(url):
    with pytest.raises(ValidationError):
        domain_of(url)


def test_has_reserved_scheme_is_closed_set():
    assert has_reserved_scheme("about:blank")
    assert has_reserved_scheme(" Chrome://newtab ")
    assert not has_reserved_scheme("https://chrome.google.com/webstore")
    assert not has_reserved_scheme("")


def test_contains_any_ignores_blank_needles():
    assert contains_any("https://news.example.com", ["NEWS."])
    assert not contains_any("https://example.com", ["", "  "])


def test_has_resolvable_address_agrees_with_domain_of():
    for url in ["https://example.com/a", "file:///tmp/notes.txt", "data:text/plain,hi"]:
        assert has_resolvable_address(url)
        domain_of(url)
    for url in ["http://", "https://[::1", "not a url", "", None]:
        assert not has_resolvable_address(url)
        with pytest.raises(ValidationError):
            domain_of(url)
