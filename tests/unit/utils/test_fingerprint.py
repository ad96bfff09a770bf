"""Unit tests for article fingerprinting."""
import hashlib
import pytest

from sentiment_tracker.utils.fingerprint import compute_article_id, extract_source_domain


@pytest.mark.unit
class TestComputeArticleId:
    """Test URL fingerprints."""

    def test_sha256_hex_of_url(self):
        """✅ Id is the SHA-256 hex digest of the URL."""
        url = "https://example.com/news/1"

        assert compute_article_id(url) == hashlib.sha256(url.encode("utf-8")).hexdigest()

    def test_trimmed_before_hashing(self):
        """✅ Surrounding whitespace does not change the id."""
        assert compute_article_id("  https://example.com/a \n") == compute_article_id("https://example.com/a")

    def test_deterministic_and_lowercase(self):
        """✅ Same URL → same 64-char lowercase id."""
        article_id = compute_article_id("https://example.com/a")

        assert article_id == compute_article_id("https://example.com/a")
        assert len(article_id) == 64
        assert article_id == article_id.lower()

    def test_different_urls_differ(self):
        """✅ Query strings are part of the identity."""
        assert compute_article_id("https://example.com/a?x=1") != compute_article_id("https://example.com/a?x=2")


@pytest.mark.unit
class TestExtractSourceDomain:
    """Test source domain derivation."""

    @pytest.mark.parametrize("url,expected", [
        ("https://www.reuters.com/markets/x", "reuters.com"),
        ("https://finance.yahoo.com/news", "finance.yahoo.com"),
        ("http://EXAMPLE.com:8080/a", "example.com"),
        ("not a url", None),
    ])
    def test_domains(self, url, expected):
        """✅ Host without www., or None."""
        assert extract_source_domain(url) == expected
