"""
Unit tests for the size slug catalog.
"""

import pytest

from zstore.storage.slugs import (
    GB,
    MB,
    STORAGE_SIZES,
    slug_size,
    slug_sort_key,
    slugs,
    sort_slugs,
)


class TestSlugSize:
    """Tests for slug lookup."""

    def test_known_slugs(self):
        assert slug_size("256M") == 268435456
        assert slug_size("512M") == 536870912
        assert slug_size("1G") == GB
        assert slug_size("8G") == 8 * GB

    @pytest.mark.parametrize("slug", ["3G", "3TB", "", "256m", "256", "1g", " 1G", "1GB"])
    def test_unknown_slugs(self, slug):
        assert slug_size(slug) is None

    def test_constants(self):
        assert MB == 1048576
        assert GB == 1024 * MB


class TestSlugOrdering:
    """Tests for slug ordering."""

    def test_catalog_order(self):
        assert slugs() == ["256M", "512M", "1G", "2G", "4G", "8G"]

    def test_catalog_order_is_stable(self):
        assert slugs() == slugs()
        assert sorted(slugs()) != slugs()  # not lexical

    def test_all_slugs_listed(self):
        assert set(slugs()) == set(STORAGE_SIZES)

    def test_suffix_before_magnitude(self):
        assert sort_slugs(["1T", "8G", "1M", "2K"]) == ["2K", "1M", "8G", "1T"]

    def test_numeric_magnitude(self):
        assert sort_slugs(["10M", "9M", "100M"]) == ["9M", "10M", "100M"]
        assert sort_slugs(["2G", "1G"]) == ["1G", "2G"]

    def test_full_suffix_table(self):
        ordered = ["1B", "1K", "1M", "1G", "1T", "1P", "1E", "1Z", "1Y"]
        assert sort_slugs(reversed(ordered)) == ordered

    @pytest.mark.parametrize("slug", ["1X", "", "G", "1.5G", "-1G", "abcM"])
    def test_malformed_slug_raises(self, slug):
        with pytest.raises(ValueError):
            slug_sort_key(slug)
