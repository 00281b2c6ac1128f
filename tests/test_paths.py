"""
Unit tests for PortLens home directory helpers.
"""

from portlens.paths import compact_home, expand_home


class TestHomePaths:
    """Tests for compact_home and expand_home."""

    def test_compact(self):
        """Test abbreviating paths under home."""
        assert compact_home("/Users/dev", "/Users/dev") == "~"
        assert compact_home("/Users/dev/app", "/Users/dev/") == "~/app"

    def test_compact_is_prefix_only(self):
        """Test that home is only replaced at the start, on a boundary."""
        assert compact_home("/Users/developer/app", "/Users/dev") == "/Users/developer/app"
        assert compact_home("/mnt/Users/dev/app", "/Users/dev") == "/mnt/Users/dev/app"

    def test_expand(self):
        """Test restoring absolute paths."""
        assert expand_home("~", "/Users/dev") == "/Users/dev"
        assert expand_home("~/app", "/Users/dev") == "/Users/dev/app"
        assert expand_home("/srv/app", "/Users/dev") == "/srv/app"
        assert expand_home("~other/app", "/Users/dev") == "~other/app"
