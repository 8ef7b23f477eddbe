# ==============================================================================
# Tests for User-Agent Parsing
# ==============================================================================
"""
Tests for the user-agents backed parser with real header strings.
"""

import pytest

from sitepulse.core.models import BrowserInfo
from sitepulse.infrastructure.user_agent import UserAgentsParser, parse_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


class TestParseUserAgent:
    def test_desktop_chrome(self):
        info = parse_user_agent(CHROME_WINDOWS)
        assert info.name == "Chrome"
        assert info.version.startswith("120")
        assert info.os == "Windows"
        assert info.device_class == "desktop"

    def test_iphone(self):
        info = parse_user_agent(SAFARI_IPHONE)
        assert "Safari" in info.name
        assert info.os == "iOS"
        assert info.platform == "iPhone"
        assert info.device_class == "mobile"

    def test_ipad(self):
        info = parse_user_agent(SAFARI_IPAD)
        assert info.platform == "iPad"
        assert info.device_class == "tablet"

    @pytest.mark.parametrize("header", ["", None])
    def test_missing_header(self, header):
        assert parse_user_agent(header) == BrowserInfo()

    def test_parser_adapter(self):
        assert UserAgentsParser().parse(CHROME_WINDOWS) == parse_user_agent(CHROME_WINDOWS)
