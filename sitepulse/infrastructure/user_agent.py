# ==============================================================================
# User-Agent Parser Implementation
# ==============================================================================
"""
User-Agent parsing backed by the user-agents library.
"""

from user_agents import parse

from sitepulse.base.user_agent import UserAgentParser
from sitepulse.core.models import UNKNOWN, BrowserInfo


def parse_user_agent(header: str) -> BrowserInfo:
    """
    Parse a raw User-Agent header.

    Args:
        header: User-Agent header value (may be empty)

    Returns:
        Browser details; platform is the device family reported by the parser
    """
    if not header:
        return BrowserInfo()

    agent = parse(header)
    return BrowserInfo(
        name=agent.browser.family or UNKNOWN,
        version=agent.browser.version_string,
        os=agent.os.family or UNKNOWN,
        platform=agent.device.family or UNKNOWN,
        is_mobile=agent.is_mobile,
        is_tablet=agent.is_tablet,
        is_desktop=agent.is_pc,
    )


class UserAgentsParser(UserAgentParser):
    """UserAgentParser using ua-parser rules via the user-agents package."""

    def parse(self, header: str) -> BrowserInfo:
        return parse_user_agent(header)
