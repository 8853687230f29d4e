"""
Browser-like request headers for sites with anti-bot filtering.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional


class BrowserHeaderProfile:
    """
    Builds a header set that resembles a desktop Chrome session.

    The ``sec-ch-ua`` client hints are kept consistent with the chosen
    user agent, since mismatched hints are a common bot signature.
    """

    desktop_agents: List[str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    ]

    def __init__(self, user_agent: Optional[str] = None, accept_language: str = "zh-CN,zh;q=0.9,en;q=0.8"):
        self.user_agent = user_agent
        self.accept_language = accept_language

    def _platform(self, user_agent: str) -> str:
        if "Windows" in user_agent:
            return '"Windows"'
        if "Macintosh" in user_agent:
            return '"macOS"'
        return '"Linux"'

    def get_user_agent(self) -> str:
        return self.user_agent or random.choice(self.desktop_agents)

    def build(self) -> Dict[str, str]:
        user_agent = self.get_user_agent()
        return {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
            "Accept-Language": self.accept_language,
            "Accept-Encoding": "gzip, deflate",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "Upgrade-Insecure-Requests": "1",
            "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": self._platform(user_agent),
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
        }
