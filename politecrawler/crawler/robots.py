"""
robots.txt parsing and per-domain policy caching.

Rules are resolved by longest literal path prefix; no wildcard matching.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from .errors import ResourceNotFoundError

FetchFunc = Callable[[str, Dict[str, str]], Awaitable[bytes]]

WILDCARD_AGENT = "*"


@dataclass(frozen=True)
class RobotRule:
    """Single Allow/Disallow line."""
    path_prefix: str
    allow: bool

    def matches(self, path: str) -> bool:
        return path.startswith(self.path_prefix)


@dataclass
class UserAgentSection:
    """Rules declared under one User-agent line."""
    user_agent: str
    rules: List[RobotRule] = field(default_factory=list)

    def add_rule(self, path_prefix: str, allow: bool):
        self.rules.append(RobotRule(path_prefix, allow))

    def is_allowed(self, path: str) -> bool:
        """
        Resolve a path against this section's rules.

        The matching rule with the longest prefix decides. Equal-length
        conflicts resolve to allow. No match means allowed.
        """
        best: Optional[RobotRule] = None
        for rule in self.rules:
            if not rule.path_prefix or not rule.matches(path):
                continue
            if best is None or len(rule.path_prefix) > len(best.path_prefix):
                best = rule
            elif len(rule.path_prefix) == len(best.path_prefix) and rule.allow:
                best = rule
        return best.allow if best is not None else True


def extract_path(url: str) -> str:
    """
    Return the path part of a URL for robots matching.

    Everything after the host is kept, query string included. A URL
    without a path yields "/".
    """
    scheme_end = url.find("://")
    host_start = scheme_end + 3 if scheme_end >= 0 else 0
    path_start = url.find("/", host_start)
    if path_start < 0:
        return "/"
    return url[path_start:]


class RobotsPolicy:
    """Parsed robots.txt content for a single domain."""

    def __init__(self, content: str = ""):
        self.sections: List[UserAgentSection] = []
        self._parse(content)

    @classmethod
    def allow_all(cls) -> 'RobotsPolicy':
        """Policy used when a domain has no robots.txt."""
        return cls("")

    def _parse(self, content: str):
        current: Optional[UserAgentSection] = None

        for line in content.splitlines():
            line = line.strip(" \t\r")
            if not line or line.startswith("#"):
                continue
            if ":" not in line:
                continue

            name, value = line.split(":", 1)
            name = name.strip().lower()
            value = value.split("#", 1)[0].strip()

            if name == "user-agent":
                current = UserAgentSection(value)
                self.sections.append(current)
            elif current is None:
                # Rules before the first User-agent line are ignored
                continue
            elif name == "disallow":
                current.add_rule(value, allow=False)
            elif name == "allow":
                current.add_rule(value, allow=True)

        if not self.sections:
            self.sections.append(UserAgentSection(WILDCARD_AGENT))

    def find_section(self, user_agent: str) -> Optional[UserAgentSection]:
        """Exact agent match first, then the "*" section."""
        for section in self.sections:
            if section.user_agent == user_agent:
                return section
        for section in self.sections:
            if section.user_agent == WILDCARD_AGENT:
                return section
        return None

    def is_allowed(self, url: str, user_agent: str) -> bool:
        """Check whether user_agent may fetch url (or a bare path)."""
        section = self.find_section(user_agent)
        if section is None:
            return True
        return section.is_allowed(extract_path(url))


class RobotsCache:
    """
    Per-domain memoized robots policies.

    At most one policy is stored per domain. A robots.txt that does not
    exist caches an allow-all policy; any other fetch failure propagates
    and nothing is cached. Not synchronized: the scheduler calls
    resolve() while holding its crawl lock, robots fetch included.
    """

    def __init__(self, fetch: FetchFunc):
        self.fetch = fetch
        self.logger = logging.getLogger(__name__)
        self._policies: Dict[str, RobotsPolicy] = {}
        self.fetch_count = 0

    def __contains__(self, domain: str) -> bool:
        return domain in self._policies

    def __len__(self) -> int:
        return len(self._policies)

    def get(self, domain: str) -> Optional[RobotsPolicy]:
        return self._policies.get(domain)

    async def resolve(self, domain: str, url: str, user_agent: str) -> bool:
        """Check url against the domain's robots policy, loading it on first use."""
        policy = self._policies.get(domain)
        if policy is None:
            policy = await self._load(domain, user_agent)
            self._policies[domain] = policy
        return policy.is_allowed(url, user_agent)

    async def _load(self, domain: str, user_agent: str) -> RobotsPolicy:
        robots_url = f"http://{domain}/robots.txt"
        self.fetch_count += 1
        try:
            content = await self.fetch(robots_url, {'User-Agent': user_agent})
        except ResourceNotFoundError:
            self.logger.info(f"No robots.txt for {domain}, allowing all paths")
            return RobotsPolicy.allow_all()

        policy = RobotsPolicy(content.decode('utf-8', errors='replace'))
        self.logger.debug(f"Loaded robots.txt for {domain}: {len(policy.sections)} sections")
        return policy
