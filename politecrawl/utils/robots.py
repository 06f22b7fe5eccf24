"""robots.txt parsing and per-domain policy caching.

The parser is a small line-oriented state machine rather than a full
implementation of the robots exclusion standard: wildcards and ``$`` anchors
are treated as literal characters and declared ``Crawl-delay`` values are
ignored in favour of the crawler's own fixed delay.
"""
import enum
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit

from loguru import logger

from politecrawl.utils.url_utils import get_domain, get_robots_url


@dataclass(frozen=True)
class RobotsRule:
    allow: bool
    path: str

    def matches(self, path: str) -> bool:
        return path.startswith(self.path)


RobotsPolicy = Tuple[RobotsRule, ...]

ALLOW_ALL: RobotsPolicy = ()


class ParserState(enum.Enum):
    SCANNING = "scanning"
    IN_MATCHING_BLOCK = "in_matching_block"
    IN_OTHER_BLOCK = "in_other_block"


def _agent_token(user_agent: str) -> str:
    # "politecrawl/1.0 (+http://...)" -> "politecrawl"
    return user_agent.split("/", 1)[0].split()[0].lower() if user_agent.strip() else ""


def agent_matches(declared: str, user_agent: str) -> bool:
    declared = declared.strip().lower()
    if not declared:
        return False
    if declared == "*":
        return True
    full = user_agent.strip().lower()
    token = _agent_token(user_agent)
    return declared == full or (bool(token) and token in declared)


def parse_robots_txt(content: str, user_agent: str) -> RobotsPolicy:
    """Collect the Allow/Disallow rules that apply to ``user_agent``."""
    rules = []
    state = ParserState.SCANNING
    previous_was_agent = False

    for raw_line in content.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue

        directive, _, value = line.partition(":")
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            matched = agent_matches(value, user_agent)
            # consecutive User-agent lines share one group of rules
            if previous_was_agent and state is ParserState.IN_MATCHING_BLOCK:
                matched = True
            state = ParserState.IN_MATCHING_BLOCK if matched else ParserState.IN_OTHER_BLOCK
            previous_was_agent = True
            continue

        previous_was_agent = False

        if directive in ("allow", "disallow"):
            if state is ParserState.IN_MATCHING_BLOCK and value:
                rules.append(RobotsRule(allow=directive == "allow", path=value))
        elif directive in ("sitemap", "crawl-delay"):
            state = ParserState.SCANNING

    return tuple(rules)


def is_path_allowed(policy: RobotsPolicy, path: str) -> bool:
    """A path is allowed unless some matching rule is a Disallow."""
    path = path or "/"
    return all(rule.allow for rule in policy if rule.matches(path))


class RobotsPolicyCache:
    """Fetches robots.txt once per domain and answers allow/deny questions.

    An unreachable or non-2xx robots.txt yields an allow-all policy.
    """

    def __init__(self, fetcher, user_agent: str, throttle=None):
        self.fetcher = fetcher
        self.user_agent = user_agent
        self.throttle = throttle
        self._policies: Dict[str, RobotsPolicy] = {}
        self._domain_locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def is_allowed(self, url: str) -> bool:
        try:
            path = urlsplit(url).path
        except ValueError:
            return True

        domain = get_domain(url)
        if not domain:
            # Not a crawlable URL; let the fetch fail and report it.
            return True

        policy = self.policy_for(url, domain)
        return is_path_allowed(policy, path)

    def policy_for(self, url: str, domain: Optional[str] = None) -> RobotsPolicy:
        domain = domain or get_domain(url)

        with self._guard:
            policy = self._policies.get(domain)
            if policy is not None:
                return policy
            lock = self._domain_locks.setdefault(domain, threading.Lock())

        with lock:
            with self._guard:
                policy = self._policies.get(domain)
            if policy is None:
                policy = self._fetch_policy(url, domain)
                with self._guard:
                    self._policies[domain] = policy
            return policy

    def _fetch_policy(self, url: str, domain: str) -> RobotsPolicy:
        robots_url = get_robots_url(url)
        if robots_url is None:
            return ALLOW_ALL

        if self.throttle is not None:
            self.throttle.await_turn(domain)

        result = self.fetcher.fetch(robots_url, html_only=False)
        if not result.ok:
            logger.debug(
                f"No usable robots.txt at {robots_url} ({result.error}), allowing crawling"
            )
            return ALLOW_ALL

        policy = parse_robots_txt(result.content, self.user_agent)
        logger.debug(f"Loaded {len(policy)} robots.txt rules for {domain}")
        return policy

    def cached_domains(self) -> list[str]:
        with self._guard:
            return list(self._policies)
