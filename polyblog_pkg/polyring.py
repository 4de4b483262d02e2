"""
Polyring webring banner for the overview page.

The member directory is a JSON list of {title, url, feed} objects. This site
finds itself by URL and links to the members before and after it, wrapping
around the ends of the list. Any failure leaves the overview without a banner.
"""

import logging
from collections import namedtuple
from typing import List, Optional, Tuple

import requests
from jinja2 import Environment

from .exceptions import BannerUnavailable
from .pages import template_environment

DATA_URL = 'https://xyquadrat.ch/polyring/data/members.json'
BANNER_TEMPLATE = 'polyring-banner.html'
USER_AGENT = 'Polyblog/1.0'

Member = namedtuple('Member', ['title', 'url', 'feed'])

logger = logging.getLogger(__name__)


def _normalize(url: str) -> str:
    return (url or '').strip().rstrip('/')


class PolyringClient:
    def __init__(self, site_url: str, data_url: str = DATA_URL, session=None, timeout: int = 30,
                 env: Optional[Environment] = None):
        self.site_url = site_url
        self.data_url = data_url or DATA_URL
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})
        self.timeout = timeout
        self.env = env or template_environment()

    def fetch_members(self) -> List[Member]:
        try:
            response = self.session.get(self.data_url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise BannerUnavailable(f"Fetching member data failed: {e}") from e
        except ValueError as e:
            raise BannerUnavailable(f"Member data is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise BannerUnavailable("Member data must be a JSON list")
        members = []
        for entry in data:
            if not isinstance(entry, dict) or not isinstance(entry.get('url'), str):
                raise BannerUnavailable(f"Malformed member entry: {entry!r}")
            member = Member(entry.get('title', ''), entry['url'], entry.get('feed', ''))
            if not all(isinstance(value, str) for value in member):
                raise BannerUnavailable(f"Malformed member entry: {entry!r}")
            members.append(member)
        return members

    def prev_next(self, members: List[Member]) -> Tuple[str, str]:
        own_url = _normalize(self.site_url)
        for i, member in enumerate(members):
            if _normalize(member.url) == own_url:
                prev = members[(i + len(members) - 1) % len(members)].url
                next_ = members[(i + 1) % len(members)].url
                return prev, next_
        raise BannerUnavailable(f"{self.site_url} is not a polyring member")

    def render_banner(self) -> str:
        if not self.site_url:
            raise BannerUnavailable("No site URL configured")
        members = self.fetch_members()
        prev, next_ = self.prev_next(members)
        template = self.env.get_template(BANNER_TEMPLATE)
        return template.render(prev=prev, next=next_, member_count=len(members))

    def fetch_banner(self) -> Optional[str]:
        """Banner HTML, or None when the directory cannot be used."""
        try:
            return self.render_banner()
        except BannerUnavailable as e:
            logger.warning(f"Skipping polyring banner: {e}")
            return None

    def close(self):
        self.session.close()
