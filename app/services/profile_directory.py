"""
Client for the external profile directory (beneficiary profiles by id and
category). Only used to check that a beneficiary exists before charging.
"""

import logging
from urllib.parse import quote

import requests

from app.errors import DirectoryUnavailable

logger = logging.getLogger(__name__)


class ProfileDirectory:
    def __init__(self, base_url: str, *, timeout: float = 3.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def beneficiary_exists(self, beneficiary_id: str) -> bool:
        url = f"{self.base_url}/profiles/{quote(beneficiary_id, safe='')}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("profile directory unreachable: %s", e)
            raise DirectoryUnavailable("profile directory unreachable") from e

        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        logger.warning(
            "profile directory returned %s for %s", resp.status_code, beneficiary_id
        )
        raise DirectoryUnavailable(f"profile directory returned {resp.status_code}")
