"""
HTTP transport shared by the Nominatim and Overpass lookups.
Every failure (timeout, connection error, non-2xx status) ends up as an empty
response body so callers can treat "no data" and "no answer" the same way.
"""
import os
import time
import logging
from threading import Lock

import requests

# Constants
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/lookup")
OVERPASS_URL = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
USER_AGENT = os.getenv("GEO_USER_AGENT", "OsmRelationResolver/1.0")
REQUEST_TIMEOUT = float(os.getenv("GEO_REQUEST_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("GEO_MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("GEO_RETRY_DELAY", "1.1"))
# Pause before every request; the public Nominatim instance allows about one per second
RATE_LIMIT_DELAY = float(os.getenv("GEO_RATE_LIMIT_DELAY", "1.1"))

# Get logger
logger = logging.getLogger(__name__)


class WebClient:
    def __init__(self, base_url, user_agent=USER_AGENT, timeout=REQUEST_TIMEOUT,
                 max_retries=MAX_RETRIES, retry_delay=RETRY_DELAY, rate_limit_delay=RATE_LIMIT_DELAY,
                 session=None):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.rate_limit_delay = rate_limit_delay
        # Shared by all threads using this client so the pause applies to the client as a whole
        self.rate_limit_lock = Lock()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def get(self, query: str) -> str:
        """Send `query` as the query string of a GET request."""
        url = f"{self.base_url}?{query}" if query else self.base_url
        return self._send("GET", url)

    def post(self, query: str) -> str:
        """Send `query` as the `data` form field of a POST request (Overpass QL)."""
        return self._send("POST", self.base_url, data={"data": query})

    def _wait_for_rate_limit(self):
        if self.rate_limit_delay <= 0:
            return
        with self.rate_limit_lock:
            time.sleep(self.rate_limit_delay)

    def _send(self, method, url, data=None) -> str:
        retries = 0
        while retries < self.max_retries:
            self._wait_for_rate_limit()
            try:
                response = self.session.request(method, url, data=data, timeout=self.timeout)

                if 200 <= response.status_code < 300:
                    return response.text

                retries += 1
                if response.status_code != 429 and response.status_code < 500:
                    logger.error(f"Client error: HTTP {response.status_code} from {self.base_url}")
                    return ""

                wait_time = self.retry_delay * retries
                logger.warning(f"HTTP error ({response.status_code}) from {self.base_url}. Retrying in {wait_time}s... (Attempt {retries}/{self.max_retries})")
                if retries < self.max_retries:
                    time.sleep(wait_time)

            except requests.RequestException as e:
                retries += 1
                wait_time = self.retry_delay * retries
                logger.warning(f"Network error for {self.base_url}: {e}. Retrying in {wait_time}s... (Attempt {retries}/{self.max_retries})")
                if retries < self.max_retries:
                    time.sleep(wait_time)

        logger.error(f"Failed to fetch {self.base_url} after {self.max_retries} attempts")
        return ""


def create_nominatim_client():
    return WebClient(NOMINATIM_URL)


def create_overpass_client():
    return WebClient(OVERPASS_URL)
