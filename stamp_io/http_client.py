"""
HTTP GET with the retry contract shared by tile fetching and geocoding.

Each call is independent: no session or connection pool is shared, so the
helper is safe to call from worker threads.
"""

import logging
import time
from typing import Dict, Optional

import requests

from constants import CONNECT_TIMEOUT, READ_TIMEOUT, HTTP_RETRIES, RETRY_BACKOFF

logger = logging.getLogger(__name__)


def get_with_retry(
    url: str,
    params: Optional[Dict] = None,
    headers: Optional[Dict[str, str]] = None,
    retries: int = HTTP_RETRIES,
    backoff: float = RETRY_BACKOFF,
) -> requests.Response:
    """
    GET a URL with timeouts, TLS fallback and fixed-backoff retries.

    TLS certificates are verified first. A verification failure is retried
    once with verification disabled. Connection errors and timeouts are
    retried up to ``retries`` more times, sleeping ``backoff`` seconds
    between attempts.

    Args:
        url: Absolute URL to fetch
        params: Optional query parameters
        headers: Optional request headers
        retries: Additional attempts after the first on connection failures
        backoff: Seconds to sleep between attempts

    Returns:
        The response, whatever its status code

    Raises:
        requests.RequestException: When every attempt failed
    """
    verify = True
    attempts = 0

    while True:
        try:
            return requests.get(
                url,
                params=params,
                headers=headers,
                timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
                verify=verify,
            )
        except requests.exceptions.SSLError as e:
            # SSLError subclasses ConnectionError, so it must be handled first
            if not verify:
                raise
            logger.warning(f"TLS verification failed for {url}, retrying without verification: {e}")
            verify = False
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            attempts += 1
            if attempts > retries:
                raise
            logger.warning(f"Request to {url} failed ({e}), retry {attempts}/{retries}")
            time.sleep(backoff)
