"""HTTP client module for beecli.

Provides :class:`ApiClient`, a blocking client that wraps :mod:`httpx` with
retry on 5xx and network errors, exponential backoff, cancellation, and an
optional outer deadline, plus the :class:`RetryPolicy` it follows.

Example::

    from beecli.client import ApiClient, RetryPolicy

    with ApiClient(base_url, RetryPolicy(), cancel) as client:
        resp = client.get("/v1/me", headers={"Authorization": f"Bearer {token}"})
"""

from beecli.client.http import ApiClient, error_code
from beecli.client.retry import RetryPolicy

__all__ = ["ApiClient", "RetryPolicy", "error_code"]
