"""HTTP session helpers for embedding clients."""

from typing import Optional

import requests

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def create_session_with_pooling(
    pool_maxsize: int = 20,
    max_retries: int = 3,
    headers: Optional[dict[str, str]] = None,
) -> requests.Session:
    """Create a requests Session for one embedding server.

    The pool must hold at least as many connections as there are parallel
    embedding workers, otherwise urllib3 discards connections under load.

    Args:
        pool_maxsize: Maximum number of kept-alive connections.
        max_retries: Connection-level retries (not applied to HTTP errors).
        headers: Extra headers sent with every request.

    Returns:
        Configured requests Session.
    """
    session = requests.Session()
    session.headers.update({**JSON_HEADERS, **(headers or {})})
    adapter = requests.adapters.HTTPAdapter(
        pool_connections=1,
        pool_maxsize=pool_maxsize,
        max_retries=max_retries,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
