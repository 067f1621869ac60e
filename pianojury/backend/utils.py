import os
import logging
from typing import Any, Mapping, Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def open_session(api_key: Optional[str] = None, access_token: Optional[str] = None):
    """Open a requests session preconfigured for the hosted table API.

    Parameters
    ----------
    api_key : Optional[str]
        Project key sent as the ``apikey`` header. Defaults to
        ``BACKEND_API_KEY``.
    access_token : Optional[str]
        Token of the signed-in user, issued by the external identity
        provider. Defaults to ``BACKEND_ACCESS_TOKEN`` and then to the
        project key.

    Returns
    -------
    requests.Session
        Session whose default headers authenticate every request.

    Raises
    ------
    RuntimeError
        If no API key is configured.
    """
    key = api_key or os.environ.get("BACKEND_API_KEY")
    if not key:
        raise RuntimeError("Environment variable 'BACKEND_API_KEY' is not set")
    token = access_token or os.environ.get("BACKEND_ACCESS_TOKEN") or key

    session = requests.Session()
    session.headers.update(
        {
            "apikey": key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
    )
    # Never log the key or token themselves
    logger.debug("Backend session opened (credentials redacted)")
    return session


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filters(filters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Translate ``{column: value}`` into row-filter query parameters.

    Scalars become ``eq`` filters, lists/tuples/sets become ``in`` filters
    and ``None`` becomes ``is.null``.
    """
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, (list, tuple, set, frozenset)):
            joined = ",".join(_format_value(v) for v in value)
            params[column] = f"in.({joined})"
        else:
            params[column] = f"eq.{_format_value(value)}"
    return params
