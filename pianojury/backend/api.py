import os
import logging
from urllib.parse import urljoin
from typing import Any, Mapping, Optional, Sequence

import requests
from dotenv import load_dotenv

from .utils import encode_filters, open_session

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Raised when the hosted table API cannot serve a request."""


class BackendClient:
    """Thin client over the hosted backend's REST table interface."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: int = 30,
    ):
        load_dotenv()
        url = base_url or os.getenv("BACKEND_URL")
        if not url:
            raise ValueError("Environment variable 'BACKEND_URL' is not set")

        self.base_url = url.rstrip("/") + "/rest/v1"
        self.session = open_session(api_key=api_key, access_token=access_token)
        self.timeout = timeout

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        try:
            r = self.session.request(
                method=method.upper(),
                url=url,
                params=params,
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"{method.upper()} {path} failed: {e}")
            raise BackendError(f"Backend request {method.upper()} {path} failed: {e}") from e
        return r.json() if r.content else None

    # -------- table helpers --------
    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Return rows of ``table`` matching ``filters``.

        ``order`` items take the form ``"column.asc"`` / ``"column.desc"``.
        """
        params = {"select": columns, **encode_filters(filters)}
        if order:
            params["order"] = ",".join(order)
        if limit is not None:
            params["limit"] = str(limit)
        logger.debug(f"Selecting from {table} with {sorted(params)}")
        return self._request("GET", table, params=params) or []
