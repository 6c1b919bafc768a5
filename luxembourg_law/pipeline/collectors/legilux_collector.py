"""
Legilux collector: SPARQL endpoint and filestore XML.

All outbound requests go through one `RequestScheduler` so that the shared
public endpoint sees at most one request per `min_delay` seconds, whichever
phase (discovery, fetch, update check) issues it.
"""
import asyncio
import re
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import httpx

from luxembourg_law.config.settings import settings
from luxembourg_law.utils.logger import get_logger
from luxembourg_law.utils.tree import get_path

logger = get_logger(__name__)

SPARQL_ACCEPT = "application/sparql-results+json"
XML_ACCEPT = "application/xml"
LEGILUX_HOST_PREFIX = re.compile(r"^https?://data\.legilux\.public\.lu/")
FILESTORE_BASE = "https://data.legilux.public.lu/filestore"


class SparqlQueryError(Exception):
    """SPARQL endpoint answered with an error (or not at all)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RequestScheduler:
    """
    Serializes outbound requests with a minimum spacing.

    Holds the single "earliest next request" timestamp; it is advanced after
    every call made inside `slot()`.
    """

    def __init__(
        self,
        min_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.min_delay = settings.request_min_delay_seconds if min_delay is None else min_delay
        self._clock = clock
        self._sleep = sleep
        self._next_allowed: Optional[float] = None
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._lock:
            if self._next_allowed is not None:
                wait = self._next_allowed - self._clock()
                if wait > 0:
                    await self._sleep(wait)
            try:
                yield
            finally:
                self._next_allowed = self._clock() + self.min_delay


def build_xml_url(eli_uri: str) -> str:
    """
    Filestore XML URL for an ELI URI.

    http://data.legilux.public.lu/eli/etat/leg/loi/2026/02/05/a33/jo
    -> https://data.legilux.public.lu/filestore/eli/etat/leg/loi/2026/02/05/a33/jo/fr/xml/
       eli-etat-leg-loi-2026-02-05-a33-jo-fr-xml.xml
    """
    path = LEGILUX_HOST_PREFIX.sub("", eli_uri)
    fr_xml_path = f"{path}/fr/xml"
    filename = fr_xml_path.replace("/", "-")
    return f"{FILESTORE_BASE}/{fr_xml_path}/{filename}.xml"


def is_html_error_page(text: str) -> bool:
    # Legilux sometimes answers 200 with an HTML error page
    return text.startswith("<!DOCTYPE html") or text.startswith("<html")


class LegiluxClient:
    """Rate-limited async client for the Legilux endpoints"""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        scheduler: Optional[RequestScheduler] = None,
        *,
        sparql_endpoint: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.scheduler = scheduler or RequestScheduler()
        self.sparql_endpoint = sparql_endpoint or settings.legilux_sparql_endpoint
        self.user_agent = user_agent or settings.user_agent

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.http_timeout_seconds,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "LegiluxClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def sparql_query(self, query: str) -> list[dict]:
        """
        Run a SPARQL SELECT (GET only on the Virtuoso endpoint).

        Returns:
            result bindings

        Raises:
            SparqlQueryError: non-2xx answer, transport failure or unreadable payload
        """
        headers = {"Accept": SPARQL_ACCEPT, "User-Agent": self.user_agent}

        async with self.scheduler.slot():
            try:
                response = await self._client.get(
                    self.sparql_endpoint, params={"query": query}, headers=headers
                )
            except httpx.HTTPError as e:
                raise SparqlQueryError(f"SPARQL request failed: {e}") from e

        if not response.is_success:
            raise SparqlQueryError(
                f"SPARQL query failed ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SparqlQueryError(f"SPARQL response is not JSON: {e}") from e

        bindings = get_path(data, ("results", "bindings"), [])
        return bindings if isinstance(bindings, list) else []

    async def fetch_text(
        self,
        url: str,
        *,
        accept: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        """
        GET a URL through the scheduler.

        Returns:
            body text, or None on transport error / non-2xx
        """
        headers = {"User-Agent": self.user_agent}
        if accept:
            headers["Accept"] = accept

        async with self.scheduler.slot():
            try:
                kwargs: dict[str, Any] = {"headers": headers}
                if timeout is not None:
                    kwargs["timeout"] = timeout
                response = await self._client.get(url, **kwargs)
            except httpx.HTTPError as e:
                logger.debug(f"HTTP error fetching {url}: {e}")
                return None

        if not response.is_success:
            logger.debug(f"HTTP {response.status_code} for {url}")
            return None

        return response.text

    async def fetch_xml(self, url: str) -> Optional[str]:
        """
        Fetch an XML document.

        Returns:
            raw XML, or None for failures and HTML error pages
        """
        text = await self.fetch_text(url, accept=XML_ACCEPT)
        if text is None or is_html_error_page(text):
            return None
        return text
