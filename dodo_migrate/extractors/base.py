"""Base importer interface for source providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import base64
import logging
from datetime import datetime, timezone

import requests
from dateutil import parser as date_parser
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import SourceFetchError
from ..models.discount import CanonicalDiscount, DiscountDuration

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of raw records returned by a provider list call."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[Any] = None


class BaseDiscountImporter(ABC):
    """
    Base class for all discount importers.

    Importers pull every discount from a source provider, following its
    pagination, and map each raw record to a CanonicalDiscount. A failed
    or malformed page aborts the whole import with SourceFetchError;
    partial results are never returned.
    """

    PROVIDER: str = ""
    BASE_URL: str = ""
    SANDBOX_URL: Optional[str] = None
    DEFAULT_HEADERS: Dict[str, str] = {"Accept": "application/json"}
    # Extra constructor arguments, offered as command-line flags: name -> help.
    OPTIONS: Dict[str, str] = {}
    REQUIRED_OPTIONS: Tuple[str, ...] = ()

    def __init__(
        self,
        api_key: str,
        environment: str = "production",
        page_size: int = 100,
        max_pages: int = 1000,
        max_retries: int = 0,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the importer.

        Args:
            api_key: Provider API key
            environment: ``production`` or ``sandbox`` where the provider has one
            page_size: Records requested per page
            max_pages: Hard upper bound on pages followed in one import
            max_retries: Transport-level retries for 429/5xx (none by default)
            timeout: Per-request timeout in seconds
            session: Custom requests session
        """
        self.api_key = api_key
        self.environment = environment
        self.page_size = page_size
        self.max_pages = max_pages
        self.max_retries = max_retries
        self.timeout = timeout
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with auth headers and an optional retry policy."""
        session = requests.Session()

        retries = Retry(
            total=self.max_retries,
            backoff_factor=2.0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update(self.DEFAULT_HEADERS)
        session.headers.update(self._get_auth_headers())

        return session

    def _get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    @property
    def base_url(self) -> str:
        """Base URL for the configured environment."""
        if self.environment == "sandbox" and self.SANDBOX_URL:
            return self.SANDBOX_URL
        return self.BASE_URL

    @abstractmethod
    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        """
        Fetch one page of raw discount records.

        Args:
            cursor: Provider-specific position; None for the first page

        Returns:
            The page's items and the cursor of the next page (None when done)
        """
        pass

    @abstractmethod
    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        """
        Map one raw provider record to the canonical model.

        Returns None when the record cannot be represented at all.
        """
        pass

    def map_records(
        self,
        raw: Dict[str, Any],
        lookups: Dict[str, Any]
    ) -> Iterable[CanonicalDiscount]:
        """Map a raw record to zero or more canonical discounts."""
        discount = self.map_to_canonical(raw, lookups)
        if discount is None:
            logger.warning(f"Skipping {self.PROVIDER} discount {raw.get('id')}: no usable discount value")
            return []
        return [discount]

    def iter_pages(self) -> Iterator[Page]:
        """Follow the provider's pagination until the last page."""
        cursor = None

        for page_index in range(self.max_pages):
            page = self.fetch_page(cursor)
            logger.debug(f"Fetched {len(page.items)} {self.PROVIDER} discounts (page {page_index + 1})")
            yield page

            if page.next_cursor is None or not page.items:
                return
            cursor = page.next_cursor

        raise SourceFetchError(
            self.PROVIDER,
            f"Pagination did not finish within {self.max_pages} pages",
        )

    def import_discounts(self) -> List[CanonicalDiscount]:
        """
        Import every discount from the provider.

        Returns:
            All discounts, in provider order

        Raises:
            SourceFetchError: If any list call fails or returns an unexpected shape
        """
        discounts = []
        # Lookups (e.g. store currencies) live only for this call.
        lookups: Dict[str, Any] = {}

        for page in self.iter_pages():
            for raw in page.items:
                if not isinstance(raw, dict):
                    raise SourceFetchError(self.PROVIDER, f"Unexpected record type: {type(raw).__name__}")
                discounts.extend(self.map_records(raw, lookups))

        logger.info(f"Found {len(discounts)} discounts in {self.PROVIDER}")
        return discounts

    def validate_connection(self) -> bool:
        """Check the credentials by fetching the first page."""
        try:
            self.fetch_page(None)
            return True
        except SourceFetchError as e:
            logger.error(f"{self.PROVIDER} connection validation failed: {e}")
            return False

    def _get_body(
        self,
        path_or_url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        GET a JSON document of any shape from the provider.

        Raises:
            SourceFetchError: On transport errors, non-2xx statuses or non-JSON bodies
        """
        url = path_or_url if path_or_url.startswith("http") else f"{self.base_url}{path_or_url}"

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(self.PROVIDER, f"Request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise SourceFetchError(self.PROVIDER, _error_text(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise SourceFetchError(self.PROVIDER, "Response body is not valid JSON", response.status_code) from e
        return data

    def _get_json(
        self,
        path_or_url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        GET a JSON object from the provider.

        Raises:
            SourceFetchError: On transport errors, non-2xx statuses, non-JSON
                bodies, or bodies reporting an error
        """
        data = self._get_body(path_or_url, params)

        if not isinstance(data, dict):
            raise SourceFetchError(self.PROVIDER, "Response body is not a JSON object")

        if data.get("error") or data.get("errors"):
            raise SourceFetchError(self.PROVIDER, str(data.get("error") or data.get("errors")))

        return data

    def _require_list(self, data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        items = data.get(key)
        if not isinstance(items, list):
            raise SourceFetchError(self.PROVIDER, f"Response is missing the '{key}' list")
        return items

    def map_duration(self, value: Any, label: str) -> DiscountDuration:
        """Map a provider duration onto once/repeating/forever, falling back to once."""
        try:
            return DiscountDuration(value)
        except ValueError:
            logger.warning(f"Unknown duration type '{value}' for discount {label}, defaulting to 'once'")
            return DiscountDuration.ONCE


def is_past(timestamp: Optional[str], now: Optional[datetime] = None) -> bool:
    """True when an ISO timestamp lies before ``now`` (naive values are read as UTC)."""
    if not timestamp:
        return False
    try:
        dt = date_parser.parse(str(timestamp))
    except (ValueError, OverflowError):
        logger.warning(f"Could not parse timestamp '{timestamp}'")
        return False
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt < (now or datetime.now(timezone.utc))


def unix_to_iso(value: Any) -> Optional[str]:
    """Convert a Unix timestamp to an ISO 8601 UTC string."""
    if value is None:
        return None
    dt = datetime.fromtimestamp(int(value), tz=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def _error_text(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or response.reason or "Unknown error"
    if isinstance(body, dict):
        error = body.get("error") or body.get("errors") or body.get("detail") or body
        if isinstance(error, dict):
            return str(error.get("message") or error.get("detail") or error)
        return str(error)
    return str(body)


def basic_auth_header(username: str, password: str) -> Dict[str, str]:
    """Authorization header for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}
