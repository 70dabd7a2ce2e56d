"""
Upstream catalog client.

Issues one paginated recommendation request per query descriptor. A failing
request never raises: the query simply contributes no candidates, so one bad
source degrades the feed instead of aborting it.
"""

from typing import Any, List, Optional
import httpx
from pydantic import ValidationError

from feed.data.models import Candidate, QueryDescriptor, SourceResult
from utils.common_utils import get_logger

logger = get_logger(__name__)

RECOMMEND_PATH = "/recommend"


def parse_subjects(data: Any) -> List[Candidate]:
    """
    Parse a catalog response body into candidates. Safe for any shape.

    Args:
        data: Decoded JSON body, expected as {"subjects": [...]}

    Returns:
        Candidates for every well-formed subject; malformed ones are skipped
    """
    if not isinstance(data, dict):
        return []
    subjects = data.get("subjects") or []
    if not isinstance(subjects, list):
        return []

    candidates = []
    for subject in subjects:
        if not isinstance(subject, dict):
            continue
        try:
            candidate = Candidate.model_validate(subject)
        except ValidationError as e:
            logger.debug(f"Skipping malformed subject: {e.error_count()} errors")
            continue
        if not candidate.title.strip():
            continue
        candidates.append(candidate)
    return candidates


class CatalogClient:
    """Async client for the upstream recommendation catalog."""

    def __init__(
        self,
        base_url: str,
        page_size: int = 18,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize catalog client.

        Args:
            base_url: Catalog service base URL
            page_size: Items requested per query per page
            timeout: Transport timeout in seconds
            transport: Optional httpx transport (e.g. MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )
        logger.info(f"CatalogClient initialized for {self.base_url}")

    def offset_for(self, query: QueryDescriptor, page: int) -> int:
        return query.page_start + page * self.page_size

    async def fetch(self, query: QueryDescriptor, page: int) -> SourceResult:
        """
        Fetch one page of candidates for a query.

        Args:
            query: Query descriptor
            page: Zero-based page number

        Returns:
            SourceResult with the query label; empty candidates on any failure
        """
        offset = self.offset_for(query, page)
        params = {
            "tag": query.tag,
            "type": query.type,
            "page_limit": self.page_size,
            "page_start": offset,
        }

        try:
            response = await self._client.get(RECOMMEND_PATH, params=params)
            if not response.is_success:
                logger.warning(
                    f"Catalog request for {query.identity} at offset {offset} "
                    f"failed: {response.status_code}"
                )
                return SourceResult(label=query.label)
            data = response.json()
        except Exception as e:
            logger.warning(
                f"Catalog request for {query.identity} at offset {offset} failed: {e}"
            )
            return SourceResult(label=query.label)

        candidates = parse_subjects(data)
        logger.debug(
            f"Catalog returned {len(candidates)} candidates for {query.identity} at offset {offset}"
        )
        return SourceResult(label=query.label, candidates=candidates)

    async def aclose(self) -> None:
        await self._client.aclose()
