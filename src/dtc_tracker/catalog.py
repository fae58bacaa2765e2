import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import requests

from .config import DTC_NAME_FILTERS, REQUEST_TIMEOUT_SECONDS, TLE_URL
from .errors import CatalogFetchFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogRecord:
    """One three-line element set: a designation and its two TLE lines."""

    name: str
    line1: str
    line2: str


@dataclass(frozen=True)
class CatalogFetch:
    """Outcome of one catalog download.

    A successful fetch may still carry no records when the name filter
    matched nothing; callers check ``ok`` to tell that apart from a failure.
    """

    records: Tuple[CatalogRecord, ...] = ()
    error: Optional[CatalogFetchFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_catalog(text: str) -> List[CatalogRecord]:
    """Group the non-empty lines of a TLE document into records."""
    lines = [line for line in text.splitlines() if line.strip()]
    records = []

    # 3 lines per satellite: name, line1, line2
    for i in range(0, len(lines) - 2, 3):
        records.append(
            CatalogRecord(
                name=lines[i].strip(), line1=lines[i + 1], line2=lines[i + 2]
            )
        )

    return records


def filter_by_name(
    records: Iterable[CatalogRecord], substrings: Optional[Iterable[str]]
) -> List[CatalogRecord]:
    """Keep records whose designation contains any of the substrings."""
    needles = [s.casefold() for s in substrings or () if s]
    if not needles:
        return list(records)

    return [
        record
        for record in records
        if any(needle in record.name.casefold() for needle in needles)
    ]


class CatalogLoader:
    """Downloads and filters the element set catalog."""

    def __init__(
        self,
        url: str = TLE_URL,
        name_filters: Optional[Iterable[str]] = DTC_NAME_FILTERS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.url = url
        self.name_filters = tuple(name_filters or ())
        self.timeout = timeout

    def _fetch_text(self) -> str:
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        return response.text

    def load(self) -> CatalogFetch:
        """Fetch the catalog once. Never raises for transport problems."""
        logger.info("Fetching TLE data from %s", self.url)
        try:
            text = self._fetch_text()
        except requests.RequestException as exc:
            logger.error("Failed to fetch TLE data: %s", exc)
            return CatalogFetch(error=CatalogFetchFailure(str(exc)))

        records = filter_by_name(parse_catalog(text), self.name_filters)

        if not records:
            logger.warning(
                "No satellites matched %s in the TLE data. "
                "The naming convention may have changed.",
                ", ".join(self.name_filters),
            )
        else:
            logger.info("Loaded %d satellites", len(records))

        return CatalogFetch(records=tuple(records))
