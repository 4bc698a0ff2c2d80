"""Site list sources for batch runs.

Sites come either from a static file or from a discovery query filtered by
site template. Either way the result is an ordered list of site URLs with
duplicates removed, keeping the first occurrence.

Classes:
    SiteListProcessor: Loads site URLs from a text, CSV or JSON file
    SiteDiscovery: Lists sites through the admin API and filters by template
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from .api.client import SharePointAdminClient
from .errors import ValidationError

logger = logging.getLogger(__name__)

URL_COLUMNS = ("url", "site_url", "siteurl")


def normalize_site_url(value: str) -> str:
    """Strip whitespace and a trailing slash from a site URL."""
    return value.strip().rstrip("/")


def is_valid_site_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme == "https" and bool(parsed.netloc)


def dedupe(urls: Iterable[str]) -> List[str]:
    """Remove duplicates, keeping the first occurrence and the input order."""
    seen = set()
    ordered = []
    for url in urls:
        key = url.lower()
        if key not in seen:
            seen.add(key)
            ordered.append(url)
    return ordered


class SiteListProcessor:
    """Loads site URLs from a file.

    Supported formats, chosen by extension:
        .txt: one URL per line, ``#`` starts a comment
        .csv: a ``Url`` (or ``site_url``) column
        .json: a list of URLs or ``{"sites": [...]}``
    """

    def __init__(self, file_path: Path):
        self.file_path = file_path

    def load(self) -> List[str]:
        """Load, validate and de-duplicate the site list.

        Raises:
            ValidationError: If the file is missing, malformed or holds invalid URLs
        """
        if not self.file_path.exists():
            raise ValidationError(f"Site list not found: {self.file_path}")

        suffix = self.file_path.suffix.lower()
        if suffix == ".csv":
            raw = self._load_csv()
        elif suffix == ".json":
            raw = self._load_json()
        else:
            raw = self._load_text()

        urls = [normalize_site_url(url) for url in raw if url and url.strip()]
        invalid = [url for url in urls if not is_valid_site_url(url)]
        if invalid:
            raise ValidationError(
                f"Invalid site URLs in {self.file_path}: {', '.join(invalid[:5])}",
                context={"invalid": invalid},
            )

        sites = dedupe(urls)
        if len(sites) != len(urls):
            logger.info("Removed %d duplicate sites from %s", len(urls) - len(sites), self.file_path)
        return sites

    def _load_text(self) -> List[str]:
        with open(self.file_path, "r", encoding="utf-8") as f:
            return [line.split("#", 1)[0].strip() for line in f]

    def _load_csv(self) -> List[str]:
        with open(self.file_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                raise ValidationError(f"CSV file {self.file_path} has no headers")
            column = next(
                (
                    name
                    for name in reader.fieldnames
                    if name.lower().replace("-", "_").strip() in URL_COLUMNS
                ),
                None,
            )
            if column is None:
                raise ValidationError(f"CSV file {self.file_path} has no Url column")
            return [row.get(column) or "" for row in reader]

    def _load_json(self) -> List[str]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {self.file_path}: {e}") from e
        if isinstance(data, dict):
            data = data.get("sites", [])
        if not isinstance(data, list):
            raise ValidationError(f"{self.file_path} must hold a list of site URLs")
        return [item if isinstance(item, str) else item.get("url", "") for item in data]


class SiteDiscovery:
    """Finds sites through the admin API."""

    def __init__(self, client: SharePointAdminClient):
        self.client = client

    def discover(
        self,
        templates: Optional[Iterable[str]] = None,
        exclude_templates: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """List site URLs, optionally filtered by template.

        Args:
            templates: Only keep sites whose template is one of these
            exclude_templates: Drop sites whose template is one of these

        Returns:
            Ordered, de-duplicated site URLs
        """
        include = {t.upper() for t in templates} if templates else None
        exclude = {t.upper() for t in exclude_templates} if exclude_templates else set()

        records = self.client.list_sites(sorted(include) if include else None)
        return dedupe(
            normalize_site_url(record["url"])
            for record in records
            if self._matches(record, include, exclude)
        )

    @staticmethod
    def _matches(record: Dict[str, Any], include: Optional[set], exclude: set) -> bool:
        template = str(record.get("template", "")).upper()
        if not record.get("url"):
            return False
        if include is not None and template not in include:
            return False
        return template not in exclude
