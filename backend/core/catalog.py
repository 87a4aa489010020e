import copy
import logging
from typing import Any, Dict, List, Optional

from core.client import ApiError
from core.sample_data import SAMPLE_CATALOG, COMMON_TERMS

logger = logging.getLogger(__name__)

EMPTY_STATS = {"totalResources": 0, "totalUsers": 0, "totalRequests": 0}


class Catalog:
    """Read-mostly cache of the public catalogue.

    The tree is fetched once and kept until ``refresh()``; writes made
    through other endpoints are not reflected until then. If the fetch
    fails the bundled sample catalogue is used instead.
    """

    def __init__(self, client):
        self.client = client
        self.universities: List[Dict[str, Any]] = []
        self.all_resources: List[Dict[str, Any]] = []
        self.error: Optional[str] = None
        self.using_fallback = False
        self.loaded = False

    def load(self) -> "Catalog":
        if not self.loaded:
            self.refresh()
        return self

    def refresh(self) -> "Catalog":
        self.error = None
        try:
            data = self.client.catalog()
            self.using_fallback = False
        except ApiError as e:
            logger.warning("catalogue unavailable, using sample data: %s", e)
            self.error = str(e)
            data = copy.deepcopy(SAMPLE_CATALOG)
            self.using_fallback = True
        self.universities = data.get("universities") or []
        self.all_resources = self._flatten(data)
        self.loaded = True
        return self

    @staticmethod
    def _flatten(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        resources = []
        for university in data.get("universities") or []:
            for domain in university.get("domains") or []:
                for subject in domain.get("subjects") or []:
                    for resource in subject.get("resources") or []:
                        item = dict(resource)
                        item.setdefault("type", "university")
                        item.setdefault("university", {"id": university["id"], "name": university["name"]})
                        item.setdefault("domain", {"id": domain["id"], "name": domain["name"]})
                        item.setdefault("subject", {"id": subject["id"], "name": subject["name"]})
                        resources.append(item)
        resources.extend(data.get("skills") or [])
        resources.extend(data.get("exams") or [])
        return resources

    def search_resources(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        if not query or not query.strip():
            return []
        self.load()
        term = query.strip().lower()
        return [r for r in self.all_resources if _matches(r, term)][:limit]

    def get_recent_resources(self, limit: int = 6) -> List[Dict[str, Any]]:
        self.load()
        dated = [r for r in self.all_resources if r.get("created_at")]
        dated.sort(key=lambda r: r["created_at"], reverse=True)
        return dated[:limit]

    def get_stats(self) -> Dict[str, int]:
        try:
            stats = self.client.stats()
        except ApiError as e:
            logger.warning("stats unavailable: %s", e)
            return dict(EMPTY_STATS)
        return {key: int(stats.get(key) or 0) for key in EMPTY_STATS}

    def extract_searchable_terms(self) -> List[Dict[str, str]]:
        """Autocomplete suggestions: hierarchy names, resource titles, then common terms."""
        self.load()
        terms: List[Dict[str, str]] = []
        seen = set()

        def add(text, kind):
            if text and (text, kind) not in seen:
                seen.add((text, kind))
                terms.append({"text": text, "type": kind})

        for university in self.universities:
            add(university.get("name"), "university")
            for domain in university.get("domains") or []:
                add(domain.get("name"), "domain")
                for subject in domain.get("subjects") or []:
                    add(subject.get("name"), "subject")
                    for resource in subject.get("resources") or []:
                        add(resource.get("title"), "resource")
        for term in COMMON_TERMS:
            add(term, "general")
        return terms


def _named(value) -> str:
    if isinstance(value, dict):
        return value.get("name") or ""
    return value or ""


def _matches(resource: Dict[str, Any], term: str) -> bool:
    fields = [
        resource.get("title") or "",
        resource.get("description") or "",
        _named(resource.get("subject")),
        _named(resource.get("domain")),
        _named(resource.get("university")),
        _named(resource.get("skill")),
        _named(resource.get("exam")),
    ]
    return any(term in field.lower() for field in fields)
