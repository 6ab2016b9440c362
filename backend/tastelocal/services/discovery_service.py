# FILE: backend/tastelocal/services/discovery_service.py
# TASTELOCAL - CONSUMER DISCOVERY (READ PATH)
# 1. Reads the whole business collection; never touches the owner write path.
# 2. Placeholder documents (blank name, or an id equal to the collection name) are hidden.
# 3. Filtering is a pure function of the listing and the criteria; no server-side pushdown.

import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

import structlog
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..core.config import settings
from ..models.business import BusinessSummary

logger = structlog.get_logger(__name__)

RESERVED_IDS = frozenset({"Businesses", "businesses"})
ALL_CUISINES = "all"


def _is_listable(doc: dict) -> bool:
    name = doc.get("name")
    return isinstance(name, str) and name.strip() != "" and doc.get("id") not in RESERVED_IDS


def filter_businesses(
    listing: Iterable[BusinessSummary],
    query: Optional[str] = None,
    cuisine: Optional[str] = None,
) -> List[BusinessSummary]:
    """Case-insensitive substring match over name/location/description plus exact cuisine match."""
    needle = (query or "").strip().lower()
    wanted_cuisine = (cuisine or "").strip().lower()
    if wanted_cuisine == ALL_CUISINES:
        wanted_cuisine = ""

    results = []
    for business in listing:
        if needle:
            haystack = (business.name, business.location, business.description)
            if not any(needle in field.lower() for field in haystack):
                continue
        if wanted_cuisine and (business.cuisine or "").strip().lower() != wanted_cuisine:
            continue
        results.append(business)
    return results


def whatsapp_order_url(business: BusinessSummary, items: Sequence[str], customer_name: Optional[str] = None) -> str:
    """wa.me deep link that opens a chat with the business, pre-filled with the order."""
    digits = re.sub(r"\D", "", business.phone)
    if not digits:
        raise ValueError(f"Business '{business.id}' has no phone number for WhatsApp orders")

    lines = [f"Hi {business.name}, I'd like to order:"]
    lines.extend(f"- {item}" for item in items)
    if customer_name:
        lines.append(f"Name: {customer_name}")
    return f"https://wa.me/{digits}?text={quote(chr(10).join(lines))}"


class DiscoveryService:
    def __init__(self, documents, collection: Optional[str] = None):
        self.documents = documents
        self.collection = collection or settings.BUSINESSES_COLLECTION

    def _summaries(self, docs: Iterable[dict]) -> List[BusinessSummary]:
        summaries = []
        for doc in docs:
            if not _is_listable(doc):
                continue
            try:
                summaries.append(BusinessSummary.model_validate(doc))
            except ValidationError as e:
                logger.warning("discovery.skipped_malformed", business_id=doc.get("id"), error=str(e))
        return summaries

    async def list_all(self) -> List[BusinessSummary]:
        try:
            docs = await self.documents.query_all(self.collection)
        except PyMongoError as e:
            logger.error("discovery.list_failed", error=str(e))
            return []
        return self._summaries(docs)

    async def search(self, query: Optional[str] = None, cuisine: Optional[str] = None) -> List[BusinessSummary]:
        return filter_businesses(await self.list_all(), query=query, cuisine=cuisine)

    async def get_summary(self, business_id: str) -> Optional[BusinessSummary]:
        if business_id in RESERVED_IDS:
            return None
        doc = await self.documents.get(self.collection, business_id)
        if doc is None:
            return None
        summaries = self._summaries([doc])
        return summaries[0] if summaries else None
