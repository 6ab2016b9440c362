# FILE: backend/tastelocal/api/endpoints/businesses.py
# TASTELOCAL - DISCOVERY ROUTER
# Public, read-only listing for customers.

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.business import BusinessSummary
from ...services.discovery_service import DiscoveryService, whatsapp_order_url
from .dependencies import get_discovery_service

router = APIRouter(tags=["Discovery"])


@router.get("", response_model=List[BusinessSummary], response_model_by_alias=True)
async def list_businesses(
    q: Optional[str] = Query(default=None, description="Matches name, location or description"),
    cuisine: Optional[str] = Query(default=None, description="Exact cuisine tag, or 'all'"),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    return await discovery.search(query=q, cuisine=cuisine)


@router.get("/{business_id}", response_model=BusinessSummary, response_model_by_alias=True)
async def get_business(business_id: str, discovery: DiscoveryService = Depends(get_discovery_service)):
    summary = await discovery.get_summary(business_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Business not found")
    return summary


@router.get("/{business_id}/order-link")
async def get_order_link(
    business_id: str,
    items: List[str] = Query(..., description="Menu item names, one per 'items' parameter"),
    customer_name: Optional[str] = Query(default=None, alias="customerName"),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """WhatsApp deep link that opens a chat with the business, pre-filled with the order."""
    summary = await discovery.get_summary(business_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Business not found")
    try:
        return {"url": whatsapp_order_url(summary, items, customer_name)}
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
