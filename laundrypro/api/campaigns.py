"""
营销活动后台管理接口
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from laundrypro.api.deps import require_tenancy_id, get_campaign_service
from laundrypro.models.campaign import CampaignCreate, CampaignStatus, CampaignUpdate
from laundrypro.services.campaign_service import CampaignService

router = APIRouter(prefix="/api/admin/campaigns", tags=["营销活动管理"])


@router.get("")
async def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    tenancy_id: str = Depends(require_tenancy_id),
    service: CampaignService = Depends(get_campaign_service)
):
    campaigns = await service.list_campaigns(tenancy_id, status_filter)
    return {"success": True, "data": {"campaigns": campaigns}}


@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: str,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CampaignService = Depends(get_campaign_service)
):
    campaign = await service.get_campaign(tenancy_id, campaign_id)
    return {"success": True, "data": {"campaign": campaign}}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_campaign(
    campaign_data: CampaignCreate,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CampaignService = Depends(get_campaign_service)
):
    campaign = await service.create_campaign(tenancy_id, campaign_data)
    return {"success": True, "message": "活动创建成功", "data": {"campaign": campaign}}


@router.put("/{campaign_id}")
async def update_campaign(
    campaign_id: str,
    campaign_data: CampaignUpdate,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CampaignService = Depends(get_campaign_service)
):
    campaign = await service.update_campaign(tenancy_id, campaign_id, campaign_data)
    return {"success": True, "message": "活动更新成功", "data": {"campaign": campaign}}


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: str,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CampaignService = Depends(get_campaign_service)
):
    await service.delete_campaign(tenancy_id, campaign_id)
    return {"success": True, "message": "活动已删除"}
