"""
营销活动后台管理服务
"""

import logging
from typing import List, Optional

from laundrypro.api.exceptions import ValidationException, NotFoundException
from laundrypro.models.campaign import Campaign, CampaignCreate, CampaignStatus, CampaignUpdate
from laundrypro.repositories.campaign_repository import CampaignRepository

logger = logging.getLogger(__name__)


class CampaignService:
    """营销活动管理"""

    def __init__(self, campaign_repo: CampaignRepository):
        self.campaign_repo = campaign_repo

    async def list_campaigns(self, tenancy_id: str, status: Optional[CampaignStatus] = None) -> List[Campaign]:
        db_campaigns = await self.campaign_repo.list_campaigns(tenancy_id, status.value if status else None)
        return [self.campaign_repo.to_model(db_campaign) for db_campaign in db_campaigns]

    async def get_campaign(self, tenancy_id: str, campaign_id: str) -> Campaign:
        db_campaign = await self.campaign_repo.get_by_id(tenancy_id, campaign_id)
        if not db_campaign:
            raise NotFoundException("CAMPAIGN_NOT_FOUND", "活动不存在")
        return self.campaign_repo.to_model(db_campaign)

    async def create_campaign(self, tenancy_id: str, campaign_data: CampaignCreate) -> Campaign:
        db_campaign = await self.campaign_repo.create(tenancy_id, campaign_data)
        logger.info(f"营销活动已创建 tenancy={tenancy_id} campaign={db_campaign.campaign_id}")
        return self.campaign_repo.to_model(db_campaign)

    async def update_campaign(self, tenancy_id: str, campaign_id: str, campaign_data: CampaignUpdate) -> Campaign:
        db_campaign = await self.campaign_repo.get_by_id(tenancy_id, campaign_id)
        if not db_campaign:
            raise NotFoundException("CAMPAIGN_NOT_FOUND", "活动不存在")

        start_date = campaign_data.start_date or db_campaign.start_date
        end_date = campaign_data.end_date or db_campaign.end_date
        if end_date <= start_date:
            raise ValidationException("INVALID_DATE_RANGE", "结束时间必须晚于开始时间")

        db_campaign = await self.campaign_repo.update(db_campaign, campaign_data)
        return self.campaign_repo.to_model(db_campaign)

    async def delete_campaign(self, tenancy_id: str, campaign_id: str) -> None:
        db_campaign = await self.campaign_repo.get_by_id(tenancy_id, campaign_id)
        if not db_campaign:
            raise NotFoundException("CAMPAIGN_NOT_FOUND", "活动不存在")
        await self.campaign_repo.delete(db_campaign)
        logger.info(f"营销活动已删除 tenancy={tenancy_id} campaign={campaign_id}")
