"""
自动折扣后台管理服务
"""

import logging
from typing import List

from laundrypro.api.exceptions import ValidationException, NotFoundException
from laundrypro.models.discount import AutomaticDiscount, AutomaticDiscountCreate, AutomaticDiscountUpdate
from laundrypro.repositories.discount_repository import DiscountRepository

logger = logging.getLogger(__name__)


class DiscountService:
    """自动折扣管理"""

    def __init__(self, discount_repo: DiscountRepository):
        self.discount_repo = discount_repo

    async def list_discounts(self, tenancy_id: str) -> List[AutomaticDiscount]:
        db_discounts = await self.discount_repo.list_discounts(tenancy_id)
        return [self.discount_repo.to_model(db_discount) for db_discount in db_discounts]

    async def get_discount(self, tenancy_id: str, discount_id: str) -> AutomaticDiscount:
        db_discount = await self.discount_repo.get_by_id(tenancy_id, discount_id)
        if not db_discount:
            raise NotFoundException("DISCOUNT_NOT_FOUND", "折扣不存在")
        return self.discount_repo.to_model(db_discount)

    async def create_discount(self, tenancy_id: str, discount_data: AutomaticDiscountCreate) -> AutomaticDiscount:
        db_discount = await self.discount_repo.create(tenancy_id, discount_data)
        logger.info(f"自动折扣已创建 tenancy={tenancy_id} discount={db_discount.discount_id}")
        return self.discount_repo.to_model(db_discount)

    async def update_discount(
        self,
        tenancy_id: str,
        discount_id: str,
        discount_data: AutomaticDiscountUpdate
    ) -> AutomaticDiscount:
        db_discount = await self.discount_repo.get_by_id(tenancy_id, discount_id)
        if not db_discount:
            raise NotFoundException("DISCOUNT_NOT_FOUND", "折扣不存在")

        start_date = discount_data.start_date or db_discount.start_date
        end_date = discount_data.end_date or db_discount.end_date
        if end_date <= start_date:
            raise ValidationException("INVALID_DATE_RANGE", "结束时间必须晚于开始时间")

        db_discount = await self.discount_repo.update(db_discount, discount_data)
        return self.discount_repo.to_model(db_discount)

    async def delete_discount(self, tenancy_id: str, discount_id: str) -> None:
        db_discount = await self.discount_repo.get_by_id(tenancy_id, discount_id)
        if not db_discount:
            raise NotFoundException("DISCOUNT_NOT_FOUND", "折扣不存在")
        await self.discount_repo.delete(db_discount)
        logger.info(f"自动折扣已删除 tenancy={tenancy_id} discount={discount_id}")
