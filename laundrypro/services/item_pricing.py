"""
衣物计价与配送费计算
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from laundrypro.core.config import settings
from laundrypro.models.order import (
    OrderItemInput,
    PricedLineItem,
    ServiceType,
    DeliveryDetails,
)

# 衣物基础价格（元）
BASE_PRICES = {
    # 男装
    "shirt": Decimal("30"),
    "t_shirt": Decimal("25"),
    "trouser": Decimal("40"),
    "jeans": Decimal("50"),
    "suit_2pc": Decimal("200"),
    "suit_3pc": Decimal("250"),
    "blazer": Decimal("150"),
    "jacket": Decimal("120"),
    "kurta": Decimal("40"),
    "sherwani": Decimal("300"),
    "coat": Decimal("150"),
    # 女装
    "blouse": Decimal("35"),
    "top": Decimal("30"),
    "kurti": Decimal("40"),
    "saree": Decimal("80"),
    "dress": Decimal("60"),
    "lehenga": Decimal("300"),
    # 童装
    "kids_shirt": Decimal("20"),
    "kids_dress": Decimal("25"),
    "kids_pant": Decimal("25"),
    # 家居
    "bedsheet": Decimal("60"),
    "curtain": Decimal("100"),
    "towel": Decimal("20"),
    "pillow_cover": Decimal("15"),
    "blanket": Decimal("150"),
}
DEFAULT_BASE_PRICE = Decimal("30")

SERVICE_MULTIPLIERS = {
    "wash_fold": Decimal("1"),
    "wash_iron": Decimal("1.3"),
    "premium_laundry": Decimal("1.8"),
    "dry_clean": Decimal("2"),
    "steam_press": Decimal("0.6"),
    "starching": Decimal("0.7"),
    "premium_steam_press": Decimal("0.9"),
    "premium_dry_clean": Decimal("2.5"),
    # 旧版服务
    "washing": Decimal("1"),
    "dry_cleaning": Decimal("2"),
    "ironing": Decimal("0.5"),
}

CATEGORY_MULTIPLIERS = {
    "normal": Decimal("1"),
    "delicate": Decimal("1.5"),
    "woolen": Decimal("2"),
}


def round_amount(value: Decimal) -> Decimal:
    """四舍五入到整数货币单位"""
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calculate_item_price(item: OrderItemInput, is_express: bool = False) -> PricedLineItem:
    """计算单个衣物项价格"""
    base_price = BASE_PRICES.get(item.item_type, DEFAULT_BASE_PRICE)
    service_multiplier = SERVICE_MULTIPLIERS.get(item.service, Decimal("1"))
    category_multiplier = CATEGORY_MULTIPLIERS.get(item.category.value, Decimal("1"))
    express_multiplier = settings.express_multiplier if is_express else Decimal("1")

    unit_price = round_amount(base_price * service_multiplier * category_multiplier * express_multiplier)

    return PricedLineItem(
        item_type=item.item_type,
        service=item.service,
        category=item.category.value,
        quantity=item.quantity,
        base_price=base_price,
        service_multiplier=service_multiplier,
        category_multiplier=category_multiplier,
        express_multiplier=express_multiplier,
        unit_price=unit_price,
        total_price=unit_price * item.quantity,
        special_instructions=item.special_instructions
    )


def price_line_items(items: List[OrderItemInput], is_express: bool = False) -> Tuple[List[PricedLineItem], Decimal, Decimal]:
    """
    计算全部衣物项
    返回 (订单项, 小计, 加急附加费)，加急费已包含在单价中，仅用于展示
    """
    priced = [calculate_item_price(item, is_express) for item in items]
    subtotal = sum((line.total_price for line in priced), Decimal("0"))

    express_charge = Decimal("0")
    if is_express:
        for line in priced:
            regular_unit = round_amount(line.base_price * line.service_multiplier * line.category_multiplier)
            express_charge += (line.unit_price - regular_unit) * line.quantity

    return priced, subtotal, express_charge


def calculate_delivery_charge(
    service_type: ServiceType,
    delivery_details: Optional[DeliveryDetails] = None
) -> Tuple[Decimal, Decimal]:
    """
    计算配送费及自取优惠
    返回 (实收配送费, 自取节省金额)
    """
    base_charge = settings.default_delivery_charge
    if delivery_details is not None and delivery_details.delivery_charge is not None:
        base_charge = delivery_details.delivery_charge

    if service_type == ServiceType.SELF_DROP_SELF_PICKUP:
        saving = min(settings.self_service_max_saving, base_charge)
        return Decimal("0"), saving

    if service_type in (ServiceType.SELF_DROP_HOME_DELIVERY, ServiceType.HOME_PICKUP_SELF_PICKUP):
        saving = min(settings.partial_self_service_max_saving, base_charge * Decimal("0.5"))
        return max(base_charge - saving, Decimal("0")), saving

    return base_charge, Decimal("0")
