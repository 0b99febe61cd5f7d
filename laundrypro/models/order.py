"""
订单相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from enum import Enum

from laundrypro.models.discount import AppliedDiscount
from laundrypro.models.campaign import AppliedCampaign


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PLACED = "placed"
    ASSIGNED_TO_BRANCH = "assigned_to_branch"
    ASSIGNED_TO_LOGISTICS_PICKUP = "assigned_to_logistics_pickup"
    PICKED = "picked"
    IN_PROCESS = "in_process"
    READY = "ready"
    ASSIGNED_TO_LOGISTICS_DELIVERY = "assigned_to_logistics_delivery"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# 允许客户取消的状态
CANCELLABLE_STATUSES = (
    OrderStatus.PLACED,
    OrderStatus.ASSIGNED_TO_BRANCH,
    OrderStatus.ASSIGNED_TO_LOGISTICS_PICKUP,
)


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """支付方式"""
    CASH = "cash"
    ONLINE = "online"
    UPI = "upi"
    CARD = "card"
    WALLET = "wallet"


class ServiceType(str, Enum):
    """取送方式"""
    FULL_SERVICE = "full_service"
    SELF_DROP_SELF_PICKUP = "self_drop_self_pickup"
    SELF_DROP_HOME_DELIVERY = "self_drop_home_delivery"
    HOME_PICKUP_SELF_PICKUP = "home_pickup_self_pickup"

    @property
    def needs_pickup_address(self) -> bool:
        return self in (ServiceType.FULL_SERVICE, ServiceType.HOME_PICKUP_SELF_PICKUP)

    @property
    def needs_delivery_address(self) -> bool:
        return self in (ServiceType.FULL_SERVICE, ServiceType.SELF_DROP_HOME_DELIVERY)


class ClothingCategory(str, Enum):
    """衣物类别"""
    NORMAL = "normal"
    DELICATE = "delicate"
    WOOLEN = "woolen"


class OrderItemInput(BaseModel):
    """下单请求中的衣物项"""

    item_type: str = Field(..., min_length=1, description="衣物类型")
    service: str = Field(..., min_length=1, description="服务类型")
    category: ClothingCategory = Field(default=ClothingCategory.NORMAL, description="衣物类别")
    quantity: int = Field(..., ge=1, description="数量")
    special_instructions: Optional[str] = Field(None, max_length=500)


class AddressSnapshot(BaseModel):
    """下单时的地址快照"""

    name: str
    phone: str
    address_line1: str
    address_line2: Optional[str] = None
    landmark: Optional[str] = None
    city: str
    pincode: str


class DeliveryDetails(BaseModel):
    """按距离计算的配送信息"""

    distance: Decimal = Field(default=Decimal("0"), ge=0, description="距离(km)")
    delivery_charge: Optional[Decimal] = Field(None, ge=0)
    is_fallback_pricing: bool = False


class OrderCreate(BaseModel):
    """创建订单请求模型"""

    tenancy_id: Optional[str] = Field(None, description="租户ID")
    items: List[OrderItemInput] = Field(..., min_length=1, description="衣物列表")
    coupon_code: Optional[str] = Field(None, max_length=50, description="优惠券代码")
    service_type: ServiceType = ServiceType.FULL_SERVICE
    pickup_address: Optional[AddressSnapshot] = None
    delivery_address: Optional[AddressSnapshot] = None
    pickup_date: datetime
    pickup_time_slot: str = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    is_express: bool = False
    branch_id: Optional[str] = None
    special_instructions: Optional[str] = Field(None, max_length=1000)
    delivery_details: Optional[DeliveryDetails] = None

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon_code(cls, v):
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class PricedLineItem(BaseModel):
    """已计价的订单项"""

    model_config = ConfigDict(from_attributes=True)

    item_type: str
    service: str
    category: str
    quantity: int = Field(..., ge=1)
    base_price: Decimal
    service_multiplier: Decimal = Decimal("1")
    category_multiplier: Decimal = Decimal("1")
    express_multiplier: Decimal = Decimal("1")
    unit_price: Decimal = Field(..., ge=0)
    total_price: Decimal = Field(..., ge=0)
    special_instructions: Optional[str] = None


class OrderPricing(BaseModel):
    """订单价格明细"""

    subtotal: Decimal
    express_charge: Decimal = Decimal("0")
    delivery_charge: Decimal = Decimal("0")
    service_type_discount: Decimal = Decimal("0")
    automatic_discount: Decimal = Decimal("0")
    applied_discounts: List[AppliedDiscount] = Field(default_factory=list)
    campaign_discount: Decimal = Decimal("0")
    applied_campaign: Optional[AppliedCampaign] = None
    coupon_code: Optional[str] = None
    coupon_discount: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    updated_by: Optional[str] = None
    updated_at: datetime
    notes: Optional[str] = None


class OrderRating(BaseModel):
    score: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None
    rated_at: Optional[datetime] = None


class Order(BaseModel):
    """订单基础模型"""

    order_id: str
    order_number: str
    tenancy_id: str
    customer_id: str
    branch_id: Optional[str] = None
    service_type: ServiceType
    items: List[PricedLineItem] = Field(default_factory=list)
    pricing: OrderPricing
    pickup_address: Optional[AddressSnapshot] = None
    delivery_address: Optional[AddressSnapshot] = None
    pickup_date: datetime
    pickup_time_slot: str
    estimated_delivery_date: Optional[datetime] = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: OrderStatus = OrderStatus.PLACED
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    is_express: bool = False
    is_vip_order: bool = False
    special_instructions: Optional[str] = None
    rating: Optional[OrderRating] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def can_be_cancelled(self) -> bool:
        return self.status in CANCELLABLE_STATUSES


class OrderTracking(BaseModel):
    """订单追踪信息"""

    order_number: str
    current_status: OrderStatus
    status_history: List[StatusHistoryEntry]
    estimated_delivery_date: Optional[datetime] = None


class OrderCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class OrderRate(BaseModel):
    score: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = Field(None, max_length=1000)


class ReorderData(BaseModel):
    """再来一单的预填数据，地址需前端重新选择"""

    items: List[OrderItemInput]
    service_type: ServiceType
    pickup_date: datetime
    pickup_time_slot: str = "09:00-11:00"
    payment_method: PaymentMethod
    is_express: bool
    special_instructions: Optional[str] = None


class OrderList(BaseModel):
    """分页订单列表"""

    orders: List[Order]
    total: int
    page: int
    limit: int
    pages: int
