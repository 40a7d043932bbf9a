"""交易Schema - 收购单 / 销售单"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime


class PurchaseCreate(BaseModel):
    """登记收购"""
    vehicle_id: int = Field(..., description="车辆ID")
    customer_id: int = Field(..., description="卖车客户ID")
    vehicle_price: float = Field(..., ge=0, description="车价")
    tax_amount: float = Field(default=0, ge=0, description="税费")
    payment_method: str = Field(..., pattern="^(cash|transfer|check)$", description="付款方式")
    payment_reference: Optional[str] = Field(None, max_length=100, description="付款凭证号")
    notes: Optional[str] = Field(None, description="备注")
    cashier_id: Optional[int] = Field(None, description="经办收银员（缺省为默认经办人）")


class SaleCreate(BaseModel):
    """登记销售"""
    vehicle_id: int = Field(..., description="车辆ID")
    customer_id: int = Field(..., description="买车客户ID")
    vehicle_price: float = Field(..., ge=0, description="车价")
    tax_amount: float = Field(default=0, ge=0, description="税费")
    discount_amount: float = Field(default=0, ge=0, description="折扣")
    payment_method: str = Field(..., pattern="^(cash|transfer|check|credit)$", description="付款方式")
    payment_reference: Optional[str] = Field(None, max_length=100, description="付款凭证号")
    notes: Optional[str] = Field(None, description="备注")
    cashier_id: Optional[int] = Field(None, description="经办收银员（缺省为默认经办人）")


class TransactionResponseBase(BaseModel):
    """交易响应公共字段"""
    id: int
    transaction_number: str
    invoice_number: str
    vehicle_id: int
    vehicle_code: str = ""
    vehicle_name: str = ""
    customer_id: int
    customer_name: str = ""
    vehicle_price: float
    tax_amount: float
    total_amount: float
    payment_method: str
    payment_method_display: str = ""
    payment_reference: Optional[str] = None
    transaction_date: datetime
    cashier_id: int
    cashier_name: str = ""
    status: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseResponse(TransactionResponseBase):
    """收购单响应"""
    pass


class SaleResponse(TransactionResponseBase):
    """销售单响应"""
    discount_amount: float = 0


class PurchaseListResponse(BaseModel):
    """收购单列表响应"""
    data: List[PurchaseResponse]
    total: int
    page: int
    limit: int


class SaleListResponse(BaseModel):
    """销售单列表响应"""
    data: List[SaleResponse]
    total: int
    page: int
    limit: int
