# module storefront.orders.models
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, EmailStr, Field, field_validator

from storefront import config


class OrderStatus(str, Enum):
    DRAFT = "draft"  # en-tête écrit, lignes pas encore confirmées: non payable
    PENDING_PAYMENT = "pending_payment"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    FAILED = "failed"


PAYMENT_METHOD = "payfast"


class CheckoutForm(BaseModel):
    """Formulaire d'expédition soumis au checkout (tous les champs requis)."""
    firstName: str = Field(min_length=1, max_length=100)
    lastName: str = Field(min_length=1, max_length=100)
    email: EmailStr
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    zipCode: str = Field(min_length=1, max_length=20)
    phone: str = Field(min_length=1, max_length=30)

    @field_validator("firstName", "lastName", "address", "city", "state", "zipCode", "phone")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Champ requis")
        return v

    def shipping_address(self) -> Dict[str, Any]:
        """Snapshot structuré écrit dans orders.shipping_address."""
        return {
            "firstName": self.firstName,
            "lastName": self.lastName,
            "email": str(self.email),
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zipCode,
            "phone": self.phone,
            "country": config.SHIPPING_COUNTRY,
        }
