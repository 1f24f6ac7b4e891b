"""Shared enumerations and choices used across apps."""

from django.db import models


class UserRole(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    SELLER = "seller", "Seller"
    ADMIN = "admin", "Admin"


class ActorRole(models.TextChoices):
    """Who drove a status change; `system` covers internal callers."""

    CUSTOMER = "customer", "Customer"
    SELLER = "seller", "Seller"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"


class OrderStatus(models.TextChoices):
    CREATED = "created", "Created"
    PENDING_VERIFICATION = "pending_verification", "Pending Verification"
    SELLER_CONTACTED = "seller_contacted", "Seller Contacted"
    SELLER_ACCEPTED = "seller_accepted", "Seller Accepted"
    SELLER_REJECTED = "seller_rejected", "Seller Rejected"
    BUYER_CONTACTED = "buyer_contacted", "Buyer Contacted"
    CONFIRMED = "confirmed", "Confirmed"
    BUYER_REJECTED = "buyer_rejected", "Buyer Rejected"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out For Delivery"
    DELIVERED = "delivered", "Delivered"
    COMPLETED = "completed", "Completed"


class PaymentMethod(models.TextChoices):
    ONLINE = "online", "Online"
    COD = "cod", "Cash on Delivery"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PARTIALLY_PAID = "partially_paid", "Partially Paid"
    PAID = "paid", "Paid"
    REFUNDED = "refunded", "Refunded"


class ActiveInactive(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
