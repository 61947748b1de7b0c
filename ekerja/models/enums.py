"""Closed status vocabularies shared by models, services and schemas."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING_ACCEPTANCE = "PENDING_ACCEPTANCE"
    ACCEPTED = "ACCEPTED"
    REJECTED_BY_PROVIDER = "REJECTED_BY_PROVIDER"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED_BY_CUSTOMER = "CANCELLED_BY_CUSTOMER"
    DISPUTED = "DISPUTED"


class AttendanceStatus(str, Enum):
    ON_THE_WAY = "ON_THE_WAY"
    ARRIVED = "ARRIVED"
    WORKING = "WORKING"
    COMPLETED = "COMPLETED"


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    REJECTED = "rejected"


class DetailStatus(str, Enum):
    PROPOSED = "PROPOSED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    E_PAYMENT = "E_PAYMENT"


class ReportStatus(str, Enum):
    PENDING_REVIEW = "PENDING_REVIEW"
    RESOLVED_REVIEW_KEPT = "RESOLVED_REVIEW_KEPT"
    RESOLVED_REVIEW_REMOVED = "RESOLVED_REVIEW_REMOVED"


class GrantStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
