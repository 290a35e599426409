from enum import Enum


class OrderStatus(str, Enum):
    PLACED: str = "Placed"
    PENDING: str = "Pending"
    ACCEPTED: str = "Accepted"
    PREPARING: str = "Preparing"
    PICKED_UP: str = "picked_up"
    OUT_FOR_DELIVERY: str = "out_for_delivery"
    DELIVERED: str = "Delivered"
    COMPLETED: str = "Completed"
    CANCELLED: str = "Cancelled"


def _bucket(*statuses: OrderStatus) -> frozenset[str]:
    return frozenset(s.value.lower() for s in statuses)


# Order and task writers disagree on casing ("Delivered", "delivered",
# "DELIVERED"), so buckets hold lowercased values and every comparison goes
# through normalize_status.
COMPLETED_STATUSES = _bucket(OrderStatus.DELIVERED, OrderStatus.COMPLETED)
CANCELLED_STATUSES = _bucket(OrderStatus.CANCELLED)
PENDING_STATUSES = _bucket(OrderStatus.PENDING, OrderStatus.PLACED)
PREPARING_STATUSES = _bucket(OrderStatus.PREPARING, OrderStatus.ACCEPTED)
IN_TRANSIT_STATUSES = _bucket(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.PICKED_UP)


def normalize_status(status) -> str:
    return status.lower() if isinstance(status, str) else ""


def is_completed(record: dict) -> bool:
    return normalize_status(record.get("status")) in COMPLETED_STATUSES


class DeliveryTaskStatus(str, Enum):
    DELIVERED: str = "DELIVERED"


class ComplaintStatus(str, Enum):
    OPEN: str = "OPEN"
    IN_PROGRESS: str = "IN_PROGRESS"
    RESOLVED: str = "RESOLVED"
    CLOSED: str = "CLOSED"


class ComplaintPriority(str, Enum):
    LOW: str = "LOW"
    MEDIUM: str = "MEDIUM"
    HIGH: str = "HIGH"
    URGENT: str = "URGENT"


class RefundStatus(str, Enum):
    PENDING: str = "PENDING"


class VerificationAction(str, Enum):
    APPROVE: str = "approve"
    REJECT: str = "reject"


class VerificationStatus(str, Enum):
    PENDING: str = "pending"
    APPROVED: str = "approved"
    REJECTED: str = "rejected"


class SettlementStatus(str, Enum):
    PENDING: str = "pending"
    COMPLETED: str = "completed"
    PROCESSED: str = "processed"


class VendorSuspensionReason(str, Enum):
    POLICY_VIOLATION = "POLICY_VIOLATION"
    CUSTOMER_COMPLAINTS = "CUSTOMER_COMPLAINTS"
    FOOD_QUALITY = "FOOD_QUALITY"
    HYGIENE_ISSUES = "HYGIENE_ISSUES"
    DOCUMENT_EXPIRED = "DOCUMENT_EXPIRED"
    FRAUDULENT_ACTIVITY = "FRAUDULENT_ACTIVITY"
    NON_COMPLIANCE = "NON_COMPLIANCE"
    PAYMENT_ISSUES = "PAYMENT_ISSUES"
    INACTIVE = "INACTIVE"
    OTHER = "OTHER"


VENDOR_SUSPENSION_LABELS = {
    VendorSuspensionReason.POLICY_VIOLATION: "Policy Violation",
    VendorSuspensionReason.CUSTOMER_COMPLAINTS: "Multiple Customer Complaints",
    VendorSuspensionReason.FOOD_QUALITY: "Food Quality Issues",
    VendorSuspensionReason.HYGIENE_ISSUES: "Hygiene Standards Not Met",
    VendorSuspensionReason.DOCUMENT_EXPIRED: "Documents Expired",
    VendorSuspensionReason.FRAUDULENT_ACTIVITY: "Fraudulent Activity",
    VendorSuspensionReason.NON_COMPLIANCE: "Non-compliance with Platform Rules",
    VendorSuspensionReason.PAYMENT_ISSUES: "Payment/Settlement Issues",
    VendorSuspensionReason.INACTIVE: "Extended Inactivity",
    VendorSuspensionReason.OTHER: "Other (See Notes)",
}


class DeliverySuspensionReason(str, Enum):
    POLICY_VIOLATION = "POLICY_VIOLATION"
    CUSTOMER_COMPLAINTS = "CUSTOMER_COMPLAINTS"
    LATE_DELIVERIES = "LATE_DELIVERIES"
    DOCUMENT_EXPIRED = "DOCUMENT_EXPIRED"
    FRAUDULENT_ACTIVITY = "FRAUDULENT_ACTIVITY"
    COD_MISAPPROPRIATION = "COD_MISAPPROPRIATION"
    RUDE_BEHAVIOR = "RUDE_BEHAVIOR"
    TRAFFIC_VIOLATIONS = "TRAFFIC_VIOLATIONS"
    UNAUTHORIZED_VEHICLE = "UNAUTHORIZED_VEHICLE"
    INACTIVE = "INACTIVE"
    OTHER = "OTHER"


DELIVERY_SUSPENSION_LABELS = {
    DeliverySuspensionReason.POLICY_VIOLATION: "Policy Violation",
    DeliverySuspensionReason.CUSTOMER_COMPLAINTS: "Multiple Customer Complaints",
    DeliverySuspensionReason.LATE_DELIVERIES: "Consistent Late Deliveries",
    DeliverySuspensionReason.DOCUMENT_EXPIRED: "Documents Expired (License/RC)",
    DeliverySuspensionReason.FRAUDULENT_ACTIVITY: "Fraudulent Activity",
    DeliverySuspensionReason.COD_MISAPPROPRIATION: "COD Amount Not Settled",
    DeliverySuspensionReason.RUDE_BEHAVIOR: "Rude Behavior with Customers",
    DeliverySuspensionReason.TRAFFIC_VIOLATIONS: "Traffic Violations Reported",
    DeliverySuspensionReason.UNAUTHORIZED_VEHICLE: "Using Unauthorized Vehicle",
    DeliverySuspensionReason.INACTIVE: "Extended Inactivity",
    DeliverySuspensionReason.OTHER: "Other (See Notes)",
}


class AdminAction(str, Enum):
    VENDOR_SUSPENDED = "VENDOR_SUSPENDED"
    VENDOR_REINSTATED = "VENDOR_REINSTATED"
    DELIVERY_PARTNER_SUSPENDED = "DELIVERY_PARTNER_SUSPENDED"
    DELIVERY_PARTNER_REINSTATED = "DELIVERY_PARTNER_REINSTATED"
