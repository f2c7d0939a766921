from enum import Enum


class VehicleType(str, Enum):
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    VAN = "van"
    ELECTRIC_CAR = "electric_car"
    DISABLED = "disabled"


# Slots are classified with the same vocabulary as vehicles.
SlotType = VehicleType


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED_BY_USER = "cancelled_by_user"
    CANCELLED_BY_ADMIN = "cancelled_by_admin"
    ACTIVE_PARKING = "active_parking"
    COMPLETED = "completed"
    PAID = "paid"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    MOBILE_PAYMENT = "mobile_payment"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
