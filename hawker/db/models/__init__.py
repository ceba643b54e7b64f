from hawker.db.models.base import Base
from hawker.db.models.dining_tables import DiningTable
from hawker.db.models.points_accounts import PointsAccount
from hawker.db.models.points_history import PointsHistoryEntry
from hawker.db.models.redeemed_vouchers import RedeemedVoucher
from hawker.db.models.reservations import Reservation
from hawker.db.models.venues import Venue
from hawker.db.models.vouchers import Voucher

__all__ = [
    "Base",
    "DiningTable",
    "PointsAccount",
    "PointsHistoryEntry",
    "RedeemedVoucher",
    "Reservation",
    "Venue",
    "Voucher",
]
