from hawker.db.repo.points_repo import PointsRepo
from hawker.db.repo.reservations_repo import ReservationsRepo
from hawker.db.repo.tables_repo import TablesRepo
from hawker.db.repo.vouchers_repo import VouchersRepo

__all__ = [
    "PointsRepo",
    "ReservationsRepo",
    "TablesRepo",
    "VouchersRepo",
]
