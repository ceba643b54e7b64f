from hawker.core.errors import HawkerError, InvalidRequestError


class InsufficientPointsError(HawkerError):
    code = "E_INSUFFICIENT_POINTS"
    message = "Not enough points."


class VoucherNotFoundError(HawkerError):
    code = "E_VOUCHER_NOT_FOUND"
    message = "Voucher not found."


class VoucherAlreadyUsedError(HawkerError):
    code = "E_VOUCHER_ALREADY_USED"
    message = "Voucher has already been used."


class VoucherExpiredError(HawkerError):
    code = "E_VOUCHER_EXPIRED"
    message = "Voucher has expired."


class UnknownAwardTypeError(InvalidRequestError):
    message = "Unknown award type."
