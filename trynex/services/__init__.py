class ShopError(ValueError):
    """Business rule violation; ``status_code`` is the HTTP status to use."""

    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class OrderError(ShopError):
    pass


class StockError(ShopError):
    pass


class PromoCodeError(ShopError):
    pass


class StatusTransitionError(ShopError):
    status_code = 409
