"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class InsufficientSharesError(AppError):
    """Raised when attempting to sell more shares than owned."""

    def __init__(self, symbol: str, requested: str, available: str):
        super().__init__(
            f"Insufficient shares of {symbol}: requested {requested}, available {available}",
            code="INSUFFICIENT_SHARES",
        )


class InsufficientContractsError(AppError):
    """Raised when attempting to sell more option contracts than held."""

    def __init__(self, symbol: str, requested: int, available: int):
        super().__init__(
            f"Insufficient contracts of {symbol}: requested {requested}, available {available}",
            code="INSUFFICIENT_CONTRACTS",
        )


class InsufficientCashError(AppError):
    """Raised when a purchase costs more than the available cash."""

    def __init__(self, requested: str, available: str):
        super().__init__(
            f"Insufficient cash: requested {requested}, available {available}",
            code="INSUFFICIENT_CASH",
        )


class PersistenceError(AppError):
    """Raised when the portfolio store cannot load or save a document."""

    def __init__(self, message: str):
        super().__init__(message, code="PERSISTENCE_ERROR")


class SessionNotReadyError(AppError):
    """Raised when a portfolio action runs before the session finished loading."""

    def __init__(self, message: str = "Portfolio session has not finished loading"):
        super().__init__(message, code="SESSION_NOT_READY")


class MarketDataError(AppError):
    """Raised by providers when upstream market data cannot be fetched."""

    def __init__(self, message: str):
        super().__init__(message, code="MARKET_DATA_ERROR")
