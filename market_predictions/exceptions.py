class AppError(Exception):
    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(AppError):
    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} '{resource_id}' not found", code="NOT_FOUND")


class ValidationError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class SymbolNotFoundError(NotFoundError):
    def __init__(self, symbol: str):
        super().__init__("Symbol", symbol)
        self.code = "SYMBOL_NOT_FOUND"
        self.symbol = symbol


class NoDataFoundError(NotFoundError):
    def __init__(self, symbol: str):
        super().__init__("Market data for symbol", symbol)
        self.code = "NO_DATA_FOUND"
        self.symbol = symbol


class RateLimitedError(AppError):
    def __init__(self, message: str = "Market data provider rate limit reached"):
        super().__init__(message, code="RATE_LIMITED")


class NoDataForDateError(AppError):
    def __init__(self, symbol: str, day: str):
        super().__init__(f"No data for '{symbol}' on {day}", code="NO_DATA_FOR_DATE")
        self.symbol = symbol
        self.day = day


class MalformedPointError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="MALFORMED_POINT")


class ProviderUnavailableError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="PROVIDER_UNAVAILABLE")


class PersistenceError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="PERSISTENCE_ERROR")
