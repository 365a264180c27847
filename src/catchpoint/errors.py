"""Domain errors and failure typing."""


class CatchpointError(Exception):
    """Base class for catchpoint failures."""

    error_code = "CATCHPOINT_ERROR"


class LocationUnavailableError(CatchpointError):
    """Raised by a device locator when no fix can be produced."""

    error_code = "LOCATION_UNAVAILABLE"


class WeatherError(CatchpointError):
    """Base class for weather lookups that did not produce a snapshot."""

    error_code = "WEATHER_ERROR"


class WeatherNotConfiguredError(WeatherError):
    """Raised when no API key is configured."""

    error_code = "WEATHER_NOT_CONFIGURED"


class WeatherAuthError(WeatherError):
    """Raised on HTTP 401. For the historical endpoint this means "not entitled"."""

    error_code = "WEATHER_AUTH"


class WeatherAPIError(WeatherError):
    """Raised on non-2xx responses other than 401, or on a malformed body."""

    error_code = "WEATHER_API"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WeatherTransportError(WeatherError):
    """Raised when the request never produced a response (DNS, reset, timeout)."""

    error_code = "WEATHER_TRANSPORT"


class RecordConflictError(CatchpointError):
    """Raised when a conditional record update sees a newer version."""

    error_code = "RECORD_CONFLICT"

    def __init__(self, record_id: str, expected: int, actual: int) -> None:
        super().__init__(f"Record {record_id} is at version {actual}, expected {expected}")
        self.record_id = record_id
        self.expected = expected
        self.actual = actual


class CaptureError(CatchpointError):
    """Raised when a quick capture could not create its record."""

    error_code = "CAPTURE_FAILED"
