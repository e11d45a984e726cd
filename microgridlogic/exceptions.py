class MGLError(Exception): ...


class PeriodError(MGLError): ...


class ConfigError(MGLError): ...


class ReportError(MGLError): ...


class FormatError(MGLError): ...


class DriverError(MGLError): ...


def require(condition: bool, message: str, exc: type[MGLError] = MGLError):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
