from __future__ import annotations


class DelegacjeError(Exception):
    """Base class for calculation errors raised by this package."""


class MissingEndDatetimeError(DelegacjeError, ValueError):
    """Raised when the diet mode needs an end datetime the trip does not have."""

    def __init__(self, mode: str, field_name: str):
        super().__init__(f"{field_name} is required for {mode} mode")
        self.mode = mode
        self.field_name = field_name


class UnsupportedContractTypeError(DelegacjeError):
    """Raised when a contract type has no net-salary formula."""

    def __init__(self, contract_type: str):
        super().__init__(
            f"Net salary for contract type {contract_type} is not computable by this formula; "
            "it requires manual accounting."
        )
        self.contract_type = contract_type


class UnknownCountryError(DelegacjeError, LookupError):
    def __init__(self, code: str):
        super().__init__(f"Unknown country code: {code}")
        self.code = code


class SnapshotError(DelegacjeError, ValueError):
    """Raised for malformed snapshots or changes to a closed trip."""


class MixedTimezoneError(DelegacjeError, ValueError):
    """Raised when a naive and a timezone-aware datetime meet in one period."""

    def __init__(self, start: object, end: object):
        super().__init__(
            f"Cannot measure from {start!r} to {end!r}: "
            "both must be naive or both timezone-aware"
        )
        self.start = start
        self.end = end
