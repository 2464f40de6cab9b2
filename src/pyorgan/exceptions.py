"""
Error hierarchy of PyOrgan.

Only a few conditions are fatal: successor types and probabilities that do
not pair up, lookups of unknown subtypes or organism handles, and parameter
files that are missing or cannot be parsed. Other questionable parameter
values are normalized by OrganParameterSet and reported through logging.

    OrganError
    +-- ConfigurationError
    |   +-- SuccessorMismatchError
    |   +-- SubtypeNotFoundError
    +-- ParameterError
    |   +-- InvalidParameterError
    +-- OrganismNotFoundError
    +-- DataError
        +-- ParameterFileNotFoundError
        +-- InvalidDataError
"""


class OrganError(Exception):
    """Base exception for all PyOrgan errors."""
    pass


class ConfigurationError(OrganError):
    """Raised when there are configuration-related issues."""
    pass


class SuccessorMismatchError(ConfigurationError):
    """Raised when successor types and probabilities do not pair up."""
    def __init__(self, subtype: int, n_types: int, n_weights: int):
        self.subtype = subtype
        self.n_types = n_types
        self.n_weights = n_weights
        super().__init__(f"Subtype {subtype}: {n_types} successor types but "
                         f"{n_weights} successor probabilities")


class SubtypeNotFoundError(ConfigurationError):
    """Raised when an organ subtype is not found in a parameter collection."""
    def __init__(self, organ_type: str, subtype: int):
        self.organ_type = organ_type
        self.subtype = subtype
        super().__init__(f"No parameter set for {organ_type} subtype {subtype}")


class ParameterError(OrganError):
    """Raised when parameters are invalid or out of bounds."""
    pass


class InvalidParameterError(ParameterError):
    """Raised when a parameter value is invalid."""
    def __init__(self, param_name: str, value: any, reason: str = ""):
        self.param_name = param_name
        self.value = value
        self.reason = reason
        message = f"Invalid value for parameter '{param_name}': {value}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class OrganismNotFoundError(OrganError):
    """Raised when an organism handle does not resolve in the registry."""
    def __init__(self, handle: int):
        self.handle = handle
        super().__init__(f"No organism registered under handle {handle}")


class DataError(OrganError):
    """Raised when there are data-related issues."""
    pass


class ParameterFileNotFoundError(DataError):
    """Raised when a required parameter file is not found."""
    def __init__(self, file_path: str, file_type: str = "parameter file"):
        self.file_path = file_path
        self.file_type = file_type
        super().__init__(f"Required {file_type} not found: {file_path}")


class InvalidDataError(DataError):
    """Raised when data is malformed or invalid."""
    def __init__(self, data_description: str, reason: str):
        self.data_description = data_description
        self.reason = reason
        super().__init__(f"Invalid {data_description}: {reason}")


# Checks used by capability constructors, which reject bad settings outright
def validate_positive(value: float, param_name: str) -> float:
    """Return ``value`` as float, raising InvalidParameterError unless it is > 0."""
    value = float(value)
    if not value > 0:
        raise InvalidParameterError(param_name, value, "must be positive")
    return value


def validate_non_negative(value: float, param_name: str) -> float:
    """Return ``value`` as float, raising InvalidParameterError if it is < 0 or NaN."""
    value = float(value)
    if not value >= 0:
        raise InvalidParameterError(param_name, value, "must not be negative")
    return value
