class InvalidInputError(ValueError):
    """Raised when a caller hands the engine input it cannot work with.

    Examples are a missing profile or a recommendation that names no condition
    for a condition-scoped change. Malformed records are rejected earlier by
    model validation.
    """
