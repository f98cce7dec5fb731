def not_null(value):
    """Explicit nulls on required columns are rejected; omitted fields are left alone."""
    if value is None:
        raise ValueError("may not be null")
    return value
