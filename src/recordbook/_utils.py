def clean_key(value) -> str | None:
    """
    Normalize a string identifier, None if it is missing or blank.
    """
    if not isinstance(value, str):
        return None
    return value.strip() or None


def int_key(value) -> int | None:
    """
    Normalize an integer identifier, None if it can't be one.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
