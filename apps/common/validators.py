"""Input checks shared by the event and expense services."""

from .exceptions import ValidationError


def _is_blank(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


def require_fields(**fields) -> None:
    """
    Raise if any of the given fields is missing or blank.

    Example:
        require_fields(name=name, start_date=start_date)
        # ValidationError: Missing required fields (name)
    """
    missing = [name for name, value in fields.items() if _is_blank(value)]
    if missing:
        raise ValidationError(
            f"Missing required fields ({', '.join(missing)})",
            field=missing[0],
        )


def validate_date_range(start_date, end_date) -> None:
    """Both dates must be set and start must not be after end."""
    require_fields(start_date=start_date, end_date=end_date)

    if start_date > end_date:
        raise ValidationError("Start date cannot be after end date", field='start_date')
