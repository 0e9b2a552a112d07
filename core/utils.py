"""
Core utilities - request parameter parsing shared by the API views.
Malformed parameters raise DRF ValidationError (400).
"""
import uuid
from datetime import date, datetime

from rest_framework.exceptions import ValidationError


def uuid_param(data, name, required=True):
    value = data.get(name)
    if value in (None, ''):
        if required:
            raise ValidationError({name: 'This parameter is required.'})
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError({name: 'Must be a valid UUID.'})


def date_param(data, name, required=True):
    """Parse YYYY-MM-DD (longer ISO strings are cut to the date part)."""
    value = data.get(name)
    if value in (None, ''):
        if required:
            raise ValidationError({name: 'This parameter is required (YYYY-MM-DD).'})
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except (ValueError, TypeError):
        raise ValidationError({name: 'Invalid date format (YYYY-MM-DD).'})


def date_range_params(data, start='start_date', end='end_date'):
    start_date = date_param(data, start)
    end_date = date_param(data, end)
    if start_date > end_date:
        raise ValidationError({end: 'end_date must be on or after start_date.'})
    return start_date, end_date
