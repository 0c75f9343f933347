"""
Validation for open-ended product specification attributes.

Specifications are an ordered mapping of attribute name to a scalar value:
a string, a number or a boolean. Nested objects, lists and nulls are
rejected so the attributes stay flat and comparable across products.
"""
import math

from django.core.exceptions import ValidationError


def specification_errors(value):
    """Return a list of problems with a specifications mapping (empty when valid)"""
    if not isinstance(value, dict):
        return ['Specifications must be an object mapping names to values.']

    errors = []
    for key, item in value.items():
        if not isinstance(key, str) or not key.strip():
            errors.append(f'Invalid specification name: {key!r}')
            continue
        if isinstance(item, bool) or isinstance(item, str):
            continue
        if isinstance(item, (int, float)):
            if isinstance(item, float) and not math.isfinite(item):
                errors.append(f'Specification "{key}" must be a finite number.')
            continue
        errors.append(f'Specification "{key}" must be a string, number or boolean.')
    return errors


def validate_specifications(value):
    errors = specification_errors(value)
    if errors:
        raise ValidationError(errors)
