from decimal import Decimal
from sqlalchemy.orm import class_mapper

def sqlalchemy_to_dict(obj, exclude=()):
    """Convert a SQLAlchemy object to a JSON-safe dictionary of its columns."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        if c.key in exclude:
            continue
        value = getattr(obj, c.key)
        # Convert datetime/date objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Money is kept as a string so audit rows hold the exact stored amount
        elif isinstance(value, Decimal):
            value = str(value)
        result[c.key] = value
    return result

def changed_values(old_values, new_values):
    """Pair of dicts restricted to the keys whose value changed."""
    keys = [key for key in new_values if old_values.get(key) != new_values.get(key)]
    return {key: old_values.get(key) for key in keys}, {key: new_values[key] for key in keys}

def null_field_errors(model, data, allowed=()):
    """Field-keyed errors for explicit nulls sent for NOT NULL columns."""
    columns = model.__table__.columns
    return {
        key: ["This field cannot be null."]
        for key, value in data.items()
        if value is None and key not in allowed and key in columns and not columns[key].nullable
    }

__all__ = ['changed_values', 'null_field_errors', 'sqlalchemy_to_dict']
