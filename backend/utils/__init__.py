from sqlalchemy.orm import class_mapper
from .pagination import paginate

def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        value = getattr(obj, c.key)
        # Convert datetime objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Convert Decimal objects to floats
        elif hasattr(value, 'normalize') and hasattr(value, 'from_float'):  # Check if it's a Decimal
            value = float(value)
        # Convert enum types to their API value
        elif hasattr(value, 'name') and hasattr(value, 'value'):
            value = value.value
        result[c.key] = value
    return result

__all__ = ['paginate', 'sqlalchemy_to_dict']
