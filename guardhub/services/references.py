"""
Referential checks for incoming writes.

Foreign keys hold in the database as well, but checking here lets a dangling
id come back as a field-level 422 instead of an integrity error.
"""
import uuid
from typing import Dict, Optional, Type

from sqlalchemy.orm import Session

from ..db import Base
from ..errors import NotFound, ValidationError
from ..models.models import Client, Property, User


# payload field -> model it must point at
REFERENCE_FIELDS: Dict[str, Type[Base]] = {
    "client_id": Client,
    "property_id": Property,
    "reported_by": User,
    "officer_id": User,
    "assigned_officer": User,
}


def check_references(db: Session, data: dict) -> None:
    """Raise ValidationError listing every reference field that points nowhere. None means unassigned."""
    errors = []
    for field, model in REFERENCE_FIELDS.items():
        value = data.get(field)
        if value is None:
            continue
        if db.get(model, value) is None:
            errors.append({
                "loc": ["body", field],
                "msg": f"{model.__name__} {value} does not exist",
                "type": "reference_not_found",
            })
    if errors:
        raise ValidationError(errors)


def get_or_404(db: Session, model: Type[Base], entity_id: uuid.UUID, label: Optional[str] = None):
    obj = db.get(model, entity_id)
    if obj is None:
        raise NotFound(f"{label or model.__name__} not found")
    return obj


def clean_update(data: dict, required=(), defaulted=()) -> dict:
    """
    Normalize a partial update.

    Explicit nulls on ``required`` fields are rejected; on ``defaulted`` fields
    (non-null columns with a default) they are dropped.
    """
    for field in required:
        if field in data and data[field] is None:
            raise ValidationError.for_field(field, f"{field} cannot be empty")
    for field in defaulted:
        if field in data and data[field] is None:
            data.pop(field)
    return data
