"""Custom SQLAlchemy types for typed JSON documents."""

from __future__ import annotations

from pydantic import BaseModel
from sqlalchemy.types import JSON, TypeDecorator


class ValueObjectJSON(TypeDecorator):
    """
    Store a Pydantic value object as JSON.

    Loads always return a model instance (defaults when the column is NULL).
    Mutating the loaded model in place is not tracked; assign a new instance.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, model: type[BaseModel], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.model = model

    def process_bind_param(self, value, dialect):
        if value is None:
            return self.model().model_dump(mode="json")
        if isinstance(value, dict):
            value = self.model.model_validate(value)
        return value.model_dump(mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return self.model()
        return self.model.model_validate(value)


class ValueObjectListJSON(TypeDecorator):
    """Store a list of Pydantic value objects as a JSON array."""

    impl = JSON
    cache_ok = True

    def __init__(self, model: type[BaseModel], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.model = model

    def process_bind_param(self, value, dialect):
        if not value:
            return []
        return [
            (self.model.model_validate(item) if isinstance(item, dict) else item).model_dump(mode="json")
            for item in value
        ]

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return [self.model.model_validate(item) for item in value]
