"""Shared pydantic base model and validation entry point."""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import SchemaValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class RoutingModel(BaseModel):
    """Immutable schema model.

    Wire documents use camelCase keys; Python code may use the snake_case
    attribute names. Unknown keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a camelCase JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def validate_model(model_cls: Type[ModelT], value: Any, name: Optional[str] = None) -> ModelT:
    """Validate ``value`` against ``model_cls``.

    Instances of the model pass through untouched. Anything else is validated
    and a failure is raised as SchemaValidationError.
    """
    if isinstance(value, model_cls):
        return value
    try:
        return model_cls.model_validate(value)
    except ValidationError as e:
        raise SchemaValidationError.from_pydantic(name or model_cls.__name__, e) from e
