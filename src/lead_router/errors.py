"""Exceptions raised by the routing engine."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError


class SchemaValidationError(ValueError):
    """Input does not conform to a routing schema.

    Raised before any clause or factor logic runs. Treat it as a broken rule
    or roster configuration, not as a per-lead routing outcome.
    """

    def __init__(self, model: str, errors: Optional[List[Dict[str, Any]]] = None, message: str = ""):
        self.model = model
        self.errors = errors or []
        if not message:
            if self.errors:
                first = self.errors[0]
                location = ".".join(str(part) for part in first.get("loc", ())) or model
                message = f"{location}: {first.get('msg', 'invalid value')}"
                if len(self.errors) > 1:
                    message += f" (+{len(self.errors) - 1} more)"
            else:
                message = "invalid value"
        super().__init__(f"Invalid {model}: {message}")

    @classmethod
    def from_pydantic(cls, model: str, error: ValidationError) -> "SchemaValidationError":
        """Wrap a pydantic ValidationError."""
        errors = [
            {"loc": list(item["loc"]), "msg": item["msg"], "type": item["type"]}
            for item in error.errors()
        ]
        return cls(model, errors)

    def to_dict(self) -> Dict[str, Any]:
        return {"model": self.model, "errors": self.errors, "message": str(self)}
