"""JSON Schema validation as a pluggable capability.

The engine never implements validation itself. A SchemaValidator compiles a
schema and validates data against it; the default one is backed by the
``jsonschema`` package, imported lazily so a missing install surfaces as
SchemaValidationUnavailable at call time instead of an import-time crash.

Install with: pip install httpcase[schema]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from httpcase.foundation.errors import JsonDict, RequestValidationError, SchemaValidationUnavailable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

INSTALL_HINT = (
    "jsonschema is not installed. Install it with `pip install httpcase[schema]` "
    "(or `pip install jsonschema`) to enable JSON Schema validation."
)


class SchemaError(BaseModel):
    """One validation failure."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    message: str
    instance_path: str = ""
    schema_path: str = ""


class SchemaReport(BaseModel):
    """Outcome of validating one document."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[SchemaError] = Field(default_factory=list)

    def to_wire(self) -> JsonDict:
        return self.model_dump(by_alias=True)


CompiledSchema = Callable[[Any], SchemaReport]


@runtime_checkable
class SchemaValidator(Protocol):
    """Capability interface: compile a schema once, validate many documents."""

    def compile(self, schema: JsonDict) -> CompiledSchema: ...

    def validate(self, data: Any, schema: JsonDict) -> SchemaReport: ...


def _pointer(parts: Sequence[object] | Iterable[object]) -> str:
    """JSON Pointer (RFC 6901) for a path of keys/indices."""
    return "".join("/" + str(p).replace("~", "~0").replace("/", "~1") for p in parts)


class JsonSchemaValidator:
    """SchemaValidator backed by the ``jsonschema`` package.

    Picks the validator class from the schema's ``$schema`` (latest draft when
    absent) and reports every error, not just the first.
    """

    __slots__ = ("_jsonschema",)

    def __init__(self) -> None:
        try:
            import jsonschema
        except ImportError as e:
            raise SchemaValidationUnavailable(INSTALL_HINT, tool_name="validate_json_schema") from e
        self._jsonschema = jsonschema

    def compile(self, schema: JsonDict) -> CompiledSchema:
        js = self._jsonschema
        cls = js.validators.validator_for(schema, default=js.Draft202012Validator)
        try:
            cls.check_schema(schema)
        except js.exceptions.SchemaError as e:
            raise RequestValidationError(f"Invalid JSON Schema: {e.message}",
                                         tool_name="validate_json_schema") from e
        validator = cls(schema)

        def run(data: Any) -> SchemaReport:
            errors = [
                SchemaError(
                    message=err.message,
                    instance_path=_pointer(err.absolute_path),
                    schema_path="#" + _pointer(err.absolute_schema_path),
                )
                for err in sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
            ]
            return SchemaReport(valid=not errors, errors=errors)

        return run

    def validate(self, data: Any, schema: JsonDict) -> SchemaReport:
        return self.compile(schema)(data)


def load_default_validator() -> SchemaValidator:
    """Build the default validator; raises SchemaValidationUnavailable when jsonschema is missing."""
    return JsonSchemaValidator()
