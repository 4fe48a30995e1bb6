"""Payload schemas shared by action types and channels, backed by pydantic models."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from statebus.core.exceptions import PayloadValidationError


TypeSpec = Union[Type, Tuple[Type, ...]]


class StrictPayload(BaseModel):
    """
    Base model for payloads.

    Unknown keys are rejected and values are never coerced, so "1" is not
    an int and True is not an int either.
    """

    model_config = ConfigDict(extra="forbid", strict=True)


@dataclass(frozen=True)
class PayloadField:
    """Field marker for PayloadSchema.of(): accepted types and presence rules."""

    types: Tuple[Type, ...]
    required: bool = True
    allow_none: bool = False

    def annotation(self) -> Any:
        annotation = self.types[0] if len(self.types) == 1 else Union[self.types]
        return Optional[annotation] if self.allow_none else annotation


class PayloadSchema:
    """
    Fixed set of named, typed fields.

    Wraps a pydantic model. A payload is a mapping; unknown keys, missing
    required keys and values of the wrong type are all rejected.

    Usage:
        schema = PayloadSchema.of(item_id=str, count=optional(int))
        schema.validate({"item_id": "a"}, subject="select_item")

        # Or with a hand-written model
        class SelectPayload(StrictPayload):
            item_id: str

        schema = PayloadSchema(SelectPayload)
    """

    def __init__(self, model: Optional[Type[BaseModel]] = None):
        if model is None:
            model = create_model("EmptyPayload", __base__=StrictPayload)
        self._model = model

    @classmethod
    def of(cls, **specs: Union[TypeSpec, PayloadField]) -> "PayloadSchema":
        """
        Build a schema from keyword specs.

        Each value is a type, a tuple of types, or the result of
        optional() / nullable().
        """
        fields = {}
        for name, spec in specs.items():
            if not isinstance(spec, PayloadField):
                spec = PayloadField(_as_tuple(spec))
            fields[name] = (spec.annotation(), ... if spec.required else None)
        return cls(create_model("Payload", __base__=StrictPayload, **fields))

    @property
    def model(self) -> Type[BaseModel]:
        return self._model

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._model.model_fields)

    def validate(self, payload: Any, subject: str) -> Dict[str, Any]:
        """
        Check a payload against the schema.

        Args:
            payload: Mapping to check (None is treated as empty)
            subject: Name used in error messages

        Returns:
            A plain dict holding only the keys the payload provided

        Raises:
            PayloadValidationError: On any mismatch
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise PayloadValidationError(
                subject, [f"expected a mapping, got {type(payload).__name__}"]
            )

        try:
            validated = self._model.model_validate(dict(payload))
        except ValidationError as e:
            raise PayloadValidationError(subject, _describe(e)) from e
        return validated.model_dump(exclude_unset=True)

    def __repr__(self) -> str:
        return f"PayloadSchema({self._model.__name__})"


def optional(spec: TypeSpec, allow_none: bool = True) -> PayloadField:
    """Mark a field as optional in PayloadSchema.of()."""
    return PayloadField(_as_tuple(spec), required=False, allow_none=allow_none)


def nullable(spec: TypeSpec) -> PayloadField:
    """Mark a required field that may be None."""
    return PayloadField(_as_tuple(spec), required=True, allow_none=True)


EMPTY_SCHEMA = PayloadSchema()


def _as_tuple(spec: TypeSpec) -> Tuple[Type, ...]:
    return spec if isinstance(spec, tuple) else (spec,)


def _describe(error: ValidationError) -> List[str]:
    # One message per field; a union reports once per member otherwise
    messages: Dict[str, str] = {}
    for detail in error.errors():
        field = str(detail["loc"][0]) if detail["loc"] else "payload"
        if field in messages:
            continue
        if detail["type"] == "missing":
            messages[field] = f"missing field '{field}'"
        elif detail["type"] == "extra_forbidden":
            messages[field] = f"unexpected field '{field}'"
        else:
            messages[field] = f"'{field}': {detail['msg']}"
    return list(messages.values())
