from collections.abc import Callable
import datetime
from decimal import Decimal
import json
from typing import Any

from pydantic import BaseModel

from src.core.errors.exceptions import RecordDecodeError
from src.core.redis.coder.interface import Coder
from src.core.redis.coder.registry import RecordRegistry

SPEC_TYPE_KEY = "_spec_type"

CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "date": lambda x: datetime.date.fromisoformat(x),
    "datetime": lambda x: datetime.datetime.fromisoformat(x),
    "decimal": Decimal,
    # Plain mapping that itself uses the tag key, stored as key/value pairs.
    "map": lambda x: {key: value for key, value in x},
}


def escape_maps(value: Any) -> Any:
    """
    Wrap plain dicts that carry the tag key so decoding cannot mistake them
    for tagged values. Records are escaped field by field in JsonEncoder.
    """
    if isinstance(value, dict):
        escaped = {key: escape_maps(item) for key, item in value.items()}
        if SPEC_TYPE_KEY in escaped:
            return {
                "val": [[key, item] for key, item in escaped.items()],
                SPEC_TYPE_KEY: "map",
            }
        return escaped
    if isinstance(value, (list, tuple)):
        return [escape_maps(item) for item in value]
    return value


class JsonEncoder(json.JSONEncoder):
    def __init__(self, *, registry: RecordRegistry, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.registry = registry

    def default(self, o: Any) -> Any:
        if isinstance(o, datetime.datetime):
            return {"val": o.isoformat(), "_spec_type": "datetime"}
        elif isinstance(o, datetime.date):
            return {"val": o.isoformat(), "_spec_type": "date"}
        elif isinstance(o, Decimal):
            return {"val": str(o), "_spec_type": "decimal"}
        elif isinstance(o, BaseModel):
            # Attributes are emitted raw so nested records get tagged too.
            return {
                "val": {
                    name: escape_maps(getattr(o, name))
                    for name in type(o).model_fields
                },
                "_spec_type": self.registry.tag_for(type(o)),
            }
        return super().default(o)


def make_object_hook(
    registry: RecordRegistry,
) -> Callable[[dict[str, Any]], Any]:
    def object_hook(obj: dict[str, Any]) -> Any:
        _spec_type = obj.get(SPEC_TYPE_KEY)
        if not _spec_type:
            return obj

        if _spec_type in CONVERTERS:
            return CONVERTERS[_spec_type](obj["val"])
        elif _spec_type in registry:
            return registry[_spec_type].model_validate(obj["val"])
        else:
            raise TypeError(f"Unknown {_spec_type}")

    return object_hook


class JsonCoder(Coder):
    """
    JSON coder for registered pydantic records.

    Records may nest other registered records at any depth; each one is
    written with its registry tag and rebuilt as the same concrete class.
    """

    def __init__(self, registry: RecordRegistry) -> None:
        self.registry = registry
        self._object_hook = make_object_hook(registry)

    def encode(self, value: Any) -> bytes:
        """Encode a value into bytes using json."""
        return json.dumps(
            escape_maps(value),
            cls=JsonEncoder,
            registry=self.registry,
            separators=(",", ":"),
        ).encode()

    def decode(self, value: bytes) -> Any:
        """Decode bytes back into the original value using json."""
        try:
            return json.loads(value.decode(), object_hook=self._object_hook)
        except (ValueError, TypeError, KeyError) as exc:
            raise RecordDecodeError(
                "unable to decode payload", additional_info={"reason": str(exc)}
            ) from exc
