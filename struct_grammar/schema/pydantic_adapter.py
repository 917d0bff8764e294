"""
Pydantic adapter - build schema node trees from Pydantic model classes.

This is the runtime-introspection provider. It walks ``model_fields`` and the
field annotations directly, so descriptions, length limits and formats declared
with ``Field(...)`` end up on the nodes without a JSON Schema round trip.

Type mapping:
    str                       → StringNode (min_length/max_length, json_schema_extra["format"])
    Literal["a", "b"]         → StringNode with allowed values
    int                       → IntegerNode
    float, Decimal            → DecimalNode
    bool                      → BooleanNode
    datetime                  → DateNode
    UUID                      → GuidNode
    Enum subclass             → EnumNode (string values only)
    list[T], Sequence[T]      → ArrayNode (min_length/max_length as item bounds)
    BaseModel subclass        → ObjectNode

Example:
    ```python
    from pydantic import BaseModel, Field
    from struct_grammar.schema import schema_from_model

    class User(BaseModel):
        name: str = Field(max_length=50, description="Full name")
        tags: list[str] = Field(max_length=5)

    node = schema_from_model(User)
    ```
"""

import collections.abc
import datetime
import decimal
import enum
import logging
import uuid
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple, get_args, get_origin

from pydantic import BaseModel
from pydantic.errors import PydanticUndefinedAnnotation
from pydantic.fields import FieldInfo

from struct_grammar.schema.graph import find_cycle
from struct_grammar.schema.types import (
    ArrayNode,
    BooleanNode,
    CyclicSchemaError,
    DateNode,
    DecimalNode,
    EnumNode,
    Field,
    GuidNode,
    IntegerNode,
    ObjectNode,
    SchemaError,
    SchemaNode,
    StringNode,
)

logger = logging.getLogger(__name__)

_ARRAY_ORIGINS = (list, collections.abc.Sequence)


def is_pydantic_model(obj: Any) -> bool:
    """Return True if ``obj`` is a Pydantic model class."""
    return isinstance(obj, type) and issubclass(obj, BaseModel)


def pydantic_to_schema(model: type) -> Dict[str, Any]:
    """
    Export a Pydantic model as a JSON Schema dictionary.

    The result can be stored and later fed to
    :func:`struct_grammar.schema.parser.parse_json_schema`, which yields the
    same tree as :func:`schema_from_model`.
    """
    if not is_pydantic_model(model):
        raise SchemaError(f"Expected a Pydantic model class, got: {model!r}")
    return model.model_json_schema()


def schema_from_model(model: type) -> ObjectNode:
    """
    Build an ObjectNode tree from a Pydantic model class.

    Args:
        model: Pydantic BaseModel subclass

    Returns:
        ObjectNode: Root of the schema tree

    Raises:
        SchemaError: If a field uses an unsupported type
        CyclicSchemaError: If the model refers back to itself
    """
    if not is_pydantic_model(model):
        raise SchemaError(f"Expected a Pydantic model class, got: {model!r}")

    cycle = find_cycle(model, _referenced_models)
    if cycle:
        names = " -> ".join(m.__name__ for m in cycle)
        raise CyclicSchemaError(f"Cyclic reference detected: {names}")

    return _read_model(model)


def _model_fields(model: type) -> Dict[str, FieldInfo]:
    try:
        # resolves forward references; a no-op for complete models
        model.model_rebuild()
    except PydanticUndefinedAnnotation as e:
        raise SchemaError(f"Cannot resolve annotation on {model.__name__}: {e}") from e
    return model.model_fields


def _referenced_models(model: type) -> List[type]:
    found = []
    for info in _model_fields(model).values():
        for candidate in _walk_annotation(info.annotation):
            if is_pydantic_model(candidate) and candidate not in found:
                found.append(candidate)
    return found


def _walk_annotation(annotation: Any) -> Iterator[Any]:
    yield annotation
    for arg in get_args(annotation):
        yield from _walk_annotation(arg)


def _read_model(model: type) -> ObjectNode:
    fields = []
    for name, info in _model_fields(model).items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        node = _read_annotation(info.annotation, info.metadata, extra)
        fields.append(Field(name=info.alias or name, type=node, description=info.description))

    title = model.model_config.get("title") or model.__name__
    logger.debug(f"Read model '{title}' with {len(fields)} fields")
    return ObjectNode(name=title, fields=fields)


def _read_annotation(annotation: Any, metadata: List[Any], extra: Dict[str, Any]) -> SchemaNode:
    origin = get_origin(annotation)

    if origin is Literal:
        values = get_args(annotation)
        if not all(isinstance(v, str) for v in values):
            raise SchemaError(f"Literal values must be strings, got: {values}")
        return StringNode(allowed_values=values)

    if origin in _ARRAY_ORIGINS:
        args = get_args(annotation)
        if len(args) != 1:
            raise SchemaError(f"Arrays need exactly one element type, got: {annotation!r}")
        min_items, max_items = _length_bounds(metadata)
        element, element_metadata, element_extra = _unwrap_annotated(args[0])
        return ArrayNode(
            element=_read_annotation(element, element_metadata, element_extra),
            min_items=min_items,
            max_items=max_items,
        )

    if not isinstance(annotation, type):
        raise SchemaError(f"Unsupported type: {annotation!r}")

    # bool is a subclass of int, so it must be checked first
    if issubclass(annotation, bool):
        return BooleanNode()
    if issubclass(annotation, enum.Enum):
        values = [m.value for m in annotation]
        if not all(isinstance(v, str) for v in values):
            raise SchemaError(f"Enum values must be strings, {annotation.__name__} has: {values}")
        return EnumNode(name=annotation.__name__, values=values)
    if issubclass(annotation, str):
        string_format = extra.get("format")
        # same mapping as the JSON Schema parser
        if string_format == "date-time":
            return DateNode()
        if string_format == "uuid":
            return GuidNode()
        min_length, max_length = _length_bounds(metadata)
        return StringNode(min_length=min_length, max_length=max_length, format=string_format)
    if issubclass(annotation, int):
        return IntegerNode()
    if issubclass(annotation, (float, decimal.Decimal)):
        return DecimalNode()
    if issubclass(annotation, datetime.datetime):
        return DateNode()
    if issubclass(annotation, uuid.UUID):
        return GuidNode()
    if is_pydantic_model(annotation):
        return _read_model(annotation)

    raise SchemaError(f"Unsupported type: {annotation.__name__}")


def _unwrap_annotated(annotation: Any) -> Tuple[Any, List[Any], Dict[str, Any]]:
    """Split ``Annotated[T, ...]`` into T, its flattened metadata and its json_schema_extra."""
    metadata: List[Any] = []
    extra: Dict[str, Any] = {}

    if not hasattr(annotation, "__metadata__"):
        return annotation, metadata, extra

    for item in annotation.__metadata__:
        if isinstance(item, FieldInfo):
            metadata.extend(item.metadata)
            if isinstance(item.json_schema_extra, dict):
                extra.update(item.json_schema_extra)
        else:
            metadata.append(item)

    return annotation.__origin__, metadata, extra


def _length_bounds(metadata: List[Any]) -> Tuple[Optional[int], Optional[int]]:
    min_length = max_length = None
    for item in metadata:
        if getattr(item, "min_length", None) is not None:
            min_length = item.min_length
        if getattr(item, "max_length", None) is not None:
            max_length = item.max_length
    return min_length, max_length
