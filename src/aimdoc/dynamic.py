"""Runtime construction of Pydantic models from JSON Schema fragments.

Used where a document describes a shape that a model has to fill in:
    - the declared inputs of a sub-flow (`frontmatter_input_schema`), from which
        the `flow` tag asks the ai adapter to generate an input object;
    - the `structuredOutputs` schema of the `ai` tag, bound to a chat model via
        `with_structured_output`.

Limitations / TODO:
    - TODO: Expand `$ref` handling to detect circular references gracefully.
"""

from types import UnionType
from typing import Any, TypeAlias, Union

from pydantic import BaseModel, Field, create_model

from aimdoc.core.nodes import Frontmatter

JsonSchema: TypeAlias = dict[str, Any]

_type_mapping: dict[str, Any] = {
    "string": str,
    "text": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "null": type(None),
    "object": dict,
    "array": list,
}

_json_type_aliases = {
    "text": "string",
    "str": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
    "dict": "object",
    "list": "array",
    "none": "null",
    "None": "null",
}


def get_type(name: str, custom_types: dict[str, type] | None = None) -> UnionType | type:
    """Resolve a JSON Schema type name, a custom model name or a `a | b` union.

    Params:
        name: Type name or pipe-delimited union specification.
        custom_types: Registry of previously generated model classes.

    Returns:
        Concrete Python `type` or `types.UnionType`.

    Raises:
        ValueError: If any referenced type cannot be resolved.
    """
    custom_types = custom_types or {}
    resolved = []
    for token in name.split("|"):
        token = token.strip()
        token = _json_type_aliases.get(token, token)
        if token in _type_mapping:
            resolved.append(_type_mapping[token])
        elif token in custom_types:
            resolved.append(custom_types[token])
        else:
            raise ValueError(f"Type {token} is not a JSON Schema type or a known model.")
    result = resolved[0]
    for other in resolved[1:]:
        result = result | other
    return result


def resolve_type(field: JsonSchema, custom_types: dict[str, type] | None = None) -> UnionType | type:
    """Derive a Python type from a JSON Schema field fragment.

    Recognized keys, in precedence order: `type`, `anyOf`, `$ref`. Nested
    objects with `properties` become nested models.

    Raises:
        ValueError: If the fragment is unsupported or a reference is unknown.
    """
    custom_types = custom_types or {}
    if "type" in field:
        raw_type = field["type"]
        if isinstance(raw_type, list):
            raw_type = " | ".join(raw_type)
        if not isinstance(raw_type, str):
            raise ValueError(f"Invalid 'type' value; expected string, got: {type(raw_type)}")
        if raw_type == "object" and isinstance(field.get("properties"), dict):
            return schema_to_model(field.get("title", "NestedObject"), field, custom_types)
        if raw_type == "array" and isinstance(field.get("items"), dict):
            return list[resolve_type(field["items"], custom_types)]  # type: ignore[misc]
        return get_type(raw_type, custom_types)
    if "anyOf" in field:
        fragments = field["anyOf"]
        if not isinstance(fragments, list) or not fragments:
            raise ValueError("'anyOf' must be a non-empty list of schema fragments")
        result = resolve_type(fragments[0], custom_types)
        for fragment in fragments[1:]:
            result = result | resolve_type(fragment, custom_types)  # type: ignore[operator]
        return result
    if "$ref" in field:
        type_name = str(field["$ref"]).split("/")[-1]
        if type_name not in custom_types:
            raise ValueError(f"Type {type_name} is not defined in custom types.")
        return custom_types[type_name]
    raise ValueError("Field does not have a `type`, `anyOf` or `$ref` defined. Field json:\n" + str(field))


def schema_to_model(
    name: str,
    schema: JsonSchema,
    custom_types: dict[str, type] | None = None,
) -> type[BaseModel]:
    """Create a Pydantic model class from a JSON Schema object.

    Definitions under `$defs` are built first so `$ref`s can point at them.
    Properties listed in `required` are mandatory, all others default to None.

    Params:
        name: Target model class name.
        schema: JSON Schema object with `properties` and optional `$defs`.
        custom_types: Registry of existing types for `$ref` resolution.

    Returns:
        Generated model class.

    Raises:
        ValueError: If the schema is malformed.
    """
    custom_types = dict(custom_types or {})
    for type_name, type_schema in (schema.get("$defs") or {}).items():
        if type_name in custom_types:
            continue
        if not isinstance(type_schema, dict):
            raise ValueError(f"Definition for {type_name} must be a dict schema fragment")
        custom_types[type_name] = schema_to_model(type_name, type_schema, custom_types)

    properties = schema.get("properties", {})
    if not isinstance(properties, dict):
        raise ValueError("'properties' must be a dict")
    required = set(schema.get("required") or [])
    fields: dict[str, tuple[Any, Any]] = {}
    for field_name, field_schema in properties.items():
        if not isinstance(field_schema, dict):
            raise ValueError(f"Property '{field_name}' schema must be a dict")
        field_type = resolve_type(field_schema, custom_types)
        description = field_schema.get("description")
        if field_name in required:
            fields[field_name] = (field_type, Field(description=description))
        else:
            fields[field_name] = (
                Union[field_type, None],
                Field(default=field_schema.get("default"), description=description),
            )
    return create_model(name, __doc__=schema.get("description"), **fields)  # type: ignore[call-overload]


def frontmatter_input_schema(frontmatter: Frontmatter) -> JsonSchema:
    """JSON Schema object describing the inputs a document declares.

    Inputs without a default are required.
    """
    properties: JsonSchema = {}
    required = []
    for declaration in frontmatter.input:
        json_type = _json_type_aliases.get(declaration.type, declaration.type)
        if json_type not in _type_mapping:
            json_type = "string"
        field: JsonSchema = {"type": json_type}
        if declaration.description:
            field["description"] = declaration.description
        if declaration.default is not None:
            field["default"] = declaration.default
        else:
            required.append(declaration.name)
        properties[declaration.name] = field
    schema: JsonSchema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def describe_model(model: type[BaseModel]) -> str:
    """Markdown description of a model's fields, appended to generation prompts."""
    model_schema = model.model_json_schema()
    name = model_schema.get("title", model.__name__)
    properties = model_schema.get("properties") or {}
    lines = [f"## Output\n\nRespond with an object matching the schema {name}."]
    for field_name, field in properties.items():
        description = field.get("description") or ""
        lines.append(f"- `{field_name}`: {description}" if description else f"- `{field_name}`")
    return "\n".join(lines)
