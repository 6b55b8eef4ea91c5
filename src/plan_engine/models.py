"""Catalog models and the synthesized request descriptor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


_LOCATIONS = {location.value for location in ParameterLocation}


class SchemeKind(str, Enum):
    API_KEY = "apiKey"
    HTTP_BEARER = "httpBearer"
    OTHER = "other"


@dataclass(frozen=True)
class ScalarSchema:
    type: str = "string"


@dataclass(frozen=True)
class ArraySchema:
    items: "SchemaNode" = field(default_factory=ScalarSchema)


@dataclass(frozen=True)
class ObjectSchema:
    properties: Dict[str, "SchemaNode"] = field(default_factory=dict)
    required: Tuple[str, ...] = ()


SchemaNode = Union[ObjectSchema, ArraySchema, ScalarSchema]


@dataclass(frozen=True)
class ApiParameter:
    name: str
    location: ParameterLocation
    required: bool = False
    schema: Optional[SchemaNode] = None


@dataclass(frozen=True)
class Operation:
    operation_id: str
    method: str
    path: str
    description: str = ""
    parameters: Tuple[ApiParameter, ...] = ()
    request_body_schema: Optional[SchemaNode] = None
    # Alternative requirement sets; each maps scheme name -> scopes.
    security: Tuple[Dict[str, List[str]], ...] = ()

    def parameters_in(self, location: ParameterLocation) -> List[ApiParameter]:
        return [p for p in self.parameters if p.location == location]


@dataclass(frozen=True)
class SecurityScheme:
    name: str
    kind: SchemeKind
    location: Optional[ParameterLocation] = None
    parameter_name: Optional[str] = None


@dataclass(frozen=True)
class Catalog:
    server_urls: Tuple[str, ...] = ()
    operations: Dict[str, Operation] = field(default_factory=dict)
    security_schemes: Dict[str, SecurityScheme] = field(default_factory=dict)

    def get_operation(self, operation_id: str) -> Optional[Operation]:
        return self.operations.get(operation_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Catalog":
        raw_operations = data.get("operations") or {}
        if isinstance(raw_operations, Mapping):
            raw_operations = [
                {"operationId": key, **(value or {})} for key, value in raw_operations.items()
            ]
        operations: Dict[str, Operation] = {}
        for raw in raw_operations:
            operation = _operation_from_dict(raw)
            operations[operation.operation_id] = operation

        schemes: Dict[str, SecurityScheme] = {}
        for name, raw in (data.get("securitySchemes") or {}).items():
            schemes[name] = _scheme_from_dict(name, raw or {})

        return cls(
            server_urls=tuple(data.get("serverUrls") or ()),
            operations=operations,
            security_schemes=schemes,
        )


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    # Same URL with credential-bearing query values masked, for logs.
    display_url: Optional[str] = None
    secret_headers: Tuple[str, ...] = ()

    @property
    def has_body(self) -> bool:
        return self.body is not None


def schema_from_json(raw: Any) -> SchemaNode:
    if not isinstance(raw, Mapping):
        return ScalarSchema()
    kind = raw.get("type")
    if isinstance(kind, list):
        kind = next((k for k in kind if k != "null"), None)

    if kind == "object" or (kind is None and "properties" in raw):
        properties = raw.get("properties") or {}
        return ObjectSchema(
            properties={name: schema_from_json(child) for name, child in properties.items()},
            required=tuple(raw.get("required") or ()),
        )
    if kind == "array" or (kind is None and "items" in raw):
        return ArraySchema(items=schema_from_json(raw.get("items") or {}))
    return ScalarSchema(type=kind or "string")


def _operation_from_dict(raw: Mapping[str, Any]) -> Operation:
    parameters = tuple(
        ApiParameter(
            name=param["name"],
            location=ParameterLocation(str(param.get("in", "query")).lower()),
            required=bool(param.get("required", False)),
            schema=schema_from_json(param["schema"]) if param.get("schema") else None,
        )
        for param in (raw.get("parameters") or [])
        if param.get("name") and str(param.get("in", "query")).lower() in _LOCATIONS
    )
    body_schema = raw.get("requestBodySchema")
    return Operation(
        operation_id=raw["operationId"],
        method=str(raw.get("httpMethod") or raw.get("method") or "GET").upper(),
        path=raw.get("path") or "/",
        description=raw.get("description") or "",
        parameters=parameters,
        request_body_schema=schema_from_json(body_schema) if body_schema else None,
        security=tuple(dict(requirement) for requirement in (raw.get("security") or [])),
    )


def _scheme_from_dict(name: str, raw: Mapping[str, Any]) -> SecurityScheme:
    scheme_type = str(raw.get("type", "")).replace("_", "").lower()
    http_scheme = str(raw.get("scheme", "")).lower()

    if scheme_type == "apikey":
        location = raw.get("in")
        return SecurityScheme(
            name=name,
            kind=SchemeKind.API_KEY,
            location=ParameterLocation(str(location).lower()) if location else ParameterLocation.HEADER,
            parameter_name=raw.get("name"),
        )
    if scheme_type == "httpbearer" or (scheme_type == "http" and http_scheme == "bearer"):
        return SecurityScheme(name=name, kind=SchemeKind.HTTP_BEARER)
    return SecurityScheme(name=name, kind=SchemeKind.OTHER)
