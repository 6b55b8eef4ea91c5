"""Builds ready-to-send HTTP requests from resolved operation calls."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode

from .errors import ConfigurationError, UnsupportedMethod
from .models import (
    ArraySchema,
    Catalog,
    HttpRequest,
    ObjectSchema,
    Operation,
    ParameterLocation,
    SchemeKind,
)
from .plan import WHOLE_BODY_KEY

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

_MASK = "***"


class CredentialInjector:
    """Applies the operation's first security requirement set."""

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog

    def build_auth(
        self, operation: Operation, credential: Optional[str]
    ) -> tuple[Dict[str, str], Dict[str, str]]:
        headers: Dict[str, str] = {}
        query: Dict[str, str] = {}

        if credential is None or not operation.security:
            return headers, query

        for scheme_name in operation.security[0]:
            scheme = self.catalog.security_schemes.get(scheme_name)
            if scheme is None:
                logger.warning(
                    "Operation %s references unknown security scheme '%s'",
                    operation.operation_id,
                    scheme_name,
                )
                continue

            logger.debug("Applying security scheme '%s' of kind %s", scheme_name, scheme.kind.value)
            if scheme.kind == SchemeKind.API_KEY and scheme.parameter_name:
                if scheme.location == ParameterLocation.QUERY:
                    query[scheme.parameter_name] = credential
                elif scheme.location == ParameterLocation.COOKIE:
                    cookie = f"{scheme.parameter_name}={credential}"
                    headers["Cookie"] = (
                        f"{headers['Cookie']}; {cookie}" if "Cookie" in headers else cookie
                    )
                else:
                    headers[scheme.parameter_name] = credential
            elif scheme.kind == SchemeKind.HTTP_BEARER:
                headers["Authorization"] = f"Bearer {credential}"

        return headers, query


class RequestSynthesizer:
    def build(
        self,
        operation: Operation,
        params: Dict[str, Any],
        catalog: Catalog,
        credential: Optional[str],
    ) -> HttpRequest:
        if not catalog.server_urls:
            raise ConfigurationError(
                "Cannot execute request: no server URL found in the API specification."
            )
        method = operation.method.upper()
        if method not in SUPPORTED_METHODS:
            raise UnsupportedMethod(method)

        auth_headers, auth_query = CredentialInjector(catalog).build_auth(operation, credential)

        base_url = catalog.server_urls[0].rstrip("/")
        path = self._build_path(operation, params)
        query = self._collect(operation, params, ParameterLocation.QUERY)
        url = self._with_query(base_url + path, {**query, **auth_query})
        display_url = self._with_query(
            base_url + path, {**query, **{name: _MASK for name in auth_query}}
        )

        headers: Dict[str, str] = {"Accept": "application/json"}
        for name, value in self._collect(operation, params, ParameterLocation.HEADER).items():
            headers[name] = _stringify(value)

        body = self._build_body(operation, params)
        if body is not None:
            headers["Content-Type"] = "application/json"
        headers.update(auth_headers)

        logger.debug("Building %s request for URL: %s", method, display_url)
        return HttpRequest(
            method=method,
            url=url,
            headers=headers,
            body=body,
            display_url=display_url,
            secret_headers=tuple(auth_headers),
        )

    def _build_path(self, operation: Operation, params: Dict[str, Any]) -> str:
        path = operation.path
        for parameter in operation.parameters_in(ParameterLocation.PATH):
            if parameter.name in params:
                path = path.replace(f"{{{parameter.name}}}", _stringify(params[parameter.name]))
        return path

    def _collect(
        self, operation: Operation, params: Dict[str, Any], location: ParameterLocation
    ) -> Dict[str, Any]:
        return {
            parameter.name: params[parameter.name]
            for parameter in operation.parameters_in(location)
            if params.get(parameter.name) is not None
        }

    def _with_query(self, url: str, query: Dict[str, Any]) -> str:
        if not query:
            return url
        encoded = urlencode(_query_items(query), quote_via=quote)
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{encoded}"

    def _build_body(self, operation: Operation, params: Dict[str, Any]) -> Any:
        if WHOLE_BODY_KEY in params:
            return params[WHOLE_BODY_KEY]

        schema = operation.request_body_schema
        if not isinstance(schema, ObjectSchema):
            return None

        body: Dict[str, Any] = {}
        for name, property_schema in schema.properties.items():
            if name not in params:
                continue
            value = params[name]
            if isinstance(property_schema, ArraySchema) and isinstance(value, str):
                value = [item.strip() for item in value.split(",")]
            body[name] = value

        missing = [name for name in schema.required if name not in body]
        if body and missing:
            logger.warning(
                "Request body for %s is missing required field(s): %s",
                operation.operation_id,
                ", ".join(missing),
            )
        return body or None


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _query_items(query: Dict[str, Any]) -> List[Tuple[str, str]]:
    items: List[Tuple[str, str]] = []
    for name, value in query.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        items.extend((name, _stringify(item)) for item in values if item is not None)
    return items
