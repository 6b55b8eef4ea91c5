"""Tests for catalog models and schema trees."""

from plan_engine.models import (
    ArraySchema,
    Catalog,
    ObjectSchema,
    ParameterLocation,
    ScalarSchema,
    SchemeKind,
    schema_from_json,
)

from conftest import BASE_URL


class TestSchemaFromJson:
    def test_object_with_nested_array(self):
        schema = schema_from_json(
            {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                },
            }
        )
        assert isinstance(schema, ObjectSchema)
        assert schema.required == ("name",)
        assert schema.properties["name"] == ScalarSchema(type="string")
        assert schema.properties["tags"] == ArraySchema(items=ScalarSchema(type="string"))

    def test_untyped_schema_inferred_from_shape(self):
        assert isinstance(schema_from_json({"properties": {}}), ObjectSchema)
        assert isinstance(schema_from_json({"items": {"type": "integer"}}), ArraySchema)

    def test_nullable_type_list(self):
        assert schema_from_json({"type": ["null", "integer"]}) == ScalarSchema(type="integer")

    def test_non_mapping_is_scalar(self):
        assert schema_from_json(None) == ScalarSchema()


class TestCatalogFromDict:
    def test_operations_keyed_by_id(self, catalog):
        assert set(catalog.operations) == {"getItemById", "get_items", "createItem", "getOwner"}
        assert catalog.server_urls[0] == BASE_URL

    def test_operation_fields(self, catalog):
        op = catalog.get_operation("getItemById")
        assert op.method == "GET"
        assert op.path == "/items/{itemId}"
        assert op.parameters[0].location == ParameterLocation.PATH
        assert op.parameters[0].required is True
        assert op.security == ({"ApiKeyAuth": []},)

    def test_method_is_upper_cased(self, catalog):
        assert catalog.get_operation("get_items").method == "GET"

    def test_security_schemes(self, catalog):
        api_key = catalog.security_schemes["ApiKeyAuth"]
        assert api_key.kind == SchemeKind.API_KEY
        assert api_key.location == ParameterLocation.HEADER
        assert api_key.parameter_name == "X-API-KEY"
        assert catalog.security_schemes["BearerAuth"].kind == SchemeKind.HTTP_BEARER

    def test_unknown_scheme_type_is_other(self):
        catalog = Catalog.from_dict({"securitySchemes": {"OAuth": {"type": "oauth2"}}})
        assert catalog.security_schemes["OAuth"].kind == SchemeKind.OTHER

    def test_operations_as_list(self):
        catalog = Catalog.from_dict(
            {"operations": [{"operationId": "ping", "httpMethod": "GET", "path": "/ping"}]}
        )
        assert catalog.get_operation("ping").path == "/ping"
        assert catalog.server_urls == ()

    def test_missing_operation(self, catalog):
        assert catalog.get_operation("doStuff") is None

    def test_unsupported_parameter_location_skipped(self):
        catalog = Catalog.from_dict(
            {
                "operations": {
                    "legacy": {
                        "httpMethod": "POST",
                        "path": "/legacy",
                        "parameters": [
                            {"name": "payload", "in": "body"},
                            {"name": "id", "in": "Query"},
                        ],
                    }
                }
            }
        )
        params = catalog.get_operation("legacy").parameters
        assert [(p.name, p.location) for p in params] == [("id", ParameterLocation.QUERY)]
