import json
import sys

from apispec import APISpec
from apispec.ext.marshmallow import MarshmallowPlugin
from apispec_webframeworks.flask import FlaskPlugin
from marshmallow import Schema, fields

# Create spec
spec = APISpec(
    title='TruthSpot API',
    version='1.0.0',
    openapi_version="3.0.2",
    info=dict(
        description='API for browsing, adding and managing TruthSpot spots'
    ),
    plugins=[
        FlaskPlugin(), MarshmallowPlugin()
    ]
)

# Reference your schemas definitions
class CategorySchema(Schema):
    id = fields.Str()
    name = fields.Str()
    icon = fields.Str()
    parent_spot_category = fields.Str(allow_none=True)

class TagSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    icon = fields.Str()

class SpotSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    description = fields.Str()
    lat = fields.Float()
    lng = fields.Float()
    category = fields.Str(metadata={"description": "Id of the deepest selected category"})
    user = fields.Str()
    isPublic = fields.Bool()
    created = fields.DateTime()
    tags = fields.List(fields.Str())
    expand = fields.Dict()

class MarkerSchema(Schema):
    type = fields.Str(metadata={"description": "Either 'marker' (a single spot) or 'cluster'"})
    lat = fields.Float()
    lng = fields.Float()
    spot_id = fields.Str()
    icon = fields.Str()
    size = fields.Int()
    count = fields.Int()

class SpotListSchema(Schema):
    data = fields.List(fields.Nested(SpotSchema()))
    markers = fields.List(fields.Nested(MarkerSchema()))
    radius_km = fields.Float()
    zoom = fields.Int()


SCHEMAS = {
    'CategorySchema': CategorySchema,
    'TagSchema': TagSchema,
    'SpotSchema': SpotSchema,
    'MarkerSchema': MarkerSchema,
    'SpotListSchema': SpotListSchema,
}


def build_spec(app):
    """Collect every documented view of the app into the OpenAPI spec."""
    for name, schema in SCHEMAS.items():
        if name not in spec.components.schemas:
            spec.components.schema(name, schema=schema)
    with app.test_request_context():
        for rule in app.url_map.iter_rules():
            view = app.view_functions.get(rule.endpoint)
            if view is None or rule.endpoint == 'static' or not (view.__doc__ or '').count('---'):
                continue
            spec.path(view=view)
    return spec


if __name__ == '__main__':
    from truthspot import create_app

    json.dump(build_spec(create_app()).to_dict(), sys.stdout, indent=2)
