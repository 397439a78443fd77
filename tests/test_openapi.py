from truthspot.scripts.openapi import build_spec


class TestOpenAPI:
    """Test cases for the generated API document."""

    def test_documented_routes_are_included(self, app):
        document = build_spec(app).to_dict()

        assert document['info']['title'] == 'TruthSpot API'
        assert 'get' in document['paths']['/spots/viewport']
        assert 'post' in document['paths']['/spots/add']
        assert 'patch' in document['paths']['/spots/{spot_id}/visibility']
        assert 'post' in document['paths']['/auth/login']

    def test_schemas_are_registered(self, app):
        schemas = build_spec(app).to_dict()['components']['schemas']
        assert {'SpotSchema', 'CategorySchema', 'SpotListSchema'} <= set(schemas)

    def test_undocumented_routes_are_skipped(self, app):
        assert '/health/live' not in build_spec(app).to_dict()['paths']
