import json
import operator
import re
from datetime import datetime, timedelta
from urllib.parse import urlparse

import pytest
import requests
from flask_jwt_extended import create_access_token

from truthspot import create_app
from truthspot.config import TestingConfig
from truthspot.extensions import cache, pocketbase
from truthspot.models import Identity
from truthspot.services.pocketbase import PocketBase


COMPARATORS = {
    '>=': operator.ge,
    '<=': operator.le,
    '>': operator.gt,
    '<': operator.lt,
    '!=': operator.ne,
    '=': operator.eq,
}


def _split_top_level(expression, separator):
    """Split on a separator that is outside parentheses and string literals."""
    parts, current, depth, in_string, i = [], '', 0, False, 0
    while i < len(expression):
        ch = expression[i]
        if ch == '"' and (i == 0 or expression[i - 1] != '\\'):
            in_string = not in_string
        if not in_string:
            if ch == '(':
                depth += 1
            elif ch == ')':
                depth -= 1
            elif depth == 0 and expression.startswith(separator, i):
                parts.append(current)
                current = ''
                i += len(separator)
                continue
        current += ch
        i += 1
    parts.append(current)
    return [part.strip() for part in parts]


def _literal(raw):
    raw = raw.strip()
    if raw in ('true', 'false'):
        return raw == 'true'
    if raw.startswith('"'):
        return json.loads(raw)
    return float(raw)


def matches_filter(record, expression):
    """Evaluate the subset of the PocketBase filter grammar the app emits."""
    expression = (expression or '').strip()
    if not expression:
        return True
    parts = _split_top_level(expression, '&&')
    if len(parts) > 1:
        return all(matches_filter(record, part) for part in parts)
    parts = _split_top_level(expression, '||')
    if len(parts) > 1:
        return any(matches_filter(record, part) for part in parts)
    if expression.startswith('(') and expression.endswith(')'):
        return matches_filter(record, expression[1:-1])
    field, op, raw = re.match(r'^(\w+)\s*(>=|<=|!=|=|>|<)\s*(.+)$', expression).groups()
    return COMPARATORS[op](record.get(field), _literal(raw))


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.ok = 200 <= status_code < 300
        self.reason = 'OK' if self.ok else 'Error'
        self.content = b'' if payload is None else json.dumps(payload).encode()

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON body')
        return self._payload


class FakePocketBaseSession:
    """In-memory stand-in for the PocketBase REST API, plugged in as the requests session."""

    RECORDS = re.compile(r'^/api/collections/(\w+)/records(?:/([\w-]+))?$')
    AUTH = re.compile(r'^/api/collections/(\w+)/(auth-with-password|auth-with-oauth2|auth-refresh|auth-methods)$')

    def __init__(self):
        self.collections = {
            'spots': {},
            'spot_categories': {},
            'spot_tags': {},
            'spot_category_tags': {},
            'users': {},
        }
        self.calls = []
        self.down = False
        self._counter = 0
        self._clock = datetime(2024, 5, 1, 10, 0, 0)

    # Helpers for tests

    def next_id(self, prefix):
        self._counter += 1
        return f'{prefix}{self._counter:010d}'

    def next_created(self):
        self._clock += timedelta(seconds=1)
        return self._clock.strftime('%Y-%m-%d %H:%M:%S.000Z')

    def add(self, collection, **fields):
        record = dict(fields)
        record.setdefault('id', self.next_id(collection[:4]))
        record.setdefault('created', self.next_created())
        self.collections[collection][record['id']] = record
        return dict(record)

    def token_for(self, user_id):
        return f'token-{user_id}'

    def calls_to(self, method, path_fragment):
        return [call for call in self.calls if call['method'] == method and path_fragment in call['path']]

    # requests.Session interface

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = urlparse(url).path
        self.calls.append({'method': method, 'path': path, 'params': params or {}, 'json': json,
                           'headers': headers or {}})
        if self.down:
            raise requests.ConnectionError('connection refused')
        if path == '/api/health':
            return FakeResponse(200, {'code': 200, 'message': 'API is healthy.'})

        auth = self.AUTH.match(path)
        if auth:
            return getattr(self, '_' + auth.group(2).replace('-', '_'))(json, headers or {})

        records = self.RECORDS.match(path)
        if not records:
            return FakeResponse(404, {'code': 404, 'message': 'Not found.', 'data': {}})
        collection, record_id = records.groups()
        if collection not in self.collections:
            return FakeResponse(404, {'code': 404, 'message': 'Missing collection.', 'data': {}})
        params = params or {}

        if method == 'GET' and record_id is None:
            return self._list(collection, params)
        if method == 'POST' and record_id is None:
            return self._create(collection, json or {}, params)
        if record_id not in self.collections[collection]:
            return FakeResponse(404, {'code': 404, 'message': "The requested resource wasn't found.", 'data': {}})
        if method == 'GET':
            return FakeResponse(200, self._public(collection, self.collections[collection][record_id], params))
        if method == 'PATCH':
            self.collections[collection][record_id].update(json or {})
            return FakeResponse(200, self._public(collection, self.collections[collection][record_id], params))
        if method == 'DELETE':
            del self.collections[collection][record_id]
            return FakeResponse(204)
        return FakeResponse(405, {'code': 405, 'message': 'Method not allowed.', 'data': {}})

    def _public(self, collection, record, params):
        data = {key: value for key, value in record.items() if key != 'password'}
        if params.get('expand') == 'category' and record.get('category'):
            category = self.collections['spot_categories'].get(record['category'])
            if category:
                data['expand'] = {'category': dict(category)}
        return data

    def _list(self, collection, params):
        items = [record for record in self.collections[collection].values()
                 if matches_filter(record, params.get('filter'))]
        sort = params.get('sort')
        if sort:
            key = sort.lstrip('-')
            items.sort(key=lambda record: record.get(key) or '', reverse=sort.startswith('-'))
        page, per_page = int(params.get('page', 1)), int(params.get('perPage', 30))
        start = (page - 1) * per_page
        page_items = items[start:start + per_page]
        return FakeResponse(200, {
            'page': page,
            'perPage': per_page,
            'totalItems': len(items),
            'totalPages': (len(items) + per_page - 1) // per_page,
            'items': [self._public(collection, record, params) for record in page_items],
        })

    def _create(self, collection, data, params):
        if collection == 'users':
            if data.get('password') != data.get('passwordConfirm'):
                return FakeResponse(400, {'code': 400, 'message': 'Failed to create record.',
                                          'data': {'passwordConfirm': {'code': 'validation_values_mismatch'}}})
            if any(user['email'] == data.get('email') for user in self.collections['users'].values()):
                return FakeResponse(400, {'code': 400, 'message': 'Failed to create record.',
                                          'data': {'email': {'code': 'validation_invalid_email'}}})
            data = {key: value for key, value in data.items() if key != 'passwordConfirm'}
            data.setdefault('isAdmin', False)
        record = self.add(collection, **data)
        return FakeResponse(200, self._public(collection, record, params))

    def _user_for_token(self, headers):
        token = headers.get('Authorization', '')
        for user in self.collections['users'].values():
            if self.token_for(user['id']) == token:
                return user
        return None

    def _auth_with_password(self, data, headers):
        for user in self.collections['users'].values():
            if user['email'] == data.get('identity') and user.get('password') == data.get('password'):
                return FakeResponse(200, {'token': self.token_for(user['id']),
                                          'record': self._public('users', user, {})})
        return FakeResponse(400, {'code': 400, 'message': 'Failed to authenticate.', 'data': {}})

    def _auth_with_oauth2(self, data, headers):
        """Codes starting with "bad" are rejected; any other code signs in <code>@example.com."""
        code = data.get('code') or ''
        if code.startswith('bad') or not data.get('codeVerifier'):
            return FakeResponse(400, {'code': 400, 'message': 'Failed to authenticate.', 'data': {}})
        email = f'{code}@example.com'
        user = next((u for u in self.collections['users'].values() if u['email'] == email), None)
        is_new = user is None
        if is_new:
            user = self.add('users', email=email, name=code, isAdmin=False)
        return FakeResponse(200, {'token': self.token_for(user['id']),
                                  'record': self._public('users', user, {}),
                                  'meta': {'isNew': is_new, 'provider': data.get('provider')}})

    def _auth_refresh(self, data, headers):
        user = self._user_for_token(headers)
        if user is None:
            return FakeResponse(401, {'code': 401, 'message': 'The request requires valid record authorization token.',
                                      'data': {}})
        return FakeResponse(200, {'token': self.token_for(user['id']), 'record': self._public('users', user, {})})

    def _auth_methods(self, data, headers):
        return FakeResponse(200, {
            'usernamePassword': False,
            'emailPassword': True,
            'authProviders': [
                {'name': 'google', 'authUrl': 'https://accounts.google.com/o/oauth2/auth?client_id=x&redirect_uri=',
                 'state': 'state-g', 'codeVerifier': 'verifier-g'},
                {'name': 'github', 'authUrl': 'https://github.com/login/oauth/authorize?client_id=y&redirect_uri='},
                {'name': 'gitlab', 'authUrl': 'https://gitlab.com/oauth/authorize?client_id=z&redirect_uri='},
            ],
        })


@pytest.fixture(scope='session')
def app():
    """Create and configure a new app instance for each test session."""
    app = create_app(config_object=TestingConfig())
    yield app


@pytest.fixture
def fake_pb(app):
    """Fresh in-memory PocketBase behind the app's client."""
    fake = FakePocketBaseSession()
    original = pocketbase.session
    pocketbase.session = fake
    with app.app_context():
        cache.clear()
    yield fake
    pocketbase.session = original


@pytest.fixture
def pb_client(fake_pb):
    """Standalone PocketBase client talking to the fake."""
    return PocketBase(base_url='http://pocketbase.test', session=fake_pb)


@pytest.fixture(scope='function')
def client(app, fake_pb):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def sample_user(fake_pb):
    return fake_pb.add('users', email='test@example.com', password='password123', name='Test User',
                       username='testuser', isAdmin=False)


@pytest.fixture
def other_user(fake_pb):
    return fake_pb.add('users', email='other@example.com', password='password123', name='Other User',
                       username='otheruser', isAdmin=False)


@pytest.fixture
def admin_user(fake_pb):
    return fake_pb.add('users', email='admin@example.com', password='password123', name='Admin User',
                       username='adminuser', isAdmin=True)


def identity_for(fake_pb, user):
    return Identity(user_id=user['id'], is_admin=user['isAdmin'], token=fake_pb.token_for(user['id']))


@pytest.fixture
def user_identity(fake_pb, sample_user):
    return identity_for(fake_pb, sample_user)


@pytest.fixture
def other_identity(fake_pb, other_user):
    return identity_for(fake_pb, other_user)


@pytest.fixture
def admin_identity(fake_pb, admin_user):
    return identity_for(fake_pb, admin_user)


def headers_for(app, fake_pb, user):
    with app.app_context():
        token = create_access_token(
            identity=user['id'],
            additional_claims={'is_admin': user['isAdmin'], 'pb_token': fake_pb.token_for(user['id'])},
        )
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers(app, fake_pb, sample_user):
    """Create authentication headers for testing."""
    return headers_for(app, fake_pb, sample_user)


@pytest.fixture
def other_auth_headers(app, fake_pb, other_user):
    return headers_for(app, fake_pb, other_user)


@pytest.fixture
def admin_auth_headers(app, fake_pb, admin_user):
    """Create admin authentication headers for testing."""
    return headers_for(app, fake_pb, admin_user)


@pytest.fixture
def taxonomy(fake_pb):
    """Food -> Restaurant -> Ramen, Food -> Cafe, Nature -> Park; tags linked per category."""
    food = fake_pb.add('spot_categories', name='Food', icon='🍽️', parent_spot_category='')
    restaurant = fake_pb.add('spot_categories', name='Restaurant', icon='🍜', parent_spot_category=food['id'])
    ramen = fake_pb.add('spot_categories', name='Ramen', icon='🍥', parent_spot_category=restaurant['id'])
    cafe = fake_pb.add('spot_categories', name='Cafe', icon='☕', parent_spot_category=food['id'])
    nature = fake_pb.add('spot_categories', name='Nature', icon='🌳', parent_spot_category='')
    park = fake_pb.add('spot_categories', name='Park', icon='🏞️', parent_spot_category=nature['id'])

    cheap = fake_pb.add('spot_tags', name='Cheap', icon='💸')
    late = fake_pb.add('spot_tags', name='Open late', icon='🌙')
    wifi = fake_pb.add('spot_tags', name='Wifi', icon='📶')
    dogs = fake_pb.add('spot_tags', name='Dog friendly', icon='🐕')

    for category, tag in ((restaurant, cheap), (restaurant, late), (ramen, late), (cafe, wifi), (park, dogs)):
        fake_pb.add('spot_category_tags', spot_category_id=category['id'], spot_tag_id=tag['id'])

    return {
        'food': food, 'restaurant': restaurant, 'ramen': ramen, 'cafe': cafe,
        'nature': nature, 'park': park,
        'cheap': cheap, 'late': late, 'wifi': wifi, 'dogs': dogs,
    }


@pytest.fixture
def spot_factory(fake_pb):
    """Factory for creating spot records directly in the fake backend."""
    def _create_spot(**kwargs):
        defaults = {
            'name': 'Test Spot',
            'description': 'Test spot description',
            'lat': 40.7128,
            'lng': -74.006,
            'category': '',
            'user': '',
            'isPublic': True,
            'tags': [],
        }
        defaults.update(kwargs)
        return fake_pb.add('spots', **defaults)

    return _create_spot
