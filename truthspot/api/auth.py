from flask import Blueprint, jsonify, request
from flask_jwt_extended import (
    get_jwt,
    get_jwt_identity,
    jwt_required,
    set_access_cookies,
    set_refresh_cookies,
    unset_jwt_cookies,
)

from truthspot.models import Identity
from truthspot.services.auth_service import AuthService

bp = Blueprint('auth', __name__, url_prefix='/auth')


def _auth_response(result, status_code):
    response = jsonify(result)
    if status_code == 200:
        set_access_cookies(response, result['access_token'])
        set_refresh_cookies(response, result['refresh_token'])
    return response, status_code


@bp.route('/register', methods=['POST'])
def register():
    """Register a new user.
    ---
    post:
        summary: Register
        description: Create a PocketBase user with email and password, then log in
        responses:
            200:
                description: Returns the user and access/refresh tokens
            400:
                description: Invalid email, weak password, or account already exists
    """
    data = request.get_json(silent=True) or {}

    result, status_code = AuthService.create_user(
        email=data.get('email'),
        password=data.get('password'),
        name=data.get('name'),
    )
    return _auth_response(result, status_code)


@bp.route('/login', methods=['POST'])
def login():
    """Login with email and password.
    ---
    post:
        summary: Login
        description: Authenticate against the PocketBase users collection
        responses:
            200:
                description: Returns the user and access/refresh tokens
            401:
                description: Invalid credentials
    """
    data = request.get_json(silent=True) or {}

    result, status_code = AuthService.authenticate_user(
        email=data.get('email'),
        password=data.get('password')
    )
    return _auth_response(result, status_code)


@bp.route('/oauth2', methods=['POST'])
def oauth2_login():
    """Complete Google or GitHub sign in.
    ---
    post:
        summary: OAuth2 sign in
        description: Exchange the provider's authorization code (with the codeVerifier
          from /auth/methods) for a PocketBase session, creating the user on first sign in
        responses:
            200:
                description: Returns the user and access/refresh tokens
            400:
                description: Unsupported provider or missing code
            401:
                description: The provider or PocketBase rejected the code
    """
    data = request.get_json(silent=True) or {}

    result, status_code = AuthService.authenticate_oauth2(
        provider=data.get('provider'),
        code=data.get('code'),
        code_verifier=data.get('codeVerifier'),
        redirect_url=data.get('redirectUrl'),
    )
    return _auth_response(result, status_code)


@bp.route('/methods')
def auth_methods():
    """OAuth providers available for sign in."""
    return jsonify(AuthService.list_auth_methods())


@bp.route('/me')
def me():
    """Current identity (anonymous when logged out)."""
    return jsonify({'data': AuthService.current_identity().get_dict()})


@bp.route('/logout', methods=['POST'])
def logout():
    """Logout user."""
    response = jsonify({"message": "Logged out successfully"})
    unset_jwt_cookies(response)
    return response


@bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token."""
    claims = get_jwt()
    identity = Identity(
        user_id=get_jwt_identity(),
        is_admin=bool(claims.get('is_admin', False)),
        token=claims.get('pb_token'),
    )
    result, status_code = AuthService.refresh(identity)

    response = jsonify(result)
    if status_code == 200:
        set_access_cookies(response, result['access_token'])
    return response, status_code
