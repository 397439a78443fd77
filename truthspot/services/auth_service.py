import logging

from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
)

from truthspot.extensions import pocketbase
from truthspot.models import Identity, User
from truthspot.services.pocketbase import PocketBaseError
from truthspot.utils.validators import validate_email_format, validate_password_strength

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
OAUTH_PROVIDERS = ("google", "github")

# PocketBase answers bad credentials and rule violations with these
CLIENT_ERROR_STATUSES = (400, 401, 403, 404)


class AuthService:
    """Service class for handling authentication against the PocketBase users collection."""

    @staticmethod
    def authenticate_user(email, password):
        """Authenticate user with email and password."""
        if not email or not password:
            return {"error": "Email and password are required"}, 400

        try:
            auth_data = pocketbase.collection(USERS_COLLECTION).auth_with_password(email, password)
        except PocketBaseError as e:
            if e.status in CLIENT_ERROR_STATUSES:
                return {"error": "Invalid credentials"}, 401
            raise

        return AuthService._create_auth_response(User.from_record(auth_data["record"]), auth_data["token"])

    @staticmethod
    def create_user(email, password, name=None):
        """Create a new PocketBase user, then log in as that user."""
        if not validate_email_format(email):
            return {"error": "Please enter a valid email"}, 400
        valid, message = validate_password_strength(password)
        if not valid:
            return {"error": message}, 400

        data = {"email": email, "password": password, "passwordConfirm": password}
        if name:
            data["name"] = name
        try:
            pocketbase.collection(USERS_COLLECTION).create(data)
        except PocketBaseError as e:
            if e.status in CLIENT_ERROR_STATUSES:
                return {"error": "Could not create account", "fields": e.data}, 400
            raise

        logger.info("Registered new user %s", email)
        return AuthService.authenticate_user(email, password)

    @staticmethod
    def authenticate_oauth2(provider, code, code_verifier, redirect_url):
        """Exchange an OAuth2 authorization code for a PocketBase session and our tokens."""
        if provider not in OAUTH_PROVIDERS:
            return {"error": f"Unsupported provider: {provider}"}, 400
        if not code or not code_verifier or not redirect_url:
            return {"error": "code, codeVerifier and redirectUrl are required"}, 400

        try:
            auth_data = pocketbase.collection(USERS_COLLECTION).auth_with_oauth2(
                provider, code, code_verifier, redirect_url
            )
        except PocketBaseError as e:
            if e.status in CLIENT_ERROR_STATUSES:
                return {"error": "OAuth sign in failed"}, 401
            raise

        meta = auth_data.get("meta") or {}
        if meta.get("isNew"):
            logger.info("Registered new %s user %s", provider, auth_data["record"].get("email"))
        return AuthService._create_auth_response(User.from_record(auth_data["record"]), auth_data["token"])

    @staticmethod
    def refresh(identity):
        """Refresh the PocketBase token and issue a new access token."""
        if not identity.token:
            return {"error": "Not logged in"}, 401
        try:
            auth_data = pocketbase.collection(USERS_COLLECTION, token=identity.token).auth_refresh()
        except PocketBaseError as e:
            if e.status in CLIENT_ERROR_STATUSES:
                return {"error": "Session expired"}, 401
            raise

        user = User.from_record(auth_data["record"])
        return {"access_token": AuthService._access_token(user, auth_data["token"])}, 200

    @staticmethod
    def list_auth_methods():
        """OAuth providers PocketBase advertises, limited to the ones the UI supports."""
        methods = pocketbase.collection(USERS_COLLECTION).list_auth_methods() or {}
        providers = methods.get("authProviders")
        if providers is None:
            providers = (methods.get("oauth2") or {}).get("providers", [])
        return {
            "providers": [
                {
                    "name": provider.get("name"),
                    "authUrl": provider.get("authUrl") or provider.get("authURL"),
                    "state": provider.get("state"),
                    "codeVerifier": provider.get("codeVerifier"),
                }
                for provider in providers
                if provider.get("name") in OAUTH_PROVIDERS
            ]
        }

    @staticmethod
    def current_identity():
        """Identity for the current request; anonymous when no valid JWT is present."""
        verify_jwt_in_request(optional=True)
        user_id = get_jwt_identity()
        if not user_id:
            return Identity.anonymous()
        claims = get_jwt()
        return Identity(
            user_id=user_id,
            is_admin=bool(claims.get("is_admin", False)),
            token=claims.get("pb_token"),
        )

    @staticmethod
    def _access_token(user, pb_token):
        return create_access_token(
            identity=user.id,
            additional_claims={"is_admin": user.is_admin, "pb_token": pb_token},
        )

    @staticmethod
    def _create_auth_response(user, pb_token):
        """Create authentication response with tokens."""
        refresh_token = create_refresh_token(
            identity=user.id,
            additional_claims={"is_admin": user.is_admin, "pb_token": pb_token},
        )

        return {
            "user": user.get_dict(),
            "access_token": AuthService._access_token(user, pb_token),
            "refresh_token": refresh_token,
        }, 200
