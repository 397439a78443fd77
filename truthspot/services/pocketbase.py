"""
Thin client for the PocketBase REST API.

Only the record endpoints and the password/refresh/auth-methods endpoints of
auth collections are wrapped; PocketBase owns the schema and access rules.
"""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://127.0.0.1:8090"
DEFAULT_TIMEOUT = 10
FULL_LIST_BATCH = 500


class PocketBaseError(Exception):
    """A failed PocketBase call. status is 0 when the request never got a response."""

    def __init__(self, status, message, data=None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.data = data or {}

    @classmethod
    def from_response(cls, response):
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("message") or response.reason or "PocketBase request failed"
        return cls(response.status_code, message, payload.get("data"))

    def get_dict(self):
        return {"status": self.status, "message": self.message, "data": self.data}


def quote(value):
    """Quote a string literal for use inside a PocketBase filter expression."""
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def number(value, places=8):
    """Fixed-point numeric literal; the filter grammar has no exponent form."""
    text = f"{float(value):.{places}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


class RecordService:
    """CRUD and auth calls for one collection, optionally on behalf of a user token."""

    def __init__(self, client, name, token=None):
        self.client = client
        self.name = name
        self.token = token

    @property
    def base_path(self):
        return f"/api/collections/{self.name}"

    def _request(self, method, path, **kwargs):
        return self.client.send(method, self.base_path + path, token=self.token, **kwargs)

    def get_list(self, page=1, per_page=30, filter=None, sort=None, expand=None):
        params = {"page": page, "perPage": per_page}
        if filter:
            params["filter"] = filter
        if sort:
            params["sort"] = sort
        if expand:
            params["expand"] = expand
        return self._request("GET", "/records", params=params)

    def get_full_list(self, filter=None, sort=None, expand=None, batch=FULL_LIST_BATCH):
        items = []
        page = 1
        while True:
            result = self.get_list(page=page, per_page=batch, filter=filter, sort=sort, expand=expand)
            page_items = result.get("items", [])
            items.extend(page_items)
            if len(page_items) < batch:
                return items
            page += 1

    def get_one(self, record_id, expand=None):
        params = {"expand": expand} if expand else None
        return self._request("GET", f"/records/{record_id}", params=params)

    def create(self, data, expand=None):
        params = {"expand": expand} if expand else None
        return self._request("POST", "/records", json=data, params=params)

    def update(self, record_id, data, expand=None):
        params = {"expand": expand} if expand else None
        return self._request("PATCH", f"/records/{record_id}", json=data, params=params)

    def delete(self, record_id):
        self._request("DELETE", f"/records/{record_id}")
        return True

    def auth_with_password(self, identity, password):
        return self._request(
            "POST", "/auth-with-password", json={"identity": identity, "password": password}
        )

    def auth_with_oauth2(self, provider, code, code_verifier, redirect_url, create_data=None):
        data = {
            "provider": provider,
            "code": code,
            "codeVerifier": code_verifier,
            "redirectUrl": redirect_url,
        }
        if create_data:
            data["createData"] = create_data
        return self._request("POST", "/auth-with-oauth2", json=data)

    def auth_refresh(self):
        return self._request("POST", "/auth-refresh")

    def list_auth_methods(self):
        return self._request("GET", "/auth-methods")


class PocketBase:
    """PocketBase client, usable standalone or as a Flask extension."""

    def __init__(self, app=None, base_url=None, timeout=None, session=None):
        self.base_url = (base_url or DEFAULT_URL).rstrip("/")
        self.timeout = timeout or DEFAULT_TIMEOUT
        self.session = session or requests.Session()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.base_url = app.config.get("POCKETBASE_URL", self.base_url).rstrip("/")
        self.timeout = app.config.get("POCKETBASE_TIMEOUT", self.timeout)
        app.extensions["pocketbase"] = self

    def collection(self, name, token=None):
        return RecordService(self, name, token=token)

    def send(self, method, path, token=None, params=None, json=None):
        headers = {}
        if token:
            headers["Authorization"] = token
        url = self.base_url + path
        try:
            response = self.session.request(
                method, url, params=params, json=json, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("PocketBase %s %s failed: %s", method, path, e)
            raise PocketBaseError(0, f"PocketBase unreachable: {e}") from e

        if not response.ok:
            error = PocketBaseError.from_response(response)
            logger.warning("PocketBase %s %s returned %s: %s", method, path, error.status, error.message)
            raise error
        if response.status_code == 204 or not response.content:
            return None
        return response.json()
