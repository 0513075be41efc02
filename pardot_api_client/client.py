"""
Client implementation for the Pardot REST API.

This module defines the :class:`PardotClient` class which logs in to
Pardot with an email address, password and user key, and then performs
read, create, update, upsert, query and delete calls against version 4
of the API.  Every data request carries the ``api_key`` obtained at
login together with the ``user_key``, ``output=full`` and the
configured response ``format``.

Usage
-----

.. code-block:: python

    from pardot_api_client import PardotClient

    client = PardotClient(timeout=10)
    client.set_auth("me@example.com", "secret", "my-user-key").authenticate()

    prospect = client.read("Prospect", 42)
    recent = client.query("Prospect", {"created_after": "2020-01-01"})
    for row in recent:
        print(row["email"])

Responses are returned as plain dictionaries and lists decoded from
JSON.  The client does not re-authenticate on its own: when Pardot
rejects a stale ``api_key`` the request fails with
:class:`~pardot_api_client.exceptions.PardotAPIError` and the caller
should call :meth:`PardotClient.authenticate` again.
"""

from __future__ import annotations

import logging
import os
import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import requests

from .encoding import build_query, encode_fields, is_blank, lookup, snake_case
from .exceptions import PardotAPIError, PardotAuthError

logger = logging.getLogger(__name__)

_SECRET_PARAMS = re.compile(r"([?&](?:api_key|user_key|password)=)[^&]*")


def _mask(url: str) -> str:
    """Hide credential values in ``url`` so it can be logged."""
    return _SECRET_PARAMS.sub(r"\1***", url)


class PardotClient:
    """A simple client for the Pardot REST API.

    Parameters
    ----------
    config : mapping, optional
        Configuration values merged over the defaults.  Recognised keys
        are ``response_format`` (default ``"json"``), ``base_uri``
        (default ``"https://pi.pardot.com/api"``) and ``timeout``
        (default ``5`` seconds), plus the transport options
        ``headers``, ``verify``, ``cert``, ``proxies``, ``trust_env``
        and ``max_redirects`` which are applied to the HTTP session.
    session : requests.Session, optional
        Session used for every request.  A new one is created when not
        supplied.
    **options
        Configuration values given as keyword arguments.  These take
        precedence over ``config``.

    Notes
    -----
    The client holds a single ``api_key`` obtained by
    :meth:`authenticate`.  It has no expiry handling and no locking;
    applications that talk to several Pardot accounts should create
    one client per account.
    """

    API_VERSION = 4

    _DEFAULT_CONFIG: Dict[str, Any] = {
        "response_format": "json",
        "base_uri": "https://pi.pardot.com/api",
        "timeout": 5,
    }
    _SESSION_OPTIONS = frozenset(
        {"headers", "verify", "cert", "proxies", "trust_env", "max_redirects"}
    )

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        session: Optional[requests.Session] = None,
        **options: Any,
    ) -> None:
        merged = dict(self._DEFAULT_CONFIG)
        merged.update(config or {})
        merged.update(options)

        unknown = set(merged) - set(self._DEFAULT_CONFIG) - self._SESSION_OPTIONS
        if unknown:
            raise ValueError(
                "unsupported configuration option(s): %s" % ", ".join(sorted(unknown))
            )
        if not merged["base_uri"]:
            raise ValueError("base_uri must be provided")
        timeout = merged["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("timeout must be a positive number, got %r" % timeout)

        merged["base_uri"] = str(merged["base_uri"]).rstrip("/")
        self._config = MappingProxyType(merged)

        self.session = session if session is not None else requests.Session()
        self._configure_session()

        self.email: Optional[str] = None
        self.password: Optional[str] = None
        self.user_key: Optional[str] = None
        # Populated by authenticate()
        self.api_key: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        session: Optional[requests.Session] = None,
        **options: Any,
    ) -> "PardotClient":
        """Create a client configured from ``PARDOT_*`` environment variables.

        ``PARDOT_BASE_URI``, ``PARDOT_TIMEOUT`` and
        ``PARDOT_RESPONSE_FORMAT`` override the defaults, and keyword
        ``options`` override the environment.  When ``PARDOT_EMAIL``,
        ``PARDOT_PASSWORD`` and ``PARDOT_USER_KEY`` are all set they are
        stored with :meth:`set_auth`.  The client is not authenticated.
        """
        env = os.environ if environ is None else environ
        config: Dict[str, Any] = {}
        if env.get("PARDOT_BASE_URI"):
            config["base_uri"] = env["PARDOT_BASE_URI"]
        if env.get("PARDOT_RESPONSE_FORMAT"):
            config["response_format"] = env["PARDOT_RESPONSE_FORMAT"]
        if env.get("PARDOT_TIMEOUT"):
            try:
                config["timeout"] = float(env["PARDOT_TIMEOUT"])
            except ValueError as exc:
                raise ValueError(
                    "PARDOT_TIMEOUT must be a number, got %r" % env["PARDOT_TIMEOUT"]
                ) from exc
        config.update(options)

        client = cls(config, session=session)
        email = env.get("PARDOT_EMAIL")
        password = env.get("PARDOT_PASSWORD")
        user_key = env.get("PARDOT_USER_KEY")
        if email and password and user_key:
            client.set_auth(email, password, user_key)
        return client

    @property
    def config(self) -> Mapping[str, Any]:
        """Read-only view of the effective configuration."""
        return self._config

    def _configure_session(self) -> None:
        for key in self._SESSION_OPTIONS.intersection(self._config):
            value = self._config[key]
            if key in ("headers", "proxies"):
                getattr(self.session, key).update(value)
            else:
                setattr(self.session, key, value)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "PardotClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def set_auth(self, email: str, password: str, user_key: str) -> "PardotClient":
        """Store the credentials used by :meth:`authenticate`.

        The ``user_key`` is also sent with every data request.
        """
        self.email = email
        self.password = password
        self.user_key = user_key
        return self

    def authenticate(self) -> "PardotClient":
        """Log in to Pardot and store the returned ``api_key``.

        Raises
        ------
        PardotAuthError
            If the login request cannot be sent, returns an error
            status, or returns a body without an ``api_key``.  The
            previously stored key, if any, is left untouched.
        """
        url = self.make_uri(
            "login",
            None,
            {
                "email": self.email,
                "password": self.password,
                "user_key": self.user_key,
                "format": self._config["response_format"],
            },
        )
        masked = _mask(url)
        logger.debug("GET %s", masked)
        try:
            response = self.session.get(url, timeout=self._config["timeout"])
        except requests.RequestException as exc:
            raise PardotAuthError(f"Failed to connect to {masked}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise PardotAuthError(
                f"Authentication failed with status {response.status_code}: "
                f"{self._error_text(response)}"
            )

        body = self._decode(response)
        api_key = body.get("api_key")
        if not api_key:
            detail = f": {body['err']}" if body.get("err") else ""
            raise PardotAuthError(
                f"Authentication response did not contain an api_key{detail}"
            )
        self.api_key = api_key
        logger.info("Authenticated with Pardot as %s", self.email)
        return self

    # ------------------------------------------------------------------
    # Object operations
    # ------------------------------------------------------------------
    def read(
        self, object_type: str, object_id: Any, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Read a single object by id.

        Returns the object found under the snake-cased object type key,
        or an empty dict when the response does not contain it.
        """
        fields = dict(options or {})
        fields["id"] = object_id
        body = self._request(
            "GET", self.make_uri(object_type, "read", self.make_fields(fields))
        )
        return lookup(body, snake_case(object_type), {})

    def create(
        self,
        object_type: str,
        payload: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Create an object from ``payload``.

        The authentication fields travel in the query string built from
        ``options``; ``payload`` is posted as a form body unchanged.
        """
        body = self._request(
            "POST",
            self.make_uri(object_type, "create", self.make_fields(options)),
            data=payload,
        )
        return lookup(body, snake_case(object_type), {})

    def update(
        self,
        object_type: str,
        object_id: Any,
        payload: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Update an object.

        ``payload`` is merged with the authentication fields and posted
        as a form body; ``options`` form the query string as given.
        """
        return self._write("update", object_type, object_id, payload, options)

    def upsert(
        self,
        object_type: str,
        object_id: Any,
        payload: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Create or update an object; Pardot decides which.

        Takes the same arguments as :meth:`update`.
        """
        return self._write("upsert", object_type, object_id, payload, options)

    def _write(
        self,
        operation: str,
        object_type: str,
        object_id: Any,
        payload: Dict[str, Any],
        options: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        attrs = dict(options or {})
        attrs["id"] = object_id
        body = self._request(
            "POST",
            self.make_uri(object_type, operation, attrs),
            data=self.make_fields(payload),
        )
        return lookup(body, snake_case(object_type), {})

    def query(
        self, object_type: str, options: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Run a query and return the matching objects.

        Pardot reports matches under ``result.<object_type>``.  A
        single match comes back as a bare object and is wrapped in a
        list; no matches yields an empty list.
        """
        body = self._request(
            "GET", self.make_uri(object_type, "query", self.make_fields(options))
        )
        results = lookup(body, f"result.{snake_case(object_type)}", [])
        if isinstance(results, list):
            return results
        return [results]

    def delete(
        self, object_type: str, object_id: Any, options: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Delete an object.

        Returns ``True`` only when Pardot answers ``204 No Content``.
        Any other status, and any failure to reach the server, returns
        ``False`` without raising.
        """
        fields = dict(options or {})
        fields["id"] = object_id
        url = self.make_uri(object_type, "delete", self.make_fields(fields))
        masked = _mask(url)
        logger.debug("DELETE %s", masked)
        try:
            response = self.session.delete(url, timeout=self._config["timeout"])
        except requests.RequestException as exc:
            logger.warning("DELETE %s failed: %s", masked, exc)
            return False

        if response.status_code != 204:
            logger.warning("DELETE %s returned status %s", masked, response.status_code)
            return False
        return True

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------
    def make_fields(self, fields: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Return a copy of ``fields`` with the authentication fields set.

        ``api_key``, ``user_key``, ``output`` and ``format`` always
        overwrite values the caller supplied under the same names.
        """
        merged = dict(fields or {})
        merged["api_key"] = self.api_key
        merged["user_key"] = self.user_key
        merged["output"] = "full"
        merged["format"] = self._config["response_format"]
        return merged

    def make_uri(
        self,
        object_type: str,
        operation: Optional[str] = None,
        attrs: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Build the full URL for an object type and operation.

        The path has the form::

            <base_uri>/<object_type>/version/4[/do/<operation>][/id/<id>][?<query>]

        A non-blank ``id`` in ``attrs`` becomes a path segment and is
        left out of the query string, which is built from the remaining
        ``attrs`` in insertion order.

        >>> client.make_uri("Prospect", "read", {"id": 42, "format": "json"})
        'https://pi.pardot.com/api/Prospect/version/4/do/read/id/42?format=json'
        """
        params = dict(attrs or {})
        uri = f"/{object_type}/version/{self.API_VERSION}"
        if not is_blank(operation):
            uri += f"/do/{operation}"
        if not is_blank(params.get("id")):
            uri += f"/id/{params.pop('id')}"
        query = build_query(params)
        if query:
            uri += "?" + query
        return self._config["base_uri"] + uri

    # ------------------------------------------------------------------
    # HTTP request helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, url: str, *, data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send a GET or POST request and return the decoded JSON body.

        ``data`` is sent form-encoded.  Connection errors and non-2xx
        responses raise :class:`PardotAPIError`.
        """
        masked = _mask(url)
        logger.debug("%s %s", method, masked)
        try:
            response = self.session.request(
                method,
                url,
                data=encode_fields(data) if data is not None else None,
                timeout=self._config["timeout"],
            )
        except requests.RequestException as exc:
            raise PardotAPIError(f"Failed to connect to {masked}: {exc}", url=masked) from exc

        if not 200 <= response.status_code < 300:
            raise PardotAPIError(
                f"{response.status_code} Error for {masked}: {self._error_text(response)}",
                status_code=response.status_code,
                url=masked,
            )
        return self._decode(response)

    @staticmethod
    def _decode(response: requests.Response) -> Dict[str, Any]:
        """Decode a JSON object body, treating anything else as empty."""
        try:
            body = response.json()
        except ValueError:
            logger.debug("Response from %s was not valid JSON", _mask(response.url))
            return {}
        if not isinstance(body, dict):
            return {}
        if body.get("err"):
            logger.warning("Pardot reported an error for %s: %s", _mask(response.url), body["err"])
        return body

    @staticmethod
    def _error_text(response: requests.Response) -> str:
        # Prefer JSON error details when the server sends them
        try:
            return str(response.json())
        except ValueError:
            return response.text
