"""Handshake-time authentication for relay connections."""

from starlette.requests import HTTPConnection

from mindmate.core.security import decode_token


def handshake_token(connection: HTTPConnection) -> str | None:
    """Pull the bearer token from the handshake.

    Browsers cannot set headers on a WebSocket upgrade, so the token normally
    arrives as the ``token`` query parameter. An Authorization header works
    too for non-browser clients.
    """
    token = connection.query_params.get("token")
    if token:
        return token
    header = connection.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def authenticate_connection(connection: HTTPConnection) -> str:
    """Return the identity bound to this connection or raise AuthenticationFailure."""
    return decode_token(handshake_token(connection))
