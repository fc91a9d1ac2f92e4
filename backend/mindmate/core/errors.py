"""Failure taxonomy shared by the relay, the REST routes and the client adapter."""


class MindMateError(Exception):
    pass


class AuthenticationFailure(MindMateError):
    """Missing, malformed, badly signed or expired session token."""


class ValidationFailure(MindMateError):
    """A send event or REST payload that does not describe a storable message."""


class UnknownIdentity(ValidationFailure):
    """The identity is well formed but no account carries it."""


class PersistenceFailure(MindMateError):
    """The message store was unavailable or rejected the write."""
