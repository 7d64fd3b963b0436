from __future__ import annotations


class GalacticError(Exception):
    """Base class for errors raised by Galactic adapters."""


class ConfigurationError(GalacticError):
    """A configuration item is missing, unreadable or malformed."""


class AuthenticationError(GalacticError):
    """A back-end refused to issue credentials (token, bind)."""


class NotSupportedError(GalacticError):
    """The remote system lacks a capability the client needs."""


class RoleProviderError(GalacticError):
    pass
