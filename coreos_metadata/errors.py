from __future__ import annotations


class MetadataError(Exception):
    """Base class for every failure this tool reports."""


class ConfigError(MetadataError):
    """Invalid invocation: bad provider, unreadable cmdline, bad config file."""


class FetchError(MetadataError):
    """The provider's metadata service could not be queried."""


class AttributesError(MetadataError):
    """The attribute file could not be written."""


class SshKeysError(MetadataError):
    """SSH keys could not be installed for the requested user."""


class AuthorizedKeysError(SshKeysError):
    """Failure inside a user's authorized_keys.d store."""
