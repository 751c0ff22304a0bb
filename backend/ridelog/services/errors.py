"""
Error taxonomy for ride ingestion.

Every error is terminal for the request that raised it; the API layer maps
the stable ``code`` into error responses.
"""


class RideLogError(Exception):
    """Base class for ride log failures."""

    code = "ridelog_error"


class ParseError(RideLogError):
    """Malformed CSV or GPX input."""

    code = "parse_error"


class EmptyTrackError(RideLogError):
    """Track has no points to reduce."""

    code = "empty_track"


class MetadataError(RideLogError):
    """A structurally required field is missing or unparsable."""

    code = "metadata_error"


class AuthenticationError(RideLogError):
    """Bearer token missing or rejected by the identity provider."""

    code = "not_authenticated"


class IdentityProviderError(RideLogError):
    """Identity provider unreachable, misbehaving, or not configured."""

    code = "identity_provider_unavailable"
