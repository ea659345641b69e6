"""Error taxonomy for the risk core.

Ingestion, aggregation and enforcement errors never reach end users: they are
logged where they happen and the unit of work is retried on the next natural
trigger. Admin action errors are the only ones reported back to a caller.
"""


class RiskCoreError(Exception):
    """Base class for every error raised by the risk core."""


class IngestionError(RiskCoreError):
    """A detector could not read its facts or a signal write failed."""


class AggregationError(RiskCoreError):
    """Recomputing a user's score failed."""


class EnforcementError(RiskCoreError):
    """Applying or releasing an enforcement record failed."""


class ConfigurationError(RiskCoreError):
    """A regional profile is missing or unusable."""


class AdminActionError(RiskCoreError):
    """An admin request was rejected."""

    status_code = 400


class InvalidPercentageError(AdminActionError):
    pass


class InvalidDurationError(AdminActionError):
    pass


class ProfileNotFoundError(AdminActionError):
    status_code = 404


class EnforcementNotFoundError(AdminActionError):
    status_code = 404
