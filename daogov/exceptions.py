"""
daogov Exceptions

Root exception classes shared by every daogov subsystem.
"""


class DaoGovException(Exception):
    """Base exception for daogov."""
    pass


class ConfigurationError(DaoGovException):
    """Configuration error."""
    pass


class GovernanceError(DaoGovException):
    """Base governance exception. Every rejected action raises a subclass."""
    pass
