class CrowdfundError(Exception):
    """Base class for every failure the client reports to the user."""

    level = 'danger'

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(CrowdfundError):
    """Form input rejected locally, before any remote call."""

    level = 'warning'


class WalletError(CrowdfundError):
    """No wallet provider, no accounts, or no connected account."""


class RemoteCallError(CrowdfundError):
    """A contract call reverted or the node could not be reached."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause
