"""
flashguard - Exceptions
"""


class FlashGuardError(Exception):
    """Base class for flashguard errors"""
    pass


class UnauthorizedInitiator(FlashGuardError):
    """Raised when a flash-loan callback was initiated by someone other than the receiver"""

    def __init__(self, initiator, receiver):
        self.initiator = initiator
        self.receiver = receiver
        super().__init__(
            f"unauthorized initiator: {initiator!r} is not receiver {receiver!r}"
        )


class ReceiverConfigError(FlashGuardError):
    """Raised when a receiver is set up with an unusable identity"""
    pass


class ConfigError(FlashGuardError):
    """Raised when the scanner configuration cannot be loaded"""
    pass
