"""
flashguard - Guarded Flash-Loan Receiver
Applies the authorization gate as a guard clause ahead of any receiver logic.
"""

import logging
from typing import Any, Callable, Optional

from .errors import ReceiverConfigError, UnauthorizedInitiator
from .gate import enforce
from .models import LoanCallbackContext

log = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

# keccak256("ERC3156FlashBorrower.onFlashLoan")
CALLBACK_SUCCESS = "0x439148f0bbc682ca079e46d6e2c2f0c1e3b820f1a291b069d8882abf8cf18dd9"

LoanAction = Callable[[LoanCallbackContext], Any]


def _validate_identity(address) -> str:
    if address is None:
        raise ReceiverConfigError("receiver address is not set")
    address = str(address).strip()
    if not address:
        raise ReceiverConfigError("receiver address is empty")
    if address.lower() == ZERO_ADDRESS:
        raise ReceiverConfigError("receiver address is the zero address")
    return address


class GuardedReceiver:
    """Flash-loan borrower that only acts on loans it initiated itself.

    `action` receives the callback context once the gate has let it through;
    that is where approvals, repayment and business logic belong.
    """

    def __init__(self, address: str, action: Optional[LoanAction] = None):
        self.address = _validate_identity(address)
        self._action = action

    def on_flash_loan(
        self,
        initiator: str,
        token: str,
        amount,
        fee,
        data: Any = b"",
    ) -> str:
        context = LoanCallbackContext(
            initiator=initiator,
            receiver=self.address,
            token=token,
            amount=amount,
            fee=fee,
            data=data,
        )
        return self._run(context)

    def handle(self, context: LoanCallbackContext) -> str:
        if context.receiver != self.address:
            raise ReceiverConfigError(
                f"context addressed to {context.receiver!r}, not {self.address!r}"
            )
        return self._run(context)

    def _run(self, context: LoanCallbackContext) -> str:
        try:
            enforce(context)
        except UnauthorizedInitiator:
            log.warning(
                f"Rejected flash-loan callback: initiator={context.initiator} "
                f"token={context.token} amount={context.amount} fee={context.fee}"
            )
            raise

        log.info(
            f"Accepted flash-loan callback: token={context.token} "
            f"amount={context.amount} fee={context.fee}"
        )
        if self._action is not None:
            self._action(context)
        return CALLBACK_SUCCESS
