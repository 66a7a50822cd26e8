"""
User actions against the contract.

Each action validates its input locally, marks the client busy, sends exactly
one transaction, reports the outcome as an alert and refreshes the board on
success. Eligibility shown in the UI is advisory only: the contract decides,
and its rejections come back as RemoteCallError.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Optional, Union

from pydantic import BaseModel
from web3 import Web3

from crowdfund_client.errors import CrowdfundError, ValidationError

logger = logging.getLogger(__name__)

UNIT_DECIMALS = {'wei': 0, 'gwei': 9, 'ether': 18}

# largest value a uint256 argument can carry
MAX_UINT256 = 2 ** 256 - 1

Number = Union[int, str, Decimal]


@dataclass(frozen=True)
class CreateProject:
    title: str
    description: str
    goal: Number
    duration_days: Number
    unit: str = 'wei'


@dataclass(frozen=True)
class Contribute:
    project_id: Optional[Number]
    amount: Optional[Number]
    unit: str = 'wei'


@dataclass(frozen=True)
class WithdrawFunds:
    project_id: Optional[Number]


@dataclass(frozen=True)
class Refund:
    project_id: Optional[Number]


class ActionResult(BaseModel):
    ok: bool
    message: str
    value: Any = None


def _filled(value):
    return value is not None and str(value).strip() != ''


def to_wei(value, unit, message):
    """Positive amount in ``unit`` to integer wei, or ValidationError(message)."""
    if unit not in UNIT_DECIMALS or not _filled(value):
        raise ValidationError(message)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(message)
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(message)
    with localcontext() as ctx:
        # scaleb only moves the exponent; keep every input digit
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits))
        wei = amount.scaleb(UNIT_DECIMALS[unit])
        if wei != wei.to_integral_value() or wei > MAX_UINT256:
            raise ValidationError(message)
    return Web3.to_wei(amount, unit)


def positive_int(value, message):
    if not _filled(value):
        raise ValidationError(message)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(message)
    if not number.is_finite() or number <= 0 or number != number.to_integral_value():
        raise ValidationError(message)
    if number > MAX_UINT256:
        raise ValidationError(message)
    return int(number)


def validate_project_form(title, description, goal, duration_days, unit='wei'):
    if not all(_filled(v) for v in (title, description, goal, duration_days)):
        raise ValidationError("Please fill in all fields!")
    message = "Goal and duration must be positive numbers!"
    return to_wei(goal, unit, message), positive_int(duration_days, message)


def validate_contribution(project_id, amount, unit='wei'):
    message = "Please enter a valid project ID and contribution amount!"
    return positive_int(project_id, message), to_wei(amount, unit, message)


class ActionDispatcher:

    def __init__(self, session, board, alerts, busy):
        self.session = session
        self.board = board
        self.alerts = alerts
        self.busy = busy

    async def dispatch(self, intent):
        if isinstance(intent, CreateProject):
            return await self.create_project(
                intent.title, intent.description, intent.goal, intent.duration_days, intent.unit)
        if isinstance(intent, Contribute):
            return await self.contribute(intent.project_id, intent.amount, intent.unit)
        if isinstance(intent, WithdrawFunds):
            return await self.withdraw_funds(intent.project_id)
        if isinstance(intent, Refund):
            return await self.refund(intent.project_id)
        raise TypeError(f"unknown intent {intent!r}")

    async def create_project(self, title, description, goal, duration_days, unit='wei'):
        try:
            goal_wei, days = validate_project_form(title, description, goal, duration_days, unit)
        except ValidationError as e:
            return self._rejected(e)
        return await self._submit(
            lambda ctx: ctx.gateway.submit_create(ctx.account, str(title), str(description), goal_wei, days),
            success="Project created successfully!",
            failure="Error creating project",
        )

    async def contribute(self, project_id, amount, unit='wei'):
        try:
            project_id, amount_wei = validate_contribution(project_id, amount, unit)
        except ValidationError as e:
            return self._rejected(e)
        return await self._submit(
            lambda ctx: ctx.gateway.submit_contribute(ctx.account, project_id, amount_wei),
            success="Contribution successful!",
            failure="Error contributing to project",
        )

    async def withdraw_funds(self, project_id):
        try:
            project_id = positive_int(project_id, "A valid project ID is required!")
        except ValidationError as e:
            return self._rejected(e)
        return await self._submit(
            lambda ctx: ctx.gateway.submit_withdraw(ctx.account, project_id),
            success="Funds withdrawn successfully!",
            failure="Error withdrawing funds",
        )

    async def refund(self, project_id):
        try:
            project_id = positive_int(project_id, "A valid project ID is required!")
        except ValidationError as e:
            return self._rejected(e)
        return await self._submit(
            lambda ctx: ctx.gateway.submit_refund(ctx.account, project_id),
            success="Refund successful!",
            failure="Error processing refund",
        )

    def _rejected(self, error):
        logger.info(f"Rejected locally: {error.message}")
        self.alerts.report(error)
        return ActionResult(ok=False, message=error.message)

    async def _submit(self, send, success, failure):
        with self.busy.hold():
            try:
                context = self.session.require_context()
                value = await send(context)
            except CrowdfundError as e:
                logger.error(f"{failure}: {e.message}")
                alert = self.alerts.report(e, prefix=failure)
                return ActionResult(ok=False, message=alert.message)
            self.alerts.push(success, 'success')
            await self.board.refresh(context)
        return ActionResult(ok=True, message=success, value=value)
