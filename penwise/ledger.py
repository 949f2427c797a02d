# penwise/ledger.py
import logging
from blinker import Namespace
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from . import db
from .errors import CreditWriteFailure, InsufficientCredits, ProfileLookupFailure
from .events import publish_credits
from .models import Profile

logger = logging.getLogger(__name__)

_signals = Namespace()

#: Sent with ``user_id`` and ``error`` when a decrement could not be written.
credit_write_failed = _signals.signal('credit-write-failed')


class CreditLedger:
    """Reads and spends the per-user credit balance held on `Profile`."""

    def __init__(self):
        self.write_failures = 0

    def check_balance(self, user_id):
        try:
            credits = db.session.execute(
                db.select(Profile.credits).where(Profile.user_id == user_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Profile lookup failed for user {user_id}: {e}")
            raise ProfileLookupFailure() from e
        if credits is None:
            raise ProfileLookupFailure()
        return credits

    def require_credit(self, user_id):
        balance = self.check_balance(user_id)
        if balance <= 0:
            raise InsufficientCredits()
        return balance

    def decrement(self, user_id, current_balance):
        """Spend one credit and return the remaining balance.

        The write is a single decrement-if-positive statement, so two
        generations racing on the last credit cannot both spend it; the loser
        gets InsufficientCredits. A failed write is logged and reported
        through `credit_write_failed`, and `current_balance - 1` is returned.
        """
        try:
            result = db.session.execute(
                update(Profile)
                .where(Profile.user_id == user_id, Profile.credits > 0)
                .values(credits=Profile.credits - 1)
            )
            if result.rowcount == 0:
                db.session.rollback()
                raise InsufficientCredits()
            remaining = db.session.execute(
                db.select(Profile.credits).where(Profile.user_id == user_id)
            ).scalar_one()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self._record_write_failure(user_id, CreditWriteFailure(str(e)))
            return current_balance - 1

        self._publish(user_id, remaining)
        return remaining

    def add_credits(self, user_id, amount):
        profile = Profile.query.filter_by(user_id=user_id).first()
        if profile is None:
            raise ProfileLookupFailure()
        profile.credits += amount
        db.session.commit()
        logger.info(f"Added {amount} credits to user {user_id}. New balance: {profile.credits}")
        self._publish(user_id, profile.credits)
        return profile.credits

    def _record_write_failure(self, user_id, error):
        self.write_failures += 1
        logger.error(f"Failed to update credits for user {user_id}: {error}")
        credit_write_failed.send(self, user_id=user_id, error=error)

    def _publish(self, user_id, credits):
        # the balance is already committed at this point
        try:
            publish_credits(user_id, credits)
        except Exception as e:
            logger.error(f"Failed to push credit update for user {user_id}: {e}")
