"""Referral program status relative to an "accurate as of" timestamp."""

from enum import Enum

from referral_awards.core.rules import ReferralProgramRules


class ReferralProgramStatus(str, Enum):
    """Lifecycle status of a referral program."""

    SCHEDULED = "Scheduled"
    ACTIVE = "Active"
    CLOSED = "Closed"


def calc_referral_program_status(
    rules: ReferralProgramRules,
    accurate_as_of: int,
) -> ReferralProgramStatus:
    """
    Calculate program status at a point in time.

    Args:
        rules: Program rules (any award model)
        accurate_as_of: Unix timestamp the data is accurate as of

    Returns:
        SCHEDULED before start_time, CLOSED after end_time, ACTIVE otherwise
        (both bounds inclusive)
    """
    if accurate_as_of < rules.start_time:
        return ReferralProgramStatus.SCHEDULED
    if accurate_as_of > rules.end_time:
        return ReferralProgramStatus.CLOSED
    return ReferralProgramStatus.ACTIVE
