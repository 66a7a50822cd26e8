"""
Derives what a project looks like and which actions it offers.

Everything here is a pure function of its arguments: the same project tuple,
timestamp, account and contribution always give the same DisplayState.
"""

from crowdfund_client.models import DisplayState, ProjectStatus


def same_account(a, b):
    """Addresses compare case-insensitively; a missing account matches nothing."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def reconcile(project, now, account=None, user_contribution=0):
    """
    Compute the display state of ``project`` as seen by ``account`` at ``now``.

    ``now`` must be read once per refresh pass by the caller so that every
    card of one render is judged against the same instant.
    ``user_contribution`` is only meaningful for non-owners; callers pass 0
    when the account owns the project or nobody is connected.
    """
    is_completed = project.is_completed
    is_expired = now > project.deadline
    is_owner = same_account(account, project.owner)
    # a completed project with nothing left has already been withdrawn
    funds_withdrawn = project.funds_raised == 0

    if is_completed:
        status = ProjectStatus.COMPLETED
        # the raised counter may have been zeroed by the withdrawal
        raised = project.goal
    elif is_expired:
        status = ProjectStatus.EXPIRED
        raised = project.funds_raised
    else:
        status = ProjectStatus.ACTIVE
        raised = project.funds_raised

    return DisplayState(
        status=status,
        raised_for_display=raised,
        is_owner=is_owner,
        is_expired=is_expired,
        user_contribution=user_contribution,
        can_contribute=not is_completed and not is_expired,
        can_refund=not is_completed and is_expired and user_contribution > 0,
        can_withdraw=is_completed and is_owner and not funds_withdrawn,
    )


def progress_percent(raised, goal):
    if goal <= 0:
        return 0.0
    return min(100.0, raised * 100.0 / goal)
