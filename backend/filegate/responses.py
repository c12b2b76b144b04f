"""Translation of operation outcomes into HTTP errors."""

from fastapi import HTTPException, status

from filegate.common import Outcome


def raise_for_outcome(
    outcome: Outcome,
    failed_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
) -> None:
    """Raise the HTTPException matching a denied or failed outcome.

    :param outcome: The operation outcome
    :param failed_status: Status code to use for failures
    :raises HTTPException: 403 for denials, failed_status for failures
    """
    if outcome.is_denied:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=outcome.reason)
    if outcome.is_failed:
        raise HTTPException(status_code=failed_status, detail=outcome.reason)
