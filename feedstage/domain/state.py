from dataclasses import dataclass

from feedstage.domain.errors import InvalidTransitionError

PUB_STATUSES: frozenset[str] = frozenset({"PUB_PENDING", "DEPUB_PENDING"})


@dataclass(frozen=True)
class TransitionDecision:
    """Whether a status change must be followed by an immediate redeploy."""

    redeploy: bool


def decide_transition(
    is_auto_deploy: bool,
    is_published: bool,
    new_status: str | None,
) -> TransitionDecision:
    """
    Decide whether a post may move to new_status.

    new_status is PUB_PENDING, DEPUB_PENDING or None (clear the pending
    status); any other value is rejected. Auto-deploy queues publish status
    changes immediately; manual queues only record them. Raises
    InvalidTransitionError for rejected combinations.
    Manual queues ignore anything other than DEPUB_PENDING without complaint.
    """
    if new_status is not None and new_status not in PUB_STATUSES:
        raise InvalidTransitionError(f"Unknown publication status {new_status}")

    if is_auto_deploy and is_published:
        if new_status == "DEPUB_PENDING":
            return TransitionDecision(redeploy=True)
        raise InvalidTransitionError(
            f"Invalid transition from PUBLISHED to {new_status} on an auto-deploy queue"
        )

    if is_auto_deploy and not is_published:
        if new_status == "DEPUB_PENDING":
            raise InvalidTransitionError(
                "Invalid transition from UNPUBLISHED to DEPUB_PENDING"
            )
        if new_status == "PUB_PENDING":
            return TransitionDecision(redeploy=True)
        return TransitionDecision(redeploy=False)

    if is_published:
        # manual queue, published post: depub is recorded, deployed later
        return TransitionDecision(redeploy=False)

    if new_status == "DEPUB_PENDING":
        raise InvalidTransitionError("Invalid transition from UNPUBLISHED to DEPUB_PENDING")
    return TransitionDecision(redeploy=False)
