"""End-to-end calendar offboarding workflow shared by both entry points."""
import logging
from typing import Optional, Tuple

from graph.graph_client import GRAPH_BASE_URL, GraphClient
from processor.event_canceller import DEFAULT_COMMENT, EventCanceller
from processor.models import DateWindow, RunSummary, User

logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def offboard_user(
    authenticator,
    user_email: str,
    comment: str = DEFAULT_COMMENT,
    window: Optional[DateWindow] = None,
    base_url: str = GRAPH_BASE_URL,
    timeout: Optional[int] = None
) -> Tuple[User, RunSummary]:
    """
    Authenticate, resolve the user, fetch their events and cancel them.

    Stages run strictly in order. AuthError, UserNotFoundError and
    FetchError propagate to the caller and stop the run before any
    later stage is touched.

    Args:
        authenticator: Object with an acquire_token() method
        user_email: Email address of the user being offboarded
        comment: Cancellation message sent to attendees
        window: Optional date range; None fetches without a filter
        base_url: Graph API root
        timeout: HTTP request timeout in seconds (default: none)

    Returns:
        Tuple of (resolved User, RunSummary)
    """
    token = authenticator.acquire_token()

    with GraphClient(token, base_url=base_url, timeout=timeout) as graph_client:
        user = graph_client.resolve_user(user_email)

        if window is not None:
            logger.info(
                f"Fetching events between {window.start.isoformat()} "
                f"and {window.end.isoformat()}"
            )
        events = graph_client.list_events(user.id, window)

        if not events:
            logger.info(f"No events found for {user_email}; nothing to cancel")
            return user, RunSummary.empty()

        summary = EventCanceller(graph_client).cancel_all(user.id, events, comment)

    return user, summary


def exit_code_for(summary: RunSummary) -> int:
    """0 when every event was cancelled (or there were none), else 1."""
    return EXIT_SUCCESS if summary.succeeded else EXIT_FAILURE
