"""Sequential cancellation of a user's calendar events."""
import logging
from functools import reduce
from typing import Iterable, List, Sequence

from graph.exceptions import CancelError
from graph.graph_client import GraphClient
from processor.models import CalendarEvent, CancellationResult, RunSummary

logger = logging.getLogger(__name__)


DEFAULT_COMMENT = "Event cancelled as part of user offboarding process"


def record_result(summary: RunSummary, result: CancellationResult) -> RunSummary:
    """Fold step: account for one cancellation outcome."""
    return summary.record(result)


def summarize(results: Iterable[CancellationResult]) -> RunSummary:
    """
    Build a RunSummary from cancellation outcomes in the order given.

    Args:
        results: Per-event outcomes

    Returns:
        Immutable summary; success_count + failure_count == total_events
    """
    return reduce(record_result, results, RunSummary.empty())


class EventCanceller:
    """Cancels events one at a time and tallies the outcome."""

    def __init__(self, graph_client: GraphClient):
        self.graph_client = graph_client

    def cancel_all(
        self,
        user_id: str,
        events: Sequence[CalendarEvent],
        comment: str = DEFAULT_COMMENT
    ) -> RunSummary:
        """
        Cancel every event in fetch order.

        A failed cancellation is logged and counted; it never stops the
        remaining events from being processed.

        Args:
            user_id: Directory identifier of the organizer
            events: Events to cancel, in fetch order
            comment: Cancellation message sent to attendees

        Returns:
            RunSummary covering every event
        """
        logger.info(f"Cancelling {len(events)} events")
        results: List[CancellationResult] = []

        for index, event in enumerate(events, start=1):
            results.append(self._cancel_one(user_id, event, comment, index, len(events)))

        summary = summarize(results)
        logger.info(
            f"Cancellation complete: {summary.success_count} succeeded, "
            f"{summary.failure_count} failed",
            extra={
                'total_events': summary.total_events,
                'success_count': summary.success_count,
                'failure_count': summary.failure_count
            }
        )
        return summary

    def _cancel_one(
        self,
        user_id: str,
        event: CalendarEvent,
        comment: str,
        index: int,
        total: int
    ) -> CancellationResult:
        try:
            self.graph_client.cancel_event(user_id, event.id, comment)
        except CancelError as e:
            logger.warning(
                f"[{index}/{total}] Failed to cancel '{event.subject}': {e}",
                extra={'event_id': event.id, 'status_code': e.status_code}
            )
            return CancellationResult(
                event_id=event.id,
                subject=event.subject,
                succeeded=False,
                start_time=event.start,
                end_time=event.end,
                error=str(e)
            )

        logger.info(f"[{index}/{total}] Cancelled '{event.subject}' ({event.start})")
        return CancellationResult(
            event_id=event.id,
            subject=event.subject,
            succeeded=True,
            start_time=event.start,
            end_time=event.end
        )
