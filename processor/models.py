"""Data models for user offboarding."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple


GRAPH_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


@dataclass(frozen=True)
class User:
    """Directory user resolved from an email address."""
    id: str
    display_name: str
    email: str

    @classmethod
    def from_graph(cls, record: Dict[str, Any], email: str) -> 'User':
        """
        Build a User from a Graph directory record.

        Args:
            record: JSON body returned by GET /users/{email}
            email: Email address used for the lookup

        Returns:
            User object
        """
        return cls(
            id=record['id'],
            display_name=record.get('displayName') or '',
            email=record.get('mail') or record.get('userPrincipalName') or email
        )


@dataclass(frozen=True)
class CalendarEvent:
    """
    Snapshot of a calendar event as listed by Graph.

    start and end are the Graph dateTime strings as returned (e.g.
    '2024-03-01T15:00:00.0000000', in the listing's time zone), not parsed
    datetimes.
    """
    id: str
    subject: str
    start: Optional[str]
    end: Optional[str]

    @classmethod
    def from_graph(cls, item: Dict[str, Any]) -> 'CalendarEvent':
        start = item.get('start') or {}
        end = item.get('end') or {}
        return cls(
            id=item['id'],
            subject=item.get('subject') or '',
            start=start.get('dateTime'),
            end=end.get('dateTime')
        )


@dataclass(frozen=True)
class DateWindow:
    """Time range bounding which events are fetched."""
    start: datetime
    end: datetime

    @classmethod
    def default(
        cls,
        now: Optional[datetime] = None,
        days_back: int = 30,
        days_ahead: int = 365
    ) -> 'DateWindow':
        """
        Window from days_back in the past through days_ahead in the future.

        Args:
            now: Reference time (default: current UTC time)
            days_back: Days before now to include (default: 30)
            days_ahead: Days after now to include (default: 365)
        """
        if now is None:
            now = datetime.now(timezone.utc)
        return cls(
            start=now - timedelta(days=days_back),
            end=now + timedelta(days=days_ahead)
        )

    def to_filter(self) -> str:
        """Render the window as an OData $filter expression."""
        start_str = self.start.astimezone(timezone.utc).strftime(GRAPH_TIMESTAMP_FORMAT)
        end_str = self.end.astimezone(timezone.utc).strftime(GRAPH_TIMESTAMP_FORMAT)
        return (
            f"start/dateTime ge '{start_str}' and "
            f"end/dateTime le '{end_str}'"
        )


@dataclass
class EventPage:
    """One page of an event listing."""
    events: List[CalendarEvent]
    next_link: Optional[str] = None


@dataclass(frozen=True)
class CancellationResult:
    """Outcome of cancelling a single event."""
    event_id: str
    subject: str
    succeeded: bool
    start_time: Optional[str]
    end_time: Optional[str]
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'eventId': self.event_id,
            'subject': self.subject,
            'succeeded': self.succeeded,
            'startTime': self.start_time,
            'endTime': self.end_time
        }
        if self.error:
            data['error'] = self.error
        return data


@dataclass(frozen=True)
class RunSummary:
    """Result of a cancellation run."""
    total_events: int
    success_count: int
    failure_count: int
    cancelled_events: Tuple[CancellationResult, ...] = field(default_factory=tuple)
    failed_events: Tuple[CancellationResult, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> 'RunSummary':
        return cls(total_events=0, success_count=0, failure_count=0)

    @property
    def succeeded(self) -> bool:
        return self.failure_count == 0

    def record(self, result: CancellationResult) -> 'RunSummary':
        """Return a new summary with one more result accounted for."""
        if result.succeeded:
            return replace(
                self,
                total_events=self.total_events + 1,
                success_count=self.success_count + 1,
                cancelled_events=self.cancelled_events + (result,)
            )
        return replace(
            self,
            total_events=self.total_events + 1,
            failure_count=self.failure_count + 1,
            failed_events=self.failed_events + (result,)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalEvents': self.total_events,
            'successCount': self.success_count,
            'failureCount': self.failure_count,
            'cancelledEvents': [r.to_dict() for r in self.cancelled_events],
            'failedEvents': [r.to_dict() for r in self.failed_events]
        }
