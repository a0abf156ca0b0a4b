"""Unit tests for EventCanceller and the summary fold."""
from unittest.mock import Mock, call

import pytest

from graph.exceptions import CancelError
from processor.event_canceller import DEFAULT_COMMENT, EventCanceller, summarize
from processor.models import CalendarEvent, CancellationResult, RunSummary


@pytest.fixture
def sample_events():
    """Three events in ascending start order."""
    return [
        CalendarEvent(id='e1', subject='Weekly sync',
                      start='2024-01-15T09:00:00.0000000', end='2024-01-15T09:30:00.0000000'),
        CalendarEvent(id='e2', subject='Design review',
                      start='2024-01-16T13:00:00.0000000', end='2024-01-16T14:00:00.0000000'),
        CalendarEvent(id='e3', subject='1:1',
                      start='2024-01-17T10:00:00.0000000', end='2024-01-17T10:30:00.0000000'),
    ]


def result(event_id, succeeded):
    return CancellationResult(
        event_id=event_id,
        subject=f'Event {event_id}',
        succeeded=succeeded,
        start_time='2024-01-15T09:00:00',
        end_time='2024-01-15T10:00:00'
    )


class TestEventCanceller:
    """Test cases for the cancellation loop."""

    def test_all_cancelled(self, sample_events):
        """Test that every event is cancelled with the given comment."""
        graph_client = Mock()

        summary = EventCanceller(graph_client).cancel_all('user-123', sample_events, 'Goodbye')

        assert summary.total_events == 3
        assert summary.success_count == 3
        assert summary.failure_count == 0
        assert [r.event_id for r in summary.cancelled_events] == ['e1', 'e2', 'e3']
        graph_client.cancel_event.assert_has_calls([
            call('user-123', 'e1', 'Goodbye'),
            call('user-123', 'e2', 'Goodbye'),
            call('user-123', 'e3', 'Goodbye'),
        ])

    def test_failure_does_not_stop_loop(self, sample_events):
        """Test that the middle failure is counted and the last event still runs."""
        graph_client = Mock()
        graph_client.cancel_event.side_effect = [
            None,
            CancelError('HTTP 400: already cancelled', event_id='e2', status_code=400),
            None,
        ]

        summary = EventCanceller(graph_client).cancel_all('user-123', sample_events)

        assert summary.total_events == 3
        assert summary.success_count == 2
        assert summary.failure_count == 1
        assert [r.event_id for r in summary.cancelled_events] == ['e1', 'e3']
        assert [r.event_id for r in summary.failed_events] == ['e2']
        assert summary.failed_events[0].error == 'HTTP 400: already cancelled'
        assert graph_client.cancel_event.call_count == 3

    def test_preserves_event_details(self, sample_events):
        """Test that results carry the original subject and timestamps."""
        summary = EventCanceller(Mock()).cancel_all('user-123', sample_events[:1])

        cancelled = summary.cancelled_events[0]
        assert cancelled.subject == 'Weekly sync'
        assert cancelled.start_time == '2024-01-15T09:00:00.0000000'
        assert cancelled.end_time == '2024-01-15T09:30:00.0000000'
        assert cancelled.succeeded is True

    def test_default_comment(self, sample_events):
        """Test the default offboarding comment."""
        graph_client = Mock()

        EventCanceller(graph_client).cancel_all('user-123', sample_events[:1])

        graph_client.cancel_event.assert_called_once_with(
            'user-123', 'e1', 'Event cancelled as part of user offboarding process'
        )
        assert DEFAULT_COMMENT == 'Event cancelled as part of user offboarding process'

    def test_every_cancellation_fails(self, sample_events):
        """Test that the invariant holds when nothing succeeds."""
        graph_client = Mock()
        graph_client.cancel_event.side_effect = CancelError('HTTP 429')

        summary = EventCanceller(graph_client).cancel_all('user-123', sample_events)

        assert summary.success_count + summary.failure_count == summary.total_events
        assert summary.failure_count == 3
        assert summary.cancelled_events == ()
        assert summary.succeeded is False

    def test_unexpected_error_propagates(self, sample_events):
        """Test that errors other than CancelError are not swallowed."""
        graph_client = Mock()
        graph_client.cancel_event.side_effect = RuntimeError('bug')

        with pytest.raises(RuntimeError):
            EventCanceller(graph_client).cancel_all('user-123', sample_events)

    def test_no_events(self):
        """Test that an empty sequence yields an empty summary."""
        graph_client = Mock()

        summary = EventCanceller(graph_client).cancel_all('user-123', [])

        assert summary == RunSummary.empty()
        graph_client.cancel_event.assert_not_called()


class TestSummarize:
    """Test cases for the pure accounting fold."""

    def test_empty(self):
        """Test folding nothing."""
        assert summarize([]) == RunSummary(total_events=0, success_count=0, failure_count=0)

    @pytest.mark.parametrize('outcomes', [
        [True],
        [False],
        [True, False, True],
        [False, False, True, True, False],
    ])
    def test_counts_add_up(self, outcomes):
        """Test that success + failure always equals total."""
        results = [result(f'e{i}', ok) for i, ok in enumerate(outcomes)]

        summary = summarize(results)

        assert summary.total_events == len(outcomes)
        assert summary.success_count == outcomes.count(True)
        assert summary.failure_count == outcomes.count(False)
        assert summary.success_count + summary.failure_count == summary.total_events

    def test_keeps_order(self):
        """Test that cancelled events stay in input order."""
        results = [result('b', True), result('a', True), result('c', False), result('d', True)]

        summary = summarize(results)

        assert [r.event_id for r in summary.cancelled_events] == ['b', 'a', 'd']

    def test_does_not_mutate_previous_summary(self):
        """Test that recording returns a new summary."""
        start = RunSummary.empty()

        after = start.record(result('e1', True))

        assert start.total_events == 0
        assert after.total_events == 1
