"""Microsoft Graph client for user lookup and calendar event operations."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from graph.exceptions import CancelError, FetchError, UserNotFoundError
from processor.models import CalendarEvent, DateWindow, EventPage, User

logger = logging.getLogger(__name__)


GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


def describe_response(response: requests.Response) -> str:
    """
    Summarize an error response for log and exception messages.

    Args:
        response: Non-2xx response from Graph or the token endpoint

    Returns:
        Status code followed by the service's error message when present
    """
    detail = ''
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get('error')
        if isinstance(error, dict):
            detail = error.get('message') or error.get('code') or ''
        elif isinstance(error, str):
            detail = body.get('error_description') or error

    if not detail:
        detail = (response.text or '').strip()[:200]

    return f"HTTP {response.status_code}: {detail}" if detail else f"HTTP {response.status_code}"


class GraphClient:
    """Thin synchronous client over the Graph endpoints used for offboarding."""

    def __init__(
        self,
        token: str,
        base_url: str = GRAPH_BASE_URL,
        timeout: Optional[int] = None
    ):
        """
        Initialize the Graph client.

        Args:
            token: Bearer token used for every request
            base_url: Graph API root (default: v1.0 endpoint)
            timeout: HTTP request timeout in seconds (default: none)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json'
        })

    def __enter__(self) -> 'GraphClient':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def resolve_user(self, email: str) -> User:
        """
        Look up a directory user by email address.

        Args:
            email: User principal name or primary SMTP address

        Returns:
            Resolved User

        Raises:
            UserNotFoundError: If the lookup fails for any reason
        """
        url = f"{self.base_url}/users/{quote(email, safe='@')}"
        logger.info(f"Resolving user {email}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise UserNotFoundError(f"Lookup for {email} failed: {e}") from e

        if response.status_code == 404:
            raise UserNotFoundError(f"User {email} not found")
        if not response.ok:
            raise UserNotFoundError(
                f"Lookup for {email} failed: {describe_response(response)}"
            )

        try:
            user = User.from_graph(response.json(), email)
        except (ValueError, KeyError) as e:
            raise UserNotFoundError(
                f"Lookup for {email} returned an unusable record: {e}"
            ) from e

        logger.info(f"Resolved user {user.display_name} ({user.id})")
        return user

    def list_events(
        self,
        user_id: str,
        window: Optional[DateWindow] = None
    ) -> List[CalendarEvent]:
        """
        Fetch every event for a user, following continuation links.

        Events come back in the server's start-time order and are not
        re-sorted here.

        Args:
            user_id: Directory identifier of the user
            window: Optional date range filter

        Returns:
            All events across all pages, in page order

        Raises:
            FetchError: If any page request fails; partial results are dropped
        """
        params = {'$orderby': 'start/dateTime'}
        if window is not None:
            params['$filter'] = window.to_filter()

        url = f"{self.base_url}/users/{quote(user_id, safe='')}/events"
        events: List[CalendarEvent] = []
        page_count = 0

        while url:
            page = self.fetch_event_page(url, params=params)
            page_count += 1
            events.extend(page.events)
            logger.debug(
                f"Fetched page {page_count} with {len(page.events)} events"
            )

            # The continuation link already carries the query
            url = page.next_link
            params = None

        logger.info(f"Fetched {len(events)} events across {page_count} page(s)")
        return events

    def fetch_event_page(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None
    ) -> EventPage:
        """
        Fetch a single page of events.

        Args:
            url: First-page URL or an @odata.nextLink
            params: Query parameters for the first page

        Returns:
            EventPage with parsed events and the continuation link, if any
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Event listing request failed: {e}") from e

        if not response.ok:
            raise FetchError(
                f"Event listing request failed: {describe_response(response)}"
            )

        try:
            body: Dict[str, Any] = response.json()
            events = [CalendarEvent.from_graph(item) for item in body.get('value', [])]
        except (ValueError, KeyError, AttributeError) as e:
            raise FetchError(f"Event listing returned an unreadable page: {e}") from e

        return EventPage(events=events, next_link=body.get('@odata.nextLink'))

    def cancel_event(self, user_id: str, event_id: str, comment: str) -> None:
        """
        Cancel a single event on behalf of its organizer.

        Args:
            user_id: Directory identifier of the organizer
            event_id: Event to cancel
            comment: Message sent to attendees with the cancellation

        Raises:
            CancelError: If Graph does not accept the cancellation
        """
        url = (
            f"{self.base_url}/users/{quote(user_id, safe='')}"
            f"/events/{quote(event_id, safe='')}/cancel"
        )

        try:
            response = self.session.post(
                url,
                json={'comment': comment},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise CancelError(str(e), event_id=event_id) from e

        if not response.ok:
            raise CancelError(
                describe_response(response),
                event_id=event_id,
                status_code=response.status_code
            )
