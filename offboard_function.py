"""Command-line entry point: cancel an offboarded user's calendar events."""
import argparse
import json
import logging
import os
import sys
import time
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from auth.authenticator import ClientCredentialsAuthenticator
from graph.exceptions import OffboardingError
from processor.event_canceller import DEFAULT_COMMENT
from processor.models import DateWindow
from processor.offboarding import EXIT_FAILURE, exit_code_for, offboard_user


# Attributes every LogRecord carries; anything else came in via extra=
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', (), None)).keys()
) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including fields passed via extra."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser; required values fall back to environment variables."""
    parser = argparse.ArgumentParser(
        description="Cancel all calendar events organized by an offboarded user."
    )
    parser.add_argument('--user-email', default=os.environ.get('USER_EMAIL'),
                        help="Email of the user being offboarded (env: USER_EMAIL)")
    parser.add_argument('--client-id', default=os.environ.get('GRAPH_CLIENT_ID'),
                        help="App registration client ID (env: GRAPH_CLIENT_ID)")
    parser.add_argument('--client-secret', default=os.environ.get('GRAPH_CLIENT_SECRET'),
                        help="App registration client secret (env: GRAPH_CLIENT_SECRET)")
    parser.add_argument('--tenant-id', default=os.environ.get('GRAPH_TENANT_ID'),
                        help="Directory tenant ID (env: GRAPH_TENANT_ID)")
    parser.add_argument('--comment', default=DEFAULT_COMMENT,
                        help="Cancellation message sent to attendees")
    parser.add_argument('--days-back', type=int, default=int(os.environ.get('DAYS_BACK', '30')),
                        help="Include events starting this many days ago (default: 30)")
    parser.add_argument('--days-ahead', type=int, default=int(os.environ.get('DAYS_AHEAD', '365')),
                        help="Include events ending within this many days (default: 365)")
    parser.add_argument('--no-date-filter', action='store_true',
                        help="Fetch all events regardless of date")
    parser.add_argument('--timeout', type=int,
                        default=int(os.environ['TIMEOUT_SECONDS']) if os.environ.get('TIMEOUT_SECONDS') else None,
                        help="HTTP timeout in seconds (default: none)")
    parser.add_argument('--log-level', default=os.environ.get('LOG_LEVEL', 'INFO'),
                        help="DEBUG, INFO, WARNING or ERROR (env: LOG_LEVEL)")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    missing = [
        flag for flag, value in (
            ('--user-email', args.user_email),
            ('--client-id', args.client_id),
            ('--client-secret', args.client_secret),
            ('--tenant-id', args.tenant_id),
        )
        if not value
    ]
    if missing:
        parser.error(f"missing required values: {', '.join(missing)}")

    return args


def _error_report(user_email: str, error: Exception, start_time: float) -> Dict[str, Any]:
    return {
        'exitCode': EXIT_FAILURE,
        'userEmail': user_email,
        'error': str(error),
        'errorType': type(error).__name__,
        'durationSeconds': round(time.time() - start_time, 2)
    }


def run_offboarding(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Run the offboarding workflow for the parsed arguments.

    Args:
        args: Parsed CLI arguments

    Returns:
        Report dict with exitCode and either the run summary or the error
    """
    logger = logging.getLogger(__name__)
    start_time = time.time()
    logger.info(
        "Offboarding run started",
        extra={'user_email': args.user_email, 'tenant_id': args.tenant_id}
    )

    window = None
    if not args.no_date_filter:
        window = DateWindow.default(days_back=args.days_back, days_ahead=args.days_ahead)

    authenticator = ClientCredentialsAuthenticator(
        client_id=args.client_id,
        client_secret=args.client_secret,
        tenant_id=args.tenant_id,
        timeout=args.timeout
    )

    try:
        user, summary = offboard_user(
            authenticator,
            args.user_email,
            comment=args.comment,
            window=window,
            timeout=args.timeout
        )
    except OffboardingError as e:
        logger.error(
            f"Offboarding run aborted: {e}",
            extra={'error_type': type(e).__name__}
        )
        return _error_report(args.user_email, e, start_time)
    except Exception as e:
        logger.error(
            f"Offboarding run failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_report(args.user_email, e, start_time)

    duration = time.time() - start_time
    exit_code = exit_code_for(summary)
    logger.info(
        "Offboarding run completed",
        extra={
            'duration_seconds': round(duration, 2),
            'total_events': summary.total_events,
            'success_count': summary.success_count,
            'failure_count': summary.failure_count
        }
    )

    return {
        'exitCode': exit_code,
        'userEmail': user.email,
        'displayName': user.display_name,
        **summary.to_dict(),
        'durationSeconds': round(duration, 2)
    }


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.log_level)

    report = run_offboarding(args)
    print(json.dumps(report, indent=2))
    return report['exitCode']


if __name__ == '__main__':
    sys.exit(main())
