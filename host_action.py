"""Host platform custom action: cancel an offboarded user's calendar events."""
import logging
import time
from typing import Any, Dict

from auth.authenticator import HostDelegatedAuthenticator
from graph.exceptions import OffboardingError
from graph.graph_client import GRAPH_BASE_URL
from host.context import HostContext
from processor.event_canceller import DEFAULT_COMMENT
from processor.models import DateWindow
from processor.offboarding import EXIT_FAILURE, exit_code_for, offboard_user

logger = logging.getLogger(__name__)


ACTION_NAME = "Cancel Calendar Events For Offboarded User"


def execute(parameters: Dict[str, Any], context: HostContext) -> Dict[str, Any]:
    """
    Custom action handler invoked by the host workflow engine.

    Args:
        parameters: UserEmail (required), TenantId and Comment (optional)
        context: Host-provided token accessor, tenant lookup and audit log

    Returns:
        Dict with exitCode and the structured output written to the audit log
    """
    start_time = time.time()
    user_email = (parameters.get('UserEmail') or '').strip()
    comment = parameters.get('Comment') or DEFAULT_COMMENT

    if not user_email:
        logger.error("UserEmail parameter is required")
        return _finish(context, EXIT_FAILURE, {
            'userEmail': None,
            'error': 'UserEmail parameter is required',
            'errorType': 'ValidationError'
        })

    authenticator = HostDelegatedAuthenticator(
        context,
        tenant_id=parameters.get('TenantId') or None
    )
    base_url = getattr(context, 'graph_base_url', None) or GRAPH_BASE_URL

    logger.info("Custom action started", extra={'user_email': user_email})

    try:
        user, summary = offboard_user(
            authenticator,
            user_email,
            comment=comment,
            window=DateWindow.default(),
            base_url=base_url
        )
    except OffboardingError as e:
        logger.error(
            f"Custom action aborted: {e}",
            extra={'error_type': type(e).__name__}
        )
        return _finish(context, EXIT_FAILURE, {
            'userEmail': user_email,
            'tenantId': authenticator.resolved_tenant_id,
            'error': str(e),
            'errorType': type(e).__name__
        })
    except Exception as e:
        logger.error(
            f"Custom action failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _finish(context, EXIT_FAILURE, {
            'userEmail': user_email,
            'tenantId': authenticator.resolved_tenant_id,
            'error': str(e),
            'errorType': type(e).__name__
        })

    duration = time.time() - start_time
    logger.info(
        "Custom action completed",
        extra={
            'duration_seconds': round(duration, 2),
            'success_count': summary.success_count,
            'failure_count': summary.failure_count
        }
    )
    return _finish(context, exit_code_for(summary), {
        'userEmail': user.email,
        'displayName': user.display_name,
        'tenantId': authenticator.resolved_tenant_id,
        **summary.to_dict()
    })


def _finish(context: HostContext, exit_code: int, output: Dict[str, Any]) -> Dict[str, Any]:
    """Write the audit entry and build the handler response."""
    try:
        context.write_audit_log(ACTION_NAME, output)
    except Exception as e:
        logger.warning(
            f"Failed to write audit log entry: {e}",
            extra={'error_type': type(e).__name__}
        )

    return {'exitCode': exit_code, 'output': output}
