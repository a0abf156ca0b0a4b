"""Capabilities the host automation platform hands to a custom action."""
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class HostContext(Protocol):
    """
    Injected host-platform services.

    The host resolves the tenant it is running for, issues tokens for
    that tenant and records audit entries. Custom actions receive an
    implementation of this protocol instead of reaching for platform
    globals.
    """

    def get_tenant_id(self) -> Optional[str]:
        """Tenant the host is currently operating on, if known."""
        ...

    def get_access_token(self, scope: str, tenant_id: Optional[str] = None) -> Optional[str]:
        """Bearer token for scope; the host picks the tenant when tenant_id is None."""
        ...

    def write_audit_log(self, action: str, payload: Dict[str, Any]) -> None:
        """Append an entry to the host's audit trail."""
        ...
