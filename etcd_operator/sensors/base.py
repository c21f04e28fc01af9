"""Base sensor classes for operator monitoring.

The hook pattern:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional - sensors only implement what they need
"""

from typing import Any, Dict, List, Optional


class OperatorSensor:
    """Base sensor class for etcd operator monitoring.

    All methods are no-ops by default. Subclasses override only the hooks
    they need to monitor.
    """

    def on_reconcile_start(
        self,
        cluster_name: str,
        namespace: str,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when a reconcile pass begins.

        Args:
            cluster_name: EtcdCluster resource name
            namespace: Kubernetes namespace
            trigger_source: What triggered reconciliation (create, update, resume, timer)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        cluster_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a reconcile pass completes.

        Args:
            cluster_name: EtcdCluster resource name
            namespace: Kubernetes namespace
            state: State dict returned from on_reconcile_start
            success: Whether reconciliation succeeded
            error: Exception if reconciliation failed
        """
        pass

    def on_resource_sync_start(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Called before a child resource is created or updated.

        Args:
            cluster_name: Owning EtcdCluster name
            resource_name: Name of the child resource
            namespace: Kubernetes namespace
            resource_type: One of config_map, service, stateful_set
        """
        pass

    def on_resource_sync_complete(
        self,
        cluster_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
    ) -> None:
        """Called after a child resource create/update finished.

        Args:
            operation: create or update
            success: Whether the API call succeeded
        """
        pass

    def on_status_update(
        self,
        cluster_name: str,
        namespace: str,
        conditions: List[Dict[str, Any]],
        written: bool,
    ) -> None:
        """Called after the status write of a reconcile pass.

        Args:
            conditions: Conditions that were submitted
            written: False when the write was dropped because of a conflict
        """
        pass
