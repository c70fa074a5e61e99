"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class that wraps every reconciliation
with correlation-aware logging, metrics, a tracing span and error
normalization. Errors leave as OperatorError subclasses; translating them
into kopf exceptions is left to the handlers.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from kubernetes.client.rest import ApiException

from ..errors import OperatorError, TemporaryError
from ..models import ResourceRef
from ..observability.logging import OperatorLogger
from ..observability.metrics import metrics_collector
from ..observability.tracing import get_tracer
from ..utils.kubernetes import api_error


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a successful reconciliation."""

    requeue_after: float | None = None


class BaseReconciler(ABC):
    """
    Base class for resource reconcilers.

    Provides common patterns for:
    - Reconciliation start/success/error logging with correlation IDs
    - Reconciliation metrics
    - Normalizing unexpected failures into the operator error taxonomy
    """

    resource_type: str = "resource"

    def __init__(self):
        self.logger = OperatorLogger(self.__class__.__name__)

    async def reconcile(self, ref: ResourceRef) -> ReconcileResult:
        """
        Main reconciliation entry point.

        Args:
            ref: Resource to reconcile

        Returns:
            ReconcileResult with an optional requeue hint

        Raises:
            OperatorError: On any failure; retryable errors should be requeued
        """
        start_time = time.time()

        self.logger.log_reconciliation_start(
            resource_type=self.resource_type,
            resource_name=ref.name,
            namespace=ref.namespace,
        )

        tracer = get_tracer(__name__)
        with tracer.start_as_current_span(
            f"reconcile_{self.resource_type}",
            attributes={
                "k8s.namespace": ref.namespace,
                "k8s.resource.name": ref.name,
                "k8s.resource.type": self.resource_type,
            },
        ):
            async with metrics_collector.track_reconciliation(
                resource_type=self.resource_type,
                namespace=ref.namespace,
                name=ref.name,
                operation="reconcile",
            ):
                try:
                    result = await self.do_reconcile(ref)

                except OperatorError as e:
                    self._log_error(ref, e, start_time)
                    raise

                except ApiException as e:
                    error = api_error(e, f"reconcile {self.resource_type} {ref}")
                    self._log_error(ref, error, start_time)
                    raise error from e

                except Exception as e:
                    # Wrap unexpected errors as temporary to allow retry
                    error = TemporaryError(
                        f"Unexpected error during reconciliation: {str(e)}"
                    )
                    self._log_error(ref, error, start_time)
                    raise error from e

        self.logger.log_reconciliation_success(
            resource_type=self.resource_type,
            resource_name=ref.name,
            namespace=ref.namespace,
            duration=time.time() - start_time,
        )
        return result

    def _log_error(
        self, ref: ResourceRef, error: Exception, start_time: float
    ) -> None:
        self.logger.log_reconciliation_error(
            resource_type=self.resource_type,
            resource_name=ref.name,
            namespace=ref.namespace,
            error=error,
            duration=time.time() - start_time,
        )

    @abstractmethod
    async def do_reconcile(self, ref: ResourceRef) -> ReconcileResult:
        """
        Resource-specific reconciliation logic.

        Args:
            ref: Resource to reconcile

        Returns:
            ReconcileResult
        """
