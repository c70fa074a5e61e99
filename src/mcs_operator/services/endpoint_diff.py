"""
Endpoint set diffing.

Pure functions over EndpointSets. Both inputs must be scoped to the same
service and cluster; membership is decided by endpoint identity alone.
"""

from dataclasses import dataclass, field

from mcs_operator.models import Endpoint, EndpointSet


@dataclass(frozen=True)
class EndpointDiff:
    """Registry changes needed to turn the reported set into the desired one."""

    to_add: list[Endpoint] = field(default_factory=list)
    to_remove: list[Endpoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def diff_endpoints(desired: EndpointSet, reported: EndpointSet) -> EndpointDiff:
    """
    Compute desired - reported and reported - desired by identity.

    Args:
        desired: Endpoints that should be registered
        reported: Endpoints the registry reports for this cluster

    Returns:
        EndpointDiff with additions in desired order and removals in
        reported order
    """
    return EndpointDiff(
        to_add=[e for e in desired if e not in reported],
        to_remove=[e for e in reported if e not in desired],
    )


def apply_diff(reported: EndpointSet, diff: EndpointDiff) -> EndpointSet:
    """Return (reported + to_add) - to_remove; equals desired by identity."""
    removed = {e.key for e in diff.to_remove}
    result = EndpointSet(e for e in reported if e.key not in removed)
    for endpoint in diff.to_add:
        if endpoint.key not in removed:
            result.add(endpoint)
    return result
