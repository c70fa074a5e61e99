"""
Utils package - Clients for the systems the MCS operator talks to.

Contains helper modules for:
- Kubernetes object access (ClusterAPI)
- The multi-cluster service registry (RegistryClient)
"""

from mcs_operator.utils.kubernetes import ClusterAPI, KubernetesClusterAPI
from mcs_operator.utils.registry import HttpRegistryClient, RegistryClient

__all__ = [
    "ClusterAPI",
    "KubernetesClusterAPI",
    "RegistryClient",
    "HttpRegistryClient",
]
