"""
Constants used throughout the MCS operator.

This module defines all constant values used by the operator including:
- Finalizer names for cleanup coordination
- API groups, versions and plurals of the watched resources
- Cluster identity property names
- Registry attribute values and error message templates
"""

# Finalizer constants for cleanup coordination
# Blocks ServiceExport deletion until this cluster's registry endpoints are gone
SERVICE_EXPORT_FINALIZER = "multicluster.k8s.aws/service-export-finalizer"

# Last EndpointSlice change seen for an exported Service, as "<slice>:<rv>"
SLICE_CHANGE_ANNOTATION = "multicluster.k8s.aws/endpointslice-change"

# ServiceExport custom resource
SERVICE_EXPORT_GROUP = "multicluster.x-k8s.io"
SERVICE_EXPORT_VERSION = "v1alpha1"
SERVICE_EXPORT_PLURAL = "serviceexports"

# ClusterProperty custom resource (cluster-scoped)
CLUSTER_PROPERTY_GROUP = "about.k8s.io"
CLUSTER_PROPERTY_VERSION = "v1alpha1"
CLUSTER_PROPERTY_PLURAL = "clusterproperties"

# Well-known cluster property names
CLUSTER_ID_PROPERTY = "id.k8s.io"
CLUSTER_SET_ID_PROPERTY = "clusterset.k8s.io"

# EndpointSlice ownership label
SERVICE_NAME_LABEL = "kubernetes.io/service-name"

# Object kinds understood by the cluster API
KIND_SERVICE_EXPORT = "ServiceExport"
KIND_CLUSTER_PROPERTY = "ClusterProperty"
KIND_SERVICE = "Service"
KIND_ENDPOINT_SLICE = "EndpointSlice"

# Service types stored with every registered endpoint
SERVICE_TYPE_CLUSTERSET_IP = "ClusterSetIP"
SERVICE_TYPE_HEADLESS = "Headless"

# Default endpoint port protocol
DEFAULT_PROTOCOL = "TCP"

# Registry defaults
DEFAULT_REGISTRY_TIMEOUT = 30
DEFAULT_VISIBILITY_ATTEMPTS = 1
DEFAULT_VISIBILITY_DELAY = 0.0

# Reconciliation defaults (in seconds)
DEFAULT_RESYNC_INTERVAL = 300
DEFAULT_RETRY_DELAY = 30

# Finalizer transition labels used in metrics and logs
FINALIZER_ADDED = "added"
FINALIZER_REMOVED = "removed"

# Error message templates
ERROR_CLUSTER_PROPERTY_NOT_FOUND = (
    f"{CLUSTER_PROPERTY_PLURAL}.{CLUSTER_PROPERTY_GROUP} " + '"{}" not found'
)
ERROR_CLUSTER_PROPERTY_EMPTY = (
    f"{CLUSTER_PROPERTY_PLURAL}.{CLUSTER_PROPERTY_GROUP} " + '"{}" has no value'
)
ERROR_SERVICE_NOT_VISIBLE = (
    "Registry service {}/{} not visible after creation ({} attempts)"
)

# Success message templates
SUCCESS_RECONCILIATION = "ServiceExport synchronized with the registry"
SUCCESS_DELETION = "Registry endpoints removed and finalizer released"
