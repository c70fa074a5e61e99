"""
Error handling module for the MCS operator.

This module provides an error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    ConfigurationError,
    ExternalServiceError,
    KubernetesAPIError,
    OperatorError,
    PersistenceError,
    RegistryError,
    TemporaryError,
)

__all__ = [
    "OperatorError",
    "TemporaryError",
    "ExternalServiceError",
    "RegistryError",
    "KubernetesAPIError",
    "ConfigurationError",
    "PersistenceError",
]
