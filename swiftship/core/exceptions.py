"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import List, Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class LLMException(ExternalServiceException):
    """Exception for LLM API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("LLM Service", message, details)


class VectorStoreException(ExternalServiceException):
    """Exception for vector store failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Vector Store", message, details)


class GeocodingException(ExternalServiceException):
    """Exception for geocoding and routing provider failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Geocoding Service", message, details)


class IncompleteQuoteException(DomainException):
    """Raised when a quote is confirmed before every required field is known."""

    def __init__(self, missing_fields: List[str], details: Optional[dict] = None):
        self.missing_fields = missing_fields
        super().__init__(
            f"Quote is missing: {', '.join(missing_fields)}",
            details or {"missing_fields": missing_fields}
        )


class InvalidRouteException(DomainException):
    """Raised when a computed route has a non-positive distance."""

    def __init__(self, distance_km: float, details: Optional[dict] = None):
        self.distance_km = distance_km
        super().__init__(
            f"Invalid route distance: {distance_km} km",
            details or {"distance_km": distance_km}
        )
