"""
Domain package for core-api.

Holds the resource descriptor that parameterizes the CRUD helpers.
"""

from core_api.domain.resource import ResourceDescriptor

__all__ = ["ResourceDescriptor"]
