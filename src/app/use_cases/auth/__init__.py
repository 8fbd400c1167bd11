"""
Authentication Use Cases

Credential check in front of the session lifecycle, plus first-admin setup.
"""

from .bootstrap_admin_use_case import BootstrapAdminResponse, BootstrapAdminUseCase
from .login_use_case import LoginUseCase

__all__ = [
    # Use Cases
    "LoginUseCase",
    "BootstrapAdminUseCase",
    # DTOs - Responses
    "BootstrapAdminResponse",
]
