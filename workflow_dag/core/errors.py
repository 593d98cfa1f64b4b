# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Base exceptions for the workflow engine.

All engine exceptions inherit from WorkflowDAGError for consistent handling
by the surrounding service.
"""

from typing import Optional


class WorkflowDAGError(Exception):
    """Base exception for all workflow engine errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize engine error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for API response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(WorkflowDAGError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.config_file = config_file
