# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities shared by the engine modules.

This package contains:
- config: YAML-backed engine settings
- errors: Base exceptions
- logging: Structured logging
"""

from workflow_dag.core.config import get_config, load_config, EngineSettings
from workflow_dag.core.errors import WorkflowDAGError, ConfigurationError
from workflow_dag.core.logging import get_logger, log_event

__all__ = [
    "get_config",
    "load_config",
    "EngineSettings",
    "WorkflowDAGError",
    "ConfigurationError",
    "get_logger",
    "log_event",
]
