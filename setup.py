# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the Workflow DAG execution engine
"""

from setuptools import setup, find_packages

setup(
    name="workflow-dag-engine",
    version="1.0.0",
    description="Sequential DAG execution engine for tool, LLM and data workflows",
    author="Jason Cafarelli",
    packages=find_packages(include=["workflow_dag", "workflow_dag.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
)
