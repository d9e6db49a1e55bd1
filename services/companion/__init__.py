"""
Companion Service Supervision

Lifecycle management for the Social Effects renderer process.
"""

from .supervisor import CompanionStatus, ProcessSupervisor, SubprocessSupervisor

__all__ = ["CompanionStatus", "ProcessSupervisor", "SubprocessSupervisor"]
