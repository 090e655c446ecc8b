"""
Orchestration package for coordinating export pipeline phases.

This package sequences the run: Read → Extract → Write posts → Write
comments → Save images → Report, and provides the staggered batch runner
used by the three write phases.
"""

from .acquisition_pipeline import AcquisitionPipeline
from .migration_orchestrator import MigrationOrchestrator
from .migration_report import MigrationReport

__all__ = [
    'AcquisitionPipeline',
    'MigrationOrchestrator',
    'MigrationReport'
]
