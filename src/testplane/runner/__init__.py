"""Runner module exports."""

from testplane.runner.filters import JobFilter, prepare_jobs, select_jobs
from testplane.runner.hooks import HookRegistry
from testplane.runner.jobs import Job, Suite, Test, generate_hash
from testplane.runner.queue import SuiteDefinitionQueue
from testplane.runner.runner import RunStatus, RunSummary, TestRunner

__all__ = [
    "HookRegistry",
    "Job",
    "JobFilter",
    "RunStatus",
    "RunSummary",
    "Suite",
    "SuiteDefinitionQueue",
    "Test",
    "TestRunner",
    "generate_hash",
    "prepare_jobs",
    "select_jobs",
]
