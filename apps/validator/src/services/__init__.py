"""Service layer helpers for the validator."""

from .daily_runner import DailyTestRunner, build_summary
from .reference_store import DeploymentStore, load_deployments
from .sdk_tester import BatchOutcome, DynamicSDKTester
from .validation import ValidationEngine, parse_index

__all__ = [
    "BatchOutcome",
    "DailyTestRunner",
    "DeploymentStore",
    "DynamicSDKTester",
    "ValidationEngine",
    "build_summary",
    "load_deployments",
    "parse_index",
]
