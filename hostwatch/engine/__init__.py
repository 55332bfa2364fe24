from .evaluator import evaluate
from .orchestrator import CollectorSet, RunOrchestrator, RunResult, RunState
from .thresholds import ThresholdConfig, load_threshold_file

__all__ = [
    "evaluate",
    "CollectorSet",
    "RunOrchestrator",
    "RunResult",
    "RunState",
    "ThresholdConfig",
    "load_threshold_file",
]
