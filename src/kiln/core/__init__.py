__version__ = "0.1.0"

from kiln.core.system.action import Action, ActionErrorType, ActionResult, CallableAction, CommandAction
from kiln.core.system.config import RunConfig
from kiln.core.system.errors import (
    BuildError,
    ConfigurationError,
    CycleError,
    DuplicateTargetError,
    TargetsFileError,
    UnknownTargetError,
)
from kiln.core.system.executor import SchedulerObserver
from kiln.core.system.executor.default import ActionExecutor, DefaultPrintingObserver
from kiln.core.system.graph import TargetGraph
from kiln.core.system.loader import load_targets
from kiln.core.system.report import RunReport
from kiln.core.system.scheduler import Scheduler, build
from kiln.core.system.staleness import PrerequisiteOutcome, StalenessOracle
from kiln.core.system.target import Target, TargetStatus, TargetStatusType

__all__ = [
    "Action",
    "ActionErrorType",
    "ActionExecutor",
    "ActionResult",
    "BuildError",
    "CallableAction",
    "CommandAction",
    "ConfigurationError",
    "CycleError",
    "DefaultPrintingObserver",
    "DuplicateTargetError",
    "PrerequisiteOutcome",
    "RunConfig",
    "RunReport",
    "Scheduler",
    "SchedulerObserver",
    "StalenessOracle",
    "Target",
    "TargetGraph",
    "TargetStatus",
    "TargetStatusType",
    "TargetsFileError",
    "UnknownTargetError",
    "build",
    "load_targets",
]
