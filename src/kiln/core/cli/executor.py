from __future__ import annotations

from termcolor import colored as _colored

from kiln.core.system.executor.default import DefaultPrintingObserver
from kiln.core.system.target import TargetStatus, TargetStatusType

COLORS_BY_STATUS = {
    TargetStatusType.PENDING: "magenta",
    TargetStatusType.RUNNING: "magenta",
    TargetStatusType.UP_TO_DATE: "green",
    TargetStatusType.SUCCEEDED: "green",
    TargetStatusType.FAILED: "red",
    TargetStatusType.UPSTREAM_FAILED: "yellow",
}


def status_to_text(status: TargetStatus, colored: bool = True) -> str:
    if colored:
        message = _colored(status.type.name, COLORS_BY_STATUS.get(status.type))
    else:
        message = status.type.name
    if status.message:
        message += f" ({status.message})"
    return message


class ColoredDefaultPrintingObserver(DefaultPrintingObserver):
    def __init__(self) -> None:
        super().__init__(
            status_to_text=status_to_text,
            format_header=lambda s: _colored(s, "cyan", attrs=["bold", "underline"]),
            format_duration=lambda s: _colored(s, "cyan"),
        )
