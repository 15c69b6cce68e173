from typing import List, Optional


class ScheduleError(Exception):
    """Base error for the scheduling engine. Carries a stable code for API mapping."""

    code = "E_SCHEDULE"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidScheduleInput(ScheduleError, ValueError):
    code = "E_INVALID_INPUT"


class CycleDetectedError(ScheduleError):
    """Raised when the dependency graph has a cycle. Never resolved automatically."""

    code = "E_DEPENDENCY_CYCLE"

    def __init__(self, message: str, cycle_info: Optional[dict] = None, unreachable: Optional[List[dict]] = None):
        super().__init__(message)
        self.cycle_info = cycle_info
        self.unreachable = unreachable or []

    def to_dict(self) -> dict:
        info = self.cycle_info or {}
        return {
            "code": self.code,
            "message": self.message,
            "cycle": info.get("cycle", []),
            "dependencies": info.get("dependencies", []),
            "unreachable": self.unreachable,
        }
