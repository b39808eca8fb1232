"""adb discovery, process execution and the device command surface."""
from .adb_service import AdbCommandResult, AdbDevice, AdbService, DeviceState
from .locator import AdbLocator, detect_adb_executable, is_executable
from .process_runner import (
    AdbError,
    ProcessLaunchError,
    ProcessResult,
    ProcessRunner,
    ProcessTimeoutError,
)

__all__ = [
    "AdbCommandResult",
    "AdbDevice",
    "AdbError",
    "AdbLocator",
    "AdbService",
    "DeviceState",
    "ProcessLaunchError",
    "ProcessResult",
    "ProcessRunner",
    "ProcessTimeoutError",
    "detect_adb_executable",
    "is_executable",
]
