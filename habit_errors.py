from pathlib import Path


class HabitError(Exception):
    """Base class for every failure the habit core reports to the CLI."""


class NotFound(HabitError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"habit not found: {identifier}")
        self.identifier = identifier


class InvalidName(HabitError):
    def __init__(self, value: str) -> None:
        super().__init__(f"invalid habit name: {value}")
        self.value = value


class AlreadyCompleted(HabitError):
    def __init__(self, name: str) -> None:
        super().__init__(f"habit already completed for date: {name}")
        self.name = name


class StorageIOError(HabitError):
    """Reading, writing or renaming the backing file failed.

    The message is the underlying OS error text; the ``OSError`` itself is
    kept on ``error`` and as ``__cause__``.
    """

    def __init__(self, path: Path, error: OSError) -> None:
        super().__init__(str(error))
        self.path = path
        self.error = error


class CorruptStore(HabitError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"corrupt habit store {path}: {reason}")
        self.path = path
        self.reason = reason
