"""Exceptions raised by the analytical storage tool."""


class AnalyticalStorageError(Exception):
    """Base class for all errors raised by the analytical storage tool."""


class AzureCliError(AnalyticalStorageError):
    """An `az` command exited with a non-zero status or returned unparseable output."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"'{' '.join(command)}' failed with exit code {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class RemoteCallExhausted(AnalyticalStorageError):
    """A remote call failed on every allowed attempt."""

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{description} failed after {attempts} attempt(s): {last_error!s}"
        )


class DatabaseNotFound(AnalyticalStorageError):
    """The single database requested with --database-name could not be retrieved."""

    def __init__(self, database_name: str):
        self.database_name = database_name
        super().__init__(f"Failed to retrieve database '{database_name}'.")


class EnumerationFailed(AnalyticalStorageError):
    """Nothing could be enumerated, so there is nothing to classify or disable."""


class MissingToolError(AnalyticalStorageError):
    """A required external tool is not installed or not on PATH."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(
            f"Required tool '{tool}' not found. Install it before running this script."
        )
