"""Errors that carry a process exit code."""

from __future__ import annotations


class ExitError(Exception):
    """Wraps an error with an exit code and optional details to log."""

    def __init__(self, err: BaseException, code: int, details: str = "") -> None:
        super().__init__(str(err))
        self.err = err
        self.code = code
        self.details = details
        self.__cause__ = err

    def __str__(self) -> str:
        return str(self.err)


def wrap_error_with_code(err: BaseException, code: int, details: str) -> ExitError:
    """Wrap ``err`` with the given exit code and details."""
    return ExitError(err, code, details)


def wrap_error(err: BaseException, details: str) -> ExitError:
    """Wrap ``err`` with exit code 1."""
    return wrap_error_with_code(err, 1, details)