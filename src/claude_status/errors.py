"""Result codes and the exception hierarchy behind them.

Leaf modules raise these exceptions; the core catches them at its boundary
and hands the host a ResultCode, so nothing escapes into the display loop.
"""

from enum import IntEnum


class ResultCode(IntEnum):
    OK = 0
    NO_CREDENTIALS = 1
    INVALID_CREDENTIALS = 2
    NETWORK_ERROR = 3
    PARSE_ERROR = 4
    AUTH_ERROR = 5


class ClaudeStatusError(Exception):
    """Base class for every failure the core knows how to classify."""
    code = ResultCode.NETWORK_ERROR


class CredentialsError(ClaudeStatusError):
    code = ResultCode.INVALID_CREDENTIALS


class NoCredentialsError(CredentialsError):
    """Credentials file is missing or cannot be read."""
    code = ResultCode.NO_CREDENTIALS


class InvalidCredentialsError(CredentialsError):
    """Credentials file is not valid JSON or lacks an access token."""
    code = ResultCode.INVALID_CREDENTIALS


class FetchError(ClaudeStatusError):
    code = ResultCode.NETWORK_ERROR


class AuthError(FetchError):
    """The usage endpoint rejected the token (HTTP 401)."""
    code = ResultCode.AUTH_ERROR


class NetworkError(FetchError):
    code = ResultCode.NETWORK_ERROR


class ParseError(FetchError):
    code = ResultCode.PARSE_ERROR


class WatcherError(ClaudeStatusError):
    """The credentials file could not be watched."""
    code = ResultCode.NO_CREDENTIALS
