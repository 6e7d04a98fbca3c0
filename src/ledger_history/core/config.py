from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_CONNECTION_TIMEOUT_SECONDS = 20.0
DEFAULT_RESULTS_PER_PAGE = 10
DEFAULT_MAX_PAGINATION_ROUNDS = 25
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class HistoryConfig:
    """Tuning for connectivity checks and history pagination."""

    connection_timeout_seconds: float = DEFAULT_CONNECTION_TIMEOUT_SECONDS
    default_results_per_page: int = DEFAULT_RESULTS_PER_PAGE
    max_pagination_rounds: int = DEFAULT_MAX_PAGINATION_ROUNDS
    # 0 disables the overall request timeout
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.connection_timeout_seconds <= 0:
            msg = "connection_timeout_seconds must be positive"
            raise ValueError(msg)
        if self.default_results_per_page < 1:
            msg = "default_results_per_page must be at least 1"
            raise ValueError(msg)
        if self.max_pagination_rounds < 1:
            msg = "max_pagination_rounds must be at least 1"
            raise ValueError(msg)
        if self.request_timeout_seconds < 0:
            msg = "request_timeout_seconds must not be negative"
            raise ValueError(msg)

    @property
    def request_timeout(self) -> float | None:
        return self.request_timeout_seconds or None


def _read_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}") from None


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}") from None


_ENV_NAMES = {
    "connection_timeout_seconds": "LEDGER_HISTORY_CONNECTION_TIMEOUT",
    "default_results_per_page": "LEDGER_HISTORY_RESULTS_PER_PAGE",
    "max_pagination_rounds": "LEDGER_HISTORY_MAX_ROUNDS",
    "request_timeout_seconds": "LEDGER_HISTORY_REQUEST_TIMEOUT",
}


def load_history_config_from_env() -> HistoryConfig:
    """Load history config from env and validate startup requirements.

    Bounds are checked by ``HistoryConfig``; failures name the offending
    environment variable instead of the field.
    """
    values = {
        "connection_timeout_seconds": _read_float(
            _ENV_NAMES["connection_timeout_seconds"],
            DEFAULT_CONNECTION_TIMEOUT_SECONDS,
        ),
        "default_results_per_page": _read_int(
            _ENV_NAMES["default_results_per_page"], DEFAULT_RESULTS_PER_PAGE
        ),
        "max_pagination_rounds": _read_int(
            _ENV_NAMES["max_pagination_rounds"], DEFAULT_MAX_PAGINATION_ROUNDS
        ),
        "request_timeout_seconds": _read_float(
            _ENV_NAMES["request_timeout_seconds"], DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
    }
    try:
        return HistoryConfig(**values)
    except ValueError as exc:
        field_name, _, problem = str(exc).partition(" ")
        env_name = _ENV_NAMES.get(field_name, field_name)
        raise ValueError(f"{env_name} {problem}") from exc
