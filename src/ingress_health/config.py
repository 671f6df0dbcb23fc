"""Health server configuration loaded from environment variables."""
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ingress_health.checks.pidfile import DEFAULT_PID_FILE
from ingress_health.checks.status import DEFAULT_STATUS_PATH, DEFAULT_TIMEOUT


class Settings(BaseSettings):
    """Health server configuration loaded from environment variables.

    Attributes:
        host: Bind address for the health server.
        port: Port number for the health server.
        debug: Enable debug logging and API documentation.
        log_json: Log JSON lines instead of console output.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        status_port: Loopback port of the proxy's status endpoint.
        status_path: Request path probed on the status port.
        status_timeout: Seconds before the status probe gives up.
        pid_file: File holding the pid of the proxy worker.
        process_probe: How process existence is checked.
        check_name: Name the proxy check is served under.
    """

    model_config = SettingsConfigDict(
        env_prefix="INGRESS_HEALTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    host: str = "127.0.0.1"
    port: int = Field(default=10254, gt=0, le=65535)
    debug: bool = False
    log_json: bool = True
    shutdown_timeout: float = 30.0

    status_port: int = Field(gt=0, le=65535)
    status_path: str = DEFAULT_STATUS_PATH
    status_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    pid_file: str = DEFAULT_PID_FILE
    process_probe: Literal["signal", "procfs"] = "signal"
    check_name: str = "nginx"

    @field_validator("status_path")
    @classmethod
    def _absolute_path(cls, value: str) -> str:
        """Require the status path to start with '/'.

        Returns:
            The validated path.
        """
        if not value.startswith("/"):
            raise ValueError("status_path must start with '/'")
        return value

    @field_validator("pid_file", "check_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value
