from __future__ import annotations

import socket

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- thresholds ---
    cpu_threshold: float = Field(default=90.0, ge=0.0, le=100.0)
    memory_threshold: float = Field(default=90.0, ge=0.0, le=100.0)
    disk_space_threshold: float = Field(default=10.0, ge=0.0, le=100.0)  # free-space floor, %
    time_drift_threshold: float = Field(default=60.0, ge=0.0)  # seconds
    expected_time_zone: str = "UTC"
    services: list[str] = []
    thresholds_file: str | None = None  # optional YAML overriding the values above

    # --- time drift probe ---
    ntp_host: str = "pool.ntp.org"
    ntp_port: int = 123
    ntp_timeout: float = 5.0

    # --- collectors ---
    cpu_sample_seconds: float = 1.0
    collector_timeout: float = 15.0

    # --- mail ---
    smtp_host: str = ""  # empty disables dispatch
    smtp_port: int = 25
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = False
    smtp_timeout: float = 10.0
    mail_from: str = "hostwatch@localhost"
    mail_to: list[str] = []

    # --- run ---
    host_name: str = Field(default_factory=socket.gethostname)
    snapshot_path: str = "hostwatch_snapshot.json"
    log_file: str = "hostwatch.log"
    log_level: str = "INFO"
    fail_on_persist_error: bool = False

    model_config = {"env_file": ".env", "env_prefix": "HOSTWATCH_", "frozen": True}

    @property
    def mail_enabled(self) -> bool:
        return bool(self.smtp_host and self.mail_to)
