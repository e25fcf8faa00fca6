"""proctop configuration, loaded from the environment via pydantic-settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProctopSettings(BaseSettings):
    """Pseudo-file locations and runtime options. Reads PROCTOP_* variables."""

    # --- Sources ---
    proc_root: Path = Field(default=Path("/proc"), description="procfs mount point")
    os_release_path: Path = Field(
        default=Path("/etc/os-release"),
        description="KEY=\"value\" release info file",
    )
    passwd_path: Path = Field(
        default=Path("/etc/passwd"),
        description="Colon-delimited user table",
    )

    # --- Refresh loop ---
    poll_rate: float = Field(default=2.0, description="Seconds between samples")

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="console",
        description="Log format: 'console' for dev, 'json' for production",
    )
    log_file: Path | None = Field(default=None, description="Log destination, stderr if unset")

    model_config = SettingsConfigDict(
        env_prefix="PROCTOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("poll_rate")
    @classmethod
    def _clamp_poll_rate(cls, value: float) -> float:
        return max(0.1, value)

    @property
    def stat_path(self) -> Path:
        return self.proc_root / "stat"

    @property
    def meminfo_path(self) -> Path:
        return self.proc_root / "meminfo"

    @property
    def uptime_path(self) -> Path:
        return self.proc_root / "uptime"

    @property
    def version_path(self) -> Path:
        return self.proc_root / "version"

    def pid_path(self, pid: int, name: str) -> Path:
        """Path of a per-process pseudo-file, e.g. ``pid_path(1, "status")``."""
        return self.proc_root / str(pid) / name


# Default instance; components take an explicit one where tests need it
settings = ProctopSettings()
