"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Homeserver(BaseModel):
    """One account the bot operates as."""
    model_config = ConfigDict(extra="forbid")

    address: str
    mxid: str
    access_token: str | None = None
    password: str | None = None

    @field_validator("mxid")
    @classmethod
    def _check_mxid(cls, value: str) -> str:
        if not value.startswith("@") or ":" not in value:
            raise ValueError(f"'{value}' is not a Matrix user id (expected @local:server)")
        return value

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"'{value}' is not an http(s) homeserver address")
        return value.rstrip("/")

    @property
    def auth_method(self) -> str:
        if self.access_token:
            return "token"
        if self.password:
            return "password"
        return "none"


class Config(BaseModel):
    """Root configuration for autoinvite."""
    model_config = ConfigDict(extra="forbid")

    message: str
    target_user: str
    servers: list[Homeserver] = Field(default_factory=list)
    debug: bool = False
    state_dir: Path = Field(default_factory=lambda: Path.home() / ".autoinvite" / "state")
    sync_timeout_ms: int = Field(default=30_000, ge=0)
    device_name: str = "autoinvite"
    log_file: str = "output.log"

    @field_validator("target_user")
    @classmethod
    def _check_target_user(cls, value: str) -> str:
        if not value.startswith("@") or ":" not in value:
            raise ValueError(f"'{value}' is not a Matrix user id (expected @local:server)")
        return value

    @property
    def state_path(self) -> Path:
        """Expanded state directory."""
        return self.state_dir.expanduser()
