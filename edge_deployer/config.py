#edge_deployer\config.py

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class DeployerSettings(BaseSettings):
    """Appliance configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_DEPLOYER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Per-application limits
    max_cores: int = 8
    max_app_mem: int = 4096  # MiB

    # Image staging
    apps_dir: Path = Path("/var/lib/appliance/applications")
    download_timeout: float = 600.0  # seconds

    # Only stage and tag images, an external orchestrator runs them
    image_only_mode: bool = False

    # Hypervisor
    libvirt_uri: str = "qemu:///system"
    qemu_emulator: str = "/usr/local/bin/qemu-system-x86_64"
    vhost_socket: str = "/var/lib/appliance/ovs/vhost-user-1"
    vm_start_on_deploy: bool = False

    # Metadata persistence
    database_url: str = ""
    echo_sql: bool = False

    # Service
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    @property
    def metadata_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.apps_dir / 'metadata.db'}"


settings = DeployerSettings()
