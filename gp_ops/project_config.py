from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from dataclasses import dataclass


@dataclass
class ConnectionConfig:
    host: str = "localhost"
    port: int = 5432
    user: str = "gpadmin"
    password: str = ""
    database: str = "postgres"

    def to_connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments accepted by ``psycopg2.connect``."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "dbname": self.database,
        }


@dataclass
class ProjectConfig:
    connection: ConnectionConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create ProjectConfig from dictionary loaded from YAML.

        Values missing from the ``connection`` section fall back to the
        ``GREENPLUM_*`` environment variables, then to the defaults.
        """
        connection_data = data.get('connection') or {}
        defaults = ConnectionConfig()

        def setting(key: str, env_var: str, default: Any) -> Any:
            # A key left empty in YAML loads as None and counts as missing
            value = connection_data.get(key)
            if value is None:
                value = os.getenv(env_var, default)
            return value

        connection = ConnectionConfig(
            host=setting('host', 'GREENPLUM_HOST', defaults.host),
            port=int(setting('port', 'GREENPLUM_PORT', defaults.port)),
            user=setting('user', 'GREENPLUM_USER', defaults.user),
            password=setting('password', 'GREENPLUM_PASSWORD', defaults.password),
            database=setting('database', 'GREENPLUM_DATABASE', defaults.database),
        )
        return cls(connection=connection)


def load_project_config(config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load project configuration from YAML.

    The search order is:
    1. The ``config_dir`` parameter if provided.
    2. The path specified in the ``GP_OPS_CONFIG`` environment variable.
    3. ``project.yml`` in the current working directory.
    Returns an empty dictionary if no configuration file is found.
    """
    search_paths = []
    if config_dir:
        search_paths.append(Path(config_dir))
    env_path = os.getenv("GP_OPS_CONFIG")
    if env_path:
        search_paths.append(Path(env_path))
    search_paths.append(Path.cwd())

    for path in search_paths:
        config_file = path
        if config_file.is_dir():
            config_file = config_file / "project.yml"
        if config_file.is_file():
            with config_file.open("r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
    return {}


def load_project_config_object(config_dir: Optional[Path] = None) -> ProjectConfig:
    """Load project configuration as a typed Python object."""
    config_dict = load_project_config(config_dir)
    return ProjectConfig.from_dict(config_dict)
