"""
Centralized settings and path configuration for the remit tool.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def get_package_data_dir() -> Path:
    """Directory holding the bundled pool/provider CSV tables."""
    return Path(__file__).resolve().parent.parent / 'data'


def get_ui_script() -> Path:
    """Path of the Streamlit app launched by scripts/run_app.py."""
    return Path(__file__).resolve().parent.parent / 'ui' / 'app_streamlit.py'


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Fee schedule tables
    pools_csv: Path
    providers_csv: Path
    route_hops_csv: Path

    # Rate source
    base_rate: float = 1380.0
    rate_spread: float = 10.0
    live_rates: bool = False
    rate_seed: Optional[int] = None

    # API server
    api_host: str = '0.0.0.0'
    api_port: int = 3001

    # Streamlit UI
    ui_port: int = 8501

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_dir = Path(os.environ['REMIT_DATA_DIR']) if os.environ.get('REMIT_DATA_DIR') \
            else get_package_data_dir()

        seed = os.environ.get('REMIT_RATE_SEED')

        return cls(
            project_root=root,
            data_dir=data_dir,
            pools_csv=data_dir / 'pools.csv',
            providers_csv=data_dir / 'providers.csv',
            route_hops_csv=data_dir / 'route_hops.csv',
            base_rate=float(os.environ.get('REMIT_BASE_RATE', 1380.0)),
            rate_spread=float(os.environ.get('REMIT_RATE_SPREAD', 10.0)),
            live_rates=_env_bool('REMIT_LIVE_RATES', False),
            rate_seed=int(seed) if seed else None,
            api_host=os.environ.get('HOST', '0.0.0.0'),
            api_port=int(os.environ.get('PORT', 3001)),
            ui_port=int(os.environ.get('REMIT_UI_PORT', 8501)),
            log_level=os.environ.get('REMIT_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
