from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from auditcord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_AUDIT_PAGE_SIZE = 5
DEFAULT_WEBHOOK_NAME = "Auditcord Logger"
DEFAULT_GHOST_PING_THRESHOLD_SECONDS = 60
DEFAULT_KICK_ATTRIBUTION_WINDOW_SECONDS = 30
DEFAULT_STRIKE_EXPIRY_MONTHS = 3


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed shortcuts with defaults, so a missing or partial file never stops
    the bot from starting.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns an empty dict when the file is missing or malformed.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def audit_page_size(self) -> int:
        """Number of audit-log entries requested per correlation."""
        return int(self._section("audit").get("page_size", DEFAULT_AUDIT_PAGE_SIZE))

    @property
    def audit_per_category_cache(self) -> bool:
        """Whether the last attributed audit entry is remembered per (guild, category).

        ``False`` keeps a single slot per guild shared by every category.
        """
        return bool(self._section("audit").get("per_category_cache", True))

    @property
    def webhook_name(self) -> str:
        return str(self._section("logger").get("webhook_name", DEFAULT_WEBHOOK_NAME))

    @property
    def ghost_ping_threshold_seconds(self) -> int:
        """Default ghost ping window for guilds that have not configured one."""
        return int(self._section("logger").get("ghost_ping_threshold_seconds", DEFAULT_GHOST_PING_THRESHOLD_SECONDS))

    @property
    def kick_attribution_window_seconds(self) -> int:
        """Maximum age of a kick audit entry that may explain a member leaving."""
        return int(self._section("logger").get("kick_attribution_window_seconds", DEFAULT_KICK_ATTRIBUTION_WINDOW_SECONDS))

    @property
    def strike_expiry_months(self) -> int:
        return int(self._section("strikes").get("default_expiry_months", DEFAULT_STRIKE_EXPIRY_MONTHS))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
