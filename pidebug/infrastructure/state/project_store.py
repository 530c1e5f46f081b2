"""
Per-project remote debugging settings
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ...core.constants import DEFAULT_CONNECTION_TARGET, DEFAULT_TARGET_GROUP, PROJECTS_FILE_NAME
from ...core.exceptions import StoreError
from ...domain.readiness import WebServer


@dataclass
class ProjectSettings:
    """
    Attributes:
        enable_remote_debugging: Project deploys to a device
        remote_debug_target: Connection name; ``None`` or ``"default"`` means the default connection
        target_group: Group given ownership of uploaded programs
        use_reverse_proxy: Web app sits behind a reverse proxy on the device
    """
    enable_remote_debugging: bool = False
    remote_debug_target: Optional[str] = None
    target_group: str = DEFAULT_TARGET_GROUP
    use_reverse_proxy: bool = False

    @property
    def uses_default_connection(self) -> bool:
        return not self.remote_debug_target or self.remote_debug_target == DEFAULT_CONNECTION_TARGET

    @property
    def web_server(self) -> WebServer:
        return WebServer.REVERSE_PROXY if self.use_reverse_proxy else WebServer.KESTREL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "enable_remote_debugging": self.enable_remote_debugging,
            "remote_debug_target": self.remote_debug_target,
            "target_group": self.target_group,
            "use_reverse_proxy": self.use_reverse_proxy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectSettings":
        """Create from dictionary"""
        return cls(
            enable_remote_debugging=bool(data.get("enable_remote_debugging", False)),
            remote_debug_target=data.get("remote_debug_target"),
            target_group=data.get("target_group") or DEFAULT_TARGET_GROUP,
            use_reverse_proxy=bool(data.get("use_reverse_proxy", False)),
        )


class ProjectSettingsStore:
    """JSON object mapping project id to ProjectSettings"""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read project settings from {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Project settings file {self.path} must contain a JSON object")
        return data

    def get(self, project_id: str) -> ProjectSettings:
        """Settings for a project, defaults when it has none"""
        data = self._read().get(project_id)
        if not isinstance(data, dict):
            return ProjectSettings()
        return ProjectSettings.from_dict(data)

    def set(self, project_id: str, settings: ProjectSettings) -> None:
        data = self._read()
        data[project_id] = settings.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")

    def remove(self, project_id: str) -> bool:
        data = self._read()
        if project_id not in data:
            return False
        del data[project_id]
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        return True
