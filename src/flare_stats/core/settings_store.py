"""JSON file persistence for user settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from flare_stats.domain.exceptions import SettingsStoreError
from flare_stats.domain.interfaces import ISettingsStore
from flare_stats.domain.models import Settings


class JsonSettingsStore(ISettingsStore):
    """Reads and writes ``Settings`` as a pretty-printed JSON document."""

    def __init__(
        self, path: str | Path, *, logger: Optional[logging.Logger] = None
    ) -> None:
        self._path = Path(path).expanduser()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        if not self._path.exists():
            return Settings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Settings.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            raise SettingsStoreError(
                "Unable to read settings", context={"path": str(self._path)}
            ) from exc

    def save(self, settings: Settings) -> None:
        staging = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            staging.write_text(
                json.dumps(settings.model_dump(mode="json"), indent=2),
                encoding="utf-8",
            )
            staging.replace(self._path)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            raise SettingsStoreError(
                "Unable to write settings", context={"path": str(self._path)}
            ) from exc
        self.logger.info("settings_saved", extra={"path": str(self._path)})
