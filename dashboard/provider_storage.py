"""Persisted provider session - the logged-in clinic survives restarts.

Stored as a small JSON file (settings.provider_storage_path) holding the
provider row and the time it was saved.
"""

import json
from datetime import datetime
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from .config import settings
from .schemas.clients import Provider
from .utils.timestamps import utcnow


class ProviderStorage:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.provider_storage_path).expanduser()

    def save(self, provider: Provider) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"info": provider.model_dump(mode="json"), "saved_at": utcnow().isoformat()}
        self.path.write_text(json.dumps(payload, indent=2))

    def load(self) -> Provider | None:
        """Saved provider, or None when nothing usable is stored."""
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text())
            return Provider.model_validate(payload["info"])
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning("Ignoring unreadable provider storage {}: {}", self.path, e)
            return None

    def saved_at(self) -> datetime | None:
        if not self.path.exists():
            return None
        try:
            return datetime.fromisoformat(json.loads(self.path.read_text())["saved_at"])
        except (OSError, ValueError, KeyError, TypeError):
            return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
