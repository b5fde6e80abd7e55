"""Persistence of the signed-in session across restarts."""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import pydantic
import structlog

from inventory.models.user import Session

logger = structlog.get_logger(__name__)


class SessionStore:
    """Keeps the token and user descriptor in a single JSON document.

    Token and user are always written together: the document is written
    to a temporary file beside the target and moved into place, so a
    reader never sees one without the other.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Session]:
        """Read the persisted session.

        Returns:
            The stored Session, or None when nothing usable is stored
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("session_read_failed", path=str(self.path), error=str(e))
            return None

        try:
            return Session.model_validate(json.loads(raw))
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            logger.warning("session_corrupt", path=str(self.path), error=str(e))
            return None

    def save(self, session: Session) -> None:
        """Persist the session atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = session.model_dump_json()

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(document)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("session_saved", username=session.user.username)

    def clear(self) -> None:
        """Remove the persisted session; safe when nothing is stored."""
        self.path.unlink(missing_ok=True)
