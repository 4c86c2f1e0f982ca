"""JSON Lines outbox sink."""

import json
import threading
from pathlib import Path

from pawn_engine.exceptions import NotificationError
from pawn_engine.models import Notification
from pawn_engine.notifications.base import NotificationSink
from pawn_engine.notifications.serialization import to_dict


class JsonLinesNotificationSink(NotificationSink):
    """Append notifications to an outbox file for a separate dispatcher."""

    def __init__(self, output_dir: str | Path, filename: str = "notifications.jsonl") -> None:
        """Initialize JSON Lines sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory holding the outbox file.
        filename : str
            Outbox file name.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.file_path = self.output_dir / filename
        self.count = 0
        self._lock = threading.Lock()

    def publish(self, notification: Notification) -> None:
        line = json.dumps(to_dict(notification), ensure_ascii=False, default=str)
        with self._lock:
            try:
                with open(self.file_path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                raise NotificationError(f"Failed to write outbox {self.file_path}: {e}") from e
            self.count += 1
