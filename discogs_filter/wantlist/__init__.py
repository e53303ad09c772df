from .notes import parse, serialize, update_notes
from .sync import SyncReport, WantlistSync

__all__ = ["SyncReport", "WantlistSync", "parse", "serialize", "update_notes"]
