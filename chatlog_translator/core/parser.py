import re
from dataclasses import dataclass
from typing import Optional

# Chat log files written by the game addon: chat1.txt, chat0042.txt, ...
LOG_NAME_PATTERN = re.compile(r'chat\d+\.txt')


def is_log_file_name(name: str) -> bool:
    """True if name is exactly a chat log file name (no prefix, no suffix)."""
    return LOG_NAME_PATTERN.fullmatch(name) is not None


@dataclass(frozen=True)
class ChatRecord:
    """One chat line from the addon log."""
    timestamp: str     # As written by the addon, e.g. "12:00:05"
    speaker: str       # Character name
    text: str          # Message to translate


class LineParser:
    """
    Parses individual lines from addon chat logs.
    Lines are tab-delimited: timestamp, speaker, text[, extra fields...].
    """
    FIELD_SEPARATOR = '\t'
    MIN_FIELDS = 3

    def parse(self, line: str) -> Optional[ChatRecord]:
        """Parse a single line. Returns None if the line has fewer than 3 fields."""
        parts = line.rstrip('\r\n').split(self.FIELD_SEPARATOR)
        if len(parts) < self.MIN_FIELDS:
            # Partial writes and blank lines end up here
            return None

        return ChatRecord(timestamp=parts[0], speaker=parts[1], text=parts[2])
