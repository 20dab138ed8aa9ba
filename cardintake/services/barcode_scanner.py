"""
Keyboard-wedge barcode scanner detection.

Scanners type a whole barcode in a burst and finish with Enter. Keystrokes
more than `max_delay` seconds apart are a human typing, and reset the buffer.
"""

from dataclasses import dataclass

MIN_BARCODE_LENGTH = 6
MAX_KEY_DELAY_SECONDS = 0.2


@dataclass
class ScanBuffer:
    """
    Accumulates keystrokes until a scan completes.

    Feed it every key with a monotonic timestamp in seconds:

        buffer = ScanBuffer()
        for key, now in events:
            barcode = buffer.feed(key, now)
            if barcode:
                handle_scan(barcode)
    """

    min_length: int = MIN_BARCODE_LENGTH
    max_delay: float = MAX_KEY_DELAY_SECONDS
    buffer: str = ""
    last_key_time: float | None = None

    def feed(self, key: str, now: float) -> str | None:
        """
        Feed one key press.

        Args:
            key: Key name; single characters are buffered, "Enter" completes
            now: Time of the key press in seconds

        Returns:
            The scanned barcode when Enter completes a long enough burst, else None
        """
        if self.last_key_time is not None and now - self.last_key_time > self.max_delay:
            self.buffer = ""
        self.last_key_time = now

        if key == "Enter":
            barcode = self.buffer.strip()
            self.buffer = ""
            return barcode if len(barcode) >= self.min_length else None

        # Modifier and navigation keys have multi-character names
        if len(key) == 1:
            self.buffer += key
        return None

    def reset(self) -> None:
        self.buffer = ""
        self.last_key_time = None
