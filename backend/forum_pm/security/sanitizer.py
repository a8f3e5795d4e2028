"""
Input sanitization for private message form data.

Rejects:
- Null bytes in strings
- Control characters (except newlines/tabs in the body)
- Embedded <script>, <iframe> and <embed> tags

Normalizes whitespace in titles, bodies and recipient references.
"""
import re
from typing import Optional

from forum_pm.core.config import settings


class InputSanitizer:
    """Validates and sanitizes user input."""

    NULL_BYTE_PATTERN = re.compile(r'\x00')
    CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f]')  # Except \t=0x09, \n=0x0a, \r=0x0d
    LINE_BREAK_PATTERN = re.compile(r'[\r\n]')
    SCRIPT_PATTERN = re.compile(r"<\s*(script|iframe|embed)\b", re.IGNORECASE)

    @staticmethod
    def sanitize_string(value: str, max_length: Optional[int] = None, allow_newlines: bool = False) -> str:
        """
        Sanitize string input.

        Args:
            value: Input string
            max_length: Optional max length
            allow_newlines: Allow \\n and \\r characters (for body text)

        Returns:
            The input string, unchanged

        Raises:
            ValueError: If input contains dangerous patterns
        """
        if not isinstance(value, str):
            raise ValueError("Input must be string")

        if InputSanitizer.NULL_BYTE_PATTERN.search(value):
            raise ValueError("Null bytes not allowed")

        if InputSanitizer.CONTROL_CHAR_PATTERN.search(value):
            raise ValueError("Control characters not allowed")

        if not allow_newlines and InputSanitizer.LINE_BREAK_PATTERN.search(value):
            raise ValueError("Line breaks not allowed")

        if InputSanitizer.SCRIPT_PATTERN.search(value):
            raise ValueError("Script, iframe and embed tags not allowed")

        if max_length and len(value) > max_length:
            raise ValueError(f"Input exceeds max length of {max_length}")

        return value

    @staticmethod
    def sanitize_title(value: str) -> str:
        """Sanitize message title (single line, trimmed)."""
        sanitized = InputSanitizer.sanitize_string(value, max_length=settings.title_max_length)
        return sanitized.strip()

    @staticmethod
    def sanitize_body(value: str) -> str:
        """Sanitize message body (allow newlines)."""
        sanitized = InputSanitizer.sanitize_string(
            value, max_length=settings.body_max_length, allow_newlines=True
        )

        # Normalize line endings and drop trailing whitespace, keep the structure
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')
        lines = [line.rstrip() for line in sanitized.split('\n')]
        return '\n'.join(lines)

    @staticmethod
    def normalize_recipient(value: Optional[str]) -> str:
        """
        Normalize a recipient reference (username or email).

        Drafts may hold a mistyped recipient, so anything printable passes;
        whether the account exists is decided at send time.
        """
        if value is None:
            return ''

        return InputSanitizer.sanitize_string(value, max_length=255).strip().lower()
