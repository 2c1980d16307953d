"""
File: clickatell_sms/buffer.py

Project: Clickatell SMS client

Purpose:
Growable byte buffer used to assemble every request the library sends.

Rules:
- Text is stored as Latin-1 bytes (the only text encoding the gateway
  calls in this library support)
- A buffer created from nothing does not exist: create() returns None
- A destroyed buffer is invalid; operations on it are reported and ignored
- Mutations never raise; they report on the diagnostic channel and
  return False, leaving the buffer unchanged
"""

from __future__ import annotations

from typing import Optional, Union

from clickatell_sms.diagnostics import get_logger

logger = get_logger("buffer")

TEXT_ENCODING = "latin-1"

Source = Union[str, bytes, bytearray]


def _to_bytes(value: Source) -> bytes:
    if isinstance(value, str):
        return value.encode(TEXT_ENCODING)
    return bytes(value)


class SmsBuffer:
    def __init__(self, data: bytes) -> None:
        self._data: Optional[bytearray] = bytearray(data)

    # ---------------------------------------------------------
    # CONSTRUCTION
    # ---------------------------------------------------------
    @classmethod
    def create(cls, initial: Optional[Source]) -> Optional["SmsBuffer"]:
        """
        New buffer holding a copy of `initial`.
        Returns None when `initial` is missing, empty or not Latin-1 text.
        """
        if initial is None:
            return None

        try:
            raw = _to_bytes(initial)
        except UnicodeEncodeError:
            logger.error("SmsBuffer.create: text is not Latin-1 encodable")
            return None

        if not raw:
            return None
        return cls(raw)

    def duplicate(self) -> Optional["SmsBuffer"]:
        if not self.valid or not self._data:
            logger.error("SmsBuffer.duplicate: invalid parameter")
            return None
        return SmsBuffer(bytes(self._data))

    def destroy(self) -> None:
        self._data = None

    # ---------------------------------------------------------
    # ACCESSORS
    # ---------------------------------------------------------
    @property
    def valid(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> bytes:
        if self._data is None:
            return b""
        return bytes(self._data)

    @property
    def text(self) -> str:
        return self.data.decode(TEXT_ENCODING)

    def __len__(self) -> int:
        return 0 if self._data is None else len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SmsBuffer):
            return NotImplemented
        return self.valid == other.valid and self.data == other.data

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        if self._data is None:
            return "SmsBuffer(<destroyed>)"
        return f"SmsBuffer({self.text!r})"

    def __str__(self) -> str:
        return self.text

    # ---------------------------------------------------------
    # MUTATION
    # ---------------------------------------------------------
    def append(
        self,
        source: Optional["SmsBuffer"] = None,
        raw: Optional[Source] = None,
    ) -> bool:
        """
        Append another buffer, or raw text when no buffer is given.
        The chosen source must be valid and non-empty.
        """
        if (
            not self.valid
            or (source is None and raw is None)
            or (source is not None and (not source.valid or len(source) < 1))
            or (source is None and raw is not None and len(raw) < 1)
        ):
            logger.error("SmsBuffer.append: invalid parameter")
            return False

        if source is not None:
            chunk = source.data
        else:
            try:
                chunk = _to_bytes(raw)
            except UnicodeEncodeError:
                logger.error("SmsBuffer.append: text is not Latin-1 encodable")
                return False

        return self._grow(chunk, "append")

    def append_formatted(self, fmt: str, *args: object) -> bool:
        """
        Append `fmt % args`. The formatted text is produced in full before
        the buffer grows, so a formatting error leaves the buffer untouched.
        """
        if not self.valid or fmt is None:
            logger.error("SmsBuffer.append_formatted: invalid parameter")
            return False

        try:
            chunk = _to_bytes(fmt % args if args else fmt)
        except (TypeError, ValueError, UnicodeEncodeError) as exc:
            logger.error("SmsBuffer.append_formatted: cannot format %r (%s)", fmt, exc)
            return False

        return self._grow(chunk, "append_formatted")

    def trim_prefix(self, length: int) -> bool:
        """
        Remove the first `length` bytes.
        Trimming everything (or more) destroys the buffer; callers must check
        `valid` before using it again.
        """
        if not self.valid or length <= 0:
            logger.error("SmsBuffer.trim_prefix: invalid parameter")
            return False

        if len(self._data) - length < 1:
            self.destroy()
            return True

        del self._data[:length]
        return True

    def replace(self, data: bytes) -> bool:
        """
        Swap the contents for `data` in one step (used by in-place encoders).
        """
        if not self.valid or not data:
            logger.error("SmsBuffer.replace: invalid parameter")
            return False
        self._data = bytearray(data)
        return True

    def _grow(self, chunk: bytes, op: str) -> bool:
        try:
            self._data.extend(chunk)
        except MemoryError:
            logger.error("SmsBuffer.%s: failed to allocate memory for appended string", op)
            return False
        return True

    # ---------------------------------------------------------
    # SEARCH
    # ---------------------------------------------------------
    def find(self, needle: Optional[Source], start: int = 0) -> int:
        """
        Index of the first occurrence of `needle` at or after `start`, else -1.
        """
        if not self.valid or needle is None or start < 0:
            logger.error("SmsBuffer.find: invalid parameter")
            return -1

        try:
            raw = _to_bytes(needle)
        except UnicodeEncodeError:
            return -1

        if start > len(self._data) or len(self._data) - start < len(raw):
            logger.error("SmsBuffer.find: invalid parameter")
            return -1

        return self._data.find(raw, start)


# -------------------------------------------------------------------
# None-safe helpers (handles may legitimately be missing)
# -------------------------------------------------------------------
def duplicate(buf: Optional[SmsBuffer]) -> Optional[SmsBuffer]:
    if buf is None:
        logger.error("duplicate: invalid parameter")
        return None
    return buf.duplicate()


def destroy(buf: Optional[SmsBuffer]) -> None:
    if buf is None:
        return
    buf.destroy()
