"""
File: clickatell_sms/params.py

Project: Clickatell SMS client

Purpose:
Plain data carriers describing one API call:
- ParameterSet: ordered key/value slots (wire order == slot order)
- MsisdnList: destination addresses for "send message"

Design rules:
- Call sites know their exact field count, so slots are allocated upfront
  and filled by index; there is no insert/remove
- Created per call, consumed by the request builder, then destroyed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from clickatell_sms.buffer import SmsBuffer, Source
from clickatell_sms.diagnostics import get_logger
from clickatell_sms.encoding import url_encode

logger = get_logger("params")


@dataclass
class KeyValue:
    key: Optional[SmsBuffer] = None
    value: Optional[SmsBuffer] = None

    @property
    def filled(self) -> bool:
        return (
            self.key is not None
            and self.key.valid
            and self.value is not None
            and self.value.valid
        )


class ParameterSet:
    def __init__(self, size: int) -> None:
        self._slots: Optional[List[KeyValue]] = [KeyValue() for _ in range(size)]

    @classmethod
    def create(cls, size: int) -> Optional["ParameterSet"]:
        if size < 1:
            logger.error("ParameterSet.create: invalid slot count %d", size)
            return None
        return cls(size)

    # ---------------------------------------------------------
    # POPULATION
    # ---------------------------------------------------------
    def set(self, index: int, key: str, value: Union[SmsBuffer, Source, None]) -> bool:
        """
        Fill slot `index`. Key and value are copied; the caller keeps
        ownership of what it passed in.
        """
        if self._slots is None or not 0 <= index < len(self._slots):
            logger.error("ParameterSet.set: invalid slot %r", index)
            return False

        if isinstance(value, SmsBuffer):
            value_buf = value.duplicate()
        else:
            value_buf = SmsBuffer.create(value)

        key_buf = SmsBuffer.create(key)
        if key_buf is None or value_buf is None:
            logger.error("ParameterSet.set: empty key or value for slot %d", index)
            return False

        self._slots[index] = KeyValue(key=key_buf, value=value_buf)
        return True

    def encode_values(self) -> bool:
        """
        Percent-encode every value in place (HTTP API only).
        """
        if self._slots is None:
            return False
        return all([url_encode(slot.value) for slot in self._slots if slot.value is not None])

    # ---------------------------------------------------------
    # ACCESS
    # ---------------------------------------------------------
    @property
    def valid(self) -> bool:
        return self._slots is not None

    @property
    def filled(self) -> bool:
        return self._slots is not None and all(slot.filled for slot in self._slots)

    def __len__(self) -> int:
        return 0 if self._slots is None else len(self._slots)

    def __iter__(self) -> Iterator[KeyValue]:
        return iter(self._slots or [])

    def __getitem__(self, index: int) -> KeyValue:
        if self._slots is None:
            raise IndexError("parameter set destroyed")
        return self._slots[index]

    def items(self) -> List[Tuple[str, str]]:
        return [(slot.key.text, slot.value.text) for slot in self if slot.filled]

    def destroy(self) -> None:
        if self._slots is None:
            return
        for slot in self._slots:
            if slot.key is not None:
                slot.key.destroy()
            if slot.value is not None:
                slot.value.destroy()
        self._slots = None


class MsisdnList:
    """
    Destination addresses ("to") for a send message call.
    """

    def __init__(self, dests: List[SmsBuffer]) -> None:
        self._dests: Optional[List[SmsBuffer]] = dests

    @classmethod
    def create(cls, addresses: Optional[Sequence[str]]) -> Optional["MsisdnList"]:
        if not addresses or isinstance(addresses, (str, bytes)):
            logger.error("MsisdnList.create: at least one destination address required")
            return None

        dests = []
        for address in addresses:
            buf = SmsBuffer.create(address)
            if buf is None:
                logger.error("MsisdnList.create: empty destination address")
                return None
            dests.append(buf)

        return cls(dests)

    @property
    def valid(self) -> bool:
        return bool(self._dests) and all(d.valid for d in self._dests)

    @property
    def addresses(self) -> List[str]:
        return [d.text for d in self._dests or []]

    def __len__(self) -> int:
        return 0 if self._dests is None else len(self._dests)

    def __iter__(self) -> Iterator[SmsBuffer]:
        return iter(self._dests or [])

    def destroy(self) -> None:
        if self._dests is None:
            return
        for dest in self._dests:
            dest.destroy()
        self._dests = None


def destroy_set(params: Optional[ParameterSet]) -> None:
    if params is None:
        return
    params.destroy()
