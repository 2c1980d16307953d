"""
File: clickatell_sms/errors.py

Project: Clickatell SMS client

Purpose:
Library exception type.
Raised inside the request pipeline only; public handle operations
catch it and report an absent result instead.
"""

from __future__ import annotations


class ClickatellError(RuntimeError):
    pass
