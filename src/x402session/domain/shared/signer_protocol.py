"""Signing capability handed to the session store.

The store and token codec only ever see this callable. Key material stays
inside whatever adapter implements it.
"""

from __future__ import annotations

from typing import Awaitable, Callable

# Sign this exact string with the agent's key and return the signature text.
SignMessage = Callable[[str], Awaitable[str]]
