"""Password generation strategy injected into the Role reconciler."""

from __future__ import annotations

import secrets
import string
from typing import Protocol

from src import settings

_ALPHABET = string.ascii_letters + string.digits


class PasswordGenerator(Protocol):
    """Port for anything that can produce a fresh role password."""

    def generate(self) -> str: ...


class RandomPasswordGenerator:
    """Alphanumeric passwords drawn from the OS CSPRNG."""

    def __init__(self, length: int = settings.PASSWORD_LENGTH) -> None:
        if length < 1:
            raise ValueError("Password length must be positive.")
        self.length = length

    def generate(self) -> str:
        return "".join(secrets.choice(_ALPHABET) for _ in range(self.length))
