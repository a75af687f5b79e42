"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module provides helper classes and functions for the firebird_datareader package.
"""

import re
import threading
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Unbuilt:
    """Tag for lazily derived state that has not been computed yet."""


@dataclass(frozen=True)
class Built(Generic[T]):
    """Tag for lazily derived state that has been computed once."""

    value: T


# Lazily derived state is either not yet built or built exactly once
Lazy = Union[Unbuilt, Built[T]]

UNBUILT = Unbuilt()


def sanitize_user_input(user_input: str, max_length: int = 50) -> str:
    """
    Sanitize user input for safe logging by removing control characters,
    limiting length, and ensuring safe characters only.

    Args:
        user_input (str): The user input to sanitize.
        max_length (int): Maximum length of the sanitized output.

    Returns:
        str: The sanitized string safe for logging.
    """
    if not isinstance(user_input, str):
        return "<non-string>"

    # Allow alphanumeric, dash, underscore, dot, dollar and space (common in column names)
    sanitized = re.sub(r"[^\w\-\.\$ ]", "", user_input)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."

    return sanitized if sanitized else "<invalid>"


class Settings:
    """
    Settings class for firebird_datareader package configuration.

    This class holds global settings that affect the behavior of readers,
    including lowercase column names and native UUID handling.
    """

    def __init__(self) -> None:
        self.lowercase: bool = False
        self.native_uuid: bool = True


# Global settings instance
_settings: Settings = Settings()
_settings_lock: threading.Lock = threading.Lock()


def get_settings() -> Settings:
    """Return the global settings object"""
    with _settings_lock:
        return _settings


def snapshot_settings() -> Settings:
    """Return a copy of the global settings, taken under the settings lock."""
    snapshot = Settings()
    with _settings_lock:
        snapshot.lowercase = _settings.lowercase
        snapshot.native_uuid = _settings.native_uuid
    return snapshot
