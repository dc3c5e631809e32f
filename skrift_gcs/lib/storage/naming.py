"""Filename strategies used to pick the stored name of an upload.

A strategy is anything with a ``generate(record, attempt)`` method, or a
plain function with the same signature. Either may be sync or async; the
adapter always awaits the result.

Usage:
    adapter = GCloudStorageAdapter({"bucket": "media", "generate_filename": "original"})

    async def dated(record, attempt):
        return f"{date.today():%Y/%m}/{random_filename(record, attempt)}"

    adapter = GCloudStorageAdapter({"bucket": "media", "generate_filename": dated})
"""

from __future__ import annotations

import importlib
import inspect
import posixpath
import secrets
from collections.abc import Callable
from typing import Any

from skrift_gcs.lib.exceptions import ConfigurationError
from skrift_gcs.lib.storage.base import FileRecord, FilenameStrategy


def _extension(record: FileRecord) -> str:
    """Return the lower-cased extension of the upload, including the dot."""
    source = record.originalname or record.path
    return posixpath.splitext(posixpath.basename(source))[1].lower()


def random_filename(record: FileRecord, attempt: int) -> str:
    """32 random hex characters followed by the upload's extension."""
    return secrets.token_hex(16) + _extension(record)


def original_filename(record: FileRecord, attempt: int) -> str:
    """The client-side filename, suffixed with ``-<attempt>`` on retries."""
    name = posixpath.basename(record.originalname or record.path)
    if not name:
        raise ValueError("Record has no original filename")
    if attempt == 0:
        return name
    stem, ext = posixpath.splitext(name)
    return f"{stem}-{attempt}{ext}"


NAME_FUNCTIONS: dict[str, Callable[[FileRecord, int], str]] = {
    "random": random_filename,
    "original": original_filename,
}


class CallableStrategy:
    """Adapt a sync or async ``(record, attempt)`` function to a strategy."""

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func

    async def generate(self, record: FileRecord, attempt: int) -> str:
        result = self.func(record, attempt)
        if inspect.isawaitable(result):
            return await result
        return result

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"CallableStrategy({name})"


def resolve_strategy(spec: Any) -> FilenameStrategy:
    """Turn a configured ``generate_filename`` value into a strategy.

    Accepts a strategy object, a function, the name of a built-in
    (``random``, ``original``), or a ``module:function`` import path. A class
    named by an import path is instantiated without arguments.
    """
    if isinstance(spec, FilenameStrategy):
        return spec

    if callable(spec):
        return CallableStrategy(spec)

    if isinstance(spec, str):
        if spec in NAME_FUNCTIONS:
            return CallableStrategy(NAME_FUNCTIONS[spec])

        # Dynamic import: "module:function"
        if ":" in spec:
            parts = spec.split(":")
            if len(parts) != 2:
                raise ConfigurationError(
                    f"Invalid filename strategy '{spec}': must contain exactly one colon"
                )
            module_path, attr = parts
            try:
                module = importlib.import_module(module_path)
                target = getattr(module, attr)
            except (ImportError, AttributeError) as exc:
                raise ConfigurationError(
                    f"Could not load filename strategy '{spec}': {exc}"
                ) from exc
            if isinstance(target, type):
                target = target()
            return resolve_strategy(target)

    raise ConfigurationError(
        f"Unknown filename strategy {spec!r}. "
        f"Use one of {sorted(NAME_FUNCTIONS)}, 'module:function', or a callable."
    )
