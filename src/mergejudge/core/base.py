"""Base classes for configuration and state models.

Kept apart from config.py so that log.py can build its sink models on
them without a circular import.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Anything holding a resource released by close()."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable fields on close().

    Usable as a context manager. A failure closing one child is
    reported on stderr and the remaining children are still closed,
    so State -> Config -> Logger -> Sink shuts down as a chain.
    """

    def close(self):
        """Close every field that implements Closeable."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None or not isinstance(child, Closeable):
                continue
            try:
                child.close()
            except Exception as e:
                print(
                    f"Warning: Error closing {field_name}: {e}",
                    file=sys.stderr,
                )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for sections loaded from YAML/env/CLI."""


class BaseState(BaseCloseable):
    """Marker base for sections mutated while a workflow runs."""


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
