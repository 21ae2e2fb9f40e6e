"""CLI package for the equipment monitor service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` stays a module attribute rather than the Typer instance so tests
# can patch names on it.

__all__ = []
