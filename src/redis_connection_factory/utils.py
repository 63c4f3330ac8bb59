"""
Resolving client classes given either as class objects or as dotted paths.
"""

import importlib


class DynamicImporter:
    """Turns ``"package.module.Name"`` strings into the objects they name."""

    @staticmethod
    def load_class(class_path: str) -> type:
        """
        Import the module part of ``class_path`` and return its last segment.

        ``"fakeredis.FakeRedis"`` yields ``fakeredis.FakeRedis``. A bare name
        without a module raises ``ValueError``; a missing module or name
        propagates ``ImportError`` / ``AttributeError`` from the import.
        """
        module_path, _, class_name = class_path.rpartition(".")
        if not module_path or not class_name:
            raise ValueError(f"Expected a dotted class path, got {class_path!r}")
        return getattr(importlib.import_module(module_path), class_name)

    @staticmethod
    def resolve_class(value: str | type) -> type:
        """Return ``value`` itself if it is a class, otherwise import it by path."""
        if isinstance(value, str):
            return DynamicImporter.load_class(value)
        return value
