# topmark:header:start
#
#   project      : PipeMerge
#   file         : introspection.py
#   file_relpath : src/pipemerge/utils/introspection.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Naming and dynamic-import helpers for steps and resolvers.

Import specifications use the ``"package.module:Attribute"`` form (the dotted
``"package.module.Attribute"`` form is accepted as well). A resolved class is
instantiated without arguments; any other object is returned as-is.
"""

from __future__ import annotations

import importlib
from inspect import getmodule, isclass
from typing import Any

from pipemerge.config.logging import PipemergeLogger, get_logger
from pipemerge.core.errors import PipelineConfigError

logger: PipemergeLogger = get_logger(__name__)


def qualified_name(obj: Any) -> str:
    """Return ``module.QualifiedName`` for a class, function, or instance.

    Instances are described by their class. Falls back to
    ``inspect.getmodule`` when ``__module__`` is missing.

    Args:
        obj (Any): The object to describe.

    Returns:
        str: A string like ``"my_app.steps.EmailFormatterStep"``.
    """
    named: bool = isclass(obj) or (callable(obj) and hasattr(obj, "__qualname__"))
    target: Any = obj if named else type(obj)
    mod_name: str | None = getattr(target, "__module__", None)
    call_name: str = getattr(target, "__qualname__", None) or type(target).__name__

    if not mod_name:
        mod = getmodule(target)
        if mod is not None and getattr(mod, "__name__", None):
            mod_name = mod.__name__

    return f"{mod_name}.{call_name}" if mod_name else call_name


def import_object(spec: str) -> Any:
    """Import the attribute named by ``spec``.

    Args:
        spec (str): ``"module:attr"`` (preferred) or ``"module.attr"``; nested
            attributes may be dotted (``"module:Outer.Inner"``).

    Returns:
        Any: The imported attribute.

    Raises:
        PipelineConfigError: If the module cannot be imported or the attribute
            does not exist.
    """
    if ":" in spec:
        module_name, _, attr_path = spec.partition(":")
    else:
        module_name, _, attr_path = spec.rpartition(".")
    if not module_name or not attr_path:
        raise PipelineConfigError(f"Invalid import spec {spec!r} (expected 'module:Attribute')")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise PipelineConfigError(f"Cannot import module {module_name!r} for {spec!r}: {exc}") from exc

    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise PipelineConfigError(f"{spec!r}: {module_name!r} has no attribute {attr_path!r}") from exc
    logger.debug("Imported %s", spec)
    return target


def load_instance(spec: str) -> Any:
    """Import ``spec`` and instantiate it when it names a class.

    Raises:
        PipelineConfigError: If the import fails or the class cannot be
            instantiated without arguments.
    """
    obj: Any = import_object(spec)
    if isclass(obj):
        try:
            return obj()
        except TypeError as exc:
            raise PipelineConfigError(f"Cannot instantiate {spec!r} without arguments: {exc}") from exc
    return obj
