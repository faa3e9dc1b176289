# topmark:header:start
#
#   project      : PipeMerge
#   file         : generator.py
#   file_relpath : src/pipemerge/scaffold/generator.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Generate a new step module from the bundled template.

Names may carry a package path, separated by ``/`` or ``.``:

- ``EmailFormatterStep`` -> ``<base>/email_formatter_step.py``
- ``billing/ChargeStep`` -> ``<base>/billing/charge_step.py``

The default result key is the snake_case class name without a trailing
``Step`` (``ChargeStep`` -> ``charge``).
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from string import Template
from typing import TYPE_CHECKING

from pipemerge.config.logging import get_logger
from pipemerge.constants import DEFAULT_PRIORITY, RESOLVER_META_KEY
from pipemerge.core.errors import DecodingError
from pipemerge.pipeline.status import ConflictPolicy

if TYPE_CHECKING:
    from pipemerge.config.logging import PipemergeLogger

logger: PipemergeLogger = get_logger(__name__)

STEP_TEMPLATE_NAME: str = "step_module.tmpl"

_NAME_SPLIT_RE: re.Pattern[str] = re.compile(r"[/\\.]")
_CAMEL_BOUNDARY_RE: re.Pattern[str] = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """Convert ``CamelCase`` to ``snake_case`` (``HTTPFetchStep`` -> ``http_fetch_step``)."""
    return _CAMEL_BOUNDARY_RE.sub("_", name).replace("-", "_").lower()


def _check_identifier(segment: str, name: str) -> None:
    if not segment.isidentifier() or keyword.iskeyword(segment):
        raise DecodingError(f"Invalid step name {name!r}: {segment!r} is not a Python identifier")


def _coerce_policy(policy: ConflictPolicy | str) -> ConflictPolicy:
    return policy if isinstance(policy, ConflictPolicy) else ConflictPolicy.parse(policy)


@dataclass(frozen=True)
class StepModulePlan:
    """Everything needed to write one step module.

    Attributes:
        class_name (str): Name of the generated class.
        base_dir (Path): Root directory the packages are created under.
        packages (tuple[str, ...]): Package path below ``base_dir``.
        key (str): Result key the step produces.
        policy (ConflictPolicy): Conflict policy of the produced result.
        priority (int): Priority of the produced result.
    """

    class_name: str
    base_dir: Path
    packages: tuple[str, ...]
    key: str
    policy: ConflictPolicy
    priority: int

    @property
    def module_name(self) -> str:
        """File stem of the module (snake_case class name)."""
        return snake_case(self.class_name)

    @property
    def path(self) -> Path:
        """Target file path."""
        return self.base_dir.joinpath(*self.packages, f"{self.module_name}.py")

    @property
    def import_spec(self) -> str:
        """Import spec relative to ``base_dir`` (``billing.charge_step:ChargeStep``)."""
        module: str = ".".join((*self.packages, self.module_name))
        return f"{module}:{self.class_name}"

    def render(self) -> str:
        """Render the module source."""
        return render_step_module(
            self.class_name, key=self.key, policy=self.policy, priority=self.priority
        )


def load_step_template() -> Template:
    """Return the bundled step module template."""
    text: str = files("pipemerge.scaffold").joinpath(STEP_TEMPLATE_NAME).read_text(encoding="utf-8")
    return Template(text)


def render_step_module(
    class_name: str,
    *,
    key: str,
    policy: ConflictPolicy | str = ConflictPolicy.MERGE,
    priority: int = DEFAULT_PRIORITY,
) -> str:
    """Render the source of a `BaseStep` subclass.

    Custom-policy steps reference a resolver registered under ``key``.

    Args:
        class_name (str): Class name.
        key (str): Result key.
        policy (ConflictPolicy | str): Conflict policy (member, value or name).
        priority (int): Result priority.

    Returns:
        str: The module source.

    Raises:
        DecodingError: If ``class_name`` is not an identifier or ``policy``
            is unknown.
    """
    _check_identifier(class_name, class_name)
    resolved: ConflictPolicy = _coerce_policy(policy)
    meta_arg: str = (
        f", meta={{{RESOLVER_META_KEY!r}: {key!r}}}" if resolved is ConflictPolicy.CUSTOM else ""
    )
    return load_step_template().substitute(
        class_name=class_name,
        key=key,
        policy_name=resolved.name,
        priority=int(priority),
        meta_arg=meta_arg,
    )


def plan_step_module(
    name: str,
    *,
    base_dir: Path,
    key: str | None = None,
    policy: ConflictPolicy | str = ConflictPolicy.MERGE,
    priority: int = DEFAULT_PRIORITY,
) -> StepModulePlan:
    """Work out class name, file path and defaults for a new step.

    Args:
        name (str): ``ClassName`` optionally prefixed by packages
            (``billing/ChargeStep`` or ``billing.ChargeStep``).
        base_dir (Path): Root directory for the generated packages.
        key (str | None): Result key; derived from the class name when omitted.
        policy (ConflictPolicy | str): Conflict policy.
        priority (int): Result priority.

    Returns:
        StepModulePlan: The plan.

    Raises:
        DecodingError: If the name or policy is invalid.
    """
    segments: list[str] = [s for s in _NAME_SPLIT_RE.split(name.strip()) if s]
    if not segments:
        raise DecodingError("Step name must not be empty")
    for segment in segments:
        _check_identifier(segment, name)

    class_name: str = segments[-1]
    packages: tuple[str, ...] = tuple(snake_case(s) for s in segments[:-1])
    bare: str = class_name[: -len("Step")] if class_name.endswith("Step") else class_name
    default_key: str = snake_case(bare or class_name)

    return StepModulePlan(
        class_name=class_name,
        base_dir=base_dir,
        packages=packages,
        key=key or default_key,
        policy=_coerce_policy(policy),
        priority=int(priority),
    )


def write_step_module(plan: StepModulePlan, force: bool = False) -> Path:
    """Write the planned module, creating packages as needed.

    Every created package directory below ``plan.base_dir`` receives an empty
    ``__init__.py`` when it has none.

    Args:
        plan (StepModulePlan): What to write.
        force (bool): Overwrite an existing file.

    Returns:
        Path: The written file.

    Raises:
        FileExistsError: If the target exists and ``force`` is False.
    """
    target: Path = plan.path
    if target.exists() and not force:
        raise FileExistsError(f"File already exists: {target}")

    directory: Path = plan.base_dir
    directory.mkdir(parents=True, exist_ok=True)
    for package in plan.packages:
        directory = directory / package
        directory.mkdir(exist_ok=True)
        init_file: Path = directory / "__init__.py"
        if not init_file.exists():
            init_file.write_text("", encoding="utf-8")

    target.write_text(plan.render(), encoding="utf-8")
    logger.info("Wrote step %s to %s", plan.class_name, target)
    return target
