# topmark:header:start
#
#   project      : PipeMerge
#   file         : base.py
#   file_relpath : src/pipemerge/pipeline/steps/base.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Base classes for pipeline steps.

The runner only requires an object with ``handle(context) -> Result``.
`BaseStep` adds a stable identifier and a `make_result` helper that fills in
the step's default key, policy and priority and stamps the provenance:

    class EmailFormatterStep(BaseStep):
        key = "email"
        priority = 10

        def handle(self, context):
            email = context.get_content("user.email", "")
            return self.make_result({"value": email.strip().lower()})

Plain callables can be wrapped with `FunctionStep` (or `as_step`).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from pipemerge.constants import DEFAULT_PRIORITY
from pipemerge.pipeline.result import Result
from pipemerge.pipeline.status import ConflictPolicy, ResultStatus
from pipemerge.utils.introspection import qualified_name

if TYPE_CHECKING:
    from pipemerge.pipeline.context import ExecutionContext
    from pipemerge.pipeline.contracts import Step


class BaseStep:
    """Reusable foundation for class-based steps.

    Attributes:
        name (str): Stable step identifier for logs, error records and history.
            Empty means "use the qualified class name".
        key (str): Default result key for `make_result`.
        policy (ConflictPolicy): Default conflict policy for `make_result`.
        priority (int): Default priority for `make_result`.
    """

    name: ClassVar[str] = ""
    key: ClassVar[str] = ""
    policy: ClassVar[ConflictPolicy] = ConflictPolicy.MERGE
    priority: ClassVar[int] = DEFAULT_PRIORITY

    @property
    def step_id(self) -> str:
        """Return ``name`` or, when unset, the qualified class name."""
        return self.name or qualified_name(type(self))

    def handle(self, context: ExecutionContext) -> Result:
        """Read ``context`` and return this step's result.

        Args:
            context (ExecutionContext): The run's context.

        Returns:
            Result: The step's contribution.
        """
        raise NotImplementedError(f"{type(self).__name__} must implement handle()")

    def make_result(
        self,
        data: Any,
        *,
        key: str | None = None,
        policy: ConflictPolicy | None = None,
        priority: int | None = None,
        status: ResultStatus = ResultStatus.OK,
        meta: dict[str, Any] | None = None,
    ) -> Result:
        """Build a result using this step's defaults and identifier as provenance.

        Args:
            data (Any): JSON-like result data.
            key (str | None): Overrides the class ``key``.
            policy (ConflictPolicy | None): Overrides the class ``policy``.
            priority (int | None): Overrides the class ``priority``.
            status (ResultStatus): Reported step outcome.
            meta (dict[str, Any] | None): Policy-specific metadata.

        Returns:
            Result: The new result.
        """
        return Result(
            key=key or self.key,
            data=data,
            policy=policy or self.policy,
            priority=self.priority if priority is None else priority,
            provenance=self.step_id,
            status=status,
            meta=meta or {},
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.step_id}>"


@dataclass(frozen=True)
class FunctionStep:
    """Adapter turning ``func(context) -> Result`` into a step."""

    func: Callable[[ExecutionContext], Result]
    name: str = ""

    @property
    def step_id(self) -> str:
        """Return ``name`` or the qualified name of the wrapped function."""
        return self.name or qualified_name(self.func)

    def handle(self, context: ExecutionContext) -> Result:
        """Call the wrapped function."""
        return self.func(context)


def step_name(step: object) -> str:
    """Return the identifier used for ``step`` in logs, errors and history.

    Args:
        step (object): A step instance.

    Returns:
        str: ``step.step_id`` when available, else a non-empty string ``name``
        attribute, else the qualified class name.
    """
    step_id: Any = getattr(step, "step_id", None)
    if isinstance(step_id, str) and step_id:
        return step_id
    name: Any = getattr(step, "name", None)
    if isinstance(name, str) and name:
        return name
    return qualified_name(step)


def as_step(obj: Any) -> Step:
    """Coerce ``obj`` into a step.

    Objects with a callable ``handle`` are returned unchanged; other callables
    are wrapped in a `FunctionStep`.

    Raises:
        TypeError: If ``obj`` is neither.
    """
    if callable(getattr(obj, "handle", None)):
        return obj
    if callable(obj):
        return FunctionStep(obj)
    raise TypeError(f"{obj!r} is not a step (no handle() and not callable)")
