"""
Ordered before/after interceptor chains around service operations.

    chain = HookChain()
    chain.before("createBook", require_title)
    chain.after("READ", log_result_size)
    result = chain.run("createBook", request, handler)

Semantics:
- ``before`` hooks run in registration order with the request. A hook that
  raises stops the chain: later hooks and the handler are not invoked and
  the exception propagates unchanged.
- The handler runs once with the request and produces the result.
- ``after`` hooks run in registration order with ``(result, request)``.
  Returning a value other than None replaces the result for the next hook.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .entities import ANONYMOUS

T = TypeVar("T")

BeforeHook = Callable[["OperationRequest"], None]
AfterHook = Callable[[Any, "OperationRequest"], Any]


@dataclass
class OperationRequest:
    """What a hook sees of a service call."""

    event: str
    """Operation name, e.g. 'READ', 'CREATE', 'createBook'"""

    data: Dict[str, Any] = field(default_factory=dict)
    """Operation input (payload fields or query options)"""

    user: str = ANONYMOUS
    """Identified caller, used for the audit fields"""


class HookChain:
    """Registry and runner for per-event interceptors."""

    def __init__(self) -> None:
        self._before: Dict[str, List[BeforeHook]] = defaultdict(list)
        self._after: Dict[str, List[AfterHook]] = defaultdict(list)

    def before(self, event: str, hook: Optional[BeforeHook] = None):
        """
        Register a hook to run before ``event``. Usable as a decorator:

            @chain.before("READ")
            def log_query(request): ...
        """
        if hook is None:
            def decorator(fn: BeforeHook) -> BeforeHook:
                self._before[event].append(fn)
                return fn
            return decorator

        self._before[event].append(hook)
        return hook

    def after(self, event: str, hook: Optional[AfterHook] = None):
        """Register a hook to run after ``event``. Usable as a decorator."""
        if hook is None:
            def decorator(fn: AfterHook) -> AfterHook:
                self._after[event].append(fn)
                return fn
            return decorator

        self._after[event].append(hook)
        return hook

    def hooks_for(self, event: str) -> tuple[list[BeforeHook], list[AfterHook]]:
        """Registered hooks for ``event`` (copies, in run order)."""
        return list(self._before.get(event, ())), list(self._after.get(event, ()))

    def run(
        self,
        event: str,
        request: OperationRequest,
        handler: Callable[[OperationRequest], T],
    ) -> T:
        """Run the before hooks, the handler, then the after hooks."""
        before_hooks, after_hooks = self.hooks_for(event)

        for hook in before_hooks:
            hook(request)

        result = handler(request)

        for hook in after_hooks:
            replaced = hook(result, request)
            if replaced is not None:
                result = replaced

        return result
