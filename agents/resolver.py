"""Reference resolver for plan execution.

Commands may target a resource produced earlier in the same plan by
declaring the sentinel id ``0``.  Produced ids are recorded in a binding
table keyed by command index; lookups consult only the immediately
preceding slot.

Examples::

    resolver.bind(0, 42, "page")
    resolver.resolve(0, index=1)   # → 42
    resolver.resolve(7, index=1)   # → 7
    resolver.resolve(0, index=0)   # → 0 (caller fails the command)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from models.plan import PREVIOUS_RESULT


@dataclass(frozen=True)
class Binding:
    resource_id: int
    kind: str  # "page" or "post"


@dataclass
class ReferenceResolver:
    """Binding table scoped to one execution."""

    bindings: dict[int, Binding] = field(default_factory=dict)

    def bind(self, index: int, resource_id: int, kind: str) -> None:
        self.bindings[index] = Binding(resource_id=resource_id, kind=kind)

    def resolve(self, declared_id: int, index: int) -> int:
        """Return the id a command at *index* should operate on.

        ``PREVIOUS_RESULT`` resolves to the id bound at ``index - 1`` when
        there is one; every other id is returned unchanged.
        """
        if declared_id != PREVIOUS_RESULT:
            return declared_id
        previous = self.bindings.get(index - 1)
        return previous.resource_id if previous else PREVIOUS_RESULT

    def kind_of(self, resource_id: int) -> str | None:
        """Kind of a resource produced in this execution, if any."""
        for binding in self.bindings.values():
            if binding.resource_id == resource_id:
                return binding.kind
        return None
