# src/atlas_workflow/core/pipeline/builder.py
"""
Builder de definições de workflow.

O builder separa o "momento de declaração" do "momento de execução":
acumula Steps, BranchGroups e hooks de forma fluente e, em `build()`,
produz uma única `WorkflowDefinition` imutável e validada.

Exemplo:

    builder = WorkflowBuilder("checkout")
    builder.step("validate_order", ValidateOrder, input=lambda ctx: {"id": ctx.get("order_id")})
    with builder.branch("payment_method_group") as group:
        with group.on(lambda ctx: ctx.get("payment_method") == "credit_card", "credit_card") as b:
            b.step("charge_card", ChargeCard, rollback=refund_card)
        with group.otherwise() as b:
            b.step("mark_pending", MarkPending)
    builder.step("finalize", Finalize)
    definition = builder.build()

Nomes automáticos:
    - `on(...)` sem nome       → `on_<n>` (1-based, por grupo)
    - `otherwise()`            → `otherwise`
    - `branch()` sem nome      → `branch_<n>` (1-based, por workflow, incluindo aninhados)

Nomes são verificados no momento da declaração (StepRegistry por escopo);
as demais regras estruturais são verificadas em `build()`.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from atlas_workflow.core.exceptions import InvalidStepError, WorkflowConfigurationError

from .branch import DEFAULT_BRANCH_NAME, Branch, BranchGroup, Node
from .definition import AroundStepHook, WorkflowDefinition, WorkflowHook
from .registry import StepRegistry
from .step import InputMapper, OperationFactory, Predicate, RollbackFn, Step


class _ScopeBuilder:
    """Escopo que aceita Steps e BranchGroups (raiz do workflow ou uma Branch)."""

    def __init__(self, root: "WorkflowBuilder", scope: str):
        self._root = root
        self._registry = StepRegistry(scope=scope)

    def step(
        self,
        name: str,
        operation: OperationFactory,
        *,
        input: Optional[InputMapper] = None,
        when: Optional[Predicate] = None,
        optional: bool = False,
        rollback: Optional[RollbackFn] = None,
    ):
        self._registry.add(
            Step(
                name=name,
                operation=operation,
                input_mapper=input,
                condition=when,
                optional=bool(optional),
                rollback_fn=rollback,
            )
        )
        return self

    def branch(self, name: Optional[str] = None) -> "BranchGroupBuilder":
        group = BranchGroupBuilder(self._root, name or self._root._next_group_name())
        self._registry.add(group)
        return group

    def _build_nodes(self) -> Tuple[Node, ...]:
        nodes: List[Node] = []
        for node in self._registry.list():
            if isinstance(node, BranchGroupBuilder):
                nodes.append(node.build())
            else:
                nodes.append(node)
        return tuple(nodes)


class BranchBuilder(_ScopeBuilder):
    """Filhos de uma Branch; aceita `step` e `branch` aninhado."""

    def __init__(self, root: "WorkflowBuilder", group_name: str, name: str, condition: Optional[Predicate]):
        super().__init__(root, f"{group_name}:{name}")
        self.name = name
        self.condition = condition

    def __enter__(self) -> "BranchBuilder":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def build(self) -> Branch:
        return Branch(name=self.name, condition=self.condition, nodes=self._build_nodes())


class BranchGroupBuilder:
    """Acumula as Branches de um grupo na ordem de declaração."""

    def __init__(self, root: "WorkflowBuilder", name: str):
        self._root = root
        self.name = name
        self._branches = StepRegistry(scope=name)
        self._default: Optional[BranchBuilder] = None
        self._conditional_count = 0

    def __enter__(self) -> "BranchGroupBuilder":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def on(self, condition: Predicate, name: Optional[str] = None) -> BranchBuilder:
        if condition is None:
            raise InvalidStepError(
                message=f"Branch in group {self.name} requires a condition; use otherwise() for the default branch",
                details={"branch_group": self.name, "branch": name},
            )
        self._conditional_count += 1
        branch = BranchBuilder(self._root, self.name, name or f"on_{self._conditional_count}", condition)
        self._branches.add(branch)
        return branch

    def otherwise(self) -> BranchBuilder:
        if self._default is not None:
            raise WorkflowConfigurationError(
                message=f"Branch group {self.name} already has a default branch",
                details={"branch_group": self.name},
            )
        branch = BranchBuilder(self._root, self.name, DEFAULT_BRANCH_NAME, None)
        self._branches.add(branch)
        self._default = branch
        return branch

    def build(self) -> BranchGroup:
        conditional = tuple(
            b.build() for b in self._branches.list() if b is not self._default
        )
        default = self._default.build() if self._default is not None else None
        return BranchGroup(name=self.name, branches=conditional, default=default)


class WorkflowBuilder(_ScopeBuilder):
    """Ponto de entrada da declaração de um workflow."""

    def __init__(self, name: str):
        if not isinstance(name, str) or not name.strip():
            raise InvalidStepError(
                message="workflow name must be a non-empty string",
                details={"name": name},
            )
        super().__init__(self, name)
        self.name = name
        self._group_count = 0
        self._use_transaction = False
        self._before: List[WorkflowHook] = []
        self._after: List[WorkflowHook] = []
        self._around: List[AroundStepHook] = []

    def _next_group_name(self) -> str:
        self._group_count += 1
        return f"branch_{self._group_count}"

    def with_transaction(self, enabled: bool = True) -> "WorkflowBuilder":
        self._use_transaction = bool(enabled)
        return self

    def before_workflow(self, fn: WorkflowHook) -> "WorkflowBuilder":
        self._before.append(_require_hook(fn, "before_workflow"))
        return self

    def after_workflow(self, fn: WorkflowHook) -> "WorkflowBuilder":
        self._after.append(_require_hook(fn, "after_workflow"))
        return self

    def around_step(self, fn: AroundStepHook) -> "WorkflowBuilder":
        self._around.append(_require_hook(fn, "around_step"))
        return self

    def build(self) -> WorkflowDefinition:
        """Produz a definição imutável, validada estruturalmente."""
        from atlas_workflow.core.engine.validation import validate_definition

        definition = WorkflowDefinition(
            name=self.name,
            nodes=self._build_nodes(),
            use_transaction=self._use_transaction,
            before_hooks=tuple(self._before),
            after_hooks=tuple(self._after),
            around_hooks=tuple(self._around),
        )
        validate_definition(definition)
        return definition


def _require_hook(fn: Any, kind: str) -> Any:
    if not callable(fn):
        raise InvalidStepError(
            message=f"{kind} hook must be callable",
            details={"hook": kind, "received": type(fn).__name__},
        )
    return fn
