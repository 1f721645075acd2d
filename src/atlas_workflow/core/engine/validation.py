# src/atlas_workflow/core/engine/validation.py
"""
Validação estrutural de definições de workflow.

Este módulo valida uma `WorkflowDefinition` completa antes de qualquer
execução, percorrendo recursivamente Steps, BranchGroups e Branches.

Regras verificadas:
    - nomes de nós não vazios (InvalidStepError)
    - nomes únicos entre nós irmãos de um mesmo escopo (DuplicateStepError)
    - nomes únicos de Branches dentro de um grupo (DuplicateStepError)
    - operação, condição, mapper e rollback chamáveis (InvalidStepError)
    - Branch não-default sempre com condição (InvalidStepError)
    - BranchGroup com ao menos uma Branch (WorkflowConfigurationError)
    - default declarado como Branch sem condição (WorkflowConfigurationError)

Princípios fundamentais:
    - Validação estrutural ocorre antes da execução
    - Erros estruturais são fatais e nunca retentados
    - Nenhuma decisão silenciosa ou heurística implícita

Limites explícitos:
    - Não executa Steps nem avalia condições
    - Não verifica correspondência de branches em runtime
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from atlas_workflow.core.exceptions import InvalidStepError, WorkflowConfigurationError
from atlas_workflow.core.pipeline.branch import BranchGroup
from atlas_workflow.core.pipeline.definition import WorkflowDefinition
from atlas_workflow.core.pipeline.registry import StepRegistry
from atlas_workflow.core.pipeline.step import Step


def validate_definition(definition: WorkflowDefinition) -> None:
    """Valida a definição inteira; levanta na primeira violação encontrada."""
    _validate_scope(definition.nodes, scope=definition.name)


def _validate_scope(nodes: Sequence[Any], *, scope: str) -> None:
    registry = StepRegistry(scope=scope)
    for node in nodes:
        registry.add(node)
        if isinstance(node, BranchGroup):
            _validate_group(node)
        elif isinstance(node, Step):
            _validate_step(node)
        else:
            raise InvalidStepError(
                message=f"Unsupported node in workflow definition: {type(node).__name__}",
                details={"scope": scope, "node_type": type(node).__name__},
            )


def _validate_step(step: Step) -> None:
    if not callable(step.operation):
        raise InvalidStepError(
            message=f"Step {step.name} operation must be callable",
            details={"step": step.name, "received": type(step.operation).__name__},
        )
    _require_optional_callable(step.condition, step=step.name, role="condition")
    _require_optional_callable(step.input_mapper, step=step.name, role="input")
    _require_optional_callable(step.rollback_fn, step=step.name, role="rollback")


def _validate_group(group: BranchGroup) -> None:
    if not group.branches and group.default is None:
        raise WorkflowConfigurationError(
            message=f"Branch group {group.name} has no branches",
            details={"branch_group": group.name, "branches_count": 0},
            hint="Declare ao menos uma branch com on(...) ou otherwise().",
        )

    names = StepRegistry(scope=group.name)
    for branch in group.branches:
        names.add(branch)
        if branch.condition is None:
            raise InvalidStepError(
                message=f"Branch {group.name}:{branch.name} requires a condition",
                details={"branch_group": group.name, "branch": branch.name},
            )
        _require_optional_callable(branch.condition, step=f"{group.name}:{branch.name}", role="condition")
        _validate_scope(branch.nodes, scope=f"{group.name}:{branch.name}")

    if group.default is not None:
        names.add(group.default)
        if group.default.condition is not None:
            raise WorkflowConfigurationError(
                message=f"Default branch of group {group.name} must not declare a condition",
                details={"branch_group": group.name, "branch": group.default.name},
            )
        _validate_scope(group.default.nodes, scope=f"{group.name}:{group.default.name}")


def _require_optional_callable(fn: Optional[Any], *, step: str, role: str) -> None:
    if fn is not None and not callable(fn):
        raise InvalidStepError(
            message=f"Step {step} {role} must be callable",
            details={"step": step, "role": role, "received": type(fn).__name__},
        )
