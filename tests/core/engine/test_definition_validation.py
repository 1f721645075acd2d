# tests/core/engine/test_definition_validation.py
"""
Testes da validação estrutural de definições montadas sem o builder.

Invariantes:
    - Definições inválidas nunca chegam à execução
    - Cada violação levanta uma exceção específica da família
      WorkflowConfigurationError
"""

import pytest

from atlas_workflow.core.engine.validation import validate_definition
from atlas_workflow.core.exceptions import (
    DuplicateStepError,
    InvalidStepError,
    WorkflowConfigurationError,
)
from atlas_workflow.core.pipeline.branch import Branch, BranchGroup
from atlas_workflow.core.pipeline.definition import WorkflowDefinition
from atlas_workflow.core.pipeline.step import Step


def _step(name, **kwargs):
    return Step(name=name, operation=object, **kwargs)


def test_valid_definition_passes():
    definition = WorkflowDefinition(
        name="wf",
        nodes=(
            _step("a"),
            BranchGroup(
                name="g",
                branches=(Branch(name="x", condition=lambda c: True, nodes=(_step("a"),)),),
                default=Branch(name="otherwise", nodes=(_step("b"),)),
            ),
        ),
    )

    validate_definition(definition)


def test_duplicate_root_names():
    definition = WorkflowDefinition(name="wf", nodes=(_step("a"), _step("a")))

    with pytest.raises(DuplicateStepError):
        validate_definition(definition)


def test_group_name_clashes_with_step_name():
    definition = WorkflowDefinition(
        name="wf",
        nodes=(_step("g"), BranchGroup(name="g", default=Branch(name="otherwise"))),
    )

    with pytest.raises(DuplicateStepError):
        validate_definition(definition)


def test_duplicate_branch_names():
    group = BranchGroup(
        name="g",
        branches=(
            Branch(name="x", condition=lambda c: True),
            Branch(name="x", condition=lambda c: False),
        ),
    )

    with pytest.raises(DuplicateStepError):
        validate_definition(WorkflowDefinition(name="wf", nodes=(group,)))


def test_empty_group():
    with pytest.raises(WorkflowConfigurationError):
        validate_definition(WorkflowDefinition(name="wf", nodes=(BranchGroup(name="g"),)))


def test_conditional_branch_without_condition():
    group = BranchGroup(name="g", branches=(Branch(name="x"),))

    with pytest.raises(InvalidStepError):
        validate_definition(WorkflowDefinition(name="wf", nodes=(group,)))


def test_default_with_condition():
    group = BranchGroup(name="g", default=Branch(name="otherwise", condition=lambda c: True))

    with pytest.raises(WorkflowConfigurationError):
        validate_definition(WorkflowDefinition(name="wf", nodes=(group,)))


@pytest.mark.parametrize("field", ["condition", "input_mapper", "rollback_fn"])
def test_non_callable_collaborators(field):
    definition = WorkflowDefinition(name="wf", nodes=(_step("a", **{field: "nope"}),))

    with pytest.raises(InvalidStepError):
        validate_definition(definition)


def test_nested_scope_is_validated():
    group = BranchGroup(
        name="g",
        branches=(Branch(name="x", condition=lambda c: True, nodes=(_step("a"), _step("a"))),),
    )

    with pytest.raises(DuplicateStepError):
        validate_definition(WorkflowDefinition(name="wf", nodes=(group,)))


def test_unknown_node_type():
    with pytest.raises(InvalidStepError):
        validate_definition(WorkflowDefinition(name="wf", nodes=("not-a-node",)))
