# tests/core/engine/test_executor_branching.py
"""
Testes de branching no WorkflowExecutor.

Os testes asseguram que:
- apenas a primeira branch verdadeira executa (first-match-wins)
- decisões são registradas como `"<grupo>:<branch>"`
- sem correspondência e sem default → ConfigurationError após a
  cascata de rollback, com `branches_count` igual ao número de branches
- BranchGroups aninhados compõem sem limite de profundidade
"""

import pytest

from atlas_workflow.core.exceptions import ConfigurationError
from atlas_workflow.core.pipeline.builder import WorkflowBuilder


def test_first_match_wins_in_workflow(make_operation, executed_names, actor):
    builder = WorkflowBuilder("wf")
    with builder.branch("g") as group:
        group.on(lambda c: True, "first").step("s1", make_operation("s1"))
        group.on(lambda c: True, "second").step("s2", make_operation("s2"))

    result = builder.build().run(actor)

    assert executed_names() == ["s1"]
    assert result.steps_executed == ["s1"]
    assert "s2" not in result.steps_executed
    assert result.branch_decisions == ["g:first"]


@pytest.mark.parametrize("n", [1, 2, 5])
def test_no_match_without_default_fails(make_operation, recording_rollback, rollback_log, actor, n):
    builder = WorkflowBuilder("wf")
    builder.step("prepare", make_operation("prepare"), rollback=recording_rollback("prepare"))
    with builder.branch("router") as group:
        for i in range(n):
            group.on(lambda c: False, f"b{i}").step(f"s{i}", make_operation(f"s{i}"))

    with pytest.raises(ConfigurationError) as excinfo:
        builder.build().run(actor)

    err = excinfo.value
    assert err.details["branch_group"] == "router"
    assert err.details["branches_count"] == n
    assert err.details["has_default"] is False
    assert rollback_log == ["prepare"]
    assert err.result.failed_step == "router"
    assert err.result.steps_executed == ["prepare"]


def test_default_branch_is_recorded_as_otherwise(make_operation, actor):
    builder = WorkflowBuilder("wf")
    with builder.branch("g") as group:
        group.on(lambda c: False, "never").step("x", make_operation("x"))
        group.otherwise().step("fallback", make_operation("fallback"))

    result = builder.build().run(actor)

    assert result.branch_decisions == ["g:otherwise"]
    assert result.steps_executed == ["fallback"]


def test_raising_predicate_selects_next_branch(make_operation, actor):
    def broken(c):
        raise TypeError("bad predicate")

    builder = WorkflowBuilder("wf")
    with builder.branch("g") as group:
        group.on(broken, "broken").step("x", make_operation("x"))
        group.otherwise().step("fallback", make_operation("fallback"))

    result = builder.build().run(actor)

    assert result.success is True
    assert result.branch_decisions == ["g:otherwise"]
    assert result.context.warnings["g:broken"]


def test_five_levels_of_nesting(make_operation, executed_names, actor):
    builder = WorkflowBuilder("deep")
    scope = builder
    for level in range(1, 6):
        group = scope.branch(f"level_{level}")
        group.on(lambda c: False, "no").step(f"decoy_{level}", make_operation(f"decoy_{level}"))
        scope = group.on(lambda c: True, "yes")
    scope.step("innermost", make_operation("innermost"))

    result = builder.build().run(actor)

    assert result.branch_decisions == [f"level_{i}:yes" for i in range(1, 6)]
    assert executed_names() == ["innermost"]
    assert result.steps_executed == ["innermost"]


def test_branch_steps_mix_with_root_steps(make_operation, actor):
    builder = WorkflowBuilder("wf")
    builder.step("before", make_operation("before"))
    with builder.branch("g") as group:
        with group.on(lambda c: True, "yes") as b:
            b.step("inside_1", make_operation("inside_1"))
            b.step("inside_skip", make_operation("inside_skip"), when=lambda c: False)
            b.step("inside_2", make_operation("inside_2"))
    builder.step("after", make_operation("after"))

    result = builder.build().run(actor)

    assert result.steps_executed == ["before", "inside_1", "inside_2", "after"]
    assert result.steps_skipped == ["inside_skip"]
