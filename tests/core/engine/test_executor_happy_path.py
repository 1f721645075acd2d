# tests/core/engine/test_executor_happy_path.py
"""
Testes do caminho feliz do WorkflowExecutor.

Os testes asseguram que:
- nós são executados em ordem declarada, uma única vez
- Steps pulados vão para o log de pulados
- falhas de Steps opcionais são absorvidas e contam como executadas
- o resultado de sucesso carrega mensagem, metadados e duração
"""

from atlas_workflow.core.engine.engine import WorkflowExecutor
from atlas_workflow.core.engine.result import ExecutionResult
from atlas_workflow.core.pipeline.builder import WorkflowBuilder


def test_steps_run_in_order(make_operation, executed_names, actor, debug_settings):
    definition = (
        WorkflowBuilder("wf")
        .step("a", make_operation("a"))
        .step("b", make_operation("b"))
        .step("c", make_operation("c"))
        .build()
    )

    result = definition.run(actor, {}, settings=debug_settings)

    assert isinstance(result, ExecutionResult)
    assert result.success is True
    assert result.message == "Workflow completed successfully"
    assert executed_names() == ["a", "b", "c"]
    assert result.steps_executed == ["a", "b", "c"]
    assert result.steps_skipped == []
    assert result.metadata["workflow"] == "wf"
    assert "branch_decisions" not in result.metadata
    assert "failed_step" not in result.metadata


def test_outputs_flow_through_context(make_operation, calls, actor):
    definition = (
        WorkflowBuilder("wf")
        .step("load", make_operation("load", output={"total": 10}))
        .step("charge", make_operation("charge"), input=lambda c: {"amount": c.get("load")["total"]})
        .build()
    )

    result = definition.run(actor, {"order_id": 1})

    assert calls[1] == ("charge", actor, {"amount": 10})
    assert result.context.get("load") == {"total": 10}
    assert result.context.get("order_id") == 1


def test_skipped_steps_are_logged(make_operation, executed_names, actor):
    definition = (
        WorkflowBuilder("wf")
        .step("a", make_operation("a"))
        .step("notify", make_operation("notify"), when=lambda c: c.get("notify") is True)
        .step("c", make_operation("c"))
        .build()
    )

    result = definition.run(actor, {"notify": False})

    assert executed_names() == ["a", "c"]
    assert result.steps_executed == ["a", "c"]
    assert result.steps_skipped == ["notify"]


def test_optional_step_failure_is_absorbed(make_operation, actor):
    definition = (
        WorkflowBuilder("wf")
        .step("S1", make_operation("S1"))
        .step("S2", make_operation("S2", error=RuntimeError("flaky")), optional=True)
        .step("S3", make_operation("S3"))
        .build()
    )

    result = definition.run(actor, {})

    assert result.success is True
    assert result.steps_executed == ["S1", "S2", "S3"]
    assert result.context.has("S2_error")
    assert result.context.get("S2_error")["message"] == "flaky"


def test_duration_is_non_negative_and_rounded(make_operation, actor):
    result = WorkflowBuilder("wf").step("a", make_operation("a")).build().run(actor)

    duration = result.metadata["duration_ms"]
    assert isinstance(duration, float)
    assert duration >= 0
    assert round(duration, 2) == duration


def test_executor_is_reusable_across_invocations(make_operation, actor):
    definition = WorkflowBuilder("wf").step("a", make_operation("a")).build()
    executor = WorkflowExecutor(definition)

    first = executor.run(actor, {"n": 1})
    second = executor.run(actor, {"n": 2})

    assert first.context is not second.context
    assert first.context.run_id != second.context.run_id
    assert first.context.get("n") == 1
    assert second.context.get("n") == 2


def test_to_dict_success_envelope(make_operation, actor):
    result = WorkflowBuilder("wf").step("a", make_operation("a")).build().run(actor, {"x": 1})

    data = result.to_dict()

    assert data["success"] is True
    assert data["message"] == "Workflow completed successfully"
    assert data["context"]["x"] == 1
    assert data["metadata"]["steps_executed"] == ["a"]
    assert "errors" not in data


def test_completion_is_logged(make_operation, actor, debug_settings):
    result = WorkflowBuilder("wf").step("a", make_operation("a")).build().run(actor, settings=debug_settings)

    messages = [(e["level"], e["message"]) for e in result.context.events]
    assert ("INFO", "Workflow wf completed") in messages
