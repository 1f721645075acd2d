# tests/core/engine/test_executor_failure_result.py
"""
Testes do resultado de falha do WorkflowExecutor.

Os testes asseguram que:
- com `raise_on_failure`, a exceção tipada carrega o ExecutionResult de falha
- sem `raise_on_failure`, o ExecutionResult de falha é retornado
- metadados de falha incluem o Step que falhou, o log parcial e a duração
- a falha é registrada no log do contexto
- o payload canônico do step (ou do erro inesperado) acompanha a exceção
"""

import pytest

from atlas_workflow.core.engine.result import ExecutionResult
from atlas_workflow.core.exceptions import StepExecutionError, WorkflowExecutionError
from atlas_workflow.core.pipeline.builder import WorkflowBuilder


def _failing_definition(make_operation):
    return (
        WorkflowBuilder("wf")
        .step("a", make_operation("a"))
        .step("skip_me", make_operation("skip_me"), when=lambda c: False)
        .step("b", make_operation("b", error=RuntimeError("card declined")))
        .step("c", make_operation("c"))
        .build()
    )


def test_raised_error_carries_failure_result(make_operation, actor):
    with pytest.raises(StepExecutionError) as excinfo:
        _failing_definition(make_operation).run(actor, {"order_id": 9})

    result = excinfo.value.result
    assert isinstance(result, ExecutionResult)
    assert result.success is False
    assert result.message == "Step b failed: card declined"
    assert result.failed_step == "b"
    assert result.steps_executed == ["a"]
    assert result.steps_skipped == ["skip_me"]
    assert result.metadata["duration_ms"] >= 0
    assert result.context.get("order_id") == 9


def test_failure_result_returned_when_not_raising(make_operation, executed_names, non_raising_settings, actor):
    result = _failing_definition(make_operation).run(actor, settings=non_raising_settings)

    assert result.success is False
    assert isinstance(result.error, StepExecutionError)
    assert result.error.result is result
    assert executed_names() == ["a", "b"]


def test_failure_envelope_to_dict(make_operation, non_raising_settings, actor):
    data = _failing_definition(make_operation).run(actor, settings=non_raising_settings).to_dict()

    assert data["success"] is False
    assert data["metadata"]["failed_step"] == "b"
    assert data["errors"]["error"]["code"] == "STEP_FAILED"
    assert data["errors"]["error"]["original_error"] == {
        "class": "RuntimeError",
        "message": "card declined",
    }


def test_failure_is_logged(make_operation, non_raising_settings, actor):
    result = _failing_definition(make_operation).run(actor, settings=non_raising_settings)

    failed = [e for e in result.context.events if e["message"].startswith("Workflow wf failed")]
    assert len(failed) == 1
    assert failed[0]["level"] == "ERROR"
    assert failed[0]["failed_step"] == "b"
    assert failed[0]["error_code"] == "STEP_FAILED"


def test_error_detailed_message(make_operation, actor):
    with pytest.raises(StepExecutionError) as excinfo:
        _failing_definition(make_operation).run(actor)

    text = excinfo.value.detailed_message()
    assert "Code: STEP_FAILED" in text
    assert "Original: RuntimeError: card declined" in text


def test_step_payload_includes_executed_log(make_operation, actor):
    with pytest.raises(StepExecutionError) as excinfo:
        _failing_definition(make_operation).run(actor)

    payload = excinfo.value.details["errors"]
    assert payload["type"] == "STEP_FAILED"
    assert payload["details"]["steps_executed"] == ["a"]
    assert payload["details"]["exc_message"] == "card declined"
    assert excinfo.value.hint == payload["hint"]


def test_unexpected_error_carries_execution_payload(make_operation, actor):
    def broken_hook(step, context, proceed):
        raise KeyError("tracer")

    definition = WorkflowBuilder("wf").around_step(broken_hook).step("a", make_operation("a")).build()

    with pytest.raises(WorkflowExecutionError) as excinfo:
        definition.run(actor)

    payload = excinfo.value.details["errors"]
    assert payload["type"] == "EXECUTION_ERROR"
    assert payload["details"]["step"] == "a"
    assert payload["details"]["exc_type"] == "KeyError"
    assert excinfo.value.hint
