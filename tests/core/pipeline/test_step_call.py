# tests/core/pipeline/test_step_call.py
"""
Testes do contrato `Step.call(context, actor) -> StepOutcome`.

Os testes asseguram que:
- condição falsa → SKIPPED, sem invocação nem escrita no contexto
- exceção na condição equivale a "falso" e é registrada no log
- a entrada da operação vem do InputMapper (padrão: vazia)
- sucesso grava o output sob o nome do Step
- falha de Step opcional grava `<nome>_error` e retorna OPTIONAL_FAILURE
- falha de Step obrigatório retorna FATAL_FAILURE com a causa
- `rollback` não absorve exceções
"""

import pytest

from atlas_workflow.core.pipeline.context import WorkflowContext
from atlas_workflow.core.pipeline.step import RunnableOperation, Step
from atlas_workflow.core.pipeline.types import StepStatus


def test_executed_step_writes_output(make_operation, calls, actor):
    ctx = WorkflowContext(actor=actor, params={"order_id": 123})
    step = Step(
        name="validate_order",
        operation=make_operation("validate_order", output={"valid": True}),
        input_mapper=lambda c: {"id": c.get("order_id")},
    )

    outcome = step.call(ctx, actor)

    assert outcome.status is StepStatus.EXECUTED
    assert outcome.output == {"valid": True}
    assert outcome.completed is True
    assert ctx.get("validate_order") == {"valid": True}
    assert calls == [("validate_order", actor, {"id": 123})]


def test_default_input_is_empty(make_operation, calls, actor):
    step = Step(name="noop", operation=make_operation("noop"))

    step.call(WorkflowContext(actor=actor, params={"x": 1}), actor)

    assert calls[0][2] == {}


def test_false_condition_skips(make_operation, calls, actor):
    ctx = WorkflowContext(actor=actor)
    step = Step(name="notify", operation=make_operation("notify"), condition=lambda c: False)

    outcome = step.call(ctx, actor)

    assert outcome.status is StepStatus.SKIPPED
    assert outcome.completed is False
    assert calls == []
    assert "notify" not in ctx


def test_raising_condition_is_treated_as_false(make_operation, calls, actor):
    ctx = WorkflowContext(actor=actor)

    def broken(c):
        raise KeyError("missing")

    step = Step(name="notify", operation=make_operation("notify"), condition=broken)

    outcome = step.call(ctx, actor)

    assert outcome.status is StepStatus.SKIPPED
    assert calls == []
    assert ctx.warnings["notify"]
    assert any(e["level"] == "ERROR" and e["step_id"] == "notify" for e in ctx.events)


def test_optional_failure_is_recorded(make_operation, actor):
    ctx = WorkflowContext(actor=actor)
    step = Step(
        name="send_email",
        operation=make_operation("send_email", error=RuntimeError("smtp down")),
        optional=True,
    )

    outcome = step.call(ctx, actor)

    assert outcome.status is StepStatus.OPTIONAL_FAILURE
    assert outcome.completed is True
    assert isinstance(outcome.exception, RuntimeError)
    assert ctx.get("send_email_error")["message"] == "smtp down"
    assert "send_email" not in ctx
    assert ctx.warnings["send_email"] == ["smtp down"]


def test_required_failure_is_fatal(make_operation, actor):
    ctx = WorkflowContext(actor=actor)
    cause = ValueError("card declined")
    step = Step(name="charge_card", operation=make_operation("charge_card", error=cause))

    outcome = step.call(ctx, actor)

    assert outcome.status is StepStatus.FATAL_FAILURE
    assert outcome.exception is cause
    assert outcome.error.type == "STEP_FAILED"
    assert outcome.error.details["step"] == "charge_card"
    assert outcome.error.details["exc_type"] == "ValueError"
    assert outcome.error.details["exc_message"] == "card declined"
    assert outcome.error.hint
    assert "charge_card_error" not in ctx


def test_input_mapper_failure_is_a_step_failure(make_operation, calls, actor):
    def bad_mapper(c):
        raise LookupError("no order")

    step = Step(name="load", operation=make_operation("load"), input_mapper=bad_mapper)

    outcome = step.call(WorkflowContext(actor=actor), actor)

    assert outcome.status is StepStatus.FATAL_FAILURE
    assert calls == []


def test_rollback_invokes_function_and_propagates_errors(actor):
    ctx = WorkflowContext(actor=actor)
    seen = []

    ok = Step(name="a", operation=object, rollback_fn=lambda c: seen.append("a"))
    ok.rollback(ctx)
    assert seen == ["a"]
    assert ok.has_rollback is True

    def broken(c):
        raise RuntimeError("refund failed")

    with pytest.raises(RuntimeError):
        Step(name="b", operation=object, rollback_fn=broken).rollback(ctx)

    Step(name="c", operation=object).rollback(ctx)


def test_fake_operation_conforms_to_protocol(make_operation, actor):
    op = make_operation("x")(actor, {})

    assert isinstance(op, RunnableOperation)
