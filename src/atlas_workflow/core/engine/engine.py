# src/atlas_workflow/core/engine/engine.py
"""
Executor de workflows do Atlas Workflow.

O `WorkflowExecutor` é o driver de topo: percorre a lista declarada de
nós (Steps e BranchGroups), demarca o envelope transacional e dispara a
cascata de rollback em caso de falha.

Máquina de estados (passagem única, sem backtracking):
    - Initial: contexto criado; hooks before_workflow executados;
      envelope transacional aberto se o workflow declara transação
    - Running: nós percorridos em ordem; SKIPPED vai para o log de
      pulados; EXECUTED/OPTIONAL_FAILURE vão para o log de executados;
      FATAL_FAILURE ou ConfigurationError de branch → RollingBack
    - RollingBack: `rollback(context)` em cada Step concluído, em ordem
      estritamente inversa (LIFO), incluindo Steps dentro das branches
      tomadas. A primeira compensação que falha interrompe a cascata e é
      anexada (nunca substitui) à falha original como RollbackError
    - Failed: envelope abortado; exceção tipada ou ExecutionResult de falha
    - Completed: envelope confirmado; ExecutionResult de sucesso

Hooks after_workflow rodam sempre, depois que o desfecho está definido,
e nunca o alteram.

Rastreabilidade:
    - Quando a instrumentação está habilitada (e o workflow não está
      excluído), cada invocação alimenta um WorkflowManifest, exposto em
      `ExecutionResult.manifest` e opcionalmente salvo em
      `<manifest_dir>/<run_id>.json`
    - Steps aninhados são identificados no Manifest pelo caminho das
      decisões (`grupo:branch/step`)
    - Falha ao salvar o Manifest é registrada no contexto (ERROR e warning)
      e nunca altera o desfecho

Limites explícitos:
    - Não executa Steps em paralelo
    - Não aplica retries nem timeouts
    - Não implementa atomicidade (delegada ao TransactionManager)
"""

from __future__ import annotations

import functools
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from atlas_workflow.core.config.hashing import compute_payload_hash
from atlas_workflow.core.config.settings import EngineSettings
from atlas_workflow.core.errors import WorkflowErrorPayload, execution_error, rollback_failed_error
from atlas_workflow.core.exceptions import (
    RollbackError,
    TransactionError,
    WorkflowConfigurationError,
    WorkflowException,
    WorkflowExecutionError,
)
from atlas_workflow.core.pipeline.branch import Branch, BranchGroup, Node, step_execution_error
from atlas_workflow.core.pipeline.context import WorkflowContext
from atlas_workflow.core.pipeline.definition import WorkflowDefinition
from atlas_workflow.core.pipeline.step import Step
from atlas_workflow.core.pipeline.types import ExecutionRecord, StepOutcome, StepStatus
from atlas_workflow.core.traceability import manifest as trace

from .result import ExecutionResult, ResultBuilder
from .transaction import TransactionalEnvelope, TransactionManager


ENGINE_VERSION = "0.1.0"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _RunTrace:
    """
    Alimenta o Manifest de uma invocação; inativo quando `manifest` é None.

    Steps dentro de branches são registrados com o caminho das decisões
    tomadas (`grupo:branch/step`), de modo que nomes repetidos em escopos
    diferentes nunca compartilham a mesma entrada do Manifest.
    """

    def __init__(self, manifest: Optional[trace.WorkflowManifest], settings: EngineSettings):
        self.manifest = manifest
        self.settings = settings
        self._scope: List[str] = []
        self._step_ids: Dict[int, str] = {}

    @classmethod
    def start(
        cls,
        *,
        definition: WorkflowDefinition,
        context: WorkflowContext,
        settings: EngineSettings,
    ) -> "_RunTrace":
        if not settings.instruments(definition.name):
            return cls(None, settings)

        started_at = _now()
        manifest = trace.create_manifest(
            run_id=context.run_id,
            workflow=definition.name,
            started_at=started_at,
            engine_version=ENGINE_VERSION,
            config_hash=settings.config_hash,
            params_hash=compute_payload_hash(context.params),
        )
        payload: Dict[str, Any] = {"workflow": definition.name}
        if settings.include_params:
            payload["params"] = dict(context.params)
        trace.add_event(manifest, event_type="workflow_started", ts=started_at, payload=payload)
        return cls(manifest, settings)

    # -----------------------------
    # Escopo de branches
    # -----------------------------
    @property
    def depth(self) -> int:
        return len(self._scope)

    def restore(self, depth: int) -> None:
        del self._scope[depth:]

    def qualify(self, name: str) -> str:
        return "/".join(self._scope + [name])

    def step_id(self, step: Step) -> str:
        return self._step_ids.get(id(step), step.name)

    # -----------------------------
    # Eventos
    # -----------------------------
    def step_outcome(self, step: Step, outcome: StepOutcome, started_at: datetime) -> None:
        step_id = self.qualify(step.name)
        self._step_ids[id(step)] = step_id
        if self.manifest is None:
            return
        ts = _now()
        if outcome.status is StepStatus.SKIPPED:
            trace.step_skipped(self.manifest, step_id=step_id, ts=ts)
            return

        trace.step_started(self.manifest, step_id=step_id, ts=started_at)
        if outcome.status is StepStatus.FATAL_FAILURE:
            trace.step_failed(self.manifest, step_id=step_id, ts=ts, error=str(outcome.exception))
            return

        result: Dict[str, Any] = {
            "status": "success" if outcome.status is StepStatus.EXECUTED else "optional_failure",
        }
        if outcome.error is not None:
            result["error"] = outcome.error.message
        if self.settings.include_result and outcome.status is StepStatus.EXECUTED:
            result["output"] = outcome.output
        trace.step_finished(self.manifest, step_id=step_id, ts=ts, result=result)

    def branch_selected(self, group: BranchGroup, branch: Branch, label: str) -> None:
        if self.manifest is not None:
            trace.add_event(
                self.manifest,
                event_type="branch_selected",
                ts=_now(),
                step_id=self.qualify(group.name),
                payload={"branch": branch.name, "label": label, "default": branch.is_default},
            )
        self._scope.append(label)

    def rolled_back(self, step: Step) -> None:
        if self.manifest is None:
            return
        trace.step_rolled_back(self.manifest, step_id=self.step_id(step), ts=_now())

    def rollback_failed(self, step: Step, error: WorkflowErrorPayload) -> None:
        if self.manifest is None:
            return
        trace.add_event(
            self.manifest,
            event_type="rollback_failed",
            ts=_now(),
            step_id=self.step_id(step),
            payload=error.to_dict(),
        )

    def finished(self, result: ExecutionResult) -> None:
        if self.manifest is None:
            return
        if result.success:
            trace.add_event(
                self.manifest,
                event_type="workflow_completed",
                ts=_now(),
                payload={
                    "duration_ms": result.duration_ms,
                    "steps_executed": result.steps_executed,
                },
            )
        else:
            trace.add_event(
                self.manifest,
                event_type="workflow_failed",
                ts=_now(),
                step_id=result.failed_step,
                payload={"message": result.message, "duration_ms": result.duration_ms},
            )

        if self.settings.manifest_dir is None:
            return
        run_id = self.manifest.run["run_id"]
        path = self.settings.manifest_dir / f"{run_id}.json"
        try:
            trace.save_manifest(self.manifest, path)
        except OSError as exc:
            message = f"Manifest save failed for {path}: {exc}"
            result.context.log(
                step_id=None,
                level="ERROR",
                message=message,
                exception_class=type(exc).__name__,
            )
            result.context.add_warning(step_id=self.manifest.run["workflow"], message=message)


class WorkflowExecutor:
    """Executor canônico do Atlas Workflow (uma instância serve muitas invocações)."""

    def __init__(
        self,
        definition: WorkflowDefinition,
        *,
        settings: Optional[EngineSettings] = None,
        transaction_manager: Optional[TransactionManager] = None,
    ):
        if definition.use_transaction and transaction_manager is None:
            raise WorkflowConfigurationError(
                message=f"Workflow {definition.name} declares a transaction but no transaction manager was provided",
                details={"workflow": definition.name},
                hint="Informe transaction_manager ao construir o executor.",
            )
        self.definition = definition
        self.settings = settings or EngineSettings()
        self.transaction_manager = transaction_manager

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self, actor: Any, params: Optional[Dict[str, Any]] = None) -> ExecutionResult:
        context = WorkflowContext(
            actor=actor,
            params=dict(params or {}),
            log_level=self.settings.log_level,
        )
        record = ExecutionRecord(workflow=self.definition.name)
        record.start()
        run_trace = _RunTrace.start(definition=self.definition, context=context, settings=self.settings)
        manifest = run_trace.manifest
        builder = ResultBuilder(record)

        raised: Optional[WorkflowException] = None
        try:
            if self._run_before_hooks(context):
                result = builder.failure(context, manifest=manifest)
            else:
                self._execute(context, actor, record, run_trace)
                result = builder.success(context, manifest=manifest)
        except WorkflowException as exc:
            result = builder.failure(
                context,
                message=exc.message,
                failed_step=exc.failed_step or exc.details.get("branch_group"),
                error=exc,
                manifest=manifest,
            )
            exc.result = result
            raised = exc

        self._log_outcome(context, result)
        self._run_after_hooks(context)
        run_trace.finished(result)

        if raised is not None and self.settings.raise_on_failure:
            raise raised
        return result

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def _run_before_hooks(self, context: WorkflowContext) -> bool:
        """Executa os hooks before_workflow; True quando um deles abortou a invocação."""
        for hook in self.definition.before_hooks:
            try:
                hook(context)
            except WorkflowException:
                raise
            except Exception as exc:
                raise WorkflowExecutionError(
                    message=f"before_workflow hook failed: {exc}",
                    details={"workflow": self.definition.name, "steps_executed": []},
                    original_error=exc,
                ) from exc
            if context.failure:
                return True
        return False

    def _run_after_hooks(self, context: WorkflowContext) -> None:
        for hook in self.definition.after_hooks:
            try:
                hook(context)
            except Exception as exc:
                message = f"after_workflow hook failed: {exc}"
                context.log(
                    step_id=None,
                    level="ERROR",
                    message=message,
                    exception_class=type(exc).__name__,
                )
                context.add_warning(step_id=self.definition.name, message=message)

    def _invoke_step(self, step: Step, context: WorkflowContext, actor: Any) -> StepOutcome:
        def call() -> StepOutcome:
            return step.call(context, actor)

        proceed: Callable[[], StepOutcome] = call
        for hook in reversed(self.definition.around_hooks):
            proceed = functools.partial(hook, step, context, proceed)

        outcome = proceed()
        if not isinstance(outcome, StepOutcome):
            raise WorkflowExecutionError(
                message=f"around_step hook must return the outcome of proceed() for step {step.name}",
                details={"step": step.name, "received": type(outcome).__name__},
            )
        return outcome

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------
    def _execute(
        self,
        context: WorkflowContext,
        actor: Any,
        record: ExecutionRecord,
        run_trace: _RunTrace,
    ) -> None:
        if not self.definition.use_transaction:
            self._walk(context, actor, record, run_trace)
            return

        envelope = TransactionalEnvelope(self.transaction_manager)
        try:
            with envelope:
                self._walk(context, actor, record, run_trace)
        except TransactionError as exc:
            exc.details.setdefault("steps_executed", list(record.executed))
            if envelope.state == "commit_failed":
                self._rollback(exc, context, record, run_trace)
            raise

    def _walk(
        self,
        context: WorkflowContext,
        actor: Any,
        record: ExecutionRecord,
        run_trace: _RunTrace,
    ) -> None:
        run_node = self._node_runner(context, actor, record, run_trace)
        try:
            for node in self.definition.nodes:
                run_node(node)
        except WorkflowException as exc:
            self._rollback(exc, context, record, run_trace)
            raise
        except Exception as exc:
            wrapped = WorkflowExecutionError(
                message=f"Workflow {self.definition.name} failed unexpectedly: {exc}",
                details={
                    "workflow": self.definition.name,
                    "steps_executed": list(record.executed),
                },
                original_error=exc,
            )
            self._rollback(wrapped, context, record, run_trace)
            raise wrapped from exc

    def _node_runner(
        self,
        context: WorkflowContext,
        actor: Any,
        record: ExecutionRecord,
        run_trace: _RunTrace,
    ) -> Callable[[Node], None]:
        def run_node(node: Node) -> None:
            if isinstance(node, BranchGroup):
                depth = run_trace.depth
                try:
                    node.call(
                        context,
                        actor,
                        record=record,
                        run_node=run_node,
                        on_selected=functools.partial(run_trace.branch_selected, node),
                    )
                finally:
                    run_trace.restore(depth)
                return

            started_at = _now()
            try:
                outcome = self._invoke_step(node, context, actor)
            except WorkflowException:
                raise
            except Exception as exc:
                payload = execution_error(
                    step=node.name,
                    exc_type=type(exc).__name__,
                    exc_message=str(exc),
                )
                raise WorkflowExecutionError(
                    message=f"Unexpected error while running step {node.name}: {exc}",
                    details={
                        "step": node.name,
                        "steps_executed": list(record.executed),
                        "errors": payload.to_dict(),
                    },
                    hint=payload.hint,
                    original_error=exc,
                ) from exc

            record.record(node, outcome)
            run_trace.step_outcome(node, outcome, started_at)
            if outcome.status is StepStatus.FATAL_FAILURE:
                raise step_execution_error(outcome, record)

        return run_node

    # ------------------------------------------------------------------
    # RollingBack
    # ------------------------------------------------------------------
    def _rollback(
        self,
        exc: WorkflowException,
        context: WorkflowContext,
        record: ExecutionRecord,
        run_trace: _RunTrace,
    ) -> None:
        """Compensa os Steps concluídos em ordem LIFO; anexa RollbackError em `exc`."""
        pending = [step for step in reversed(record.completed_steps) if step.has_rollback]
        rolled_back = []
        for index, step in enumerate(pending):
            context.log(step_id=step.name, level="DEBUG", message=f"Rolling back step {step.name}")
            try:
                step.rollback(context)
            except Exception as rollback_exc:
                context.log(
                    step_id=step.name,
                    level="ERROR",
                    message=f"Rollback failed for step {step.name}: {rollback_exc}",
                    exception_class=type(rollback_exc).__name__,
                )
                payload = rollback_failed_error(
                    step=step.name,
                    exc_type=type(rollback_exc).__name__,
                    exc_message=str(rollback_exc),
                    pending_rollbacks=[s.name for s in pending[index + 1:]],
                )
                run_trace.rollback_failed(step, payload)
                exc.rollback_error = RollbackError(
                    message=f"Rollback failed for step {step.name}: {rollback_exc}",
                    details={
                        "step": step.name,
                        "steps_rolled_back": rolled_back,
                        "pending_rollbacks": payload.details["pending_rollbacks"],
                    },
                    hint=payload.hint,
                    original_error=rollback_exc,
                )
                return
            rolled_back.append(step.name)
            run_trace.rolled_back(step)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    def _log_outcome(self, context: WorkflowContext, result: ExecutionResult) -> None:
        if result.success:
            context.log(
                step_id=None,
                level="INFO",
                message=f"Workflow {self.definition.name} completed",
                duration_ms=result.duration_ms,
            )
            return

        extra: Dict[str, Any] = {"failed_step": result.failed_step, "duration_ms": result.duration_ms}
        if isinstance(result.error, WorkflowException):
            extra["error_code"] = result.error.code
        context.log(
            step_id=result.failed_step,
            level="ERROR",
            message=f"Workflow {self.definition.name} failed: {result.message}",
            **extra,
        )
