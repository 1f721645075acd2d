# src/atlas_workflow/core/pipeline/step.py
"""
Contrato canônico de Step do Atlas Workflow.

Um Step é a menor unidade executável de um workflow: envolve uma
Runnable Operation externa com condição de execução opcional,
mapeamento de entrada, flag de opcionalidade e ação de compensação.

Colaboradores (interfaces estreitas, injetadas na definição):
    - RunnableOperation: construída com `(actor, params)`, expõe `invoke()`
    - Predicate: `(context) -> bool`, sem efeitos colaterais
    - InputMapper: `(context) -> params` da operação
    - RollbackFn: `(context) -> None`, ação compensatória

Algoritmo de `Step.call(context, actor)`:
    1. Condição presente e falsa → SKIPPED (nada é invocado nem gravado).
       Exceção na condição é tratada como "falso" e registrada no log.
    2. Entrada calculada pelo InputMapper (padrão: dicionário vazio).
    3. Operação construída com `(actor, params)` e invocada.
    4. Sucesso → output gravado sob o nome do Step; EXECUTED.
    5. Falha → Step opcional grava `<nome>_error` e retorna
       OPTIONAL_FAILURE; Step obrigatório retorna FATAL_FAILURE com a causa.

`Step.rollback(context)` nunca absorve exceções: falhas de compensação
sobem para o executor, que as reporta como RollbackError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable

from atlas_workflow.core.errors import exception_to_error, step_failed_error

from .context import WorkflowContext
from .types import StepOutcome


@runtime_checkable
class RunnableOperation(Protocol):
    """Operação de negócio externa consumida por um Step."""

    def invoke(self) -> Any:
        """Executa a operação; retorna o output ou levanta exceção."""
        ...


OperationFactory = Callable[[Any, Dict[str, Any]], RunnableOperation]
Predicate = Callable[[WorkflowContext], bool]
InputMapper = Callable[[WorkflowContext], Mapping[str, Any]]
RollbackFn = Callable[[WorkflowContext], None]


def evaluate_predicate(predicate: Predicate, context: WorkflowContext, *, owner: str) -> bool:
    """
    Avalia uma condição contra o contexto.

    Uma exceção levantada pela condição equivale a "falso": é registrada
    no log do contexto (nível ERROR) e como warning de `owner`, e nunca
    propagada.
    """
    try:
        return bool(predicate(context))
    except Exception as exc:
        message = f"Condition evaluation failed for {owner}: {exc}"
        context.log(
            step_id=owner,
            level="ERROR",
            message=message,
            exception_class=type(exc).__name__,
        )
        context.add_warning(step_id=owner, message=message)
        return False


@dataclass(frozen=True)
class Step:
    """
    Unidade de execução de um workflow.

    Atributos:
        - name: identificador único no escopo que contém o Step
        - operation: fábrica da Runnable Operation (tipicamente a classe)
        - input_mapper: monta a entrada da operação a partir do contexto
        - condition: condição de execução; ausente → sempre executa
        - optional: falhas absorvidas em vez de abortar a invocação
        - rollback_fn: ação compensatória executada em rollback
    """

    name: str
    operation: OperationFactory
    input_mapper: Optional[InputMapper] = None
    condition: Optional[Predicate] = None
    optional: bool = False
    rollback_fn: Optional[RollbackFn] = None

    def should_run(self, context: WorkflowContext) -> bool:
        if self.condition is None:
            return True
        return evaluate_predicate(self.condition, context, owner=self.name)

    def build_input(self, context: WorkflowContext) -> Dict[str, Any]:
        if self.input_mapper is None:
            return {}
        return dict(self.input_mapper(context) or {})

    def call(self, context: WorkflowContext, actor: Any) -> StepOutcome:
        if not self.should_run(context):
            context.log(step_id=self.name, level="DEBUG", message=f"Step {self.name} skipped due to condition")
            return StepOutcome.skipped(self.name)

        try:
            params = self.build_input(context)
            output = self.operation(actor, params).invoke()
        except Exception as exc:
            if self.optional:
                error = exception_to_error(exc, step=self.name)
                context.record_error(self.name, error.to_dict())
                context.log(
                    step_id=self.name,
                    level="WARNING",
                    message=f"Optional step {self.name} failed but continuing: {error.message}",
                )
                context.add_warning(step_id=self.name, message=error.message)
                return StepOutcome.optional_failure(self.name, error=error, exception=exc)

            context.log(
                step_id=self.name,
                level="ERROR",
                message=f"Step {self.name} failed: {exc}",
                exception_class=type(exc).__name__,
            )
            error = step_failed_error(
                step=self.name,
                exc_type=type(exc).__name__,
                exc_message=str(exc),
            )
            return StepOutcome.fatal(self.name, error=error, exception=exc)

        context.set(self.name, output)
        return StepOutcome.executed(self.name, output)

    def rollback(self, context: WorkflowContext) -> None:
        if self.rollback_fn is None:
            return
        self.rollback_fn(context)

    @property
    def has_rollback(self) -> bool:
        return self.rollback_fn is not None
