# src/atlas_workflow/core/engine/transaction.py
"""
Envelope transacional do Atlas Workflow.

O engine nunca implementa atomicidade: apenas demarca a fronteira em
torno de toda a execução dos nós e delega begin/commit/abort a um
colaborador de armazenamento externo (`TransactionManager`).

Semântica de `TransactionalEnvelope`:
    - __enter__ → manager.begin(); falha no begin vira TransactionError
      (nenhum nó executa e não há abort)
    - saída limpa → manager.commit(); falha no commit vira TransactionError
    - exceção deixando o bloco → manager.abort(); a exceção original segue

Uma falha no `abort()` não substitui a exceção original: é anexada a ela
em `details["abort_error"]` quando a exceção for uma WorkflowException.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from atlas_workflow.core.exceptions import TransactionError, WorkflowException


@runtime_checkable
class TransactionManager(Protocol):
    """Colaborador de armazenamento que expõe a primitiva transacional nativa."""

    def begin(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def abort(self) -> None:
        ...


class TransactionalEnvelope:
    """Context manager que demarca uma transação externa."""

    def __init__(self, manager: TransactionManager):
        self.manager = manager
        self.state = "pending"

    def __enter__(self) -> "TransactionalEnvelope":
        try:
            self.manager.begin()
        except Exception as begin_exc:
            self.state = "begin_failed"
            raise TransactionError(
                message=f"Transaction begin failed: {begin_exc}",
                details={"phase": "begin", "exception_class": type(begin_exc).__name__},
                original_error=begin_exc,
            ) from begin_exc
        self.state = "open"
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self.commit()
            return False

        self.abort(exc)
        return False

    def commit(self) -> None:
        try:
            self.manager.commit()
        except Exception as commit_exc:
            self.state = "commit_failed"
            raise TransactionError(
                message=f"Transaction commit failed: {commit_exc}",
                details={"phase": "commit", "exception_class": type(commit_exc).__name__},
                original_error=commit_exc,
            ) from commit_exc
        self.state = "committed"

    def abort(self, cause: Optional[BaseException] = None) -> None:
        try:
            self.manager.abort()
        except Exception as abort_exc:
            self.state = "abort_failed"
            if isinstance(cause, WorkflowException):
                cause.details["abort_error"] = {
                    "class": type(abort_exc).__name__,
                    "message": str(abort_exc),
                }
                return
            raise
        self.state = "aborted"
