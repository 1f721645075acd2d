# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas Workflow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML como string)
- fábricas de Runnable Operations fake (sucesso ou falha)
- rollbacks que registram a ordem de compensação
- um TransactionManager fake que registra begin/commit/abort
- EngineSettings fixos para testes do executor

O objetivo destas fixtures é permitir testes do core
(config, pipeline, engine e traceability) sem depender de:
- operações de negócio reais
- armazenamento real ou transações reais
- estado global

Decisões arquiteturais:
    - Operações fake utilizam duck typing (construtor `(actor, params)` + `invoke()`)
    - Imports do core são realizados de forma lazy dentro das fixtures
    - Todo efeito colateral é registrado em listas explícitas

Invariantes:
    - Nenhuma fixture executa workflow real
    - Nenhuma fixture realiza I/O
    - Todas as fixtures são isoladas por teste
"""

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """YAML de defaults semelhante a um `config.defaults.yaml` real."""
    return """\
engine:
  raise_on_failure: true
  log_level: INFO
instrumentation:
  enabled: true
  include_params: true
  include_result: false
  excluded_workflows: []
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de overrides locais (apenas as chaves sobrescritas)."""
    return """\
engine:
  log_level: DEBUG
instrumentation:
  excluded_workflows:
    - health_check
"""


# =====================================================
# Operation / rollback fixtures
# =====================================================

@pytest.fixture
def calls() -> list:
    """Registro ordenado de operações invocadas: `(nome, actor, params)`."""
    return []


@pytest.fixture
def make_operation(calls):
    """
    Fábrica de Runnable Operations fake.

    `make_operation("charge", output={"ok": True})` retorna uma *classe*
    construída com `(actor, params)` cujo `invoke()` registra a chamada em
    `calls` e retorna `output`. Com `error=`, `invoke()` levanta a exceção.
    """

    def factory(name: str, *, output=None, error: Exception = None):
        class _Operation:
            def __init__(self, actor, params):
                self.actor = actor
                self.params = params

            def invoke(self):
                calls.append((name, self.actor, dict(self.params)))
                if error is not None:
                    raise error
                return output if output is not None else {"step": name}

        _Operation.__name__ = f"{name.title().replace('_', '')}Operation"
        return _Operation

    return factory


@pytest.fixture
def executed_names(calls):
    """Nomes das operações invocadas, em ordem."""

    def names() -> list:
        return [name for name, _, _ in calls]

    return names


@pytest.fixture
def rollback_log() -> list:
    """Ordem real em que as compensações foram executadas."""
    return []


@pytest.fixture
def recording_rollback(rollback_log):
    """
    Fábrica de RollbackFn que registra o nome do Step compensado.

    Com `error=`, a compensação registra a tentativa e levanta a exceção.
    """

    def factory(name: str, *, error: Exception = None):
        def rollback(context):
            rollback_log.append(name)
            if error is not None:
                raise error

        return rollback

    return factory


# =====================================================
# Transaction fixtures
# =====================================================

@pytest.fixture
def FakeTransactionManager():
    """Classe de TransactionManager fake; registra as fases em `events`."""

    class _FakeTransactionManager:
        def __init__(
            self,
            *,
            fail_on_begin: bool = False,
            fail_on_commit: bool = False,
            fail_on_abort: bool = False,
        ):
            self.events = []
            self.fail_on_begin = fail_on_begin
            self.fail_on_commit = fail_on_commit
            self.fail_on_abort = fail_on_abort

        def begin(self):
            self.events.append("begin")
            if self.fail_on_begin:
                raise RuntimeError("db down")

        def commit(self):
            self.events.append("commit")
            if self.fail_on_commit:
                raise RuntimeError("commit refused")

        def abort(self):
            self.events.append("abort")
            if self.fail_on_abort:
                raise RuntimeError("abort refused")

    return _FakeTransactionManager


# =====================================================
# Engine settings fixtures
# =====================================================

@pytest.fixture
def debug_settings():
    """EngineSettings com log DEBUG e falhas levantando exceção."""
    from atlas_workflow.core.config.settings import EngineSettings

    return EngineSettings(log_level="DEBUG")


@pytest.fixture
def non_raising_settings():
    """EngineSettings que retornam o ExecutionResult de falha em vez de levantar."""
    from atlas_workflow.core.config.settings import EngineSettings

    return EngineSettings(raise_on_failure=False, log_level="DEBUG")


@pytest.fixture
def actor() -> dict:
    return {"id": 42, "role": "operator"}
