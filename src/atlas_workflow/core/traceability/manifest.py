# src/atlas_workflow/core/traceability/manifest.py
"""
Manifest — rastreabilidade forense de invocações do Atlas Workflow.

Este módulo define a estrutura e as operações canônicas do Manifest,
o registro auditável de uma única invocação de workflow.

O Manifest consolida, de forma determinística:
    - metadados da invocação (run_id, workflow, started_at, engine_version)
    - hashes semânticos de entradas (configuração e parâmetros)
    - estado incremental dos Steps
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico
    - O Manifest é independente do executor (o executor apenas o alimenta)

Limites explícitos:
    - Não executa workflows
    - Não decide políticas de execução (rollback, transação)
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração não negativa, em milissegundos inteiros, entre dois timestamps."""
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class WorkflowManifest:
    """
    Registro forense de uma invocação de workflow.

    Campos principais:
        - run: metadados da invocação (run_id, workflow, started_at, engine_version)
        - inputs: hashes semânticos (config_hash, params_hash)
        - steps: estado incremental de cada Step, indexado pelo nome
        - events: Event Log ordenado

    Invariantes:
        - `steps` é sempre um dicionário indexado por nome de Step
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável e independente do estado interno."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowManifest":
        """Reconstrução permissiva e estrutural (campos ausentes iniciam vazios)."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    def event_types(self) -> List[str]:
        return [e["event_type"] for e in self.events]


ManifestLike = Union[WorkflowManifest, Dict[str, Any]]


def create_manifest(
    *,
    run_id: str,
    workflow: str,
    started_at: datetime,
    engine_version: str,
    config_hash: str,
    params_hash: Optional[str] = None,
) -> WorkflowManifest:
    """
    Cria o Manifest inicial de uma invocação.

    ⚠️ Importante: esta função **não emite eventos implicitamente**.
    O Event Log inicia vazio; `workflow_started` é registrado pelo
    executor via `add_event`.

    Args:
        run_id (str): Identificador único da invocação.
        workflow (str): Nome do workflow executado.
        started_at (datetime): Timestamp de início.
        engine_version (str): Versão do Atlas Workflow utilizada.
        config_hash (str): Hash da configuração efetiva do executor.
        params_hash (Optional[str]): Hash dos parâmetros de entrada.

    Returns:
        WorkflowManifest: Manifest com `steps` e `events` vazios.
    """
    started_at = _ensure_tzaware_utc(started_at)

    return WorkflowManifest(
        run={
            "run_id": run_id,
            "workflow": workflow,
            "started_at": _iso(started_at),
            "engine_version": engine_version,
        },
        inputs={
            "config_hash": config_hash,
            "params_hash": params_hash,
        },
        steps={},
        events=[],
    )


def _get_manifest(manifest: ManifestLike) -> Tuple[WorkflowManifest, bool]:
    """Normaliza a entrada; o booleano indica se a original era um dicionário."""
    if isinstance(manifest, WorkflowManifest):
        return manifest, False
    return WorkflowManifest.from_dict(manifest), True


def _sync_back(manifest: ManifestLike, m: WorkflowManifest, is_dict: bool) -> None:
    if is_dict:
        manifest.clear()
        manifest.update(m.to_dict())


def add_event(
    manifest: ManifestLike,
    *,
    event_type: str,
    ts: datetime,
    step_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    Cada chamada adiciona exatamente um evento; eventos não são
    reordenados nem deduplicados. `event_type` não é validado.
    """
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_id is not None:
        ev["step_id"] = step_id
    if payload is not None:
        ev["payload"] = payload
    m.events.append(ev)

    _sync_back(manifest, m, is_dict)


def step_started(manifest: ManifestLike, *, step_id: str, ts: datetime) -> None:
    """Marca o Step como `running` e registra `step_started`."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    m.steps.setdefault(step_id, {})
    m.steps[step_id].update(
        {
            "step_id": step_id,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(m, event_type="step_started", ts=ts, step_id=step_id)

    _sync_back(manifest, m, is_dict)


def step_finished(
    manifest: ManifestLike,
    *,
    step_id: str,
    ts: datetime,
    result: Dict[str, Any],
) -> None:
    """
    Registra a conclusão de um Step.

    `result` carrega `status` (`success` | `optional_failure`) e,
    opcionalmente, `output` e `error`.
    """
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    s = m.steps.setdefault(step_id, {"step_id": step_id})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    status = result.get("status", "success")
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
        }
    )
    if "output" in result:
        s["output"] = result["output"]
    if result.get("error") is not None:
        s["error"] = result["error"]

    add_event(
        m,
        event_type="step_finished",
        ts=ts,
        step_id=step_id,
        payload={"status": status, "duration_ms": s.get("duration_ms", 0)},
    )

    _sync_back(manifest, m, is_dict)


def step_skipped(manifest: ManifestLike, *, step_id: str, ts: datetime) -> None:
    """Registra um Step cuja condição foi avaliada como falsa."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    m.steps[step_id] = {"step_id": step_id, "status": "skipped", "finished_at": _iso(ts)}
    add_event(m, event_type="step_skipped", ts=ts, step_id=step_id)

    _sync_back(manifest, m, is_dict)


def step_failed(manifest: ManifestLike, *, step_id: str, ts: datetime, error: str) -> None:
    """Marca o Step como `failed` e registra `step_failed` com a mensagem."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    s = m.steps.setdefault(step_id, {"step_id": step_id})
    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "error": error,
        }
    )
    add_event(m, event_type="step_failed", ts=ts, step_id=step_id, payload={"error": error})

    _sync_back(manifest, m, is_dict)


def step_rolled_back(manifest: ManifestLike, *, step_id: str, ts: datetime) -> None:
    """Registra a compensação bem-sucedida de um Step concluído."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    s = m.steps.setdefault(step_id, {"step_id": step_id})
    s["rolled_back_at"] = _iso(ts)
    add_event(m, event_type="step_rolled_back", ts=ts, step_id=step_id)

    _sync_back(manifest, m, is_dict)


def save_manifest(manifest: ManifestLike, path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico (chaves ordenadas).

    Valores não serializáveis (ex.: outputs de Steps) são gravados via `str`.

    Raises:
        OSError: Em caso de falha ao criar diretórios ou escrever o arquivo.
    """
    data = manifest.to_dict() if isinstance(manifest, WorkflowManifest) else manifest
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> WorkflowManifest:
    """
    Restaura um Manifest persistido por `save_manifest`.

    Raises:
        OSError: Em caso de falha de leitura.
        json.JSONDecodeError: Em caso de JSON inválido.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return WorkflowManifest.from_dict(data)
