# src/atlas_workflow/core/config/hashing.py
"""
Hashing canônico de configuração e parâmetros do Atlas Workflow.

O hash gerado representa a identidade estrutural da configuração efetiva
(ou dos parâmetros de uma invocação) e é utilizado para rastreabilidade
no Manifest.

Política de hashing (v1):
    - Serialização JSON canônica
    - Ordenação estável de chaves
    - Separadores compactos
    - Codificação UTF-8
    - SHA-256

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
"""

import hashlib
import json
from typing import Any, Dict


def _sha256_of(data: Any, **dumps_kwargs: Any) -> str:
    canonical_json = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        **dumps_kwargs,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva do engine.

    Args:
        config (Dict[str, Any]): Configuração efetiva.

    Returns:
        str: Hash SHA-256 hexadecimal da configuração.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return _sha256_of(config)


def compute_payload_hash(payload: Any) -> str:
    """
    Gera um hash determinístico de parâmetros arbitrários de invocação.

    Diferente de `compute_config_hash`, aceita qualquer valor: objetos não
    serializáveis em JSON são representados por `str(obj)`.
    """
    return _sha256_of(payload, default=str)
