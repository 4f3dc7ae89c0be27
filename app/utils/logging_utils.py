"""Utility functions for standardized application logging."""
from __future__ import annotations

import logging
from typing import Iterable

logger = logging.getLogger(__name__)
actions_logger = logging.getLogger("tarefa_actions")


def log_alteracao_dados(
    action: str,
    resource_type: str,
    resource_id: int | None,
    fields: Iterable[str],
    request_id: str | None = None,
) -> None:
    """Log creation, update, status change or deletion of data."""
    actions_logger.info(
        "Alteracao de dados | acao=%s | %s_id=%s | campos=%s | req=%s",
        action,
        resource_type,
        resource_id,
        sorted(fields),
        request_id or "na",
        extra={"request_id": request_id},
    )


def log_consulta(route: str, filtros: dict, total: int, request_id: str | None = None) -> None:
    """Log filtered listings and searches at debug level."""
    logger.debug(
        "Consulta | rota=%s | filtros=%s | total=%s | req=%s",
        route,
        {k: v for k, v in filtros.items() if v is not None},
        total,
        request_id or "na",
    )
