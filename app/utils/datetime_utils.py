"""
Utilitários centralizados para manipulação de datas e horas.

Este módulo padroniza o tratamento de timestamps das tarefas,
garantindo consistência entre repositórios, serviço e API.

Padrões da aplicação:
    - Timezone principal: America/Sao_Paulo (SAO_PAULO_TZ)
    - Armazenamento: DATETIME sem timezone (naive)
    - Saída da API: apenas a data, no formato DD/MM/YYYY

Uso recomendado:
    # Em models
    data_criacao = db.Column(db.DateTime, default=now_naive, nullable=False)

    # Em código
    from app.utils.datetime_utils import now_naive, format_date_br
"""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from app.constants import DATA_ENTRADA_FORMATO, DATA_SAIDA_FORMATO

# Timezone principal da aplicação
SAO_PAULO_TZ = ZoneInfo("America/Sao_Paulo")


def now_naive() -> datetime:
    """
    Retorna datetime atual em São Paulo, sem timezone (naive).

    É o relógio padrão do serviço de tarefas e dos repositórios.

    Returns:
        datetime: Data/hora atual em São Paulo, sem tzinfo.
    """
    return datetime.now(SAO_PAULO_TZ).replace(tzinfo=None)


def format_date_br(dt: datetime | date | None) -> str | None:
    """
    Formata apenas a data no padrão brasileiro.

    Args:
        dt: Datetime ou date a ser formatado.

    Returns:
        str | None: Data como "DD/MM/YYYY", ou None quando ausente.
    """
    if dt is None:
        return None
    return dt.strftime(DATA_SAIDA_FORMATO)


def parse_date_iso(raw: str | None) -> date | None:
    """Return a date from a YYYY-MM-DD string or raise ValueError."""
    if raw is None:
        return None
    return datetime.strptime(raw.strip(), DATA_ENTRADA_FORMATO).date()


def start_of_day(day: date) -> datetime:
    """Primeiro instante do dia."""
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Último instante do dia."""
    return datetime.combine(day, time.max)
