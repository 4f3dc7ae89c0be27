"""
Constantes centralizadas da aplicação.

Este módulo centraliza constantes utilizadas em toda a aplicação,
evitando magic strings e facilitando manutenção.

Seções:
    - TAREFAS: Regras de negócio fixas (ranking de prioridade, vencimento)
    - LIMITES: Tamanhos máximos dos campos de texto
    - FORMATOS: Formatos de data usados na saída da API
    - PAGINACAO: Valores padrão de paginação e ordenação
"""

from datetime import timedelta


# =============================================================================
# TAREFAS - REGRAS DE NEGÓCIO
# =============================================================================

# Ordem de urgência: menor valor aparece primeiro
PRIORIDADE_RANK = {
    "URGENTE": 1,
    "ALTA": 2,
    "MEDIA": 3,
    "BAIXA": 4,
}

# Tarefas pendentes com estimativa criadas antes deste prazo são "vencidas"
PRAZO_VENCIMENTO = timedelta(days=7)


# =============================================================================
# LIMITES - TAMANHO DOS CAMPOS
# =============================================================================

TITULO_MIN = 3
TITULO_MAX = 100
DESCRICAO_MAX = 500
USUARIO_MAX = 100
CATEGORIA_MAX = 50
TAGS_MAX = 200
OBSERVACOES_MAX = 1000

# Collation binária do título no MySQL/MariaDB (unicidade sensível a maiúsculas)
TITULO_COLLATION_MYSQL = "utf8mb4_bin"


# =============================================================================
# FORMATOS
# =============================================================================

# Datas expostas pela API (dd/mm/aaaa, sem horário)
DATA_SAIDA_FORMATO = "%d/%m/%Y"

# Datas recebidas em parâmetros de consulta
DATA_ENTRADA_FORMATO = "%Y-%m-%d"


# =============================================================================
# PAGINACAO
# =============================================================================

DEFAULT_PAGE = 0
DEFAULT_SORT_BY = "data_criacao"
DEFAULT_SORT_DIR = "desc"

# Campos aceitos em ``sort_by``
CAMPOS_ORDENAVEIS = (
    "id",
    "titulo",
    "status",
    "prioridade",
    "data_criacao",
    "data_atualizacao",
    "data_conclusao",
    "usuario_responsavel",
    "categoria",
    "estimativa_horas",
    "tempo_real_horas",
)
