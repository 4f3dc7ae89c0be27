"""create tarefas_tb"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

revision = '0001_create_tarefas_tb'
down_revision = None
branch_labels = None
depends_on = None

STATUS_TAREFA = sa.Enum(
    'PENDENTE', 'EM_ANDAMENTO', 'CONCLUIDA', 'CANCELADA', 'PAUSADA',
    name='status_tarefa',
)
PRIORIDADE_TAREFA = sa.Enum('URGENTE', 'ALTA', 'MEDIA', 'BAIXA', name='prioridade_tarefa')

# utf8mb4_bin mantém a unicidade do título sensível a maiúsculas no MySQL.
TITULO_TYPE = sa.String(length=100).with_variant(
    mysql.VARCHAR(100, collation='utf8mb4_bin'), 'mysql', 'mariadb'
)


def upgrade():
    op.create_table(
        'tarefas_tb',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('titulo', TITULO_TYPE, nullable=False),
        sa.Column('descricao', sa.String(length=500)),
        sa.Column('status', STATUS_TAREFA, nullable=False),
        sa.Column('prioridade', PRIORIDADE_TAREFA, nullable=False),
        sa.Column('data_criacao', sa.DateTime(), nullable=False),
        sa.Column('data_atualizacao', sa.DateTime(), nullable=False),
        sa.Column('data_conclusao', sa.DateTime()),
        sa.Column('usuario_responsavel', sa.String(length=100)),
        sa.Column('categoria', sa.String(length=50)),
        sa.Column('tags', sa.String(length=200)),
        sa.Column('estimativa_horas', sa.Integer()),
        sa.Column('tempo_real_horas', sa.Integer()),
        sa.Column('observacoes', sa.String(length=1000)),
        sa.UniqueConstraint('titulo', name='uq_tarefas_titulo'),
    )
    op.create_index('ix_tarefas_status_prioridade', 'tarefas_tb', ['status', 'prioridade'])
    op.create_index('ix_tarefas_tb_data_criacao', 'tarefas_tb', ['data_criacao'])
    op.create_index('ix_tarefas_tb_usuario_responsavel', 'tarefas_tb', ['usuario_responsavel'])
    op.create_index('ix_tarefas_tb_categoria', 'tarefas_tb', ['categoria'])


def downgrade():
    op.drop_index('ix_tarefas_tb_categoria', table_name='tarefas_tb')
    op.drop_index('ix_tarefas_tb_usuario_responsavel', table_name='tarefas_tb')
    op.drop_index('ix_tarefas_tb_data_criacao', table_name='tarefas_tb')
    op.drop_index('ix_tarefas_status_prioridade', table_name='tarefas_tb')
    op.drop_table('tarefas_tb')
    STATUS_TAREFA.drop(op.get_bind(), checkfirst=True)
    PRIORIDADE_TAREFA.drop(op.get_bind(), checkfirst=True)
