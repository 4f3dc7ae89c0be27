import os
import tempfile
from datetime import datetime, timedelta

import pytest

os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ.setdefault('APP_LOG_DIR', os.path.join(tempfile.gettempdir(), 'tarefas-test-logs'))
os.environ['RATELIMIT_DEFAULT_LIMITS'] = ''

from app import app, db  # noqa: E402
from app.repositories.memory_repository import InMemoryTarefaRepository  # noqa: E402
from app.services.tarefa_service import TarefaService  # noqa: E402


class FakeClock:
    """Relógio controlável pelos testes."""

    def __init__(self, agora: datetime | None = None):
        self.agora = agora or datetime(2024, 3, 10, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.agora

    def avancar(self, **kwargs) -> datetime:
        self.agora = self.agora + timedelta(**kwargs)
        return self.agora


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(clock):
    return InMemoryTarefaRepository(clock=clock)


@pytest.fixture
def service(repository, clock):
    return TarefaService(repository, clock=clock)


@pytest.fixture
def app_ctx():
    with app.app_context():
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()


@pytest.fixture
def client(app_ctx):
    return app.test_client()
