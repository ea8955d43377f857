import os
import tempfile
from datetime import date, timedelta
from decimal import Decimal

# antes de importar o app: nunca tocar no banco local ./haver.db
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "haver_test_boot.db"))

import pytest
from fastapi.testclient import TestClient

from haver.infra.db import build_engine, build_sessionmaker, get_db
from haver.infra.models import Base
from haver.main import app
from haver.services.obligations import ObligationStore

FUTURE_DUE = date.today() + timedelta(days=30)


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'haver.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_obligation(db):
    def _make(value="25.00", due_date=FUTURE_DUE, **kwargs):
        obligation = ObligationStore(db).create(value=Decimal(value), due_date=due_date, **kwargs)
        db.commit()
        return obligation

    return _make


@pytest.fixture
def sale_group(make_obligation):
    """Quatro parcelas de 25,00 da mesma venda (total 100,00)."""
    return [
        make_obligation(
            "25.00",
            due_date=FUTURE_DUE + timedelta(days=30 * (n - 1)),
            person="Joao Soares",
            notes=f"Parcela {n}/4 | sale:VEN-1",
            sale_ref="VEN-1",
            installment_number=n,
            installment_count=4,
            payment_method="prazo",
        )
        for n in range(1, 5)
    ]
