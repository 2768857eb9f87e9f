import pytest

from config import TestConfig
from kasir import create_app
from kasir.database import close_db
from kasir.services import product_service
from kasir.services.schema_service import init_schema
from kasir.storage import FileSnapshotStore, open_storage


@pytest.fixture(scope='function')
def snapshot_store(tmp_path):
    """Local directory standing in for browser local storage."""
    return FileSnapshotStore(str(tmp_path / 'local_storage'))


@pytest.fixture(scope='function', params=['native', 'snapshot'])
def storage(request, tmp_path, snapshot_store):
    """Schema-initialized engine; every test using it runs on both backends."""
    engine = open_storage(
        request.param,
        'test.db',
        directory=str(tmp_path / 'db'),
        store=snapshot_store
    )
    init_schema(engine)
    yield engine
    engine.close()


@pytest.fixture(scope='function')
def snapshot_storage(snapshot_store):
    """Schema-initialized snapshot engine."""
    engine = open_storage('snapshot', 'test.db', store=snapshot_store)
    init_schema(engine)
    yield engine
    engine.close()


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application instance for testing."""
    class _Config(TestConfig):
        DATABASE_DIR = str(tmp_path / 'db')
        SNAPSHOT_DIR = str(tmp_path / 'local_storage')
        STORE_NAME = 'Toko Test'
        LOW_STOCK_THRESHOLD = 5

    app = create_app(_Config)
    yield app
    close_db(app)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def mie(storage):
    """Product 'Mie Instan' with 10 in stock."""
    return product_service.create_product(storage, 'Mie Instan', 3500, 10)


@pytest.fixture(scope='function')
def sabun(storage):
    """Product 'Sabun Mandi' with 20 in stock."""
    return product_service.create_product(storage, 'Sabun Mandi', 4500, 20)
