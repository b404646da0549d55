import mongomock
import pytest

from bibliogest import products
from bibliogest.database import Store, get_database


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(products, '_issued_codes', {})
    client = mongomock.MongoClient()
    db = get_database(client, 'libreria_test')
    try:
        yield Store.from_database(db)
    finally:
        client.drop_database('libreria_test')
        client.close()
