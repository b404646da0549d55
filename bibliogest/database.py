from dataclasses import dataclass
import logging
from typing import Optional, Union

from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from bibliogest import config
from bibliogest.schemas import ChatMessage, Product, ProductReview, User

logger = logging.getLogger(__name__)


def collection_name(model_cls: type) -> str:
    return model_cls.__name__.lower()


def get_client(url: Optional[str] = None) -> MongoClient:
    return MongoClient(url or config.DATABASE_URL)


def get_database(client: Optional[MongoClient] = None, name: Optional[str] = None) -> Database:
    client = client or get_client()
    return client[name or config.DATABASE_NAME]


@dataclass(eq=False)
class Store:
    """Collections an operation works against, passed explicitly to every call."""

    users: Collection
    products: Collection
    chat_messages: Collection
    reviews: Collection

    @classmethod
    def from_database(cls, db: Database) -> "Store":
        return cls(
            users=db[collection_name(User)],
            products=db[collection_name(Product)],
            chat_messages=db[collection_name(ChatMessage)],
            reviews=db[collection_name(ProductReview)],
        )

    @classmethod
    def connect(cls, url: Optional[str] = None, name: Optional[str] = None) -> "Store":
        config.validate_runtime_config()
        db = get_database(get_client(url), name)
        logger.info("Connected to database %s", db.name)
        return cls.from_database(db)


def create_document(collection: Collection, data: Union[BaseModel, dict]) -> str:
    if isinstance(data, BaseModel):
        if hasattr(data, "to_document"):
            doc = data.to_document()
        else:
            doc = data.model_dump(by_alias=True)
    else:
        doc = dict(data)
    result = collection.insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection: Collection, filter_dict: Optional[dict] = None, limit: Optional[int] = None) -> list:
    cursor = collection.find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
