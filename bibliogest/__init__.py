"""
BiblioGest data-access layer.

Accounts, products and chat messages stored in MongoDB.
"""

import logging
from typing import Optional

from bibliogest import config
from bibliogest.database import Store
from bibliogest.schemas import ChatMessage, Product, ProductReview, Role, User


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = [
    "ChatMessage",
    "Product",
    "ProductReview",
    "Role",
    "Store",
    "User",
    "configure_logging",
]
