from datetime import datetime, timezone
import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from pymongo.errors import DuplicateKeyError

from bibliogest import config
from bibliogest.database import Store, create_document, get_documents
from bibliogest.schemas import Product, ProductReview

logger = logging.getLogger(__name__)


class ReferenceCodeError(RuntimeError):
    """No free reference code was found within the attempt bound."""


class ReferenceCodeGenerator:
    """Issues ``R-nnnn`` codes unique against storage and earlier calls.

    Candidates start one past the highest numeric suffix seen in storage or
    already in ``issued``, which ``get_generator`` shares per collection. The
    store's unique ``_id`` decides between concurrent generators; ``create``
    retries the loser.
    """

    def __init__(
        self,
        store: Store,
        prefix: Optional[str] = None,
        width: Optional[int] = None,
        max_attempts: Optional[int] = None,
        issued: Optional[Set[str]] = None,
    ):
        self.store = store
        self.prefix = config.REFERENCE_CODE_PREFIX if prefix is None else prefix
        self.width = width or config.REFERENCE_CODE_WIDTH
        self.max_attempts = max_attempts or config.REFERENCE_CODE_MAX_ATTEMPTS
        self.issued: Set[str] = set() if issued is None else issued
        self._pattern = re.compile("^" + re.escape(self.prefix) + r"(\d+)$")

    def suffix(self, code: str) -> Optional[int]:
        match = self._pattern.match(code or "")
        return int(match.group(1)) if match else None

    def format(self, number: int) -> str:
        return f"{self.prefix}{number:0{self.width}d}"

    def stored_codes(self) -> List[Tuple[int, str]]:
        cursor = self.store.products.find(
            {"_id": {"$regex": self._pattern.pattern}}, {"_id": 1}
        )
        return [(self.suffix(doc["_id"]), doc["_id"]) for doc in cursor]

    def highest_stored(self) -> int:
        return max((number for number, _ in self.stored_codes()), default=0)

    def _highest_issued(self) -> int:
        return max((self.suffix(code) for code in self.issued), default=0)

    def generate(self) -> str:
        candidate = max(self.highest_stored(), self._highest_issued()) + 1
        for _ in range(self.max_attempts):
            code = self.format(candidate)
            if code not in self.issued and self.store.products.find_one({"_id": code}, {"_id": 1}) is None:
                self.issued.add(code)
                return code
            candidate += 1
        raise ReferenceCodeError(f"No free reference code after {self.max_attempts} attempts")

    def create(self, product: Product) -> Product:
        for attempt in range(1, self.max_attempts + 1):
            product.id = self.generate()
            try:
                create_document(self.store.products, product)
            except DuplicateKeyError:
                logger.warning("Reference code %s taken concurrently (attempt %d)", product.id, attempt)
                continue
            logger.info("Created product %s", product.id)
            return product
        raise ReferenceCodeError(f"Could not insert product after {self.max_attempts} attempts")


# Codes issued this process, per products collection
_issued_codes: Dict[str, Set[str]] = {}


def get_generator(store: Store) -> ReferenceCodeGenerator:
    issued = _issued_codes.setdefault(store.products.full_name, set())
    return ReferenceCodeGenerator(store, issued=issued)


def generate_reference_code(store: Store) -> str:
    return get_generator(store).generate()


def insert_product(store: Store, product: Product) -> str:
    return create_document(store.products, product)


def find_by_id(store: Store, product_id: str) -> Optional[Product]:
    return Product.from_document(store.products.find_one({"_id": product_id}))


def find_reserved_by_user(store: Store, user_id: str) -> List[Product]:
    return [Product.from_document(doc) for doc in get_documents(store.products, {"reserved_by": user_id})]


def reserve(store: Store, product_id: str, user_id: str) -> int:
    res = store.products.update_one(
        {"_id": product_id, "reserved_by": None},
        {"$set": {"reserved_by": user_id}},
    )
    return res.modified_count


def release(store: Store, product_id: str) -> int:
    res = store.products.update_one(
        {"_id": product_id, "reserved_by": {"$ne": None}},
        {"$unset": {"reserved_by": ""}},
    )
    return res.modified_count


def get_last_product_id(store: Store) -> Optional[str]:
    """Stored reference code with the highest numeric suffix, or None."""
    codes = ReferenceCodeGenerator(store).stored_codes()
    if not codes:
        return None
    return max(codes, key=lambda pair: pair[0])[1]


def convert_from_epoch(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%d/%m/%Y")


# Reviews

def rate_product(store: Store, product_id: str, user_id: str, score: int, comment: Optional[str] = None) -> ProductReview:
    review = ProductReview(product_id=product_id, user=user_id, score=score, comment=comment)
    store.reviews.replace_one(
        {"product_id": product_id, "user": user_id},
        review.to_document(),
        upsert=True,
    )
    return review


def get_reviews(store: Store, product_id: str) -> List[ProductReview]:
    return [ProductReview.from_document(doc) for doc in store.reviews.find({"product_id": product_id})]


def get_average_score(store: Store, product_id: str) -> Optional[float]:
    scores = [review.score for review in get_reviews(store, product_id)]
    if not scores:
        return None
    return sum(scores) / len(scores)
