"""Test helpers: recording fakes, sample product fields and JWT headers."""
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import jwt

from storefront.kafka.producer import NoOpEventProducer
from storefront.schemas.product import ProductCreate
from storefront.services.file_stores import FileStore, FileStoreError, StoredFile

JWT_SECRET = "test-secret"
BASE_URL = "http://test.local"


class RecordingFileStore(FileStore):
    """In-memory file store that records every delete attempt"""

    def __init__(self, fail_deletes: bool = False):
        self.fail_deletes = fail_deletes
        self.files = set()
        self.deleted: List[str] = []

    def save(self, data: bytes, original_filename: str, content_type: Optional[str] = None) -> StoredFile:
        name = f"stored-{len(self.files)}-{original_filename}"
        self.files.add(name)
        return StoredFile(path=f"/srv/uploads/{name}", original_filename=original_filename)

    def reference_for(self, stored: StoredFile) -> str:
        return f"{BASE_URL}/uploads/{os.path.basename(stored.path)}"

    def delete(self, reference: str) -> bool:
        self.deleted.append(reference)
        if self.fail_deletes:
            raise FileStoreError(f"storage unavailable for {reference}")
        name = os.path.basename(reference)
        if name in self.files:
            self.files.remove(name)
            return True
        return False


class RecordingEventProducer(NoOpEventProducer):
    def __init__(self):
        self.events = []

    def publish_product_created(self, **kwargs):
        self.events.append(("PRODUCT_CREATED", kwargs))

    def publish_product_updated(self, **kwargs):
        self.events.append(("PRODUCT_UPDATED", kwargs))

    def publish_product_deleted(self, **kwargs):
        self.events.append(("PRODUCT_DELETED", kwargs))


def stored(*names: str) -> List[StoredFile]:
    return [StoredFile(path=f"/srv/uploads/{name}", original_filename=name) for name in names]


def product_fields(**overrides) -> ProductCreate:
    data = {
        "name": "Colombian Supremo",
        "product_type": "coffee beans",
        "price": Decimal("12.50"),
        "net_weight": "500g",
        "description": "Medium roast, chocolate notes",
        "characteristics": "Origin: Huila",
        "stock": 20,
        "brand": "Montaña",
    }
    data.update(overrides)
    return ProductCreate(**data)


def make_token(user_id: str = "supplier-1", role: str = "supplier", secret: str = JWT_SECRET) -> str:
    payload = {
        "sub": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str = "supplier-1", role: str = "supplier") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


