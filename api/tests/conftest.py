import os
import sys
import tempfile
from pathlib import Path

# Settings are read once at import time, so the test database and keys must
# be in the environment before anything imports gstbill.
_DB_DIR = tempfile.mkdtemp(prefix="gstbill-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["API_KEYS"] = "test_key:tenant_a,other_key:tenant_b"
os.environ["LOG_JSON"] = "false"

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest


@pytest.fixture
def invoice_item():
    def _item(**overrides):
        item = {
            "product": "prod_1",
            "batch": "batch_1",
            "productName": "Paracetamol 500mg",
            "hsnCode": "3004",
            "unit": "STRIP",
            "quantity": 1,
            "sellingPrice": 100,
            "gstRate": 12,
        }
        item.update(overrides)
        return item

    return _item
