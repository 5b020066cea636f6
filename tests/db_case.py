import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402


class TempDbTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the store at a fresh temporary SQLite file for every test."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self._saved_path = db_database.DB_PATH
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT name FROM sqlite_master WHERE type='table';")
            await cur.fetchall()
            await cur.close()

    def tearDown(self):
        db_database.DB_PATH = self._saved_path
        db_database._initialized = False
        self.temp_dir.cleanup()

    async def make_account(self, email, role="user", name=None, category_id=None):
        """Register a provisioned identity and return its profile."""
        identity = await crud.register_identity(
            email,
            "not-a-real-hash",
            {"name": name or email.split("@")[0], "role": role, "category_id": category_id},
        )
        return await crud.get_profile_by_auth_id(identity.id)

    async def count(self, table):
        async with db_database.connect() as conn:
            cur = await conn.execute(f"SELECT COUNT(*) FROM {table};")
            row = await cur.fetchone()
            await cur.close()
        return row[0]
