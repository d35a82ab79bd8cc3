import ssl
import unittest

from sqlalchemy import text

from podsearch.core.database import Database, prepare_database_url


class TestPrepareDatabaseUrl(unittest.TestCase):

    def test_sqlite_memory_url_is_untouched(self):
        self.assertEqual(prepare_database_url("sqlite+aiosqlite://"), ("sqlite+aiosqlite://", {}))

    def test_url_without_sslmode_is_untouched(self):
        url = "postgresql+asyncpg://user:pw@db:5432/podsearch?application_name=api"

        self.assertEqual(prepare_database_url(url), (url, {}))

    def test_sslmode_require_becomes_ssl_context(self):
        cleaned, connect_args = prepare_database_url(
            "postgresql+asyncpg://user:pw@db:5432/podsearch?sslmode=require"
        )

        self.assertEqual(cleaned, "postgresql+asyncpg://user:pw@db:5432/podsearch")
        self.assertIsInstance(connect_args["ssl"], ssl.SSLContext)
        self.assertEqual(connect_args["ssl"].verify_mode, ssl.CERT_NONE)

    def test_sslmode_disable(self):
        cleaned, connect_args = prepare_database_url(
            "postgresql+asyncpg://user:pw@db/podsearch?sslmode=disable&application_name=api"
        )

        self.assertNotIn("sslmode", cleaned)
        self.assertIn("application_name=api", cleaned)
        self.assertIs(connect_args["ssl"], False)


class TestDatabase(unittest.IsolatedAsyncioTestCase):

    async def test_in_memory_sqlite_opens(self):
        db = Database("sqlite+aiosqlite://")
        await db.create_database()
        try:
            async with db.session() as session:
                self.assertEqual((await session.execute(text("SELECT 1"))).scalar(), 1)
        finally:
            await db.dispose()


if __name__ == "__main__":
    unittest.main()
