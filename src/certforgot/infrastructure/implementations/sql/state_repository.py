"""
Relational database identity state repository.

The identity is kept as a singleton row (id = 1) of the state table:

    CREATE TABLE [schema.]state (
        id INTEGER PRIMARY KEY,
        useremail TEXT,          -- mailbox form
        userprivatekey BLOB      -- JWK JSON bytes
    )

Updates are a single upsert inside one transaction: a native
ON CONFLICT / ON DUPLICATE KEY statement where the dialect has one,
otherwise count-then-insert-or-update. A unique-key violation from a
concurrent writer surfaces as ConflictError.
"""

from typing import Any

from sqlalchemy import (
    Column,
    Integer,
    LargeBinary,
    MetaData,
    Table,
    Text,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from certforgot.core.logging import logger
from certforgot.errors import ConflictError, NotFoundError, StorageIOError
from certforgot.infrastructure.repositories.state_repository import StateRepository
from certforgot.models.identity import Identity
from certforgot.utils.identity_codec import IdentityCodec

BACKEND = "sql"

TABLE_NAME = "state"
STATE_ROW_ID = 1


def state_table(schema: str | None = None) -> Table:
    """Table definition, optionally inside a schema."""
    return Table(
        TABLE_NAME,
        MetaData(schema=schema),
        Column("id", Integer, primary_key=True, autoincrement=False),
        Column("useremail", Text, nullable=False),
        Column("userprivatekey", LargeBinary, nullable=False),
    )


class SqlStateRepository(StateRepository):
    """Identity stored as the singleton row of a database table."""

    def __init__(self, engine: AsyncEngine, schema: str | None = None):
        """
        Initialize SQL state repository.

        Use connect() to get a repository whose database has been pinged.

        Args:
            engine: Async SQLAlchemy engine
            schema: Schema holding the state table
        """
        self.engine = engine
        self.table = state_table(schema)
        self.codec = IdentityCodec()

        logger.info(
            f"Initialized SqlStateRepository on {engine.dialect.name} "
            f"({self.table.fullname})"
        )

    @classmethod
    async def connect(
        cls, url: str, schema: str | None = None, **engine_options: Any
    ) -> "SqlStateRepository":
        """
        Create an engine, ping the database and return the repository.

        Args:
            url: SQLAlchemy async database URL (e.g. "postgresql+asyncpg://...")
            schema: Schema holding the state table
            **engine_options: Extra create_async_engine options

        Raises:
            StorageIOError: If the database cannot be reached
        """
        try:
            engine = create_async_engine(url, pool_pre_ping=True, **engine_options)
        except (SQLAlchemyError, ValueError) as e:
            raise StorageIOError(
                f"invalid database URL: {e}", operation="connect", backend=BACKEND
            ) from e

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            await engine.dispose()
            logger.error(f"Database ping failed: {e}")
            raise StorageIOError(
                f"cannot reach database: {e}", operation="connect", backend=BACKEND
            ) from e

        return cls(engine, schema=schema)

    async def create_table(self) -> None:
        """Create the state table if it does not exist."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.table.metadata.create_all)
        except SQLAlchemyError as e:
            raise self._storage_error("create_table", e) from e

        logger.info(f"Ensured table {self.table.fullname}")

    async def update(self, identity: Identity) -> None:
        """Insert or update the singleton row in one transaction."""
        values = {
            "useremail": self.codec.encode_mailbox(identity.email),
            "userprivatekey": self.codec.encode_key_json(
                identity.signing_key
            ).encode("utf-8"),
        }
        try:
            async with self.engine.begin() as conn:
                await self._upsert(conn, values)
        except IntegrityError as e:
            logger.warning(f"Concurrent identity write detected: {e}")
            raise ConflictError(
                f"concurrent write to the state row, retry the update: {e.orig}",
                operation="update",
                backend=BACKEND,
                resource=self.table.fullname,
            ) from e
        except SQLAlchemyError as e:
            raise self._storage_error("update", e) from e

        logger.info(f"Stored identity for {identity.email.address}")

    async def _upsert(self, conn: AsyncConnection, values: dict[str, Any]) -> None:
        dialect = conn.dialect.name
        row = {"id": STATE_ROW_ID, **values}

        if dialect in ("postgresql", "sqlite"):
            if dialect == "postgresql":
                from sqlalchemy.dialects.postgresql import insert as dialect_insert
            else:
                from sqlalchemy.dialects.sqlite import insert as dialect_insert

            statement = dialect_insert(self.table).values(**row)
            statement = statement.on_conflict_do_update(
                index_elements=[self.table.c.id],
                set_={name: statement.excluded[name] for name in values},
            )
            await conn.execute(statement)
            return

        if dialect in ("mysql", "mariadb"):
            from sqlalchemy.dialects.mysql import insert as mysql_insert

            statement = mysql_insert(self.table).values(**row)
            statement = statement.on_duplicate_key_update(
                {name: statement.inserted[name] for name in values}
            )
            await conn.execute(statement)
            return

        if await self._count(conn) > 0:
            await conn.execute(
                update(self.table)
                .where(self.table.c.id == STATE_ROW_ID)
                .values(**values)
            )
        else:
            await conn.execute(insert(self.table).values(**row))

    async def get(self) -> Identity:
        """Read and decode the singleton row."""
        query = select(self.table.c.useremail, self.table.c.userprivatekey).limit(1)
        try:
            async with self.engine.connect() as conn:
                row = (await conn.execute(query)).first()
        except SQLAlchemyError as e:
            raise self._storage_error("get", e) from e

        if row is None:
            raise NotFoundError(
                "no identity row stored",
                operation="get",
                backend=BACKEND,
                resource=self.table.fullname,
            )

        identity = Identity(
            email=self.codec.decode_mailbox(row.useremail),
            signing_key=self.codec.decode_key_json(row.userprivatekey),
        )
        logger.debug(f"Loaded identity for {identity.email.address}")
        return identity

    async def exists(self) -> bool:
        """Count the rows of the state table."""
        try:
            async with self.engine.connect() as conn:
                return await self._count(conn) > 0
        except SQLAlchemyError as e:
            raise self._storage_error("exists", e) from e

    async def _count(self, conn: AsyncConnection) -> int:
        result = await conn.execute(select(func.count()).select_from(self.table))
        return result.scalar_one()

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        await self.engine.dispose()

    def _storage_error(self, operation: str, error: SQLAlchemyError) -> StorageIOError:
        logger.error(f"Database {operation} on {self.table.fullname} failed: {error}")
        return StorageIOError(
            f"database error: {error}",
            operation=operation,
            backend=BACKEND,
            resource=self.table.fullname,
        )
