import re
from typing import Any, Optional, Sequence

import structlog
from sqlalchemy import Engine, RowMapping, create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError

from .config import (
    HNSWIndexConfig,
    HNSWSearchConfig,
    OceanBaseSettings,
    TableConfig,
)
from .data import Row, format_vector

logger = structlog.get_logger("vectorstores.engine")

# MySQL ER_DUP_KEYNAME
_DUP_KEYNAME_CODE = 1061
_INDEX_EXISTS_PATTERN = re.compile(r"Duplicate key name|already exists")


def _sanitize_name(name: str) -> str:
    """Sanitize name by replacing special characters with underscores
    and lowercasing, for use in generated index names.
    """
    sanitized = name.replace("-", "_").replace(" ", "_").replace("`", "").lower()
    return sanitized


def _is_index_exists_error(error: DBAPIError) -> bool:
    args = getattr(error.orig, "args", ())
    if args and args[0] == _DUP_KEYNAME_CODE:
        return True
    message = str(error.orig) if error.orig is not None else str(error)
    return bool(_INDEX_EXISTS_PATTERN.search(message))


class OceanBaseEngine:
    """A class for managing connections to an OceanBase (MySQL protocol) database.
    modified from [langchain-postgres](https://github.com/langchain-ai/langchain-postgres) package"""

    __create_key = object()

    def __init__(
        self,
        key: object,
        pool: Engine,
    ):
        """OceanBaseEngine constructor.

        Args:
            key (object): Prevent direct constructor usage.
            pool (Engine): Engine connection pool.
        """
        if key != OceanBaseEngine.__create_key:
            raise Exception(
                "Only create class through 'from_connection_string', 'from_settings' or 'from_engine' methods!"
            )
        self._pool = pool

    @classmethod
    def from_engine(
        cls: type["OceanBaseEngine"],
        engine: Engine
    ) -> "OceanBaseEngine":
        """Create an OceanBaseEngine instance from a SQLAlchemy Engine."""
        return cls(cls.__create_key, engine)

    @classmethod
    def from_connection_string(
        cls,
        url: str | URL,
        **kwargs: Any,
    ) -> "OceanBaseEngine":
        """Create an OceanBaseEngine, e.g. from `mysql+pymysql://user:pw@host:2881/db`."""
        engine = create_engine(url, **kwargs)
        return cls(cls.__create_key, engine)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[OceanBaseSettings] = None,
        **kwargs: Any,
    ) -> "OceanBaseEngine":
        """Create an OceanBaseEngine from `OCEANBASE_*` environment settings."""
        settings = settings or OceanBaseSettings()
        return cls.from_connection_string(settings.connection_url, **kwargs)

    def close(self) -> None:
        """Dispose of connection pool"""
        self._pool.dispose()

    # ==========================================
    # Table Management
    # ==========================================

    def init_table(
        self,
        table_config: TableConfig,
        overwrite_existing: bool = False
    ):
        tc = table_config

        query = """CREATE TABLE IF NOT EXISTS `{}`(
            `{}` BIGINT PRIMARY KEY AUTO_INCREMENT,
            `{}` TEXT,
            `{}` VECTOR({}),
            `{}` VARCHAR(255) DEFAULT NULL,
            `{}` JSON DEFAULT NULL
        )""".format(
            tc.escaped_table_name,
            tc.escaped_id_column,
            tc.escaped_content_column,
            tc.escaped_embedding_column,
            tc.vector_size,
            tc.escaped_namespace_column,
            tc.escaped_metadata_column,
        )

        if overwrite_existing:
            self.drop_table(tc)

        with self._pool.connect() as conn:
            conn.execute(text(query))
            conn.commit()
        logger.info("Initialized table", table=tc.table_name, vector_size=tc.vector_size)

    def drop_table(self, table_config: TableConfig):
        with self._pool.connect() as conn:
            conn.execute(
                text(f"DROP TABLE IF EXISTS `{table_config.escaped_table_name}`")
            )
            conn.commit()
        logger.info("Dropped table", table=table_config.table_name)

    def get_columns(self, table_config: TableConfig) -> dict[str, str]:
        """Return `{column_name: data_type}` for the table in the current database."""
        stmt = """
            SELECT column_name AS column_name, data_type AS data_type
            FROM information_schema.columns
            WHERE table_name = :table_name
              AND table_schema = DATABASE()
        """
        with self._pool.connect() as conn:
            result = conn.execute(
                text(stmt), {"table_name": table_config.table_name}
            )
            results = result.mappings().fetchall()
        return {r["column_name"]: r["data_type"] for r in results}

    # ==========================================
    # Index Management
    # ==========================================

    def create_hnsw_index(
        self,
        table_config: TableConfig,
        hnsw_config: HNSWIndexConfig
    ) -> bool:
        """Create the HNSW vector index.

        Returns False when an index of that name already exists; any other
        database error propagates.
        """
        tc = table_config
        sanitized_table_name = _sanitize_name(tc.table_name)
        sanitized_column = _sanitize_name(tc.embedding_column)

        index_name = hnsw_config.name or f"idx_{sanitized_table_name}_{sanitized_column}"
        escaped_index_name = index_name.replace("`", "``")
        query = f"""
            CREATE VECTOR INDEX `{escaped_index_name}`
            ON `{tc.escaped_table_name}` (`{tc.escaped_embedding_column}`)
            WITH {hnsw_config.index_options}
        """
        try:
            with self._pool.connect() as conn:
                conn.execute(text(query))
                conn.commit()
        except DBAPIError as e:
            if not _is_index_exists_error(e):
                raise
            logger.info("Vector index already exists", index=index_name, table=tc.table_name)
            return False
        logger.info(
            "Created vector index",
            index=index_name,
            table=tc.table_name,
            distance=hnsw_config.index_function,
        )
        return True

    # ==========================================
    # Row Operations
    # ==========================================

    def _row_params(self, row: Row) -> dict[str, Any]:
        return {
            "id": row.id,
            "content": row.content,
            "embedding": row.embedding_as_str(),
            "namespace": row.namespace,
            "metadata": row.metadata_as_json(),
        }

    def insert_row(self, table_config: TableConfig, row: Row) -> int:
        """Insert a row and return its id.

        The id column is left to AUTO_INCREMENT unless `row.id` is set.
        """
        tc = table_config
        columns = [
            tc.escaped_content_column,
            tc.escaped_embedding_column,
            tc.escaped_namespace_column,
            tc.escaped_metadata_column,
        ]
        values = [":content", ":embedding", ":namespace", ":metadata"]
        if row.id is not None:
            columns.insert(0, tc.escaped_id_column)
            values.insert(0, ":id")
        column_names = ", ".join(f"`{col}`" for col in columns)

        query = f'''
            INSERT INTO `{tc.escaped_table_name}`
            ({column_names})
            VALUES ({", ".join(values)})
        '''

        with self._pool.connect() as conn:
            result = conn.execute(text(query), self._row_params(row))
            conn.commit()

        row_id = row.id if row.id is not None else result.lastrowid
        logger.debug("Inserted row", table=tc.table_name, id=row_id)
        return row_id

    def replace_row(self, table_config: TableConfig, row: Row) -> int:
        """Insert or overwrite the row with `row.id` (REPLACE INTO)."""
        if row.id is None:
            raise ValueError("replace_row requires a row id")

        tc = table_config
        id_col = tc.escaped_id_column
        txt_col = tc.escaped_content_column
        emb_col = tc.escaped_embedding_column
        ns_col = tc.escaped_namespace_column
        meta_col = tc.escaped_metadata_column

        query = f'''
            REPLACE INTO `{tc.escaped_table_name}`
            (`{id_col}`, `{txt_col}`, `{emb_col}`, `{ns_col}`, `{meta_col}`)
            VALUES (:id, :content, :embedding, :namespace, :metadata)
        '''

        with self._pool.connect() as conn:
            conn.execute(text(query), self._row_params(row))
            conn.commit()

        logger.debug("Replaced row", table=tc.table_name, id=row.id)
        return row.id

    def delete_rows(self, table_config: TableConfig, ids: Sequence[int]) -> int:
        """Delete rows by id and return the number of rows deleted."""
        if not ids:
            return 0

        tc = table_config
        placeholders = ", ".join(f":id_{i}" for i in range(len(ids)))
        param_dict = {f"id_{i}": id_ for i, id_ in enumerate(ids)}

        query = (
            f"DELETE FROM `{tc.escaped_table_name}`"
            f" WHERE `{tc.escaped_id_column}` IN ({placeholders})"
        )

        with self._pool.connect() as conn:
            result = conn.execute(text(query), param_dict)
            conn.commit()

        logger.debug("Deleted rows", table=tc.table_name, count=result.rowcount)
        return result.rowcount

    def get_rows(
        self,
        table_config: TableConfig,
        ids: Sequence[int],
        namespace: Optional[str] = None,
    ) -> list[Row]:
        """Fetch rows by id, optionally restricted to a namespace."""
        if not ids:
            return []

        tc = table_config
        columns = {
            "id": tc.escaped_id_column,
            "content": tc.escaped_content_column,
            "embedding": tc.escaped_embedding_column,
            "namespace": tc.escaped_namespace_column,
            "metadata": tc.escaped_metadata_column,
        }
        column_names = ", ".join(
            f"`{col}` AS {field}" for field, col in columns.items()
        )
        placeholders = ", ".join(f":id_{i}" for i in range(len(ids)))
        params: dict[str, Any] = {f"id_{i}": id_ for i, id_ in enumerate(ids)}

        where = f"`{tc.escaped_id_column}` IN ({placeholders})"
        if namespace is not None:
            where += f" AND `{tc.escaped_namespace_column}` = :namespace"
            params["namespace"] = namespace

        query = f'''
            SELECT {column_names}
            FROM `{tc.escaped_table_name}`
            WHERE {where}
        '''

        with self._pool.connect() as conn:
            result = conn.execute(text(query), params)
            results = result.mappings().fetchall()

        return [Row.model_validate(dict(r)) for r in results]

    # ==========================================
    # Query Methods
    # ==========================================

    def query_hnsw(
        self,
        table_config: TableConfig,
        query_embedding: list[float],
        dense_config: HNSWSearchConfig,
        namespace: Optional[str] = None,
    ) -> Sequence[RowMapping]:
        """Approximate nearest neighbor search using the HNSW vector index.

        Rows come back ordered by ascending distance with at most
        `dense_config.k` entries.
        """
        tc = table_config
        ds = dense_config.distance_strategy

        columns = [
            tc.escaped_id_column,
            tc.escaped_content_column,
            tc.escaped_metadata_column,
        ]
        column_names = ", ".join(f"`{col}`" for col in columns)

        params: dict[str, Any] = {
            "query_embedding": format_vector(query_embedding),
            "k": dense_config.k,
        }
        where = ""
        if namespace is not None:
            where = f"WHERE `{tc.escaped_namespace_column}` = :namespace"
            params["namespace"] = namespace

        distance_expr = (
            f"{ds.search_function}(`{tc.escaped_embedding_column}`, :query_embedding)"
        )

        query = f'''
            SELECT {column_names},
                   {distance_expr} AS distance
            FROM `{tc.escaped_table_name}`
            {where}
            ORDER BY {distance_expr}
            APPROXIMATE LIMIT :k
        '''

        with self._pool.connect() as conn:
            # Session variable: restored before the connection goes back to the pool.
            previous_ef_search = None
            if dense_config.ef_search is not None:
                previous_ef_search = conn.execute(
                    text("SELECT @@ob_hnsw_ef_search")
                ).scalar()
                conn.execute(text(
                    f"SET SESSION ob_hnsw_ef_search = {int(dense_config.ef_search)}"
                ))

            try:
                result = conn.execute(text(query), params)
                rows = result.mappings().fetchall()
            finally:
                if previous_ef_search is not None:
                    conn.execute(text(
                        f"SET SESSION ob_hnsw_ef_search = {int(previous_ef_search)}"
                    ))

        logger.debug(
            "Queried vector index",
            table=tc.table_name,
            distance=ds.search_function,
            k=dense_config.k,
            returned=len(rows),
        )
        return rows
