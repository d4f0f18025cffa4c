from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Repositories open a short-lived connection per operation. Inside
    ``transaction()`` every repository call on the same thread shares one
    connection, committed or rolled back as a unit.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_connection(self) -> Optional[Any]:
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.active_connection() is not None:
            # nested: the outermost transaction owns commit/rollback
            yield
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()

    @contextmanager
    def savepoint(self, name: str) -> Iterator[None]:
        """Roll back only the work done inside the block when it raises.

        Outside ``transaction()`` every repository call commits on its own, so
        this is a no-op there.
        """

        conn = self.active_connection()
        if conn is None:
            yield
            return

        cur = conn.cursor()
        try:
            cur.execute(f"SAVEPOINT {name}")
            try:
                yield
            except Exception:
                cur.execute(f"ROLLBACK TO SAVEPOINT {name}")
                raise
            cur.execute(f"RELEASE SAVEPOINT {name}")
        finally:
            cur.close()
