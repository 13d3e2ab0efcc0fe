import sqlite3
from contextlib import contextmanager
from typing import Iterable

from shoespec.build import ShoeRow, generate_model_key
from shoespec.core.types import Article, Rejection

SHOE_COLUMNS = (
    "model_key",
    "article_id",
    "brand_name",
    "model",
    "heel_height",
    "forefoot_height",
    "drop",
    "weight",
    "price",
    "upper_breathability",
    "carbon_plate",
    "waterproof",
    "primary_use",
    "cushioning_type",
    "surface_type",
    "foot_width",
    "additional_features",
    "source_link",
    "date",
)
BOOL_COLUMNS = ("carbon_plate", "waterproof")
REJECTED_COLUMNS = (
    "article_id",
    "model_key",
    "brand_name",
    "model",
    "reason",
    "stage",
    "title",
    "source_link",
)


class SQLiteStorage:
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def create_tables(self) -> None:
        with self._connect() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS shoes (
                    model_key TEXT NOT NULL,
                    article_id TEXT NOT NULL,
                    brand_name TEXT NOT NULL,
                    model TEXT NOT NULL,
                    heel_height REAL,
                    forefoot_height REAL,
                    "drop" REAL,
                    weight REAL,
                    price REAL,
                    upper_breathability TEXT,
                    carbon_plate INTEGER,
                    waterproof INTEGER,
                    primary_use TEXT,
                    cushioning_type TEXT,
                    surface_type TEXT,
                    foot_width TEXT,
                    additional_features TEXT,
                    source_link TEXT,
                    date TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (model_key, article_id)
                );

                CREATE INDEX IF NOT EXISTS idx_shoes_model_key ON shoes(model_key);

                CREATE TABLE IF NOT EXISTS rejected (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    article_id TEXT NOT NULL,
                    model_key TEXT,
                    brand_name TEXT,
                    model TEXT,
                    reason TEXT NOT NULL,
                    stage TEXT NOT NULL,
                    title TEXT,
                    source_link TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE INDEX IF NOT EXISTS idx_rejected_article ON rejected(article_id);
            """)

    def upsert_shoes(self, rows: Iterable[ShoeRow]) -> int:
        """Insert or update *rows* in one transaction. Returns rows written."""
        columns = ", ".join(f'"{c}"' for c in SHOE_COLUMNS)
        placeholders = ", ".join("?" for _ in SHOE_COLUMNS)
        updates = ", ".join(
            f'"{c}" = excluded."{c}"' for c in SHOE_COLUMNS if c not in ("model_key", "article_id")
        )
        sql = f"""
            INSERT INTO shoes ({columns}) VALUES ({placeholders})
            ON CONFLICT(model_key, article_id) DO UPDATE SET
                {updates}, updated_at = CURRENT_TIMESTAMP
        """
        params = [tuple(getattr(row, c) for c in SHOE_COLUMNS) for row in rows]
        if not params:
            return 0
        with self._connect() as conn:
            conn.executemany(sql, params)
        return len(params)

    def get_shoe(self, model_key: str) -> dict | None:
        """Most recently written row for *model_key*, or ``None``."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM shoes WHERE model_key = ? ORDER BY updated_at DESC, rowid DESC LIMIT 1",
                (model_key,),
            ).fetchone()
        return self._row_to_dict(row) if row else None

    def get_shoe_count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM shoes").fetchone()
        return row[0]

    def list_model_keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT DISTINCT model_key FROM shoes ORDER BY model_key").fetchall()
        return [row[0] for row in rows]

    def log_rejected(self, article: Article, rejections: Iterable[Rejection]) -> int:
        """Record candidates dropped for *article*. Returns rows written."""
        params = [
            (
                article.id,
                generate_model_key(r.brand_name, r.model) or None,
                r.brand_name,
                r.model,
                r.reason,
                r.stage,
                article.title,
                article.source_link,
            )
            for r in rejections
        ]
        if not params:
            return 0
        columns = ", ".join(REJECTED_COLUMNS)
        placeholders = ", ".join("?" for _ in REJECTED_COLUMNS)
        with self._connect() as conn:
            conn.executemany(f"INSERT INTO rejected ({columns}) VALUES ({placeholders})", params)
        return len(params)

    def get_rejected(self, article_id: str | None = None) -> list[dict]:
        sql = f"SELECT {', '.join(REJECTED_COLUMNS)} FROM rejected"
        args: tuple = ()
        if article_id is not None:
            sql += " WHERE article_id = ?"
            args = (article_id,)
        with self._connect() as conn:
            rows = conn.execute(sql + " ORDER BY id", args).fetchall()
        return [dict(row) for row in rows]

    def get_rejected_count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM rejected").fetchone()
        return row[0]

    def _row_to_dict(self, row: sqlite3.Row) -> dict:
        result = dict(row)
        result.pop("updated_at", None)
        for column in BOOL_COLUMNS:
            if result.get(column) is not None:
                result[column] = bool(result[column])
        return result
