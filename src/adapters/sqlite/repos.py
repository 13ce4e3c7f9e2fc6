import sqlite3
from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.domain.entities import (
    Article,
    Bookmark,
    Comment,
    EngagementKind,
    ReadingProgress,
    User,
)
from src.domain.timeutil import ensure_utc

# Membership table and article counter column per engagement kind
ENGAGEMENT_TABLES: dict[str, tuple[str, str]] = {
    "reaction": ("reactions", "reaction_count"),
    "bookmark": ("bookmarks", "bookmark_count"),
}

ARTICLE_COUNTERS = ("reaction_count", "bookmark_count", "comment_count", "view_count")

# SQLite default SQLITE_MAX_VARIABLE_NUMBER is far above this
IN_CLAUSE_CHUNK = 500


def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    fields = [column[0] for column in cursor.description]
    return {key: value for key, value in zip(fields, row, strict=True)}


def to_db(dt: datetime | None) -> str | None:
    # Fixed-width UTC strings keep lexical order equal to time order
    if dt is None:
        return None
    return ensure_utc(dt).isoformat(timespec="microseconds")


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


class SQLiteRepoBase:
    """Repositories share the connection of the unit of work that owns them."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn


class SQLiteUserRepo(SQLiteRepoBase):
    def save(self, user: User) -> None:
        self._conn.execute(
            """
            INSERT INTO users (id, email, display_name, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email=excluded.email,
                display_name=excluded.display_name,
                status=excluded.status,
                updated_at=excluded.updated_at
            """,
            (
                str(user.id),
                user.email,
                user.display_name,
                user.status,
                to_db(user.created_at),
                to_db(user.updated_at),
            ),
        )

        self._conn.execute("DELETE FROM role_assignments WHERE user_id = ?", (str(user.id),))
        for role in user.roles:
            self._conn.execute(
                "INSERT INTO role_assignments (id, user_id, role, created_at) VALUES (?, ?, ?, ?)",
                (str(uuid4()), str(user.id), role, to_db(user.updated_at)),
            )

    def get_by_id(self, user_id: UUID) -> User | None:
        row = self._conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
        return self._map_row(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self._conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return self._map_row(row) if row else None

    def display_names(self, user_ids: Sequence[UUID]) -> dict[UUID, str]:
        names: dict[UUID, str] = {}
        ids = list({str(u) for u in user_ids})
        for start in range(0, len(ids), IN_CLAUSE_CHUNK):
            chunk = ids[start : start + IN_CLAUSE_CHUNK]
            rows = self._conn.execute(
                f"SELECT id, display_name FROM users WHERE id IN ({_placeholders(len(chunk))})",
                chunk,
            ).fetchall()
            names.update({UUID(r["id"]): r["display_name"] for r in rows})
        return names

    def _map_row(self, row: dict[str, Any]) -> User:
        role_rows = self._conn.execute(
            "SELECT role FROM role_assignments WHERE user_id = ? ORDER BY role", (row["id"],)
        ).fetchall()

        return User(
            id=UUID(row["id"]),
            email=row["email"],
            display_name=row["display_name"],
            roles=[r["role"] for r in role_rows],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteArticleRepo(SQLiteRepoBase):
    def insert(self, article: Article) -> Article:
        self._conn.execute(
            """
            INSERT INTO articles (
                id, author_user_id, slug, title, summary, body, status,
                published_at, scheduled_for, reaction_count, bookmark_count,
                comment_count, view_count, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(article.id),
                str(article.author_user_id),
                article.slug,
                article.title,
                article.summary,
                article.body,
                article.status,
                to_db(article.published_at),
                to_db(article.scheduled_for),
                article.reaction_count,
                article.bookmark_count,
                article.comment_count,
                article.view_count,
                to_db(article.created_at),
                to_db(article.updated_at),
            ),
        )
        return article

    def get_by_id(self, article_id: UUID) -> Article | None:
        row = self._conn.execute(
            "SELECT * FROM articles WHERE id = ?", (str(article_id),)
        ).fetchone()
        return self._map_row(row) if row else None

    def get_by_slug(self, slug: str) -> Article | None:
        row = self._conn.execute("SELECT * FROM articles WHERE slug = ?", (slug,)).fetchone()
        return self._map_row(row) if row else None

    def update_content(self, article: Article) -> None:
        self._conn.execute(
            "UPDATE articles SET title = ?, summary = ?, body = ?, updated_at = ? WHERE id = ?",
            (
                article.title,
                article.summary,
                article.body,
                to_db(article.updated_at),
                str(article.id),
            ),
        )

    def update_lifecycle(self, article: Article, expected_status: str) -> bool:
        """
        Persist a lifecycle transition.

        The status precondition is part of the WHERE clause; False means the
        row was no longer in expected_status and nothing changed.
        """
        cursor = self._conn.execute(
            """
            UPDATE articles
            SET status = ?, scheduled_for = ?, published_at = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                article.status,
                to_db(article.scheduled_for),
                to_db(article.published_at),
                to_db(article.updated_at),
                str(article.id),
                expected_status,
            ),
        )
        return cursor.rowcount == 1

    def list_due(self, now_utc: datetime, limit: int = 100) -> list[Article]:
        rows = self._conn.execute(
            """
            SELECT * FROM articles
            WHERE status = 'scheduled' AND scheduled_for <= ?
            ORDER BY scheduled_for ASC
            LIMIT ?
            """,
            (to_db(now_utc), limit),
        ).fetchall()
        return [self._map_row(r) for r in rows]

    def adjust_counter(self, article_id: UUID, column: str, delta: int) -> int:
        """Apply a counter delta, floored at zero, and return the new value."""
        if column not in ARTICLE_COUNTERS:
            raise ValueError(f"Unknown article counter: {column}")

        # fetchall steps the statement to completion before the next command
        rows = self._conn.execute(
            f"UPDATE articles SET {column} = MAX({column} + ?, 0) WHERE id = ? RETURNING {column}",
            (delta, str(article_id)),
        ).fetchall()
        return int(rows[0][column]) if rows else 0

    def _map_row(self, row: dict[str, Any]) -> Article:
        return Article(
            id=UUID(row["id"]),
            author_user_id=UUID(row["author_user_id"]),
            slug=row["slug"],
            title=row["title"],
            summary=row["summary"],
            body=row["body"],
            status=row["status"],
            published_at=parse_dt(row["published_at"]),
            scheduled_for=parse_dt(row["scheduled_for"]),
            reaction_count=row["reaction_count"],
            bookmark_count=row["bookmark_count"],
            comment_count=row["comment_count"],
            view_count=row["view_count"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteEngagementRepo(SQLiteRepoBase):
    def exists(self, kind: EngagementKind, user_id: UUID, article_id: UUID) -> bool:
        table, _ = ENGAGEMENT_TABLES[kind]
        row = self._conn.execute(
            f"SELECT 1 AS hit FROM {table} WHERE user_id = ? AND article_id = ?",
            (str(user_id), str(article_id)),
        ).fetchone()
        return row is not None

    def add(
        self,
        kind: EngagementKind,
        user_id: UUID,
        article_id: UUID,
        now_utc: datetime,
        folder_name: str | None = None,
    ) -> None:
        if kind == "bookmark":
            self._conn.execute(
                "INSERT INTO bookmarks (id, user_id, article_id, folder_name, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (str(uuid4()), str(user_id), str(article_id), folder_name, to_db(now_utc)),
            )
        else:
            self._conn.execute(
                "INSERT INTO reactions (id, user_id, article_id, created_at) VALUES (?, ?, ?, ?)",
                (str(uuid4()), str(user_id), str(article_id), to_db(now_utc)),
            )

    def remove(self, kind: EngagementKind, user_id: UUID, article_id: UUID) -> bool:
        table, _ = ENGAGEMENT_TABLES[kind]
        cursor = self._conn.execute(
            f"DELETE FROM {table} WHERE user_id = ? AND article_id = ?",
            (str(user_id), str(article_id)),
        )
        return cursor.rowcount == 1

    def list_bookmarks(
        self,
        user_id: UUID,
        folder_name: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Bookmark]:
        query = "SELECT * FROM bookmarks WHERE user_id = ?"
        params: list[Any] = [str(user_id)]
        if folder_name is not None:
            query += " AND folder_name = ?"
            params.append(folder_name)
        query += " ORDER BY created_at DESC, id LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = self._conn.execute(query, params).fetchall()
        return [
            Bookmark(
                id=UUID(r["id"]),
                user_id=UUID(r["user_id"]),
                article_id=UUID(r["article_id"]),
                folder_name=r["folder_name"],
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    def count_bookmarks(self, user_id: UUID, folder_name: str | None = None) -> int:
        query = "SELECT COUNT(*) AS n FROM bookmarks WHERE user_id = ?"
        params: list[Any] = [str(user_id)]
        if folder_name is not None:
            query += " AND folder_name = ?"
            params.append(folder_name)
        return int(self._conn.execute(query, params).fetchone()["n"])

    def get_progress(self, user_id: UUID, article_id: UUID) -> ReadingProgress | None:
        row = self._conn.execute(
            "SELECT * FROM reading_progress WHERE user_id = ? AND article_id = ?",
            (str(user_id), str(article_id)),
        ).fetchone()
        return self._map_progress(row) if row else None

    def merge_progress(self, progress: ReadingProgress) -> ReadingProgress:
        """Upsert with a commutative merge: max of percentages, sum of time, or of completed."""
        rows = self._conn.execute(
            """
            INSERT INTO reading_progress (
                id, user_id, article_id, scroll_percentage, completion_percentage,
                time_spent_seconds, completed, first_read_at, last_read_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, article_id) DO UPDATE SET
                scroll_percentage = MAX(scroll_percentage, excluded.scroll_percentage),
                completion_percentage = MAX(completion_percentage, excluded.completion_percentage),
                time_spent_seconds = time_spent_seconds + excluded.time_spent_seconds,
                completed = MAX(completed, excluded.completed),
                last_read_at = excluded.last_read_at
            RETURNING *
            """,
            (
                str(progress.id),
                str(progress.user_id),
                str(progress.article_id),
                progress.scroll_percentage,
                progress.completion_percentage,
                progress.time_spent_seconds,
                int(progress.completed),
                to_db(progress.first_read_at),
                to_db(progress.last_read_at),
            ),
        ).fetchall()
        return self._map_progress(rows[0])

    def _map_progress(self, row: dict[str, Any]) -> ReadingProgress:
        return ReadingProgress(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            article_id=UUID(row["article_id"]),
            scroll_percentage=row["scroll_percentage"],
            completion_percentage=row["completion_percentage"],
            time_spent_seconds=row["time_spent_seconds"],
            completed=bool(row["completed"]),
            first_read_at=datetime.fromisoformat(row["first_read_at"]),
            last_read_at=datetime.fromisoformat(row["last_read_at"]),
        )


class SQLiteCommentRepo(SQLiteRepoBase):
    def insert(self, comment: Comment) -> Comment:
        self._conn.execute(
            """
            INSERT INTO comments (
                id, article_id, author_user_id, parent_comment_id, depth, content,
                status, reply_count, created_at, updated_at, deleted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(comment.id),
                str(comment.article_id),
                str(comment.author_user_id),
                str(comment.parent_comment_id) if comment.parent_comment_id else None,
                comment.depth,
                comment.content,
                comment.status,
                comment.reply_count,
                to_db(comment.created_at),
                to_db(comment.updated_at),
                to_db(comment.deleted_at),
            ),
        )
        return comment

    def get_by_id(self, comment_id: UUID) -> Comment | None:
        row = self._conn.execute(
            "SELECT * FROM comments WHERE id = ?", (str(comment_id),)
        ).fetchone()
        return self._map_row(row) if row else None

    def update_content(self, comment_id: UUID, content: str, now_utc: datetime) -> bool:
        cursor = self._conn.execute(
            "UPDATE comments SET content = ?, updated_at = ? WHERE id = ? AND status != 'deleted'",
            (content, to_db(now_utc), str(comment_id)),
        )
        return cursor.rowcount == 1

    def soft_delete(self, comment_id: UUID, now_utc: datetime) -> bool:
        # Row and children stay; only the stored text is dropped
        cursor = self._conn.execute(
            """
            UPDATE comments
            SET status = 'deleted', content = '', deleted_at = ?, updated_at = ?
            WHERE id = ? AND status != 'deleted'
            """,
            (to_db(now_utc), to_db(now_utc), str(comment_id)),
        )
        return cursor.rowcount == 1

    def set_status(self, comment_id: UUID, status: str, now_utc: datetime) -> bool:
        cursor = self._conn.execute(
            "UPDATE comments SET status = ?, updated_at = ? WHERE id = ? AND status != 'deleted'",
            (status, to_db(now_utc), str(comment_id)),
        )
        return cursor.rowcount == 1

    def adjust_reply_count(self, comment_id: UUID, delta: int) -> None:
        self._conn.execute(
            "UPDATE comments SET reply_count = MAX(reply_count + ?, 0) WHERE id = ?",
            (delta, str(comment_id)),
        )

    def list_roots(
        self, article_id: UUID, newest_first: bool = True, limit: int = 50, offset: int = 0
    ) -> list[Comment]:
        direction = "DESC" if newest_first else "ASC"
        rows = self._conn.execute(
            f"""
            SELECT * FROM comments
            WHERE article_id = ? AND parent_comment_id IS NULL
            ORDER BY created_at {direction}, id {direction}
            LIMIT ? OFFSET ?
            """,
            (str(article_id), limit, offset),
        ).fetchall()
        return [self._map_row(r) for r in rows]

    def count_roots(self, article_id: UUID) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM comments WHERE article_id = ? AND parent_comment_id IS NULL",
            (str(article_id),),
        ).fetchone()
        return int(row["n"])

    def list_children(self, parent_ids: Sequence[UUID]) -> list[Comment]:
        """Direct children of the given comments, oldest first."""
        ids = [str(p) for p in parent_ids]
        rows: list[dict[str, Any]] = []
        for start in range(0, len(ids), IN_CLAUSE_CHUNK):
            chunk = ids[start : start + IN_CLAUSE_CHUNK]
            rows.extend(
                self._conn.execute(
                    f"SELECT * FROM comments WHERE parent_comment_id IN "
                    f"({_placeholders(len(chunk))})",
                    chunk,
                ).fetchall()
            )
        rows.sort(key=lambda r: (r["created_at"], r["id"]))
        return [self._map_row(r) for r in rows]

    def _map_row(self, row: dict[str, Any]) -> Comment:
        return Comment(
            id=UUID(row["id"]),
            article_id=UUID(row["article_id"]),
            author_user_id=UUID(row["author_user_id"]),
            parent_comment_id=UUID(row["parent_comment_id"]) if row["parent_comment_id"] else None,
            depth=row["depth"],
            content=row["content"],
            status=row["status"],
            reply_count=row["reply_count"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            deleted_at=parse_dt(row["deleted_at"]),
        )


class SQLiteCounterRepo(SQLiteRepoBase):
    """Recomputes denormalized counters from membership rows."""

    _ARTICLE_ACTUALS = """
        SELECT
            a.id AS id,
            a.reaction_count AS reaction_count,
            a.bookmark_count AS bookmark_count,
            a.comment_count AS comment_count,
            (SELECT COUNT(*) FROM reactions r WHERE r.article_id = a.id) AS actual_reaction_count,
            (SELECT COUNT(*) FROM bookmarks b WHERE b.article_id = a.id) AS actual_bookmark_count,
            (SELECT COUNT(*) FROM comments c WHERE c.article_id = a.id) AS actual_comment_count
        FROM articles a
    """

    _REPLY_ACTUALS = """
        SELECT
            p.id AS id,
            p.reply_count AS reply_count,
            (SELECT COUNT(*) FROM comments c
             WHERE c.parent_comment_id = p.id AND c.status != 'deleted') AS actual_reply_count
        FROM comments p
    """

    def ping(self) -> bool:
        return self._conn.execute("SELECT 1 AS ok").fetchone() is not None

    def find_article_drift(self) -> list[dict[str, Any]]:
        drift: list[dict[str, Any]] = []
        for row in self._conn.execute(self._ARTICLE_ACTUALS).fetchall():
            for column in ("reaction_count", "bookmark_count", "comment_count"):
                if row[column] != row[f"actual_{column}"]:
                    drift.append(
                        {
                            "article_id": row["id"],
                            "column": column,
                            "stored": row[column],
                            "actual": row[f"actual_{column}"],
                        }
                    )
        return drift

    def find_reply_drift(self) -> list[dict[str, Any]]:
        rows = self._conn.execute(
            f"SELECT * FROM ({self._REPLY_ACTUALS}) WHERE reply_count != actual_reply_count"
        ).fetchall()
        return [
            {"comment_id": r["id"], "stored": r["reply_count"], "actual": r["actual_reply_count"]}
            for r in rows
        ]

    def set_article_counter(self, article_id: str, column: str, value: int) -> None:
        if column not in ARTICLE_COUNTERS:
            raise ValueError(f"Unknown article counter: {column}")
        self._conn.execute(f"UPDATE articles SET {column} = ? WHERE id = ?", (value, article_id))

    def set_reply_count(self, comment_id: str, value: int) -> None:
        self._conn.execute("UPDATE comments SET reply_count = ? WHERE id = ?", (value, comment_id))
