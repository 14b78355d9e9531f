import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from tholvi.domain.entities import (
    Blog,
    ContentKind,
    Course,
    Notification,
    PaymentRequest,
    PaymentStatus,
    Section,
    SectionParentKind,
    SiteSettings,
    Tier,
    Tool,
    UserAccount,
)
from tholvi.domain.errors import DependencyFailure

logger = logging.getLogger(__name__)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _sql_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


class _SQLiteRepo:
    """Connection handling shared by the repos.

    Every connection waits at most `timeout` seconds on a locked database.
    Any sqlite3 error leaves the adapter as DependencyFailure.
    """

    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.error("Cannot open database %s: %s", self.db_path, e)
            raise DependencyFailure(f"Database unavailable: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Database error in %s: %s", type(self).__name__, e)
            # Constraint violations will fail again on retry
            retryable = not isinstance(e, sqlite3.IntegrityError)
            raise DependencyFailure(f"Database error: {e}", retryable=retryable) from e
        finally:
            conn.close()


class SQLiteUserRepo(_SQLiteRepo):
    PROFILE_FIELDS = frozenset({"display_name", "telegram_username"})

    def save(self, user: UserAccount) -> UserAccount:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, display_name, password_hash, tier, role,
                    telegram_username, telegram_access, banned, tier_changed_at,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    display_name=excluded.display_name,
                    password_hash=excluded.password_hash,
                    tier=excluded.tier,
                    role=excluded.role,
                    telegram_username=excluded.telegram_username,
                    telegram_access=excluded.telegram_access,
                    banned=excluded.banned,
                    tier_changed_at=excluded.tier_changed_at,
                    updated_at=excluded.updated_at
            """,
                (
                    str(user.id),
                    user.email,
                    user.display_name,
                    user.password_hash,
                    user.tier,
                    user.role,
                    user.telegram_username,
                    int(user.telegram_access),
                    int(user.banned),
                    _iso(user.tier_changed_at),
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )
            conn.commit()
        return user

    def get_by_email(self, email: str) -> UserAccount | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ? COLLATE NOCASE", (email.strip(),)
            ).fetchone()
        return self._map_row(row) if row else None

    def get_by_id(self, user_id: UUID) -> UserAccount | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
        return self._map_row(row) if row else None

    def list_all(self) -> list[UserAccount]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM users ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [self._map_row(row) for row in rows]

    def get_tier(self, user_id: UUID) -> Tier | None:
        with self._connect() as conn:
            row = conn.execute("SELECT tier FROM users WHERE id = ?", (str(user_id),)).fetchone()
        return row["tier"] if row else None

    def _update(self, user_id: UUID, columns: dict[str, Any]) -> bool:
        assignments = ", ".join(f"{name} = ?" for name in columns)
        params = [_sql_value(v) for v in columns.values()] + [str(user_id)]
        with self._connect() as conn:
            cursor = conn.execute(f"UPDATE users SET {assignments} WHERE id = ?", params)
            conn.commit()
            return cursor.rowcount > 0

    def set_tier(self, user_id: UUID, tier: Tier, changed_at: datetime) -> bool:
        return self._update(
            user_id, {"tier": tier, "tier_changed_at": changed_at, "updated_at": changed_at}
        )

    def set_banned(self, user_id: UUID, banned: bool, updated_at: datetime) -> bool:
        return self._update(user_id, {"banned": int(banned), "updated_at": updated_at})

    def set_telegram_access(self, user_id: UUID, granted: bool, updated_at: datetime) -> bool:
        return self._update(user_id, {"telegram_access": int(granted), "updated_at": updated_at})

    def update_profile(
        self, user_id: UUID, fields: dict[str, Any], updated_at: datetime
    ) -> bool:
        """Owner-editable columns only. Tier, role and ban state are never written here."""
        unknown = set(fields) - self.PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user columns: {sorted(unknown)}")
        return self._update(user_id, {**fields, "updated_at": updated_at})

    def _map_row(self, row: dict[str, Any]) -> UserAccount:
        return UserAccount(
            id=UUID(row["id"]),
            email=row["email"],
            display_name=row["display_name"],
            password_hash=row["password_hash"],
            tier=row["tier"],
            role=row["role"],
            telegram_username=row["telegram_username"],
            telegram_access=bool(row["telegram_access"]),
            banned=bool(row["banned"]),
            tier_changed_at=parse_dt(row["tier_changed_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLitePaymentRepo(_SQLiteRepo):
    # Columns a review may write alongside the status
    REVIEW_FIELDS = frozenset({"rejection_reason", "reviewed_at", "reviewed_by"})

    def create(self, payment: PaymentRequest) -> UUID:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO payments (
                    id, user_id, tier_requested, transaction_id, screenshot_url, notes,
                    status, rejection_reason, reviewed_at, reviewed_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    str(payment.id),
                    str(payment.user_id),
                    payment.tier_requested,
                    payment.transaction_id,
                    payment.screenshot_url,
                    payment.notes,
                    payment.status,
                    payment.rejection_reason,
                    _iso(payment.reviewed_at),
                    str(payment.reviewed_by) if payment.reviewed_by else None,
                    payment.created_at.isoformat(),
                ),
            )
            conn.commit()
        return payment.id

    def get_by_id(self, payment_id: UUID) -> PaymentRequest | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM payments WHERE id = ?", (str(payment_id),)
            ).fetchone()
        return self._map_row(row) if row else None

    def update_status(
        self,
        payment_id: UUID,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        fields: dict[str, Any],
    ) -> bool:
        """Compare-and-set on status. False when another writer got there first."""
        unknown = set(fields) - self.REVIEW_FIELDS
        if unknown:
            raise ValueError(f"Cannot update payment columns: {sorted(unknown)}")

        assignments = "".join(f", {name} = ?" for name in fields)
        params = [to_status] + [_sql_value(v) for v in fields.values()]
        params += [str(payment_id), from_status]
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE payments SET status = ?{assignments} WHERE id = ? AND status = ?",
                params,
            )
            conn.commit()
            return cursor.rowcount == 1

    def list_payments(
        self,
        status: PaymentStatus | None = None,
        user_id: UUID | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[PaymentRequest], int]:
        where = " WHERE 1=1"
        params: list[Any] = []
        if status:
            where += " AND status = ?"
            params.append(status)
        if user_id:
            where += " AND user_id = ?"
            params.append(str(user_id))

        with self._connect() as conn:
            total = conn.execute(f"SELECT COUNT(*) AS n FROM payments{where}", params).fetchone()[
                "n"
            ]
            rows = conn.execute(
                f"SELECT * FROM payments{where} "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                [*params, -1 if limit is None else limit, offset],
            ).fetchall()
        return [self._map_row(row) for row in rows], total

    def list_approved(self) -> list[PaymentRequest]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM payments WHERE status = 'approved' ORDER BY reviewed_at"
            ).fetchall()
        return [self._map_row(row) for row in rows]

    def _map_row(self, row: dict[str, Any]) -> PaymentRequest:
        return PaymentRequest(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            tier_requested=row["tier_requested"],
            transaction_id=row["transaction_id"],
            screenshot_url=row["screenshot_url"],
            notes=row["notes"],
            status=row["status"],
            rejection_reason=row["rejection_reason"],
            reviewed_at=parse_dt(row["reviewed_at"]),
            reviewed_by=UUID(row["reviewed_by"]) if row["reviewed_by"] else None,
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteContentRepo(_SQLiteRepo):
    """Courses, tools and blogs in one table, plus sections.

    Implements both the catalog store and the transactional section store.
    """

    def list_items(
        self, kind: ContentKind, published_only: bool = False
    ) -> list[Course | Tool | Blog]:
        query = "SELECT * FROM content_items WHERE kind = ?"
        if published_only:
            query += " AND published = 1"
        query += " ORDER BY created_at DESC, rowid DESC"
        with self._connect() as conn:
            rows = conn.execute(query, (kind,)).fetchall()
        return [self._map_item(row) for row in rows]

    def get_item(
        self, kind: ContentKind, item_id: UUID, include_sections: bool = False
    ) -> Course | Tool | Blog | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM content_items WHERE id = ? AND kind = ?", (str(item_id), kind)
            ).fetchone()
            if not row:
                return None
            item = self._map_item(row)
            if include_sections and isinstance(item, Course | Tool):
                section_rows = conn.execute(
                    "SELECT * FROM sections WHERE parent_id = ? ORDER BY order_index, rowid",
                    (str(item_id),),
                ).fetchall()
                item = item.model_copy(
                    update={"sections": [self._map_section(r) for r in section_rows]}
                )
        return item

    def save_item(self, item: Course | Tool | Blog) -> Course | Tool | Blog:
        # section_count is owned by the section writes below
        blog = item if isinstance(item, Blog) else None
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO content_items (
                    id, kind, title, description, tier_required, published, thumbnail_url,
                    preview, content, author, read_time, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    tier_required=excluded.tier_required,
                    published=excluded.published,
                    thumbnail_url=excluded.thumbnail_url,
                    preview=excluded.preview,
                    content=excluded.content,
                    author=excluded.author,
                    read_time=excluded.read_time,
                    updated_at=excluded.updated_at
            """,
                (
                    str(item.id),
                    item.kind,
                    item.title,
                    item.description,
                    item.tier_required,
                    int(item.published),
                    item.thumbnail_url,
                    blog.preview if blog else "",
                    blog.content if blog else "",
                    blog.author if blog else "",
                    blog.read_time if blog else 0,
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                ),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM content_items WHERE id = ?", (str(item.id),)
            ).fetchone()
        return self._map_item(row)

    def delete_item(self, kind: ContentKind, item_id: UUID) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM sections WHERE parent_id = ?", (str(item_id),))
            conn.execute(
                "DELETE FROM content_items WHERE id = ? AND kind = ?", (str(item_id), kind)
            )
            conn.commit()

    # --- Sections ---

    def list_sections(self, kind: SectionParentKind, parent_id: UUID) -> list[Section]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM sections WHERE parent_kind = ? AND parent_id = ? ORDER BY rowid",
                (kind, str(parent_id)),
            ).fetchall()
        return [self._map_section(row) for row in rows]

    def get_section(self, section_id: UUID) -> Section | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM sections WHERE id = ?", (str(section_id),)
            ).fetchone()
        return self._map_section(row) if row else None

    def save_section(self, section: Section) -> Section:
        with self._connect() as conn:
            self._upsert_section(conn, section)
            conn.commit()
        return section

    def delete_section(self, section_id: UUID) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM sections WHERE id = ?", (str(section_id),))
            conn.commit()

    def increment_section_count(self, kind: SectionParentKind, parent_id: UUID) -> None:
        with self._connect() as conn:
            self._shift_count(conn, parent_id, 1)
            conn.commit()

    def decrement_section_count(self, kind: SectionParentKind, parent_id: UUID) -> None:
        with self._connect() as conn:
            self._shift_count(conn, parent_id, -1)
            conn.commit()

    def set_section_count(self, kind: SectionParentKind, parent_id: UUID, count: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE content_items SET section_count = ? WHERE id = ?",
                (max(0, count), str(parent_id)),
            )
            conn.commit()
            return cursor.rowcount > 0

    def add_section_with_count(self, section: Section) -> Section:
        with self._connect() as conn:
            self._upsert_section(conn, section)
            self._shift_count(conn, section.parent_id, 1)
            conn.commit()
        return section

    def delete_section_with_count(self, section: Section) -> None:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM sections WHERE id = ?", (str(section.id),))
            if cursor.rowcount:
                self._shift_count(conn, section.parent_id, -1)
            conn.commit()

    def _shift_count(self, conn: sqlite3.Connection, parent_id: UUID, delta: int) -> None:
        conn.execute(
            "UPDATE content_items SET section_count = MAX(0, section_count + ?) WHERE id = ?",
            (delta, str(parent_id)),
        )

    def _upsert_section(self, conn: sqlite3.Connection, section: Section) -> None:
        conn.execute(
            """
            INSERT INTO sections (
                id, parent_kind, parent_id, title, content, video_url, order_index, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title=excluded.title,
                content=excluded.content,
                video_url=excluded.video_url,
                order_index=excluded.order_index
        """,
            (
                str(section.id),
                section.parent_kind,
                str(section.parent_id),
                section.title,
                section.content,
                section.video_url,
                section.order_index,
                section.created_at.isoformat(),
            ),
        )

    def _map_item(self, row: dict[str, Any]) -> Course | Tool | Blog:
        common = {
            "id": UUID(row["id"]),
            "title": row["title"],
            "description": row["description"],
            "tier_required": row["tier_required"],
            "published": bool(row["published"]),
            "thumbnail_url": row["thumbnail_url"],
            "created_at": datetime.fromisoformat(row["created_at"]),
            "updated_at": datetime.fromisoformat(row["updated_at"]),
        }
        if row["kind"] == "blog":
            return Blog(
                preview=row["preview"],
                content=row["content"],
                author=row["author"],
                read_time=row["read_time"],
                **common,
            )
        if row["kind"] == "tool":
            return Tool(section_count=row["section_count"], **common)
        return Course(section_count=row["section_count"], **common)

    def _map_section(self, row: dict[str, Any]) -> Section:
        return Section(
            id=UUID(row["id"]),
            parent_kind=row["parent_kind"],
            parent_id=UUID(row["parent_id"]),
            title=row["title"],
            content=row["content"],
            video_url=row["video_url"],
            order_index=row["order_index"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteNotificationRepo(_SQLiteRepo):
    def create(self, notification: Notification) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO notifications (id, user_id, title, message, type, read, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    str(notification.id),
                    str(notification.user_id),
                    notification.title,
                    notification.message,
                    notification.type,
                    int(notification.read),
                    notification.created_at.isoformat(),
                ),
            )
            conn.commit()

    def get_by_id(self, notification_id: UUID) -> Notification | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM notifications WHERE id = ?", (str(notification_id),)
            ).fetchone()
        return self._map_row(row) if row else None

    def list_for_user(self, user_id: UUID) -> list[Notification]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM notifications WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (str(user_id),),
            ).fetchall()
        return [self._map_row(row) for row in rows]

    def mark_read(self, notification_id: UUID) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE notifications SET read = 1 WHERE id = ?", (str(notification_id),)
            )
            conn.commit()

    def _map_row(self, row: dict[str, Any]) -> Notification:
        return Notification(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            title=row["title"],
            message=row["message"],
            type=row["type"],
            read=bool(row["read"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteSiteSettingsRepo(_SQLiteRepo):
    """SQLite adapter for SiteSettings (single-row table)."""

    def get(self) -> SiteSettings | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM site_settings WHERE id = 1").fetchone()
        if not row:
            return None
        return SiteSettings(
            binance_id=row["binance_id"],
            binance_qr_url=row["binance_qr_url"],
            telegram_bot_link=row["telegram_bot_link"],
            telegram_channel_link=row["telegram_channel_link"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def save(self, settings: SiteSettings) -> SiteSettings:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO site_settings (
                    id, binance_id, binance_qr_url, telegram_bot_link,
                    telegram_channel_link, updated_at
                ) VALUES (1, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    binance_id=excluded.binance_id,
                    binance_qr_url=excluded.binance_qr_url,
                    telegram_bot_link=excluded.telegram_bot_link,
                    telegram_channel_link=excluded.telegram_channel_link,
                    updated_at=excluded.updated_at
            """,
                (
                    settings.binance_id,
                    settings.binance_qr_url,
                    settings.telegram_bot_link,
                    settings.telegram_channel_link,
                    settings.updated_at.isoformat(),
                ),
            )
            conn.commit()
        return settings
