from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


def _connect(db_path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@dataclass(frozen=True)
class UserRow:
    user_id: str
    granted_roles: tuple[str, ...]
    created_at: str


@dataclass(frozen=True)
class RoleRow:
    role_id: str
    description: str | None
    permissions: tuple[str, ...]
    created_at: str


@dataclass(frozen=True)
class PermissionRow:
    permission_id: str
    label: str
    description: str | None


def _split_group(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(sorted(raw.split("\x1f")))


# Grants are folded into one column with an ASCII unit separator, which cannot
# occur in a name accepted by the service layer.
_USER_SELECT = """
SELECT u.user_id, u.created_at, GROUP_CONCAT(ur.role_id, char(31)) AS roles
FROM users u
LEFT JOIN user_roles ur ON ur.user_id = u.user_id
""".strip()

_ROLE_SELECT = """
SELECT r.role_id, r.description, r.created_at,
       GROUP_CONCAT(rp.permission_id, char(31)) AS permissions
FROM roles r
LEFT JOIN role_permissions rp ON rp.role_id = r.role_id
""".strip()


def _user_from_db_row(row: sqlite3.Row) -> UserRow:
    return UserRow(
        user_id=row["user_id"],
        granted_roles=_split_group(row["roles"]),
        created_at=row["created_at"],
    )


def _role_from_db_row(row: sqlite3.Row) -> RoleRow:
    return RoleRow(
        role_id=row["role_id"],
        description=row["description"],
        permissions=_split_group(row["permissions"]),
        created_at=row["created_at"],
    )


def list_users(db_path, *, user_id: str | None = None) -> list[UserRow]:
    where = ""
    params: list[Any] = []
    if user_id is not None:
        where = "WHERE u.user_id = ?"
        params.append(user_id)

    with _connect(db_path) as conn:
        rows = conn.execute(
            f"{_USER_SELECT}\n{where}\nGROUP BY u.user_id\nORDER BY u.user_id ASC;",
            params,
        ).fetchall()

    return [_user_from_db_row(r) for r in rows]


def get_user(db_path, *, user_id: str) -> UserRow | None:
    rows = list_users(db_path, user_id=user_id)
    return rows[0] if rows else None


def create_user(db_path, *, user_id: str) -> UserRow:
    """Insert a user; raises sqlite3.IntegrityError if the id is taken."""

    with _connect(db_path) as conn:
        conn.execute("INSERT INTO users (user_id) VALUES (?);", (user_id,))

    row = get_user(db_path, user_id=user_id)
    if row is None:
        raise RuntimeError("Failed to read user after insert")
    return row


def delete_user(db_path, *, user_id: str) -> bool:
    with _connect(db_path) as conn:
        cur = conn.execute("DELETE FROM users WHERE user_id = ?;", (user_id,))
        return cur.rowcount > 0


def list_roles(db_path, *, role_id: str | None = None) -> list[RoleRow]:
    where = ""
    params: list[Any] = []
    if role_id is not None:
        where = "WHERE r.role_id = ?"
        params.append(role_id)

    with _connect(db_path) as conn:
        rows = conn.execute(
            f"{_ROLE_SELECT}\n{where}\nGROUP BY r.role_id\nORDER BY r.role_id ASC;",
            params,
        ).fetchall()

    return [_role_from_db_row(r) for r in rows]


def get_role(db_path, *, role_id: str) -> RoleRow | None:
    rows = list_roles(db_path, role_id=role_id)
    return rows[0] if rows else None


def create_role(db_path, *, role_id: str, description: str | None = None) -> RoleRow:
    """Insert a role; raises sqlite3.IntegrityError if the id is taken."""

    with _connect(db_path) as conn:
        conn.execute(
            "INSERT INTO roles (role_id, description) VALUES (?, ?);",
            (role_id, description),
        )

    row = get_role(db_path, role_id=role_id)
    if row is None:
        raise RuntimeError("Failed to read role after insert")
    return row


def delete_role(db_path, *, role_id: str) -> bool:
    with _connect(db_path) as conn:
        cur = conn.execute("DELETE FROM roles WHERE role_id = ?;", (role_id,))
        return cur.rowcount > 0


def list_permissions(db_path) -> list[PermissionRow]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT permission_id, label, description
            FROM permissions
            ORDER BY permission_id ASC;
            """.strip()
        ).fetchall()

    return [
        PermissionRow(
            permission_id=r["permission_id"],
            label=r["label"],
            description=r["description"],
        )
        for r in rows
    ]


def grant_user_role(db_path, *, user_id: str, role_id: str) -> bool:
    """Grant a role; returns False when the grant already existed."""

    with _connect(db_path) as conn:
        cur = conn.execute(
            "INSERT OR IGNORE INTO user_roles (user_id, role_id) VALUES (?, ?);",
            (user_id, role_id),
        )
        return cur.rowcount > 0


def revoke_user_role(db_path, *, user_id: str, role_id: str) -> bool:
    """Revoke a role; returns False when it was not granted."""

    with _connect(db_path) as conn:
        cur = conn.execute(
            "DELETE FROM user_roles WHERE user_id = ? AND role_id = ?;",
            (user_id, role_id),
        )
        return cur.rowcount > 0


def set_role_permissions(db_path, *, role_id: str, permission_ids: Iterable[str]) -> None:
    """Replace the full permission set of a role in one transaction."""

    unique = sorted(set(permission_ids))
    with _connect(db_path) as conn:
        conn.execute("DELETE FROM role_permissions WHERE role_id = ?;", (role_id,))
        conn.executemany(
            "INSERT INTO role_permissions (role_id, permission_id) VALUES (?, ?);",
            [(role_id, p) for p in unique],
        )


def user_permissions(db_path, *, user_id: str) -> set[str]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT DISTINCT rp.permission_id
            FROM user_roles ur
            JOIN role_permissions rp ON rp.role_id = ur.role_id
            WHERE ur.user_id = ?;
            """.strip(),
            (user_id,),
        ).fetchall()

    return {r["permission_id"] for r in rows}
