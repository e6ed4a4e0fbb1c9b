# =======================================================================================
# app/services/member_repository.py - Members / Trainings Store Access
# =======================================================================================
from typing import Dict, Iterable, List, Optional, Set
from sqlalchemy import text
from sqlalchemy.engine import Connection


class MemberRepository:
    """SQL for the members, trainings and members_trainings_link tables."""

    @staticmethod
    def get_member_tag(conn: Connection, contact_id: int) -> Optional[int]:
        row = conn.execute(
            text("SELECT tag_id FROM members WHERE contact_id = :cid"),
            {"cid": contact_id},
        ).mappings().first()
        return row["tag_id"] if row else None

    @staticmethod
    def upsert_member(conn: Connection, contact_id: int, tag_id: int, membership_level: int) -> None:
        """Insert or update the member row keyed by contact_id."""
        result = conn.execute(
            text("""
                UPDATE members
                SET tag_id = :tag, membership_level = :level
                WHERE contact_id = :cid
            """),
            {"cid": contact_id, "tag": tag_id, "level": membership_level},
        )
        if result.rowcount == 0:
            conn.execute(
                text("""
                    INSERT INTO members (contact_id, tag_id, membership_level)
                    VALUES (:cid, :tag, :level)
                """),
                {"cid": contact_id, "tag": tag_id, "level": membership_level},
            )

    @staticmethod
    def tag_held_by_other(conn: Connection, tag_id: int, contact_id: int) -> bool:
        row = conn.execute(
            text("SELECT 1 FROM members WHERE tag_id = :tag AND contact_id <> :cid LIMIT 1"),
            {"tag": tag_id, "cid": contact_id},
        ).first()
        return row is not None

    @staticmethod
    def delete_links(conn: Connection, tag_id: int) -> int:
        result = conn.execute(
            text("DELETE FROM members_trainings_link WHERE tag_id = :tag"),
            {"tag": tag_id},
        )
        return result.rowcount

    @staticmethod
    def ensure_training(conn: Connection, training_name: str) -> None:
        exists = conn.execute(
            text("SELECT 1 FROM trainings WHERE training_name = :name"),
            {"name": training_name},
        ).first()
        if exists is None:
            conn.execute(
                text("INSERT INTO trainings (training_name) VALUES (:name)"),
                {"name": training_name},
            )

    def replace_links(self, conn: Connection, tag_id: int, labels: Iterable[str]) -> int:
        """Drop every link of the tag and write one per distinct label. Returns links written."""
        self.delete_links(conn, tag_id)
        written = 0
        seen: Set[str] = set()
        for label in labels:
            if label in seen:
                continue
            seen.add(label)
            self.ensure_training(conn, label)
            conn.execute(
                text("""
                    INSERT INTO members_trainings_link (tag_id, training_name)
                    VALUES (:tag, :name)
                """),
                {"tag": tag_id, "name": label},
            )
            written += 1
        return written

    @staticmethod
    def prune_unreferenced_trainings(conn: Connection) -> int:
        result = conn.execute(
            text("""
                DELETE FROM trainings
                WHERE training_name NOT IN (
                    SELECT DISTINCT training_name FROM members_trainings_link
                )
            """)
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Read side (cache builder)
    # ------------------------------------------------------------------
    @staticmethod
    def list_members(conn: Connection) -> List[Dict[str, int]]:
        rows = conn.execute(
            text("""
                SELECT contact_id, tag_id, membership_level
                FROM members
                WHERE tag_id <> 0
                ORDER BY tag_id, contact_id
            """)
        ).mappings().all()
        return [dict(row) for row in rows]

    @staticmethod
    def list_links(conn: Connection) -> List[Dict[str, object]]:
        rows = conn.execute(
            text("""
                SELECT tag_id, training_name
                FROM members_trainings_link
                ORDER BY tag_id, training_name
            """)
        ).mappings().all()
        return [dict(row) for row in rows]
