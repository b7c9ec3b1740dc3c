from pathlib import Path

from src.hostel_attendance.hostel_attendance.database.bootstrap import split_sql

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_split_keeps_semicolons_inside_literals_and_drops_comments():
    sql = """
    -- header; not a statement
    CREATE DATABASE IF NOT EXISTS other_db;
    USE other_db;
    INSERT INTO t (a, b) VALUES ('x;y', 'it''s');  # trailing
    /* block; comment */ SELECT 1
    """

    assert list(split_sql(sql)) == [
        "INSERT INTO t (a, b) VALUES ('x;y', 'it''s')",
        "SELECT 1",
    ]


def test_schema_file_yields_the_three_tables():
    statements = list(split_sql((REPO_ROOT / "database" / "schema.sql").read_text(encoding="utf-8")))

    assert len(statements) == 3
    assert all(s.startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    assert "UNIQUE KEY uq_session_participant (session_id, participant_id)" in statements[2]
