import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_DB_PATH = Path(__file__).parent / 'swiftlet.db'
SOURCE_SUFFIX = '.swift'

SAMPLE_FILES = [
    ('Hello World', '''import Foundation

print("Hello, World!")
print("Welcome to Swift Code Runner!")

let message = "This is a sample Swift program"
print(message)
'''),
    ('Variables and Constants', '''import Foundation

// Constants
let pi = 3.14159
let appName = "Swift Code Runner"

// Variables
var counter = 0
var isRunning = true

print("App: \\(appName)")
print("Pi value: \\(pi)")
print("Counter: \\(counter)")
print("Is running: \\(isRunning)")

// Modify variables
counter = counter + 1
isRunning = false

print("Updated counter: \\(counter)")
print("Updated isRunning: \\(isRunning)")
'''),
    ('Functions', '''import Foundation

// Built-in functions
greet(name: "Swift Developer")
add(5, 3)
factorial(5)
'''),
]


def db_path() -> Path:
    """Return the sqlite file in use; `SWIFTLET_DB_PATH` overrides the default.

    Read on every call so tests can point the app at a temporary file after
    import.
    """
    return Path(os.environ.get('SWIFTLET_DB_PATH') or DEFAULT_DB_PATH)


def get_conn():
    """Return a new sqlite3 connection configured to return rows as dict-like objects.

    We create a fresh connection per-call. For the small scale of this project
    this simple approach is fine.
    """
    conn = sqlite3.connect(str(db_path()))
    conn.row_factory = sqlite3.Row
    return conn


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_db():
    """Ensure the database file and required tables exist.

    This is idempotent and safe to call at application startup.
    """
    path = db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute('''
    CREATE TABLE IF NOT EXISTS CodeFiles (
      name TEXT PRIMARY KEY,
      content TEXT NOT NULL,
      created_at TEXT NOT NULL,
      modified_at TEXT NOT NULL
    )
    ''')
    cur.execute('''
    CREATE TABLE IF NOT EXISTS Runs (
      run_id INTEGER PRIMARY KEY,
      file_name TEXT NULL,
      status TEXT NOT NULL,
      error_code TEXT NULL,
      output_chars INTEGER,
      duration_ms INTEGER,
      created_at TEXT NOT NULL
    )
    ''')
    conn.commit()
    conn.close()


def normalize_name(name: str) -> str:
    """Strip surrounding whitespace and a trailing `.swift` from a file name."""
    cleaned = (name or '').strip()
    if cleaned.endswith(SOURCE_SUFFIX):
        cleaned = cleaned[: -len(SOURCE_SUFFIX)].strip()
    if not cleaned:
        raise ValueError('file name must not be empty')
    return cleaned


def save_code_file(name: str, content: str) -> str:
    """Create or overwrite a code file and return its normalized name.

    Overwriting keeps the original `created_at` and refreshes `modified_at`.
    """
    key = normalize_name(name)
    now = _now()
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        '''
        INSERT INTO CodeFiles (name, content, created_at, modified_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(name) DO UPDATE SET
            content = excluded.content,
            modified_at = excluded.modified_at
        ''',
        (key, content, now, now),
    )
    conn.commit()
    conn.close()
    return key


def load_code_files() -> List[Dict[str, Any]]:
    """Return all code files (with content), most recently modified first."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'SELECT name, content, created_at, modified_at FROM CodeFiles '
        'ORDER BY modified_at DESC, name'
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_code_file(name: str) -> Optional[Dict[str, Any]]:
    """Fetch a single code file by name, returning None if not found."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        'SELECT name, content, created_at, modified_at FROM CodeFiles WHERE name = ?',
        (normalize_name(name),),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def code_file_exists(name: str) -> bool:
    return get_code_file(name) is not None


def delete_code_file(name: str) -> bool:
    """Delete a code file; returns False when there was nothing to delete."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute('DELETE FROM CodeFiles WHERE name = ?', (normalize_name(name),))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


def create_sample_files() -> List[str]:
    """Seed the sample programs that are missing; returns the names created."""
    created = []
    for name, content in SAMPLE_FILES:
        if not code_file_exists(name):
            save_code_file(name, content)
            created.append(name)
    return created


def save_run(
    file_name: Optional[str],
    status: str,
    error_code: Optional[str],
    output_chars: Optional[int],
    duration_ms: Optional[int],
) -> int:
    """Persist a run row and return its run_id.

    Callers should treat this operation as non-fatal: if saving fails, the
    API still returns the run result.
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO Runs (
            file_name, status, error_code, output_chars, duration_ms, created_at
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (file_name, status, error_code, output_chars, duration_ms, _now()),
    )
    run_id = cur.lastrowid
    conn.commit()
    conn.close()
    return run_id


def list_runs(file_name: Optional[str] = None) -> List[Dict[str, Any]]:
    """List run rows, newest first, optionally filtered by file name."""
    conn = get_conn()
    cur = conn.cursor()
    if file_name:
        cur.execute(
            (
                "SELECT run_id, file_name, status, error_code, output_chars,"
                " duration_ms, created_at FROM Runs WHERE file_name = ?"
                " ORDER BY run_id DESC"
            ),
            (normalize_name(file_name),),
        )
    else:
        cur.execute(
            (
                "SELECT run_id, file_name, status, error_code, output_chars,"
                " duration_ms, created_at FROM Runs ORDER BY run_id DESC"
            )
        )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]
