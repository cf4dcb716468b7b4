import sqlite3
from contextlib import contextmanager
from threading import Lock

from utils.logging_utils import db_logger, log_info, log_warning

SCHEMA = '''
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        first_name TEXT,
        last_name TEXT,
        profile_image_url TEXT,
        is_admin BOOLEAN NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS instructors (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        title TEXT NOT NULL,
        bio TEXT,
        profile_image_url TEXT,
        expertise TEXT NOT NULL DEFAULT '[]',
        rating REAL NOT NULL DEFAULT 0,
        student_count INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS courses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        description TEXT,
        short_description TEXT,
        category TEXT NOT NULL,
        level TEXT NOT NULL DEFAULT 'beginner',
        duration TEXT,
        price REAL NOT NULL DEFAULT 0,
        image_url TEXT,
        instructor_id INTEGER,
        rating REAL NOT NULL DEFAULT 0,
        student_count INTEGER NOT NULL DEFAULT 0,
        is_published BOOLEAN NOT NULL DEFAULT 0,
        start_date TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (instructor_id) REFERENCES instructors (id) ON DELETE SET NULL
    );

    CREATE TABLE IF NOT EXISTS lessons (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        course_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        video_url TEXT,
        video_type TEXT NOT NULL DEFAULT 'upload',
        duration TEXT,
        "order" INTEGER NOT NULL,
        is_preview BOOLEAN NOT NULL DEFAULT 0,
        is_public BOOLEAN NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (course_id) REFERENCES courses (id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS enrollments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        course_id INTEGER NOT NULL,
        progress REAL NOT NULL DEFAULT 0,
        completed_lessons TEXT NOT NULL DEFAULT '[]',
        last_accessed_lesson INTEGER,
        enrolled_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        completed_at TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
        FOREIGN KEY (course_id) REFERENCES courses (id) ON DELETE CASCADE,
        UNIQUE (user_id, course_id)
    );

    CREATE TABLE IF NOT EXISTS lesson_progress (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        lesson_id INTEGER NOT NULL,
        course_id INTEGER NOT NULL,
        watched_seconds INTEGER NOT NULL DEFAULT 0,
        total_seconds INTEGER NOT NULL DEFAULT 0,
        is_completed BOOLEAN NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
        FOREIGN KEY (lesson_id) REFERENCES lessons (id) ON DELETE CASCADE,
        FOREIGN KEY (course_id) REFERENCES courses (id) ON DELETE CASCADE,
        UNIQUE (user_id, lesson_id)
    );

    CREATE TABLE IF NOT EXISTS site_content (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        section TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT,
        type TEXT NOT NULL DEFAULT 'text',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (section, key)
    );

    CREATE TABLE IF NOT EXISTS contact_messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT,
        last_name TEXT,
        email TEXT NOT NULL,
        subject TEXT,
        message TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_lessons_course ON lessons (course_id, "order");
    CREATE INDEX IF NOT EXISTS idx_enrollments_user ON enrollments (user_id);
    CREATE INDEX IF NOT EXISTS idx_site_content_section ON site_content (section);
'''


class DatabaseManager:
    """Manages pooled SQLite connections and transactions for the application."""

    def __init__(self, db_path, pool_size=5):
        self.db_path = db_path
        self.pool_size = pool_size
        self.connection_pool = []
        self.lock = Lock()
        self._initialize_pool()

    def _initialize_pool(self):
        for _ in range(self.pool_size):
            self.connection_pool.append(self._create_connection())

    def _create_connection(self):
        """Create a new connection in autocommit mode; transactions are opened explicitly."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None, timeout=30)
        conn.row_factory = sqlite3.Row  # Enable column access by name
        conn.execute('PRAGMA journal_mode=WAL')
        conn.execute('PRAGMA foreign_keys=ON')
        return conn

    def get_connection(self):
        """Get a database connection from the pool."""
        with self.lock:
            if self.connection_pool:
                return self.connection_pool.pop()
        # Pool exhausted, hand out an extra connection
        return self._create_connection()

    def return_connection(self, conn):
        """Return a connection to the pool, closing it if the pool is full."""
        if conn.in_transaction:
            conn.rollback()
        with self.lock:
            if len(self.connection_pool) < self.pool_size:
                self.connection_pool.append(conn)
                return
        conn.close()

    @contextmanager
    def get_db_cursor(self):
        """
        Run a block of statements as one write transaction.

        BEGIN IMMEDIATE takes the write lock up front so read-modify-write
        sequences inside the block cannot interleave with another writer.
        Commits on success and rolls back on any exception.
        """
        conn = self.get_connection()
        try:
            conn.execute('BEGIN IMMEDIATE')
            cursor = conn.cursor()
            yield conn, cursor
            conn.execute('COMMIT')
        except Exception:
            if conn.in_transaction:
                conn.execute('ROLLBACK')
            raise
        finally:
            self.return_connection(conn)

    def fetch_one(self, query, params=()):
        conn = self.get_connection()
        try:
            return conn.execute(query, params).fetchone()
        finally:
            self.return_connection(conn)

    def fetch_all(self, query, params=()):
        conn = self.get_connection()
        try:
            return conn.execute(query, params).fetchall()
        finally:
            self.return_connection(conn)

    def close_all_connections(self):
        """Close all connections in the pool."""
        with self.lock:
            for conn in self.connection_pool:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    log_warning(db_logger, "Failed to close pooled connection", error=str(e))
            self.connection_pool.clear()

    def initialize_database(self):
        """Create the schema if it does not exist yet."""
        conn = self._create_connection()
        try:
            conn.executescript(SCHEMA)
        finally:
            conn.close()
        log_info(db_logger, "Database initialized", db_path=self.db_path)
