import sqlite3

from utils.errors import ConflictError, NotFoundError
from utils.logging_utils import db_logger, log_info


def normalize_email(email):
    """Emails are compared and stored trimmed and lower-cased."""
    return (email or '').strip().lower()


def serialize_user(row):
    if row is None:
        return None
    return {
        'id': row['id'],
        'email': row['email'],
        'firstName': row['first_name'],
        'lastName': row['last_name'],
        'profileImageUrl': row['profile_image_url'],
        'isAdmin': bool(row['is_admin']),
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


USER_UPDATABLE_FIELDS = ('first_name', 'last_name', 'profile_image_url')


class UserStore:
    """Credential store: user records and their password hashes."""

    def __init__(self, db):
        self.db = db

    def get_user(self, user_id):
        return self.db.fetch_one('SELECT * FROM users WHERE id = ?', (user_id,))

    def get_user_by_email(self, email):
        return self.db.fetch_one('SELECT * FROM users WHERE email = ?', (normalize_email(email),))

    def list_users(self):
        return self.db.fetch_all('SELECT * FROM users ORDER BY created_at DESC, id DESC')

    def create_user(self, email, password_hash, first_name=None, last_name=None, is_admin=False):
        email = normalize_email(email)
        try:
            with self.db.get_db_cursor() as (conn, cursor):
                existing = cursor.execute('SELECT id FROM users WHERE email = ?', (email,)).fetchone()
                if existing:
                    raise ConflictError('User already exists')
                cursor.execute(
                    'INSERT INTO users (email, password_hash, first_name, last_name, is_admin) VALUES (?, ?, ?, ?, ?)',
                    (email, password_hash, first_name, last_name, int(bool(is_admin))))
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError:
            raise ConflictError('User already exists')
        log_info(db_logger, "User created", user_id=user_id)
        return self.get_user(user_id)

    def update_user(self, user_id, fields):
        fields_to_update = []
        params = []
        for column in USER_UPDATABLE_FIELDS:
            if column in fields:
                fields_to_update.append(f"{column} = ?")
                params.append(fields[column])

        with self.db.get_db_cursor() as (conn, cursor):
            if not cursor.execute('SELECT id FROM users WHERE id = ?', (user_id,)).fetchone():
                raise NotFoundError('User not found')
            if fields_to_update:
                fields_to_update.append("updated_at = CURRENT_TIMESTAMP")
                params.append(user_id)
                cursor.execute(f"UPDATE users SET {', '.join(fields_to_update)} WHERE id = ?", tuple(params))
        return self.get_user(user_id)

    def promote_to_admin(self, user_id):
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute('UPDATE users SET is_admin = 1, updated_at = CURRENT_TIMESTAMP WHERE id = ?', (user_id,))
            if cursor.rowcount == 0:
                raise NotFoundError('User not found')
        log_info(db_logger, "User promoted to admin", user_id=user_id)
        return self.get_user(user_id)

    def delete_user(self, user_id):
        """Hard-delete a user; enrollments and lesson progress go with it."""
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute('DELETE FROM users WHERE id = ?', (user_id,))
            if cursor.rowcount == 0:
                raise NotFoundError('User not found')
        log_info(db_logger, "User deleted", user_id=user_id)

    def ensure_admin(self, email, password_hash):
        """Create the bootstrap admin account, or promote it if it already exists."""
        user = self.get_user_by_email(email)
        if user is None:
            return self.create_user(email, password_hash, is_admin=True)
        if not user['is_admin']:
            return self.promote_to_admin(user['id'])
        return user
