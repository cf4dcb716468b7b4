from utils.errors import NotFoundError
from utils.logging_utils import db_logger, log_info


def serialize_site_content(row):
    if row is None:
        return None
    return {
        'id': row['id'],
        'section': row['section'],
        'key': row['key'],
        'value': row['value'],
        'type': row['type'],
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


class SiteContentStore:
    """Admin-editable (section, key) -> value content blocks."""

    def __init__(self, db):
        self.db = db

    def get(self, section=None):
        if section:
            return self.db.fetch_all(
                'SELECT * FROM site_content WHERE section = ? ORDER BY key ASC', (section,))
        return self.db.fetch_all('SELECT * FROM site_content ORDER BY section ASC, key ASC')

    def get_by_key(self, section, key):
        return self.db.fetch_one(
            'SELECT * FROM site_content WHERE section = ? AND key = ?', (section, key))

    def upsert(self, section, key, value, content_type='text'):
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute('''
                INSERT INTO site_content (section, key, value, type) VALUES (?, ?, ?, ?)
                ON CONFLICT (section, key) DO UPDATE SET
                    value = excluded.value,
                    type = excluded.type,
                    updated_at = CURRENT_TIMESTAMP
            ''', (section, key, value, content_type))
        log_info(db_logger, "Site content saved", section=section, key=key)
        return self.get_by_key(section, key)

    def delete(self, section, key):
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute('DELETE FROM site_content WHERE section = ? AND key = ?', (section, key))
            if cursor.rowcount == 0:
                raise NotFoundError('Site content not found')
        log_info(db_logger, "Site content deleted", section=section, key=key)
