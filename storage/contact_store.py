class ContactStore:
    def __init__(self, db):
        self.db = db

    def save_message(self, first_name, last_name, email, subject, message):
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute(
                'INSERT INTO contact_messages (first_name, last_name, email, subject, message) VALUES (?, ?, ?, ?, ?)',
                (first_name, last_name, email, subject, message))
            return cursor.lastrowid

    def list_messages(self):
        rows = self.db.fetch_all('SELECT * FROM contact_messages ORDER BY created_at DESC, id DESC')
        return [{
            'id': row['id'],
            'firstName': row['first_name'],
            'lastName': row['last_name'],
            'email': row['email'],
            'subject': row['subject'],
            'message': row['message'],
            'createdAt': row['created_at'],
        } for row in rows]
