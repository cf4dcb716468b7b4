"""Catalog storage: courses, lessons and instructors."""

import json

from utils.errors import NotFoundError, ValidationError
from utils.logging_utils import db_logger, log_info

COURSE_COLUMNS = (
    'title', 'description', 'short_description', 'category', 'level', 'duration',
    'price', 'image_url', 'instructor_id', 'rating', 'student_count', 'is_published', 'start_date',
)
LESSON_COLUMNS = (
    'course_id', 'title', 'description', 'video_url', 'video_type', 'duration',
    'order', 'is_preview', 'is_public',
)
INSTRUCTOR_COLUMNS = (
    'name', 'title', 'bio', 'profile_image_url', 'expertise', 'rating', 'student_count',
)


def serialize_instructor(row):
    if row is None:
        return None
    try:
        expertise = json.loads(row['expertise']) if row['expertise'] else []
    except ValueError:
        expertise = []
    return {
        'id': row['id'],
        'name': row['name'],
        'title': row['title'],
        'bio': row['bio'],
        'profileImageUrl': row['profile_image_url'],
        'expertise': expertise,
        'rating': row['rating'],
        'studentCount': row['student_count'],
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


def serialize_course(row):
    if row is None:
        return None
    return {
        'id': row['id'],
        'title': row['title'],
        'description': row['description'],
        'shortDescription': row['short_description'],
        'category': row['category'],
        'level': row['level'],
        'duration': row['duration'],
        'price': row['price'],
        'imageUrl': row['image_url'],
        'instructorId': row['instructor_id'],
        'rating': row['rating'],
        'studentCount': row['student_count'],
        'isPublished': bool(row['is_published']),
        'startDate': row['start_date'],
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


def serialize_lesson(row, include_video=True):
    if row is None:
        return None
    return {
        'id': row['id'],
        'courseId': row['course_id'],
        'title': row['title'],
        'description': row['description'],
        'videoUrl': row['video_url'] if include_video else None,
        'videoType': row['video_type'],
        'duration': row['duration'],
        'order': row['order'],
        'isPreview': bool(row['is_preview']),
        'isPublic': bool(row['is_public']),
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


def _quote(column):
    # "order" is a reserved word
    return f'"{column}"'


def _encode(column, value):
    if column == 'expertise':
        return json.dumps(value or [])
    if column in ('is_published', 'is_preview', 'is_public'):
        return int(bool(value))
    return value


class CatalogStore:
    def __init__(self, db):
        self.db = db

    # --- Generic helpers ---

    def _insert(self, table, allowed, fields):
        columns = [c for c in allowed if c in fields]
        placeholders = ', '.join('?' for _ in columns)
        params = tuple(_encode(c, fields[c]) for c in columns)
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute(
                f"INSERT INTO {table} ({', '.join(_quote(c) for c in columns)}) VALUES ({placeholders})",
                params)
            return cursor.lastrowid

    def _update(self, table, row_id, allowed, fields, not_found_message):
        fields_to_update = []
        params = []
        for column in allowed:
            if column in fields:
                fields_to_update.append(f"{_quote(column)} = ?")
                params.append(_encode(column, fields[column]))

        with self.db.get_db_cursor() as (conn, cursor):
            if not cursor.execute(f"SELECT id FROM {table} WHERE id = ?", (row_id,)).fetchone():
                raise NotFoundError(not_found_message)
            if fields_to_update:
                fields_to_update.append("updated_at = CURRENT_TIMESTAMP")
                params.append(row_id)
                cursor.execute(f"UPDATE {table} SET {', '.join(fields_to_update)} WHERE id = ?", tuple(params))

    def _delete(self, table, row_id, not_found_message):
        with self.db.get_db_cursor() as (conn, cursor):
            cursor.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(not_found_message)

    # --- Instructors ---

    def get_instructors(self):
        return self.db.fetch_all('SELECT * FROM instructors ORDER BY name ASC, id ASC')

    def get_instructor(self, instructor_id):
        return self.db.fetch_one('SELECT * FROM instructors WHERE id = ?', (instructor_id,))

    def create_instructor(self, fields):
        instructor_id = self._insert('instructors', INSTRUCTOR_COLUMNS, fields)
        log_info(db_logger, "Instructor created", instructor_id=instructor_id)
        return self.get_instructor(instructor_id)

    def update_instructor(self, instructor_id, fields):
        self._update('instructors', instructor_id, INSTRUCTOR_COLUMNS, fields, 'Instructor not found')
        return self.get_instructor(instructor_id)

    def delete_instructor(self, instructor_id):
        """Delete an instructor; courses that referenced it keep existing without one."""
        self._delete('instructors', instructor_id, 'Instructor not found')
        log_info(db_logger, "Instructor deleted", instructor_id=instructor_id)

    # --- Courses ---

    def _query_courses(self, published_only, category=None, search=None):
        conditions = []
        params = []
        if published_only:
            conditions.append('is_published = 1')
        if category and category != 'all':
            conditions.append('category = ?')
            params.append(category)
        if search:
            # LIKE is ASCII case-insensitive; lower() both sides for the rest
            conditions.append("lower(title) LIKE ? ESCAPE '\\'")
            escaped = search.lower().replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
            params.append(f"%{escaped}%")

        query = 'SELECT * FROM courses'
        if conditions:
            query += ' WHERE ' + ' AND '.join(conditions)
        query += ' ORDER BY created_at DESC, id DESC'
        return self.db.fetch_all(query, tuple(params))

    def get_courses(self, category=None, search=None):
        """All courses regardless of published state (admin listing)."""
        return self._query_courses(False, category, search)

    def get_published_courses(self, category=None, search=None):
        return self._query_courses(True, category, search)

    def get_course(self, course_id):
        return self.db.fetch_one('SELECT * FROM courses WHERE id = ?', (course_id,))

    def get_course_with_instructor(self, course_id):
        """Return the serialized course with an `instructor` key (None if unset or dangling)."""
        course = self.get_course(course_id)
        if course is None:
            return None
        result = serialize_course(course)
        instructor = None
        if course['instructor_id'] is not None:
            instructor = self.get_instructor(course['instructor_id'])
        result['instructor'] = serialize_instructor(instructor)
        return result

    def _check_instructor(self, fields):
        instructor_id = fields.get('instructor_id')
        if instructor_id is not None and self.get_instructor(instructor_id) is None:
            raise ValidationError(fields={'instructorId': 'Instructor does not exist'})

    def create_course(self, fields):
        self._check_instructor(fields)
        course_id = self._insert('courses', COURSE_COLUMNS, fields)
        log_info(db_logger, "Course created", course_id=course_id, title=fields.get('title'))
        return self.get_course(course_id)

    def update_course(self, course_id, fields):
        self._check_instructor(fields)
        self._update('courses', course_id, COURSE_COLUMNS, fields, 'Course not found')
        return self.get_course(course_id)

    def delete_course(self, course_id):
        """Hard-delete a course together with its lessons, enrollments and lesson progress."""
        self._delete('courses', course_id, 'Course not found')
        log_info(db_logger, "Course deleted", course_id=course_id)

    # --- Lessons ---

    def get_lessons_by_course(self, course_id):
        return self.db.fetch_all(
            'SELECT * FROM lessons WHERE course_id = ? ORDER BY "order" ASC, id ASC', (course_id,))

    def get_lesson(self, lesson_id):
        return self.db.fetch_one('SELECT * FROM lessons WHERE id = ?', (lesson_id,))

    def create_lesson(self, fields):
        if self.get_course(fields['course_id']) is None:
            raise NotFoundError('Course not found')
        lesson_id = self._insert('lessons', LESSON_COLUMNS, fields)
        log_info(db_logger, "Lesson created", lesson_id=lesson_id, course_id=fields['course_id'])
        return self.get_lesson(lesson_id)

    def update_lesson(self, lesson_id, fields):
        if 'course_id' in fields and self.get_course(fields['course_id']) is None:
            raise NotFoundError('Course not found')
        self._update('lessons', lesson_id, LESSON_COLUMNS, fields, 'Lesson not found')
        return self.get_lesson(lesson_id)

    def delete_lesson(self, lesson_id):
        self._delete('lessons', lesson_id, 'Lesson not found')
        log_info(db_logger, "Lesson deleted", lesson_id=lesson_id)
