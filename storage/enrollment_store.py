"""Enrollments and per-lesson progress.

An enrollment's `progress` is derived from its set of completed lesson ids:
completed / lessons in course * 100. A course without lessons reports 0.
`completed_at` is stamped the first time progress reaches 100 and is never
cleared afterwards.
"""

import json

from storage.catalog_store import serialize_course
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.logging_utils import enrollment_logger, log_info


def compute_progress(completed_count, total_lessons):
    """Percentage of lessons completed, rounded to two places and capped at 100."""
    if total_lessons <= 0:
        return 0.0
    return min(100.0, round(completed_count * 100.0 / total_lessons, 2))


def _load_completed(raw):
    try:
        return [int(lesson_id) for lesson_id in json.loads(raw or '[]')]
    except (TypeError, ValueError):
        return []


def serialize_enrollment(row, course=None):
    if row is None:
        return None
    result = {
        'id': row['id'],
        'userId': row['user_id'],
        'courseId': row['course_id'],
        'progress': row['progress'],
        'completedLessons': _load_completed(row['completed_lessons']),
        'lastAccessedLesson': row['last_accessed_lesson'],
        'enrolledAt': row['enrolled_at'],
        'completedAt': row['completed_at'],
    }
    if course is not None:
        result['course'] = serialize_course(course)
    return result


def serialize_lesson_progress(row):
    if row is None:
        return None
    return {
        'id': row['id'],
        'userId': row['user_id'],
        'lessonId': row['lesson_id'],
        'courseId': row['course_id'],
        'watchedSeconds': row['watched_seconds'],
        'totalSeconds': row['total_seconds'],
        'isCompleted': bool(row['is_completed']),
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


class EnrollmentStore:
    def __init__(self, db):
        self.db = db

    def get_user_enrollment(self, user_id, course_id):
        return self.db.fetch_one(
            'SELECT * FROM enrollments WHERE user_id = ? AND course_id = ?', (user_id, course_id))

    def get_user_enrollments(self, user_id):
        """Serialized enrollments of a user with their course embedded, newest first."""
        rows = self.db.fetch_all(
            'SELECT * FROM enrollments WHERE user_id = ? ORDER BY enrolled_at DESC, id DESC', (user_id,))
        result = []
        for row in rows:
            course = self.db.fetch_one('SELECT * FROM courses WHERE id = ?', (row['course_id'],))
            result.append(serialize_enrollment(row, course))
        return result

    def enroll(self, user_id, course_id):
        """
        Enroll a user in a course and bump the course's student counter.

        Both writes happen in one transaction. Raises NotFoundError for an
        unknown or unpublished course and ConflictError when the user is already enrolled.
        """
        with self.db.get_db_cursor() as (conn, cursor):
            course = cursor.execute(
                'SELECT id FROM courses WHERE id = ? AND is_published = 1', (course_id,)).fetchone()
            if course is None:
                raise NotFoundError('Course not found')
            existing = cursor.execute(
                'SELECT id FROM enrollments WHERE user_id = ? AND course_id = ?',
                (user_id, course_id)).fetchone()
            if existing:
                raise ConflictError('Already enrolled in this course')
            cursor.execute(
                "INSERT INTO enrollments (user_id, course_id, progress, completed_lessons) VALUES (?, ?, 0, '[]')",
                (user_id, course_id))
            enrollment_id = cursor.lastrowid
            cursor.execute(
                'UPDATE courses SET student_count = student_count + 1 WHERE id = ?', (course_id,))
        log_info(enrollment_logger, "User enrolled", user_id=user_id, course_id=course_id,
                 enrollment_id=enrollment_id)
        return self.db.fetch_one('SELECT * FROM enrollments WHERE id = ?', (enrollment_id,))

    def get_lesson_progress(self, user_id, lesson_id):
        return self.db.fetch_one(
            'SELECT * FROM lesson_progress WHERE user_id = ? AND lesson_id = ?', (user_id, lesson_id))

    def record_lesson_progress(self, user_id, lesson_id, course_id, watched_seconds=0,
                               total_seconds=0, is_completed=False):
        """
        Upsert the watch state of one lesson and, when the lesson is completed,
        fold it into the enrollment and recompute course progress.

        Everything runs in a single transaction. Returns a tuple of the
        lesson progress row and the enrollment row (None if not enrolled).
        """
        with self.db.get_db_cursor() as (conn, cursor):
            lesson = cursor.execute('SELECT id, course_id FROM lessons WHERE id = ?', (lesson_id,)).fetchone()
            if lesson is None:
                raise NotFoundError('Lesson not found')
            if lesson['course_id'] != course_id:
                raise ValidationError(fields={'lessonId': 'Lesson does not belong to this course'})

            enrollment = cursor.execute(
                'SELECT * FROM enrollments WHERE user_id = ? AND course_id = ?',
                (user_id, course_id)).fetchone()
            if is_completed and enrollment is None:
                raise NotFoundError('Not enrolled in this course')

            # Completion is sticky: a later update cannot un-complete a lesson
            cursor.execute('''
                INSERT INTO lesson_progress (user_id, lesson_id, course_id, watched_seconds, total_seconds, is_completed)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, lesson_id) DO UPDATE SET
                    course_id = excluded.course_id,
                    watched_seconds = excluded.watched_seconds,
                    total_seconds = excluded.total_seconds,
                    is_completed = max(lesson_progress.is_completed, excluded.is_completed),
                    updated_at = CURRENT_TIMESTAMP
            ''', (user_id, lesson_id, course_id, watched_seconds, total_seconds, int(bool(is_completed))))

            if enrollment is not None:
                completed = set(_load_completed(enrollment['completed_lessons']))
                if is_completed:
                    completed.add(lesson_id)
                total_lessons = cursor.execute(
                    'SELECT COUNT(*) FROM lessons WHERE course_id = ?', (course_id,)).fetchone()[0]
                progress = compute_progress(len(completed), total_lessons)

                completed_at_sql = 'completed_at'
                if progress >= 100 and enrollment['completed_at'] is None:
                    completed_at_sql = 'CURRENT_TIMESTAMP'
                cursor.execute(f'''
                    UPDATE enrollments
                    SET progress = ?, completed_lessons = ?, last_accessed_lesson = ?,
                        completed_at = {completed_at_sql}
                    WHERE id = ?
                ''', (progress, json.dumps(sorted(completed)), lesson_id, enrollment['id']))

                if is_completed:
                    log_info(enrollment_logger, "Lesson completed", user_id=user_id, course_id=course_id,
                             lesson_id=lesson_id, progress=progress)

            progress_row = cursor.execute(
                'SELECT * FROM lesson_progress WHERE user_id = ? AND lesson_id = ?',
                (user_id, lesson_id)).fetchone()
            enrollment_row = None
            if enrollment is not None:
                enrollment_row = cursor.execute(
                    'SELECT * FROM enrollments WHERE id = ?', (enrollment['id'],)).fetchone()
        return progress_row, enrollment_row
