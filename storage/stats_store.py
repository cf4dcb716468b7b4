class StatsStore:
    """Aggregate numbers for the admin dashboard."""

    def __init__(self, db):
        self.db = db

    def _count(self, query):
        return self.db.fetch_one(query)[0]

    def get_admin_stats(self):
        avg_completion = self.db.fetch_one(
            'SELECT AVG(min(progress, 100)) FROM enrollments')[0]
        return {
            'totalStudents': self._count('SELECT COUNT(*) FROM users WHERE is_admin = 0'),
            'totalCourses': self._count('SELECT COUNT(*) FROM courses'),
            'publishedCourses': self._count('SELECT COUNT(*) FROM courses WHERE is_published = 1'),
            'totalLessons': self._count('SELECT COUNT(*) FROM lessons'),
            'totalEnrollments': self._count('SELECT COUNT(*) FROM enrollments'),
            'avgCompletionRate': round(avg_completion or 0, 2),
        }
