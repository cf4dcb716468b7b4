import pytest

from conftest import bearer, signup
from storage.enrollment_store import compute_progress


@pytest.mark.parametrize('completed, total, expected', [
    (0, 4, 0.0),
    (3, 4, 75.0),
    (4, 4, 100.0),
    (1, 3, 33.33),
    (2, 0, 0.0),
    (5, 4, 100.0),
])
def test_compute_progress(completed, total, expected):
    assert compute_progress(completed, total) == expected


@pytest.fixture
def course_with_lessons(make_course, make_lesson):
    course = make_course()
    lessons = [make_lesson(course['id'], order) for order in range(1, 5)]
    return course, lessons


def _complete(client, headers, course, lesson):
    return client.put('/api/lesson-progress', json={
        'lessonId': lesson['id'],
        'courseId': course['id'],
        'watchedSeconds': 300,
        'totalSeconds': 300,
        'isCompleted': True,
    }, headers=headers)


def test_enroll_creates_enrollment_and_counts_student(client, user_headers, services, course_with_lessons):
    course, _ = course_with_lessons
    response = client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)
    assert response.status_code == 201
    body = response.get_json()
    assert body['courseId'] == course['id']
    assert body['progress'] == 0
    assert body['completedLessons'] == []
    assert body['completedAt'] is None
    assert services.catalog.get_course(course['id'])['student_count'] == 1


def test_duplicate_enrollment_is_a_conflict(client, user_headers, services, course_with_lessons):
    course, _ = course_with_lessons
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)

    response = client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)
    assert response.status_code == 409
    assert response.get_json()['message'] == 'Already enrolled in this course'
    assert services.db.fetch_one('SELECT COUNT(*) FROM enrollments')[0] == 1
    assert services.catalog.get_course(course['id'])['student_count'] == 1


def test_enroll_in_missing_course(client, user_headers):
    response = client.post('/api/enrollments', json={'courseId': 12345}, headers=user_headers)
    assert response.status_code == 404


def test_enroll_requires_course_id(client, user_headers):
    response = client.post('/api/enrollments', json={}, headers=user_headers)
    assert response.status_code == 400
    assert 'courseId' in response.get_json()['errors']


def test_enrollments_require_authentication(client):
    assert client.get('/api/enrollments').status_code == 401
    assert client.post('/api/enrollments', json={'courseId': 1}).status_code == 401


def test_progress_scenario(client, user_headers, course_with_lessons):
    course, lessons = course_with_lessons
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)

    for lesson in lessons[:3]:
        assert _complete(client, user_headers, course, lesson).status_code == 200

    enrollment = client.get(f"/api/enrollments/{course['id']}", headers=user_headers).get_json()
    assert enrollment['progress'] == 75
    assert enrollment['completedAt'] is None
    assert sorted(enrollment['completedLessons']) == sorted(lesson['id'] for lesson in lessons[:3])

    response = _complete(client, user_headers, course, lessons[3])
    enrollment = response.get_json()['enrollment']
    assert enrollment['progress'] == 100
    assert enrollment['completedAt'] is not None
    assert enrollment['lastAccessedLesson'] == lessons[3]['id']


def test_recompleting_a_lesson_is_idempotent(client, user_headers, course_with_lessons):
    course, lessons = course_with_lessons
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)

    first = _complete(client, user_headers, course, lessons[0]).get_json()['enrollment']
    second = _complete(client, user_headers, course, lessons[0]).get_json()['enrollment']
    assert first['progress'] == second['progress'] == 25
    assert second['completedLessons'] == [lessons[0]['id']]


def test_partial_watch_does_not_complete(client, user_headers, course_with_lessons):
    course, lessons = course_with_lessons
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)

    response = client.put('/api/lesson-progress', json={
        'lessonId': lessons[0]['id'], 'courseId': course['id'],
        'watchedSeconds': 30, 'totalSeconds': 300, 'isCompleted': False,
    }, headers=user_headers)
    assert response.status_code == 200
    body = response.get_json()
    assert body['lessonProgress']['watchedSeconds'] == 30
    assert body['lessonProgress']['isCompleted'] is False
    assert body['enrollment']['progress'] == 0

    progress = client.get(f"/api/lesson-progress?lessonId={lessons[0]['id']}", headers=user_headers)
    assert progress.get_json()['watchedSeconds'] == 30


def test_completed_lesson_stays_completed(client, user_headers, course_with_lessons):
    course, lessons = course_with_lessons
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)
    _complete(client, user_headers, course, lessons[0])

    response = client.put('/api/lesson-progress', json={
        'lessonId': lessons[0]['id'], 'courseId': course['id'],
        'watchedSeconds': 10, 'totalSeconds': 300, 'isCompleted': False,
    }, headers=user_headers)
    body = response.get_json()
    assert body['lessonProgress']['isCompleted'] is True
    assert body['enrollment']['progress'] == 25


def test_completion_requires_enrollment(client, user_headers, services, course_with_lessons):
    course, lessons = course_with_lessons
    response = _complete(client, user_headers, course, lessons[0])
    assert response.status_code == 404
    assert services.db.fetch_one('SELECT COUNT(*) FROM lesson_progress')[0] == 0


def test_lesson_must_belong_to_course(client, user_headers, make_course, course_with_lessons):
    course, lessons = course_with_lessons
    other = make_course(title='Other')
    client.post('/api/enrollments', json={'courseId': other['id']}, headers=user_headers)
    response = _complete(client, user_headers, other, lessons[0])
    assert response.status_code == 400
    assert 'lessonId' in response.get_json()['errors']


def test_unknown_lesson_is_not_found(client, user_headers, course_with_lessons):
    course, _ = course_with_lessons
    response = _complete(client, user_headers, course, {'id': 98765})
    assert response.status_code == 404


def test_enrollment_lookup_for_unenrolled_course(client, user_headers, course_with_lessons):
    course, _ = course_with_lessons
    assert client.get(f"/api/enrollments/{course['id']}", headers=user_headers).status_code == 404


def test_enrollment_listing_embeds_course_and_is_per_user(client, user_headers, course_with_lessons):
    course, _ = course_with_lessons
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)

    mine = client.get('/api/enrollments', headers=user_headers).get_json()
    assert len(mine) == 1
    assert mine[0]['course']['title'] == 'Intro to Python'

    other_token = signup(client, email='other@example.com').get_json()['token']
    assert client.get('/api/enrollments', headers=bearer(other_token)).get_json() == []


def test_zero_lesson_course_reports_zero_progress(client, user_headers, make_course):
    course = make_course(title='Empty')
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)
    enrollment = client.get(f"/api/enrollments/{course['id']}", headers=user_headers).get_json()
    assert enrollment['progress'] == 0


def test_cannot_enroll_in_unpublished_course(client, user_headers, make_course):
    draft = make_course(title='Draft', isPublished=False)
    response = client.post('/api/enrollments', json={'courseId': draft['id']}, headers=user_headers)
    assert response.status_code == 404


@pytest.mark.parametrize('course_id', [10 ** 30, -10 ** 30, 2 ** 63])
def test_enroll_with_out_of_range_course_id_is_rejected(client, user_headers, course_id):
    response = client.post('/api/enrollments', json={'courseId': course_id}, headers=user_headers)
    assert response.status_code == 400
    assert 'courseId' in response.get_json()['errors']


def test_progress_rounds_through_three_lessons(client, user_headers, make_course, make_lesson):
    course = make_course(title='Three Parts')
    lessons = [make_lesson(course['id'], order) for order in range(1, 4)]
    client.post('/api/enrollments', json={'courseId': course['id']}, headers=user_headers)

    progress = [
        _complete(client, user_headers, course, lesson).get_json()['enrollment']['progress']
        for lesson in lessons
    ]
    assert progress == [33.33, 66.67, 100]

    enrollment = client.get(f"/api/enrollments/{course['id']}", headers=user_headers).get_json()
    assert enrollment['progress'] == 100
    assert enrollment['completedAt'] is not None
