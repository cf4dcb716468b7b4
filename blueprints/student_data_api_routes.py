from flask import Blueprint, jsonify, request

from storage import get_services
from storage.enrollment_store import serialize_enrollment, serialize_lesson_progress
from utils.errors import NotFoundError, ValidationError
from utils.security_utils import require_auth
from utils.validators import get_json_body, parse_int, validate_enrollment, validate_lesson_progress

student_data_api_bp = Blueprint('student_data_api_bp', __name__, url_prefix='/api')


@student_data_api_bp.route('/enrollments', methods=['GET'])
@require_auth
def get_enrollments(current_user):
    return jsonify(get_services().enrollments.get_user_enrollments(current_user.id))


@student_data_api_bp.route('/enrollments', methods=['POST'])
@require_auth
def create_enrollment(current_user):
    data = validate_enrollment(get_json_body())
    enrollment = get_services().enrollments.enroll(current_user.id, data['course_id'])
    return jsonify(serialize_enrollment(enrollment)), 201


@student_data_api_bp.route('/enrollments/<int:course_id>', methods=['GET'])
@require_auth
def get_enrollment(current_user, course_id):
    enrollment = get_services().enrollments.get_user_enrollment(current_user.id, course_id)
    if enrollment is None:
        raise NotFoundError('Enrollment not found')
    return jsonify(serialize_enrollment(enrollment))


@student_data_api_bp.route('/lesson-progress', methods=['GET'])
@require_auth
def get_lesson_progress(current_user):
    try:
        lesson_id = parse_int(request.args.get('lessonId'))
    except ValueError:
        raise ValidationError(fields={'lessonId': 'Must be an integer'})
    progress = get_services().enrollments.get_lesson_progress(current_user.id, lesson_id)
    if progress is None:
        raise NotFoundError('Lesson progress not found')
    return jsonify(serialize_lesson_progress(progress))


@student_data_api_bp.route('/lesson-progress', methods=['PUT'])
@require_auth
def update_lesson_progress(current_user):
    data = validate_lesson_progress(get_json_body())
    progress, enrollment = get_services().enrollments.record_lesson_progress(
        user_id=current_user.id,
        lesson_id=data['lesson_id'],
        course_id=data['course_id'],
        watched_seconds=data.get('watched_seconds', 0),
        total_seconds=data.get('total_seconds', 0),
        is_completed=data.get('is_completed', False),
    )
    return jsonify({
        'lessonProgress': serialize_lesson_progress(progress),
        'enrollment': serialize_enrollment(enrollment),
    })
