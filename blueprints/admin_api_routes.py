from flask import Blueprint, jsonify, request

from storage import get_services
from storage.catalog_store import serialize_course, serialize_instructor, serialize_lesson
from storage.site_content_store import serialize_site_content
from storage.user_store import serialize_user
from utils.errors import NotFoundError, ValidationError
from utils.logging_utils import app_logger, security_logger, log_info
from utils.security_utils import require_admin
from utils.validators import (
    get_json_body, parse_int, validate_course, validate_instructor, validate_lesson, validate_site_content,
)

admin_api_bp = Blueprint('admin_api_bp', __name__, url_prefix='/api/admin')


# --- Dashboard ---
@admin_api_bp.route('/stats', methods=['GET'])
@require_admin
def api_admin_stats(current_user):
    return jsonify(get_services().stats.get_admin_stats())


# --- Course Management APIs ---
@admin_api_bp.route('/courses', methods=['GET'])
@require_admin
def api_admin_get_courses(current_user):
    courses = get_services().catalog.get_courses(
        category=request.args.get('category'),
        search=request.args.get('search'),
    )
    return jsonify([serialize_course(row) for row in courses])


@admin_api_bp.route('/courses', methods=['POST'])
@require_admin
def api_admin_create_course(current_user):
    fields = validate_course(get_json_body())
    course = get_services().catalog.create_course(fields)
    log_info(app_logger, "Course created by admin", course_id=course['id'], admin_id=current_user.id)
    return jsonify(serialize_course(course)), 201


@admin_api_bp.route('/courses/<int:course_id>', methods=['GET'])
@require_admin
def api_admin_get_course(current_user, course_id):
    course = get_services().catalog.get_course_with_instructor(course_id)
    if course is None:
        raise NotFoundError('Course not found')
    return jsonify(course)


@admin_api_bp.route('/courses/<int:course_id>', methods=['PUT'])
@require_admin
def api_admin_update_course(current_user, course_id):
    fields = validate_course(get_json_body(), partial=True)
    course = get_services().catalog.update_course(course_id, fields)
    return jsonify(serialize_course(course))


@admin_api_bp.route('/courses/<int:course_id>', methods=['DELETE'])
@require_admin
def api_admin_delete_course(current_user, course_id):
    get_services().catalog.delete_course(course_id)
    log_info(app_logger, "Course deleted by admin", course_id=course_id, admin_id=current_user.id)
    return '', 204


@admin_api_bp.route('/courses/<int:course_id>/lessons', methods=['GET'])
@require_admin
def api_admin_get_course_lessons(current_user, course_id):
    catalog = get_services().catalog
    if catalog.get_course(course_id) is None:
        raise NotFoundError('Course not found')
    return jsonify([serialize_lesson(row) for row in catalog.get_lessons_by_course(course_id)])


# --- Lesson Management APIs ---
@admin_api_bp.route('/lessons', methods=['GET'])
@require_admin
def api_admin_get_lessons(current_user):
    if not request.args.get('courseId'):
        raise ValidationError('Course ID is required', {'courseId': 'This field is required'})
    try:
        course_id = parse_int(request.args['courseId'])
    except ValueError:
        raise ValidationError(fields={'courseId': 'Must be an integer'})
    lessons = get_services().catalog.get_lessons_by_course(course_id)
    return jsonify([serialize_lesson(row) for row in lessons])


@admin_api_bp.route('/lessons', methods=['POST'])
@require_admin
def api_admin_create_lesson(current_user):
    fields = validate_lesson(get_json_body())
    lesson = get_services().catalog.create_lesson(fields)
    return jsonify(serialize_lesson(lesson)), 201


@admin_api_bp.route('/lessons/<int:lesson_id>', methods=['GET'])
@require_admin
def api_admin_get_lesson(current_user, lesson_id):
    lesson = get_services().catalog.get_lesson(lesson_id)
    if lesson is None:
        raise NotFoundError('Lesson not found')
    return jsonify(serialize_lesson(lesson))


@admin_api_bp.route('/lessons/<int:lesson_id>', methods=['PUT'])
@require_admin
def api_admin_update_lesson(current_user, lesson_id):
    fields = validate_lesson(get_json_body(), partial=True)
    lesson = get_services().catalog.update_lesson(lesson_id, fields)
    return jsonify(serialize_lesson(lesson))


@admin_api_bp.route('/lessons/<int:lesson_id>', methods=['DELETE'])
@require_admin
def api_admin_delete_lesson(current_user, lesson_id):
    get_services().catalog.delete_lesson(lesson_id)
    return '', 204


# --- Instructor Management APIs ---
@admin_api_bp.route('/instructors', methods=['GET'])
@require_admin
def api_admin_get_instructors(current_user):
    return jsonify([serialize_instructor(row) for row in get_services().catalog.get_instructors()])


@admin_api_bp.route('/instructors', methods=['POST'])
@require_admin
def api_admin_create_instructor(current_user):
    fields = validate_instructor(get_json_body())
    instructor = get_services().catalog.create_instructor(fields)
    return jsonify(serialize_instructor(instructor)), 201


@admin_api_bp.route('/instructors/<int:instructor_id>', methods=['GET'])
@require_admin
def api_admin_get_instructor(current_user, instructor_id):
    instructor = get_services().catalog.get_instructor(instructor_id)
    if instructor is None:
        raise NotFoundError('Instructor not found')
    return jsonify(serialize_instructor(instructor))


@admin_api_bp.route('/instructors/<int:instructor_id>', methods=['PUT'])
@require_admin
def api_admin_update_instructor(current_user, instructor_id):
    fields = validate_instructor(get_json_body(), partial=True)
    instructor = get_services().catalog.update_instructor(instructor_id, fields)
    return jsonify(serialize_instructor(instructor))


@admin_api_bp.route('/instructors/<int:instructor_id>', methods=['DELETE'])
@require_admin
def api_admin_delete_instructor(current_user, instructor_id):
    get_services().catalog.delete_instructor(instructor_id)
    return '', 204


# --- Site Content APIs ---
@admin_api_bp.route('/site-content', methods=['GET'])
@require_admin
def api_admin_get_site_content(current_user):
    rows = get_services().site_content.get(request.args.get('section'))
    return jsonify([serialize_site_content(row) for row in rows])


@admin_api_bp.route('/site-content', methods=['PUT'])
@require_admin
def api_admin_upsert_site_content(current_user):
    data = validate_site_content(get_json_body())
    content = get_services().site_content.upsert(**data)
    log_info(app_logger, "Site content updated", section=data['section'], key=data['key'],
             admin_id=current_user.id)
    return jsonify(serialize_site_content(content))


@admin_api_bp.route('/site-content', methods=['DELETE'])
@require_admin
def api_admin_delete_site_content(current_user):
    # Accept the composite key from the query string or a JSON body
    data = request.get_json(silent=True) or {}
    section = request.args.get('section') or data.get('section')
    key = request.args.get('key') or data.get('key')
    errors = {}
    if not section:
        errors['section'] = 'This field is required'
    if not key:
        errors['key'] = 'This field is required'
    if errors:
        raise ValidationError(fields=errors)
    get_services().site_content.delete(section, key)
    return '', 204


# --- Student Management APIs ---
@admin_api_bp.route('/students', methods=['GET'])
@require_admin
def api_admin_get_students(current_user):
    return jsonify([serialize_user(row) for row in get_services().users.list_users()])


@admin_api_bp.route('/students/<int:user_id>', methods=['DELETE'])
@require_admin
def api_admin_delete_student(current_user, user_id):
    if user_id == current_user.id:
        raise ValidationError('You cannot delete your own account')
    get_services().users.delete_user(user_id)
    log_info(security_logger, "User deleted by admin", user_id=user_id, admin_id=current_user.id)
    return '', 204


@admin_api_bp.route('/students/<int:user_id>/promote', methods=['PUT'])
@require_admin
def api_admin_promote_student(current_user, user_id):
    user = get_services().users.promote_to_admin(user_id)
    log_info(security_logger, "User promoted to admin", user_id=user_id, admin_id=current_user.id)
    return jsonify(serialize_user(user))


# --- Contact messages ---
@admin_api_bp.route('/contact-messages', methods=['GET'])
@require_admin
def api_admin_get_contact_messages(current_user):
    return jsonify(get_services().contacts.list_messages())
