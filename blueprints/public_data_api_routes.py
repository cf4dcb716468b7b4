from flask import Blueprint, jsonify, request

from storage import get_services
from storage.catalog_store import serialize_course, serialize_instructor, serialize_lesson
from storage.site_content_store import serialize_site_content
from utils.errors import NotFoundError
from utils.logging_utils import app_logger, log_info
from utils.rate_limiter import rate_limit
from utils.security_utils import optional_user
from utils.validators import get_json_body, validate_contact

public_data_api_bp = Blueprint('public_data_api_bp', __name__, url_prefix='/api')


def _get_published_course(course_id):
    course = get_services().catalog.get_course_with_instructor(course_id)
    if course is None or not course['isPublished']:
        raise NotFoundError('Course not found')
    return course


@public_data_api_bp.route('/courses', methods=['GET'])
def get_courses():
    courses = get_services().catalog.get_published_courses(
        category=request.args.get('category'),
        search=request.args.get('search'),
    )
    return jsonify([serialize_course(row) for row in courses])


@public_data_api_bp.route('/courses/<int:course_id>', methods=['GET'])
def get_course(course_id):
    return jsonify(_get_published_course(course_id))


@public_data_api_bp.route('/courses/<int:course_id>/lessons', methods=['GET'])
def get_course_lessons(course_id):
    """
    Lessons of a published course in order. Video links are only included for
    preview/public lessons, unless the caller is enrolled or an admin.
    """
    _get_published_course(course_id)
    services = get_services()

    caller = optional_user()
    full_access = caller is not None and (
        caller.is_admin or services.enrollments.get_user_enrollment(caller.id, course_id) is not None)

    lessons = services.catalog.get_lessons_by_course(course_id)
    return jsonify([
        serialize_lesson(row, include_video=full_access or bool(row['is_preview']) or bool(row['is_public']))
        for row in lessons
    ])


@public_data_api_bp.route('/instructors', methods=['GET'])
def get_instructors():
    return jsonify([serialize_instructor(row) for row in get_services().catalog.get_instructors()])


@public_data_api_bp.route('/site-content', methods=['GET'])
def get_site_content():
    rows = get_services().site_content.get(request.args.get('section'))
    return jsonify([serialize_site_content(row) for row in rows])


@public_data_api_bp.route('/contact', methods=['POST'])
@rate_limit('api')
def submit_contact():
    data = validate_contact(get_json_body())
    message_id = get_services().contacts.save_message(**data)
    log_info(app_logger, "Contact form submission", message_id=message_id,
             email=data['email'], subject=data['subject'])
    return jsonify({'message': 'Message sent successfully'})
