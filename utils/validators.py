"""Request payload validation.

Each `validate_*` function takes the decoded JSON body and returns a dict of
column-name -> value ready for the storage layer, or raises ValidationError
with one message per offending field (keyed by the JSON field name).
"""

import math

from flask import request

from utils.errors import ValidationError
from utils.security_utils import validate_email

COURSE_LEVELS = ('beginner', 'intermediate', 'advanced')
VIDEO_TYPES = ('upload', 'youtube')
CONTENT_TYPES = ('text', 'image', 'json')
MIN_PASSWORD_LENGTH = 6
SQLITE_INT_MIN = -2 ** 63
SQLITE_INT_MAX = 2 ** 63 - 1


def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def parse_int(value):
    """Accept ints and integer strings; reject bools, floats with fractions and junk.

    Values outside the 64-bit range SQLite can store are rejected too.
    """
    number = _parse_int(value)
    if not SQLITE_INT_MIN <= number <= SQLITE_INT_MAX:
        raise ValueError(f'integer out of range: {number}')
    return number


def _parse_int(value):
    if isinstance(value, bool):
        raise ValueError('boolean is not an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    raise ValueError(f'not an integer: {value!r}')


def _string(value):
    if not isinstance(value, str):
        raise ValueError('Must be a string')
    return value.strip()


def _required_string(value):
    value = _string(value)
    if not value:
        raise ValueError('Must not be empty')
    return value


def _optional_string(value):
    if value is None:
        return None
    return _string(value)


def _number(value):
    if isinstance(value, bool):
        raise ValueError('Must be a number')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError('Must be a number')
    if not math.isfinite(number):
        raise ValueError('Must be a number')
    if number < 0:
        raise ValueError('Must not be negative')
    return number


def _integer(value):
    try:
        return parse_int(value)
    except ValueError:
        raise ValueError('Must be an integer')


def _non_negative_integer(value):
    value = _integer(value)
    if value < 0:
        raise ValueError('Must not be negative')
    return value


def _optional_integer(value):
    if value is None:
        return None
    return _integer(value)


def _boolean(value):
    if not isinstance(value, bool):
        raise ValueError('Must be true or false')
    return value


def _choice(options):
    def check(value):
        if value not in options:
            raise ValueError(f"Must be one of: {', '.join(options)}")
        return value
    return check


def _string_list(value):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError('Must be a list of strings')
    return [item.strip() for item in value if item.strip()]


# (json field, column, converter, required on create)
COURSE_FIELDS = (
    ('title', 'title', _required_string, True),
    ('description', 'description', _optional_string, False),
    ('shortDescription', 'short_description', _optional_string, False),
    ('category', 'category', _required_string, True),
    ('level', 'level', _choice(COURSE_LEVELS), False),
    ('duration', 'duration', _optional_string, False),
    ('price', 'price', _number, False),
    ('imageUrl', 'image_url', _optional_string, False),
    ('instructorId', 'instructor_id', _optional_integer, False),
    ('rating', 'rating', _number, False),
    ('studentCount', 'student_count', _non_negative_integer, False),
    ('isPublished', 'is_published', _boolean, False),
    ('startDate', 'start_date', _optional_string, False),
)

LESSON_FIELDS = (
    ('courseId', 'course_id', _integer, True),
    ('title', 'title', _required_string, True),
    ('description', 'description', _optional_string, False),
    ('videoUrl', 'video_url', _optional_string, False),
    ('videoType', 'video_type', _choice(VIDEO_TYPES), False),
    ('duration', 'duration', _optional_string, False),
    ('order', 'order', _integer, True),
    ('isPreview', 'is_preview', _boolean, False),
    ('isPublic', 'is_public', _boolean, False),
)

INSTRUCTOR_FIELDS = (
    ('name', 'name', _required_string, True),
    ('title', 'title', _required_string, True),
    ('bio', 'bio', _optional_string, False),
    ('profileImageUrl', 'profile_image_url', _optional_string, False),
    ('expertise', 'expertise', _string_list, False),
    ('rating', 'rating', _number, False),
    ('studentCount', 'student_count', _non_negative_integer, False),
)


def _collect(data, field_specs, partial=False):
    cleaned = {}
    errors = {}
    for json_field, column, convert, required in field_specs:
        if json_field not in data:
            if required and not partial:
                errors[json_field] = 'This field is required'
            continue
        try:
            cleaned[column] = convert(data[json_field])
        except ValueError as e:
            errors[json_field] = str(e)
    if errors:
        raise ValidationError(fields=errors)
    return cleaned


def validate_course(data, partial=False):
    return _collect(data, COURSE_FIELDS, partial)


def validate_lesson(data, partial=False):
    return _collect(data, LESSON_FIELDS, partial)


def validate_instructor(data, partial=False):
    return _collect(data, INSTRUCTOR_FIELDS, partial)


def validate_signup(data):
    errors = {}
    email = data.get('email')
    password = data.get('password')
    if not email:
        errors['email'] = 'This field is required'
    elif not validate_email(email.strip() if isinstance(email, str) else email):
        errors['email'] = 'Invalid email format'
    if not password:
        errors['password'] = 'This field is required'
    elif not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        errors['password'] = f'Password must be at least {MIN_PASSWORD_LENGTH} characters'
    for field in ('firstName', 'lastName'):
        if data.get(field) is not None and not isinstance(data[field], str):
            errors[field] = 'Must be a string'
    if errors:
        raise ValidationError(fields=errors)
    return {
        'email': email.strip(),
        'password': password,
        'first_name': (data.get('firstName') or '').strip() or None,
        'last_name': (data.get('lastName') or '').strip() or None,
    }


def validate_login(data):
    errors = {}
    email = data.get('email')
    password = data.get('password')
    if not email or not isinstance(email, str):
        errors['email'] = 'This field is required'
    if not password or not isinstance(password, str):
        errors['password'] = 'This field is required'
    if errors:
        raise ValidationError(fields=errors)
    return {'email': email.strip(), 'password': password}


def validate_enrollment(data):
    if 'courseId' not in data:
        raise ValidationError(fields={'courseId': 'This field is required'})
    try:
        return {'course_id': parse_int(data['courseId'])}
    except ValueError:
        raise ValidationError(fields={'courseId': 'Must be an integer'})


def validate_lesson_progress(data):
    return _collect(data, (
        ('lessonId', 'lesson_id', _integer, True),
        ('courseId', 'course_id', _integer, True),
        ('watchedSeconds', 'watched_seconds', _non_negative_integer, False),
        ('totalSeconds', 'total_seconds', _non_negative_integer, False),
        ('isCompleted', 'is_completed', _boolean, False),
    ))


def validate_site_content(data):
    errors = {}
    for field in ('section', 'key'):
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            errors[field] = 'This field is required'
    value = data.get('value')
    if value is None:
        errors['value'] = 'This field is required'
    elif not isinstance(value, str):
        errors['value'] = 'Must be a string'
    content_type = data.get('type', 'text')
    if content_type not in CONTENT_TYPES:
        errors['type'] = f"Must be one of: {', '.join(CONTENT_TYPES)}"
    if errors:
        raise ValidationError(fields=errors)
    return {
        'section': data['section'].strip(),
        'key': data['key'].strip(),
        'value': value,
        'content_type': content_type,
    }


def validate_contact(data):
    errors = {}
    for field in ('email', 'message'):
        if not isinstance(data.get(field), str) or not data[field].strip():
            errors[field] = 'This field is required'
    if 'email' not in errors and not validate_email(data['email'].strip()):
        errors['email'] = 'Invalid email format'
    if errors:
        raise ValidationError(fields=errors)
    return {
        'first_name': _optional_field(data, 'firstName'),
        'last_name': _optional_field(data, 'lastName'),
        'email': data['email'].strip(),
        'subject': _optional_field(data, 'subject'),
        'message': data['message'].strip(),
    }


def _optional_field(data, field):
    value = data.get(field)
    return value.strip() if isinstance(value, str) else None
