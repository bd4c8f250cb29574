from .core import (
    find_users_by_courses as _find_users_by_courses,
    get_user_by_email as _get_user_by_email,
    get_user_by_id as _get_user_by_id,
    get_users_by_ids as _get_users_by_ids,
    public_profile as _public_profile,
)
from .profile import (
    create_user as _create_user,
    update_profile as _update_profile,
    verify_credentials as _verify_credentials,
)


class UserService:
    """Service class for the User Directory and Firestore interaction."""

    public_profile = staticmethod(_public_profile)
    get_user_by_id = staticmethod(_get_user_by_id)
    get_users_by_ids = staticmethod(_get_users_by_ids)
    get_user_by_email = staticmethod(_get_user_by_email)
    find_users_by_courses = staticmethod(_find_users_by_courses)
    create_user = staticmethod(_create_user)
    verify_credentials = staticmethod(_verify_credentials)
    update_profile = staticmethod(_update_profile)
