from profile_service.models.user import User  # noqa: F401
