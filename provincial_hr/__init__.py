"""Provincial HR records service.

To use the Flask app:
    from provincial_hr.flask_app import create_app

To use the access-control and scoping layer directly:
    from provincial_hr.core import rbac, employee_service
"""
# Note: We don't import flask_app by default so that scripts/ can use the
# core services without building an application.
