"""Core business logic, independent of the HTTP framework.

Architecture:
    - No Flask imports: every function takes its store and Identity explicitly
    - Typed errors (errors.py) carry their HTTP status; translation happens
      once in provincial_hr.api.errors

Module Structure:
    - rbac.py              : Role enum, Identity, province access predicate
    - pagination.py        : page/limit parsing and pagination metadata
    - filters.py           : employee list filter and sort clauses
    - validators.py        : credential, identifier and payload validation
    - employee_service.py  : province-scoped employee operations
    - province_service.py  : province lookups and seeding helpers
    - settings_service.py  : global settings row (performance lock)
    - auth_service.py      : login and user provisioning
    - passwords.py         : bcrypt hashing
    - throttle.py          : login attempt limiter
    - audit.py             : signed mutation audit trail
    - store.py             : pymongo collection access

Usage Pattern:
    Import explicitly when needed:
        from provincial_hr.core.rbac import can_access_province, Identity, Role
        from provincial_hr.core.employee_service import list_employees
"""
