"""
HRIS business modules.

Each module is thin glue over the kernel and the pure engines: DTOs,
ORM models, workflows, configuration and a service that owns the
transaction boundary.
"""
