"""
Clinic billing modules.

Each module follows the same layout:
    models.py   -- frozen dataclass DTOs and enums (zero I/O)
    orm.py      -- SQLAlchemy persistence models
    service.py  -- the operations, owning their transaction boundary
"""
