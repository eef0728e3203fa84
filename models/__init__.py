"""
Models package: exposes the process-wide DBStorage singleton.
create_app() rebinds it to the configured DATABASE_URL and calls reload().
"""
from models.db_storage import DBStorage

storage = DBStorage()
