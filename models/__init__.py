"""
Models package; `storage` is the process-wide DBStorage instance.
create_app() configures it with the DATABASE_URL of the selected config.
"""
from models.db_storage import DBStorage

storage = DBStorage()
