"""Persistence layer: SQLAlchemy models and the DBStorage singleton.

`storage` is bound to a database by api.create_app() via storage.init_app().
"""
from models.db_storage import DBStorage

storage = DBStorage()
