from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from models.activity import Activity, ActivityLog, ActivityCount
from models.stored_collection import StoredCollection
