from py4web import Session, Translator, DAL
from py4web.utils.dbstore import DBStore
from .settings import DB_FOLDER, T_FOLDER, SESSION_SECRET

# Database
db = DAL('sqlite://storage.db', folder=DB_FOLDER)

# Session
session = Session(secret=SESSION_SECRET, storage=DBStore(db))

# Translations
T = Translator(T_FOLDER)
