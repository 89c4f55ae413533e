import os

APP_FOLDER = os.path.dirname(__file__)
UPLOADS_FOLDER = os.path.join(APP_FOLDER, 'uploads')
T_FOLDER = os.path.join(APP_FOLDER, 'translations')
DB_FOLDER = os.path.join(APP_FOLDER, 'databases')

SESSION_SECRET = os.environ.get('MARKER_SITE_SESSION_SECRET', 'my_secret_key')

ALLOWED_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.bmp', '.webp']

# Entries kept in the per-session locate history
HISTORY_LIMIT = 20

for folder in (UPLOADS_FOLDER, T_FOLDER, DB_FOLDER):
    if not os.path.exists(folder):
        os.makedirs(folder)
