# Package exports - these allow cleaner imports like:
# from storefront.db import Base, Database
from storefront.db.database import Base, Database, get_database, get_db
