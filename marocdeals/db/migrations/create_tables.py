from marocdeals.models.base import Base
from marocdeals.models.user_model import User  # noqa: F401
from marocdeals.db.session import engine

Base.metadata.create_all(bind=engine)
print("Tables créées correctement.")
