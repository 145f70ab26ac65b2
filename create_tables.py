from app.db.session import engine
from app.db.base import Base
from app.models import User, Subscription, Fortune  # noqa: F401

print("Creating database tables...")
Base.metadata.create_all(bind=engine)
print("✅ Tables created: users, subscriptions, fortunes")
