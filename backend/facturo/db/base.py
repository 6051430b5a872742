from backend.facturo.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.facturo.models.user import User  # noqa: F401
from backend.facturo.models.user_session import UserSession  # noqa: F401
from backend.facturo.models.refresh_token import RefreshToken  # noqa: F401
from backend.facturo.models.contact import Contact  # noqa: F401
from backend.facturo.models.invoice import Invoice  # noqa: F401
from backend.facturo.models.stock_item import StockItem  # noqa: F401
from backend.facturo.models.user_settings import UserSettings  # noqa: F401
