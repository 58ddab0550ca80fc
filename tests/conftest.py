import os
import warnings

# Ignore warnings from app.shared
warnings.filterwarnings("ignore", category=DeprecationWarning, module="app.shared.*")

# Set test environment variables before any app module reads the config
os.environ.update(
    {
        "STORE_BACKEND": "memory",
        "EVENTS_BACKEND": "memory",
        "AUTH_JWT_SECRET": "test-secret",
        "AUTH_JWT_ALGORITHM": "HS256",
    }
)

# Import database fixtures so they are available to all tests
from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
from tests.fixtures.session_fixtures import *  # noqa: E402, F403
