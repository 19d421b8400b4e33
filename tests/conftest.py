import os
import sys
import warnings
from pathlib import Path

# Ignore warnings from app.shared
warnings.filterwarnings("ignore", category=DeprecationWarning, module="app.shared.*")

# Set test environment variables before any app module reads the config
os.environ.update(
    {
        "DEBUG": "false",
        "DEMO_MODE": "true",
        "BCRYPT_ROUNDS": "4",
        "JWT_SECRET": "test-access-secret",
        "JWT_REFRESH_SECRET": "test-refresh-secret",
        "AGORA_APP_ID": "",
        "AGORA_APP_CERTIFICATE": "",
        "AGORA_CUSTOMER_ID": "",
        "AGORA_CUSTOMER_SECRET": "",
        "SMTP_USERNAME": "",
        "SMTP_PASSWORD": "",
    }
)

# Ensure the project root is on sys.path so `app` packages resolve
PROJECT_ROOT = Path(__file__).resolve().parents[1]
root_str = str(PROJECT_ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

# Import database fixtures so they are available to all tests
from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
