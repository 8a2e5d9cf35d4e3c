import os
import sys

import pytest

# Make the src layout importable without installing the package
CURRENT_DIR = os.path.dirname(__file__)
SRC_PATH = os.path.abspath(os.path.join(CURRENT_DIR, "..", "src"))
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)


@pytest.fixture(autouse=True)
def reset_process_globals():
    """Every test starts without a configured repository or config instance."""
    yield
    from chaletbook import api, config

    api.set_repository(None)
    config.set_config(None)
