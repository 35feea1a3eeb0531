import os

import pytest


@pytest.fixture(scope="session")
def base_url():
    url = os.getenv("BASE_URL")
    if not url:
        pytest.skip("BASE_URL non défini : tests sur serveur déployé ignorés")
    return url.rstrip("/")
