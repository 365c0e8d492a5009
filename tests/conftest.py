import pytest

from jwk_kms.key_manager import LocalKmsCrypto


@pytest.fixture
def kms():
    return LocalKmsCrypto()
