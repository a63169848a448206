import pytest

from liquid_vault.constants import UNIT
from liquid_vault.simulation import Deployment, deploy

OWNER = "0x0000000000000000000000000000000000000001"
TREASURY = "0x0000000000000000000000000000000000000002"
ALICE = "0x000000000000000000000000000000000000a11c"
BOB = "0x0000000000000000000000000000000000000b0b"
RESCUER = "0x00000000000000000000000000000000000005c0"
START = 1_700_000_000


def make_deployment(**overrides) -> Deployment:
    params = {
        "owner": OWNER,
        "treasury": TREASURY,
        "start_time": START,
        "pool_paired": 10 * UNIT,
        "pool_tokens": 1_000 * UNIT,
        "vault_tokens": 1_000_000 * UNIT,
        "oracle_period": 3_600,
    }
    params.update(overrides)
    return deploy(**params)


@pytest.fixture
def deployment() -> Deployment:
    """10 ETH / 1000 token pool: x = 0.01, wet regime, zero buy-pressure fee."""
    return make_deployment()
