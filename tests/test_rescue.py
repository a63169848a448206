import pytest
from conftest import ALICE, OWNER, RESCUER, START, TREASURY

from liquid_vault.constants import UNIT
from liquid_vault.errors import (
    AccessDenied,
    ConfigNotCaptured,
    InsufficientPoolBalance,
    InvalidIterations,
    InvalidRescueState,
    PurchasesDisabled,
    StillLocked,
    ZeroValueInput,
)
from liquid_vault.models import AccessRole, AdminCapability
from liquid_vault.rescue import EmergencyRescue, RescueState
from liquid_vault.simulation import Deployment

LOCK = 3_931_200


def _hand_over(d: Deployment, *, force_unlock: bool = True) -> EmergencyRescue:
    """Owner's pre-rescue procedure: optionally force-unlock, then grant the rescue capability."""
    if force_unlock:
        d.vault.set_force_unlock(OWNER, True)
    d.vault.transfer_admin(OWNER, AdminCapability.rescue_controller(RESCUER, grantor=OWNER))
    return EmergencyRescue(RESCUER)


def test_rescue_drains_own_queue_then_is_a_no_op(deployment):
    d = deployment
    rescue = _hand_over(d)
    rescue.seed(d.vault, UNIT)
    assert rescue.state is RescueState.SEEDED

    session = rescue.capture_config()
    assert session.grantor == OWNER
    assert d.vault.purchases_disabled
    assert rescue.state is RescueState.CONFIG_CAPTURED

    queued = rescue.admin_purchase()
    assert queued.holder == RESCUER
    assert queued.lock_period == 0

    assert rescue.claim(4) == 1
    assert rescue.state is RescueState.DRAINING
    # Exhausted queue: no error, nothing processed.
    assert rescue.claim(4) == 0
    assert d.vault.locked_lp_length(RESCUER) == 1

    payout = d.pool.balance_of(RESCUER)
    assert payout > 0
    owner = rescue.release_ownership(withdraw_to=TREASURY)
    assert owner == AdminCapability.owner(OWNER)
    assert d.vault.owner == OWNER
    assert d.vault.admin.role is AccessRole.OWNER
    assert not d.vault.purchases_disabled
    assert d.pool.balance_of(TREASURY) == payout
    assert d.pool.balance_of(RESCUER) == 0
    assert rescue.state is RescueState.RELEASED


def test_rescue_requires_capability_and_funds(deployment):
    rescue = EmergencyRescue(RESCUER)
    with pytest.raises(AccessDenied):
        rescue.seed(deployment.vault, UNIT)
    assert rescue.state is RescueState.IDLE

    rescue = _hand_over(deployment)
    with pytest.raises(ZeroValueInput):
        rescue.seed(deployment.vault, 0)


def test_rescue_path_before_capture_fails(deployment):
    rescue = _hand_over(deployment)
    with pytest.raises(ConfigNotCaptured):
        rescue.admin_purchase()
    with pytest.raises(ConfigNotCaptured):
        rescue.claim(4)
    rescue.seed(deployment.vault, UNIT)
    with pytest.raises(ConfigNotCaptured):
        rescue.claim(4)
    with pytest.raises(ConfigNotCaptured):
        rescue.preview_purchase()


def test_capture_twice_is_an_invalid_transition(deployment):
    rescue = _hand_over(deployment)
    rescue.seed(deployment.vault, UNIT)
    rescue.capture_config()
    with pytest.raises(InvalidRescueState):
        rescue.capture_config()


@pytest.mark.parametrize("iterations", [0, -1])
def test_claim_needs_positive_iteration_cap(deployment, iterations):
    rescue = _hand_over(deployment)
    rescue.seed(deployment.vault, UNIT)
    rescue.capture_config()
    with pytest.raises(InvalidIterations):
        rescue.claim(iterations)


def test_locked_head_batch_raises_when_nothing_processed(deployment):
    rescue = _hand_over(deployment, force_unlock=False)
    rescue.seed(deployment.vault, UNIT)
    rescue.capture_config()
    queued = rescue.admin_purchase()
    assert queued.lock_period == LOCK
    with pytest.raises(StillLocked):
        rescue.claim(4)


def test_preview_matches_vault_quote(deployment):
    rescue = _hand_over(deployment)
    rescue.seed(deployment.vault, 3 * UNIT)
    rescue.capture_config()
    assert rescue.preview_purchase() == deployment.vault.quote_purchase(3 * UNIT)


def test_other_holders_keep_claiming_during_rescue(deployment):
    d = deployment
    d.vault.purchase(ALICE, UNIT)
    rescue = _hand_over(d, force_unlock=False)
    rescue.seed(d.vault, UNIT)
    rescue.capture_config()

    with pytest.raises(PurchasesDisabled):
        d.vault.purchase(ALICE, UNIT)

    d.clock.set(START + LOCK)
    claimed = d.vault.claim(ALICE)
    assert claimed.amount == 10 * UNIT
    assert d.vault.ledger.cursor(ALICE) == 1

    rescue.release_ownership()
    assert d.vault.owner == OWNER
    d.vault.purchase(ALICE, UNIT)


def test_release_restores_previously_disabled_purchases(deployment):
    deployment.vault.set_purchases_disabled(OWNER, True)
    rescue = _hand_over(deployment)
    rescue.seed(deployment.vault, UNIT)
    rescue.capture_config()
    rescue.release_ownership()
    assert deployment.vault.purchases_disabled


def test_release_without_capability_fails(deployment):
    rescue = _hand_over(deployment)
    rescue.seed(deployment.vault, UNIT)
    rescue.capture_config()
    deployment.vault.transfer_admin(RESCUER, AdminCapability.owner(OWNER))
    with pytest.raises(AccessDenied):
        rescue.release_ownership()


def test_drain_failing_midway_still_records_draining(deployment):
    d = deployment
    d.vault.purchase(ALICE, UNIT)
    # Two migrated batches backed by only one batch worth of pool units.
    d.vault.insert_unclaimed_batch(OWNER, [RESCUER, RESCUER], [10 * UNIT, 10 * UNIT], [START, START])
    rescue = _hand_over(d, force_unlock=False)
    rescue.seed(d.vault, UNIT)
    rescue.capture_config()

    with pytest.raises(InsufficientPoolBalance):
        rescue.claim(4)
    assert rescue.state is RescueState.DRAINING
    assert d.vault.ledger.cursor(RESCUER) == 1
