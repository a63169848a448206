"""Emergency rescue controller: drains a vault's ledger under a captured configuration."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from liquid_vault import curves
from liquid_vault.constants import PERMILLE
from liquid_vault.errors import (
    AccessDenied,
    ConfigNotCaptured,
    InvalidIterations,
    InvalidRescueState,
    NotSeeded,
    NothingToClaim,
    StillLocked,
    TransferFailed,
    ZeroAddress,
    ZeroValueInput,
)
from liquid_vault.models import (
    AdminCapability,
    BuyPressureCalibration,
    LockPercentageCalibration,
    LockTimeCalibration,
    LPQueued,
    PurchaseQuote,
    VaultConfig,
)

if TYPE_CHECKING:
    from liquid_vault.vault import LiquidVault  # pragma: no cover


class RescueState(Enum):
    IDLE = "idle"
    SEEDED = "seeded"
    CONFIG_CAPTURED = "config_captured"
    DRAINING = "draining"
    RELEASED = "released"


@dataclass(frozen=True)
class RescueSession:
    """Vault configuration and calibrations as they were at capture time."""

    config: VaultConfig
    lock_time_calibration: LockTimeCalibration
    buy_pressure_calibration: BuyPressureCalibration
    lock_percentage_calibration: LockPercentageCalibration
    # Purchases flag before capture disabled purchases; restored on release.
    purchases_disabled: bool
    grantor: str


class EmergencyRescue:
    """
    Privileged delegate holding a vault's RESCUE_CONTROLLER capability.

    Lifecycle: the owner hands the capability over and `seed` funds the controller,
    `capture_config` snapshots the vault and closes normal purchases, `admin_purchase`
    buys one batch the controller owns, `claim` drains the controller's queue in bounded
    steps, and `release_ownership` gives the OWNER capability back. Other holders'
    batches are never touched.
    """

    def __init__(self, address: str):
        if not address:
            raise ZeroAddress("rescue controller address is zero address")
        self.address = address
        self.state = RescueState.IDLE
        self.vault: "LiquidVault | None" = None
        self.funds = 0
        self.session: RescueSession | None = None

    def _require_state(self, *allowed: RescueState) -> None:
        if self.state not in allowed:
            names = ", ".join(s.name for s in allowed)
            raise InvalidRescueState(f"EmergencyRescue: state is {self.state.name}, expected one of {names}")

    def _require_session(self) -> tuple["LiquidVault", RescueSession]:
        if self.session is None or self.vault is None:
            raise ConfigNotCaptured("EmergencyRescue: config not captured")
        return self.vault, self.session

    def seed(self, vault: "LiquidVault", value: int) -> None:
        """Bind to `vault` and fund the controller with `value` for its rescue purchase."""
        self._require_state(RescueState.IDLE, RescueState.RELEASED)
        if not vault.is_rescue_controller(self.address):
            raise AccessDenied("EmergencyRescue: controller does not hold the vault's rescue capability")
        if value <= 0:
            raise ZeroValueInput("EmergencyRescue: rescue requires value to purchase with")
        self.vault = vault
        self.funds = value
        self.state = RescueState.SEEDED

    def capture_config(self) -> RescueSession:
        """Snapshot the vault configuration and disable normal purchases."""
        self._require_state(RescueState.SEEDED)
        vault = self.vault
        if vault is None:
            raise InvalidRescueState("EmergencyRescue: not bound to a vault")
        config = vault.config
        if config is None:
            raise NotSeeded("LiquidVault: not seeded")
        grantor = vault.admin.grantor
        if not grantor:
            raise InvalidRescueState("EmergencyRescue: rescue capability has no grantor to return ownership to")
        session = RescueSession(
            config=config,
            lock_time_calibration=vault.lock_time_calibration,
            buy_pressure_calibration=vault.buy_pressure_calibration,
            lock_percentage_calibration=vault.lock_percentage_calibration,
            purchases_disabled=vault.purchases_disabled,
            grantor=grantor,
        )
        vault.set_purchases_disabled(self.address, True)
        self.session = session
        self.state = RescueState.CONFIG_CAPTURED
        return session

    def preview_purchase(self, value: int | None = None) -> PurchaseQuote:
        """Purchase math computed from the captured snapshot, without asking the vault."""
        _, session = self._require_session()
        value = self.funds if value is None else value
        if value <= 0:
            raise ZeroValueInput("EmergencyRescue: nothing to purchase with")
        pool = session.config.pool
        fee_permille = curves.buy_pressure_fee(pool.reserves().token, session.buy_pressure_calibration)
        fee = value * fee_permille // PERMILLE
        net_value = value - fee
        return PurchaseQuote(
            value=value,
            fee_permille=fee_permille,
            fee=fee,
            net_value=net_value,
            tokens_required=pool.quote_paired_amount(net_value),
        )

    def admin_purchase(self) -> LPQueued:
        """Spend the controller's funds on one batch held by the controller itself."""
        vault, _ = self._require_session()
        self._require_state(RescueState.CONFIG_CAPTURED, RescueState.DRAINING)
        if self.funds <= 0:
            raise ZeroValueInput("EmergencyRescue: controller funds already spent")
        event = vault.purchase(self.address, self.funds)
        self.funds = 0
        return event

    def claim(self, iterations: int) -> int:
        """
        Claim up to `iterations` batches of the controller's own queue; returns how many.

        An exhausted queue is not an error: the call processes nothing and returns 0. A
        still-locked head batch stops the loop, and raises only if nothing was processed.
        """
        vault, _ = self._require_session()
        self._require_state(RescueState.CONFIG_CAPTURED, RescueState.DRAINING)
        if iterations <= 0:
            raise InvalidIterations(f"EmergencyRescue: iterations must be > 0, got {iterations}")

        processed = 0
        for _ in range(iterations):
            try:
                vault.claim(self.address)
            except NothingToClaim:
                break
            except StillLocked:
                if processed == 0:
                    raise
                break
            processed += 1
            # DRAINING as soon as any batch has been claimed.
            self.state = RescueState.DRAINING
        return processed

    def withdraw_to(self, destination: str) -> int:
        """Move every pool unit the controller holds to `destination`; returns the amount."""
        _, session = self._require_session()
        if not destination:
            raise ZeroAddress("EmergencyRescue: withdrawal destination is zero address")
        pool = session.config.pool
        amount = pool.balance_of(self.address)
        if amount == 0:
            return 0
        if not pool.transfer(self.address, destination, amount):
            raise TransferFailed(f"EmergencyRescue: LP withdrawal of {amount} to {destination} failed")
        return amount

    def release_ownership(self, withdraw_to: str | None = None) -> AdminCapability:
        """Optionally withdraw, then hand the OWNER capability back to the grantor."""
        vault, session = self._require_session()
        if not vault.is_rescue_controller(self.address):
            raise AccessDenied("EmergencyRescue: controller no longer holds the vault's rescue capability")
        if withdraw_to is not None:
            self.withdraw_to(withdraw_to)

        vault.set_purchases_disabled(self.address, session.purchases_disabled)
        owner = AdminCapability.owner(session.grantor)
        vault.transfer_admin(self.address, owner)
        self.session = None
        self.state = RescueState.RELEASED
        return owner

