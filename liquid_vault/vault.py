"""The liquidity lock vault: purchases, claims and the administrative surface."""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from liquid_vault import curves
from liquid_vault.constants import BURN_ADDRESS, PERMILLE
from liquid_vault.errors import (
    AccessDenied,
    AlreadySeeded,
    InsufficientPoolBalance,
    InsufficientVaultTokenBalance,
    NotSeeded,
    OracleNotYetUpdated,
    PurchasesDisabled,
    ReentrantCall,
    TransferFailed,
    ZeroAddress,
    ZeroAmount,
    ZeroValueInput,
)
from liquid_vault.fixed_point import ZERO, FixedPoint
from liquid_vault.interfaces import Clock, SystemClock
from liquid_vault.ledger import LockedBatchLedger
from liquid_vault.models import (
    AccessRole,
    AdminCapability,
    AdminTransferred,
    BatchInserted,
    BuyPressureCalibration,
    LockedBatch,
    LockPercentageCalibration,
    LockTimeCalibration,
    LPClaimed,
    LPQueued,
    PurchaseQuote,
    VaultConfig,
)


class LiquidVault:
    """
    Pairs incoming value with the vault's protocol tokens, deposits both into the pool
    and locks the resulting pool units per holder.

    Every operation either completes or raises before changing vault state. A claim pays
    the holder before burning the exit fee, so a failed payout moves nothing and a
    failed burn only leaves the fee units in the vault. A purchase pays the fee sink
    only after the pool deposit succeeded.
    """

    def __init__(
        self,
        owner: str,
        clock: Clock | None = None,
        *,
        address: str = "0x00000000000000000000000000000000000000c3",
        lock_time_calibration: LockTimeCalibration | None = None,
        buy_pressure_calibration: BuyPressureCalibration | None = None,
        lock_percentage_calibration: LockPercentageCalibration | None = None,
        close_insertion_on_admin_mutation: bool = False,
    ):
        if not owner:
            raise ZeroAddress("vault owner is zero address")
        self.address = address
        self.clock = clock if clock is not None else SystemClock()
        self.ledger = LockedBatchLedger()
        self.admin = AdminCapability.owner(owner)
        self.config: VaultConfig | None = None
        self.lock_time_calibration = lock_time_calibration or LockTimeCalibration.default()
        self.buy_pressure_calibration = buy_pressure_calibration or BuyPressureCalibration.default()
        self.lock_percentage_calibration = lock_percentage_calibration or LockPercentageCalibration.default()
        self.force_unlock = False
        self.purchases_disabled = False
        self.events: list[object] = []
        self._close_insertion_on_admin_mutation = close_insertion_on_admin_mutation
        self._last_twap: FixedPoint | None = None
        self._entered = False

    # Guards

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCall("LiquidVault: reentrant call")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    def _require_admin(self, caller: str) -> None:
        if caller != self.admin.principal:
            raise AccessDenied("Ownable: caller is not the owner")

    def _require_seeded(self) -> VaultConfig:
        if self.config is None:
            raise NotSeeded("LiquidVault: not seeded")
        return self.config

    @contextmanager
    def _admin_mutation(self, caller: str) -> Iterator[VaultConfig]:
        """Privileged-mutation scope; in strict mode a successful mutation closes bulk insertion."""
        self._require_admin(caller)
        config = self._require_seeded()
        yield config
        if self._close_insertion_on_admin_mutation:
            self.ledger.finish_batch_insertion()

    def is_rescue_controller(self, caller: str) -> bool:
        return self.admin.role is AccessRole.RESCUE_CONTROLLER and self.admin.principal == caller

    @property
    def owner(self) -> str:
        return self.admin.principal

    # Administration

    def seed(self, caller: str, config: VaultConfig) -> None:
        """Set collaborator references; possible exactly once."""
        self._require_admin(caller)
        if self.config is not None:
            raise AlreadySeeded("LiquidVault: already seeded")
        for name, address in (
            ("token", config.token.address),
            ("pool", config.pool.address),
            ("treasury", config.treasury),
        ):
            if not address:
                raise ZeroAddress(f"LiquidVault: {name} is zero address")
        self.config = config

    def transfer_admin(self, caller: str, capability: AdminCapability) -> None:
        with self._admin_mutation(caller):
            if not capability.principal:
                raise ZeroAddress("Ownable: new owner is the zero address")
            previous, self.admin = self.admin, capability
            self.events.append(AdminTransferred(previous=previous, current=capability))

    def unsafe_calibrate_lock_time(self, caller: str, calibration: LockTimeCalibration) -> None:
        """Replace the lock-duration curve. Not validated; only the duration floor still holds."""
        with self._admin_mutation(caller):
            self.lock_time_calibration = calibration

    def unsafe_calibrate_buy_pressure(self, caller: str, calibration: BuyPressureCalibration) -> None:
        """Replace the buy-pressure curve. Not validated; only the 0-40% clamp still holds."""
        with self._admin_mutation(caller):
            self.buy_pressure_calibration = calibration

    def unsafe_calibrate_lock_percentage(self, caller: str, calibration: LockPercentageCalibration) -> None:
        """Replace the exit-fee tier curve. Not validated; only the 0-40% clamp still holds."""
        with self._admin_mutation(caller):
            self.lock_percentage_calibration = calibration

    def set_force_unlock(self, caller: str, enabled: bool) -> None:
        with self._admin_mutation(caller):
            self.force_unlock = enabled

    def set_purchases_disabled(self, caller: str, disabled: bool) -> None:
        with self._admin_mutation(caller):
            self.purchases_disabled = disabled

    def flush_to_treasury(self, caller: str, amount: int) -> None:
        """Move protocol tokens held by the vault to the treasury."""
        with self._admin_mutation(caller) as config:
            if amount <= 0:
                raise ZeroAmount("LiquidVault: flush amount must be > 0")
            if config.token.balance_of(self.address) < amount:
                raise InsufficientVaultTokenBalance("LiquidVault: insufficient tokens in LiquidVault")
            if not config.token.transfer(self.address, config.treasury, amount):
                raise TransferFailed("LiquidVault: treasury transfer failed")

    def insert_unclaimed_batch(
        self,
        caller: str,
        holders: Sequence[str],
        amounts: Sequence[int],
        timestamps: Sequence[int],
    ) -> list[LockedBatch]:
        """Migration-only bulk insertion of locked batches; closed for good by finish_batch_insertion."""
        self._require_admin(caller)
        self._require_seeded()
        inserted = self.ledger.bulk_insert(holders, amounts, timestamps)
        self.events.extend(
            BatchInserted(holder=b.holder, amount=b.amount, unlock_timestamp=b.unlock_timestamp) for b in inserted
        )
        return inserted

    def finish_batch_insertion(self, caller: str) -> None:
        self._require_admin(caller)
        self._require_seeded()
        self.ledger.finish_batch_insertion()

    @property
    def batch_insertion_finished(self) -> bool:
        return self.ledger.insertion_finished

    # Curves at current reserves

    def lock_duration(self) -> int:
        """Seconds a batch purchased right now would stay locked."""
        config = self._require_seeded()
        return curves.lock_duration(
            config.pool.reserves(),
            self.lock_time_calibration,
            force_unlock=self.force_unlock,
        )

    def buy_pressure_fee(self) -> int:
        """Current buy-pressure fee, parts-per-thousand."""
        config = self._require_seeded()
        return curves.buy_pressure_fee(config.pool.reserves().token, self.buy_pressure_calibration)

    def reference_price(self) -> FixedPoint | None:
        """Oracle TWAP, falling back to the last value seen when the oracle has none."""
        config = self._require_seeded()
        try:
            self._last_twap = config.oracle.consult()
        except OracleNotYetUpdated:
            pass
        return self._last_twap

    def lock_percentage(self) -> int:
        """Current exit-fee tier, parts-per-thousand."""
        config = self._require_seeded()
        spot = curves.spot_price(config.pool.reserves())
        twap = self.reference_price()
        deviation = ZERO if twap is None else curves.price_deviation(spot, twap)
        return curves.lock_percentage(deviation, self.lock_percentage_calibration)

    # Ledger reads

    def locked_lp_length(self, holder: str) -> int:
        return self.ledger.length(holder)

    def locked_lp(self, holder: str, index: int) -> LockedBatch:
        return self.ledger.batch(holder, index)

    # Purchase flow

    def quote_purchase(self, value: int) -> PurchaseQuote:
        """Fee, net value and protocol tokens a purchase of `value` would use right now."""
        config = self._require_seeded()
        if value <= 0:
            raise ZeroValueInput("LiquidVault: eth required to mint tokens LP")
        fee_permille = self.buy_pressure_fee()
        fee = value * fee_permille // PERMILLE
        net_value = value - fee
        return PurchaseQuote(
            value=value,
            fee_permille=fee_permille,
            fee=fee,
            net_value=net_value,
            tokens_required=config.pool.quote_paired_amount(net_value),
        )

    def purchase(self, caller: str, value: int) -> LPQueued:
        """Turn `value` of paired asset into a locked batch for `caller`."""
        with self._non_reentrant():
            config = self._require_seeded()
            if self.purchases_disabled and not self.is_rescue_controller(caller):
                raise PurchasesDisabled("LiquidVault: purchases are disabled")
            quote = self.quote_purchase(value)
            if quote.net_value <= 0 or quote.tokens_required <= 0:
                raise ZeroAmount("LiquidVault: purchase too small to mint LP")
            if config.token.balance_of(self.address) < quote.tokens_required:
                raise InsufficientVaultTokenBalance("LiquidVault: insufficient tokens in LiquidVault")

            config.token.approve(self.address, config.pool.address, quote.tokens_required)
            lp_amount = config.pool.add_liquidity(self.address, quote.net_value, quote.tokens_required)
            if quote.fee:
                config.fee_sink.deposit(quote.fee)

            lock_period = self.lock_duration()
            unlock_timestamp = self.clock.now() + lock_period
            self.ledger.append(caller, lp_amount, unlock_timestamp)

            event = LPQueued(
                holder=caller,
                lp_amount=lp_amount,
                token_amount=quote.tokens_required,
                value=quote.net_value,
                fee=quote.fee,
                lock_period=lock_period,
                unlock_timestamp=unlock_timestamp,
            )
            self.events.append(event)
            return event

    # Claim flow

    def _transfer_units(self, config: VaultConfig, recipient: str, units: int) -> None:
        if not config.pool.transfer(self.address, recipient, units):
            raise TransferFailed(f"LiquidVault: LP transfer of {units} to {recipient} failed")

    def claim(self, caller: str) -> LPClaimed:
        """Realize the oldest batch of `caller` once it has matured."""
        with self._non_reentrant():
            config = self._require_seeded()
            _, batch = self.ledger.peek_claimable(caller, self.clock.now())

            tier = self.lock_percentage()
            exit_fee = batch.amount * tier // PERMILLE
            payout = batch.amount - exit_fee
            if config.pool.balance_of(self.address) < batch.amount:
                raise InsufficientPoolBalance(
                    f"LiquidVault: vault holds {config.pool.balance_of(self.address)} LP, batch needs {batch.amount}"
                )

            self.ledger.advance_claim(caller)
            try:
                self._transfer_units(config, caller, payout)
            except TransferFailed:
                self.ledger.rewind_claim(caller)
                raise

            # The batch is settled once the holder is paid; an unburnt fee stays in the vault.
            burned = not exit_fee or config.pool.transfer(self.address, BURN_ADDRESS, exit_fee)

            event = LPClaimed(
                holder=caller,
                amount=batch.amount,
                payout=payout,
                exit_fee=exit_fee,
                lock_percentage=tier,
                exit_fee_burned=burned,
            )
            self.events.append(event)
            return event
