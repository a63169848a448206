"""Data models for the liquidity lock vault."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from liquid_vault.constants import (
    DEFAULT_BUY_PRESSURE_A,
    DEFAULT_BUY_PRESSURE_B,
    DEFAULT_BUY_PRESSURE_C,
    DEFAULT_BUY_PRESSURE_D,
    DEFAULT_LOCK_PERCENTAGE_BETA,
    DEFAULT_LOCK_PERCENTAGE_D0,
    DEFAULT_LOCK_PERCENTAGE_D_MAX,
    DEFAULT_LOCK_PERCENTAGE_P0,
    DEFAULT_LOCK_SCALING_DRY,
    DEFAULT_LOCK_SCALING_WET,
    DEFAULT_LOCK_SHIFT_DRY,
    DEFAULT_LOCK_SHIFT_WET,
    DEFAULT_LOCK_THRESHOLD,
    DEFAULT_MAX_RESERVES,
    DEFAULT_MIN_LOCK_TIME,
)
from liquid_vault.fixed_point import FixedPoint

if TYPE_CHECKING:
    from liquid_vault.interfaces import FeeSink, LiquidityPool, PriceFeed, TokenLedger  # pragma: no cover


@dataclass(frozen=True)
class PoolReserves:
    """Current AMM pool reserves, in base units."""

    token: int
    paired: int
    last_update: int


@dataclass(frozen=True)
class CumulativePrice:
    """Running sum of (paired per token) spot price times seconds, as raw FixedPoint."""

    cumulative: int
    timestamp: int


@dataclass
class LockedBatch:
    """One purchase- or migration-originated lot of locked pool units."""

    holder: str
    amount: int
    unlock_timestamp: int
    # Flips false -> true exactly once.
    claimed: bool = False


@dataclass(frozen=True)
class LockTimeCalibration:
    """Two-regime linear lock-duration curve over x = paired reserve / token reserve."""

    scaling_wet: FixedPoint
    shift_wet: FixedPoint
    scaling_dry: FixedPoint
    shift_dry: FixedPoint
    threshold: FixedPoint
    min_lock_time: int

    @classmethod
    def default(cls) -> "LockTimeCalibration":
        return cls(
            scaling_wet=FixedPoint.from_decimal(DEFAULT_LOCK_SCALING_WET),
            shift_wet=FixedPoint.from_decimal(DEFAULT_LOCK_SHIFT_WET),
            scaling_dry=FixedPoint.from_decimal(DEFAULT_LOCK_SCALING_DRY),
            shift_dry=FixedPoint.from_decimal(DEFAULT_LOCK_SHIFT_DRY),
            threshold=FixedPoint.from_decimal(DEFAULT_LOCK_THRESHOLD),
            min_lock_time=DEFAULT_MIN_LOCK_TIME,
        )


@dataclass(frozen=True)
class BuyPressureCalibration:
    """Cubic buy-pressure fee curve (percent) over whole-token reserve depth."""

    a: FixedPoint
    b: FixedPoint
    c: FixedPoint
    d: FixedPoint
    # Reserve depth (base units) beyond which the fee saturates.
    max_reserves: int

    @classmethod
    def default(cls) -> "BuyPressureCalibration":
        return cls(
            a=FixedPoint.from_decimal(DEFAULT_BUY_PRESSURE_A),
            b=FixedPoint.from_decimal(DEFAULT_BUY_PRESSURE_B),
            c=FixedPoint.from_decimal(DEFAULT_BUY_PRESSURE_C),
            d=FixedPoint.from_decimal(DEFAULT_BUY_PRESSURE_D),
            max_reserves=DEFAULT_MAX_RESERVES,
        )


@dataclass(frozen=True)
class LockPercentageCalibration:
    """Logistic exit-fee tier (percent) over spot/TWAP price deviation."""

    d_max: FixedPoint
    p0: FixedPoint
    d0: FixedPoint
    beta: FixedPoint

    @classmethod
    def default(cls) -> "LockPercentageCalibration":
        return cls(
            d_max=FixedPoint.from_decimal(DEFAULT_LOCK_PERCENTAGE_D_MAX),
            p0=FixedPoint.from_decimal(DEFAULT_LOCK_PERCENTAGE_P0),
            d0=FixedPoint.from_decimal(DEFAULT_LOCK_PERCENTAGE_D0),
            beta=FixedPoint.from_decimal(DEFAULT_LOCK_PERCENTAGE_BETA),
        )


@dataclass(frozen=True)
class VaultConfig:
    """Collaborator references, set exactly once when the vault is seeded."""

    token: "TokenLedger"
    pool: "LiquidityPool"
    fee_sink: "FeeSink"
    treasury: str
    oracle: "PriceFeed"


class AccessRole(Enum):
    """Who currently holds administrative control of a vault."""

    OWNER = "owner"
    RESCUE_CONTROLLER = "rescue_controller"


@dataclass(frozen=True)
class AdminCapability:
    """The single administrative capability of a vault: a role bound to a principal."""

    role: AccessRole
    principal: str
    # Principal that handed this capability over; ownership returns there on release.
    grantor: str | None = None

    @classmethod
    def owner(cls, principal: str) -> "AdminCapability":
        return cls(role=AccessRole.OWNER, principal=principal)

    @classmethod
    def rescue_controller(cls, principal: str, *, grantor: str) -> "AdminCapability":
        return cls(role=AccessRole.RESCUE_CONTROLLER, principal=principal, grantor=grantor)


@dataclass(frozen=True)
class PurchaseQuote:
    """Purchase math for a given incoming value at current reserves."""

    value: int
    fee_permille: int
    fee: int
    net_value: int
    tokens_required: int


@dataclass(frozen=True)
class LPQueued:
    """Emitted when a purchase appends a batch."""

    holder: str
    lp_amount: int
    token_amount: int
    value: int
    fee: int
    lock_period: int
    unlock_timestamp: int


@dataclass(frozen=True)
class LPClaimed:
    """Emitted when a matured batch is realized."""

    holder: str
    amount: int
    payout: int
    exit_fee: int
    lock_percentage: int
    # False when the burn transfer failed and the fee units stayed in the vault.
    exit_fee_burned: bool = True


@dataclass(frozen=True)
class BatchInserted:
    """Emitted for each batch added by administrative bulk insertion."""

    holder: str
    amount: int
    unlock_timestamp: int


@dataclass(frozen=True)
class AdminTransferred:
    """Emitted when the administrative capability changes hands."""

    previous: AdminCapability
    current: AdminCapability


@dataclass(frozen=True)
class ScenarioStep:
    """One action of an offline simulation scenario."""

    action: str
    holder: str | None = None
    value: int = 0
    seconds: int = 0
    paired: int = 0
    tokens: int = 0
    enabled: bool = True
    holders: tuple[str, ...] = ()
    amounts: tuple[int, ...] = ()
    timestamps: tuple[int, ...] = ()


@dataclass(frozen=True)
class Scenario:
    """A simulated deployment (initial pool and vault funding) plus the steps to run on it."""

    owner: str
    treasury: str
    start_time: int
    pool_paired: int
    pool_tokens: int
    vault_tokens: int
    oracle_period: int
    steps: tuple[ScenarioStep, ...]
    strict_insertion: bool = False


@dataclass(frozen=True)
class StepOutcome:
    """Result of running one scenario step: the emitted event or the error code."""

    index: int
    step: ScenarioStep
    ok: bool
    timestamp: int
    detail: object = None
    error_code: str | None = None
