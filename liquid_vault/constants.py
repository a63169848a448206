"""Constants and default calibrations for the liquidity lock vault."""

from decimal import Decimal

# All token, paired-asset and pool-unit quantities use 18 decimals.
UNIT = 10**18
UNIT_DECIMAL = Decimal(UNIT)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
# Exit fees are burned by sending pool units here (irreversible).
BURN_ADDRESS = ZERO_ADDRESS

ONE_DAY = 86_400

# Fees and tiers are expressed in parts-per-thousand for sub-percent precision.
PERMILLE = 1_000
# Protocol ceilings, independent of calibration.
MAX_BUY_PRESSURE_FEE_PERMILLE = 400  # 40%
MAX_LOCK_PERCENTAGE_PERMILLE = 400  # 40%

DEFAULT_ORACLE_PERIOD = 3_600  # 1 hour

# Lock-duration curve defaults.
# x = paired reserve / token reserve; x >= threshold selects the dry branch.
# The wet branch falls from 90 days at x=0 to exactly the 1-day floor at the threshold,
# so the default curve is continuous and non-increasing.
DEFAULT_LOCK_SCALING_WET = Decimal("-384480000")
DEFAULT_LOCK_SHIFT_WET = Decimal("7776000")
DEFAULT_LOCK_SCALING_DRY = Decimal("0")
DEFAULT_LOCK_SHIFT_DRY = Decimal("86400")
DEFAULT_LOCK_THRESHOLD = Decimal("0.02")
DEFAULT_MIN_LOCK_TIME = ONE_DAY

# Buy-pressure curve defaults: fee% = a*X^3 + b*X^2 + c*X + d, X in whole tokens.
DEFAULT_BUY_PRESSURE_A = Decimal("-3e-16")
DEFAULT_BUY_PRESSURE_B = Decimal("1.4e-10")
DEFAULT_BUY_PRESSURE_C = Decimal("8.5e-5")
DEFAULT_BUY_PRESSURE_D = Decimal("0")
DEFAULT_MAX_RESERVES = 500_000 * UNIT

# Exit-fee tier defaults: tier% = d_max / (1 + d0 * exp(-beta * (deviation - p0))).
DEFAULT_LOCK_PERCENTAGE_D_MAX = Decimal("10")
DEFAULT_LOCK_PERCENTAGE_P0 = Decimal("0.007")
DEFAULT_LOCK_PERCENTAGE_D0 = Decimal("2.5")
DEFAULT_LOCK_PERCENTAGE_BETA = Decimal(1000) / Decimal(7)

# Buy-pressure constants as deployed, IEEE-754 binary128 bit patterns (a, b, c, d).
# Kept only as reference vectors for FixedPoint.from_quad_bits.
LEGACY_BUY_PRESSURE_QUAD_BITS = (
    "0xbfcb59e05f1e2674d208f2461d9cb64e",
    "0x3fde33dcfe54a3802b3e313af8e0e525",
    "0x3ff164840e1719f7f8ca8198f1d3ed52",
    "0x00000000000000000000000000000000",
)

# Uniswap V2 on mainnet, used by `liquid-vault inspect` when no pair is given.
UNISWAP_V2_FACTORY_MAINNET = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
WETH_MAINNET = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

# Used only when neither --rpc-url nor ETH_RPC_URL are provided.
DEFAULT_PUBLIC_ETH_RPC_URLS = (
    "https://eth.llamarpc.com",
    "https://ethereum.publicnode.com",
)

UNISWAP_V2_FACTORY_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "getPair",
        "stateMutability": "view",
        "inputs": [
            {"name": "tokenA", "type": "address"},
            {"name": "tokenB", "type": "address"},
        ],
        "outputs": [{"name": "pair", "type": "address"}],
    },
]

# Minimal ABI for UniswapV2Pair - reserves, token ordering, cumulative prices, LP balances.
UNISWAP_V2_PAIR_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "getReserves",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
    },
    {
        "type": "function",
        "name": "token0",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "price0CumulativeLast",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "price1CumulativeLast",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Uniswap cumulative prices are UQ112x112.
UQ112_SHIFT = 112
