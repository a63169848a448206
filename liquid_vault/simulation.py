"""Offline simulation of a vault deployment over in-memory collaborators."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from liquid_vault.errors import LiquidVaultError
from liquid_vault.fakes import CollectingFeeSink, ConstantProductPool, InMemoryTokenLedger, ManualClock
from liquid_vault.models import Scenario, ScenarioStep, StepOutcome, VaultConfig
from liquid_vault.oracle import PriceOracle
from liquid_vault.vault import LiquidVault

# Principal that provides the initial pool liquidity.
LIQUIDITY_PROVIDER = "0x00000000000000000000000000000000000000e1"


@dataclass
class Deployment:
    """A seeded vault and the fakes behind it."""

    vault: LiquidVault
    clock: ManualClock
    token: InMemoryTokenLedger
    pool: ConstantProductPool
    fee_sink: CollectingFeeSink
    oracle: PriceOracle
    owner: str
    treasury: str


def deploy(
    *,
    owner: str,
    treasury: str,
    start_time: int,
    pool_paired: int,
    pool_tokens: int,
    vault_tokens: int,
    oracle_period: int,
    strict_insertion: bool = False,
    fee_sink: CollectingFeeSink | None = None,
) -> Deployment:
    """Create fakes, provide initial liquidity, fund the vault with tokens and seed it."""
    clock = ManualClock(start_time)
    token = InMemoryTokenLedger()
    pool = ConstantProductPool(token, clock)
    fee_sink = fee_sink if fee_sink is not None else CollectingFeeSink()

    token.mint(LIQUIDITY_PROVIDER, pool_tokens)
    token.approve(LIQUIDITY_PROVIDER, pool.address, pool_tokens)
    pool.add_liquidity(LIQUIDITY_PROVIDER, pool_paired, pool_tokens)

    oracle = PriceOracle(pool, clock, period=oracle_period)
    vault = LiquidVault(owner, clock, close_insertion_on_admin_mutation=strict_insertion)
    token.mint(vault.address, vault_tokens)
    vault.seed(
        owner,
        VaultConfig(token=token, pool=pool, fee_sink=fee_sink, treasury=treasury, oracle=oracle),
    )
    return Deployment(
        vault=vault,
        clock=clock,
        token=token,
        pool=pool,
        fee_sink=fee_sink,
        oracle=oracle,
        owner=owner,
        treasury=treasury,
    )


def deploy_scenario(scenario: Scenario) -> Deployment:
    return deploy(
        owner=scenario.owner,
        treasury=scenario.treasury,
        start_time=scenario.start_time,
        pool_paired=scenario.pool_paired,
        pool_tokens=scenario.pool_tokens,
        vault_tokens=scenario.vault_tokens,
        oracle_period=scenario.oracle_period,
        strict_insertion=scenario.strict_insertion,
    )


def _purchase(d: Deployment, step: ScenarioStep) -> object:
    return d.vault.purchase(step.holder or "", step.value)


def _claim(d: Deployment, step: ScenarioStep) -> object:
    return d.vault.claim(step.holder or "")


def _advance(d: Deployment, step: ScenarioStep) -> object:
    return d.clock.advance(step.seconds)


def _oracle_update(d: Deployment, _step: ScenarioStep) -> object:
    d.oracle.update()
    return d.oracle.consult()


def _sync_reserves(d: Deployment, step: ScenarioStep) -> object:
    d.pool.sync_reserves(step.paired, step.tokens)
    return d.pool.reserves()


def _insert(d: Deployment, step: ScenarioStep) -> object:
    return d.vault.insert_unclaimed_batch(d.owner, step.holders, step.amounts, step.timestamps)


def _finish_insertion(d: Deployment, _step: ScenarioStep) -> object:
    d.vault.finish_batch_insertion(d.owner)
    return None


def _force_unlock(d: Deployment, step: ScenarioStep) -> object:
    d.vault.set_force_unlock(d.owner, step.enabled)
    return step.enabled


def _disable_purchases(d: Deployment, step: ScenarioStep) -> object:
    d.vault.set_purchases_disabled(d.owner, step.enabled)
    return step.enabled


def _flush(d: Deployment, step: ScenarioStep) -> object:
    d.vault.flush_to_treasury(d.owner, step.value)
    return step.value


STEP_HANDLERS: dict[str, Callable[[Deployment, ScenarioStep], object]] = {
    "purchase": _purchase,
    "claim": _claim,
    "advance": _advance,
    "oracle_update": _oracle_update,
    "sync_reserves": _sync_reserves,
    "insert": _insert,
    "finish_insertion": _finish_insertion,
    "force_unlock": _force_unlock,
    "disable_purchases": _disable_purchases,
    "flush": _flush,
}


def apply_step(d: Deployment, step: ScenarioStep) -> object:
    """Run one step against the deployment; returns the event or value it produced."""
    handler = STEP_HANDLERS.get(step.action)
    if handler is None:
        raise ValueError(f"unknown scenario action: {step.action!r}")
    return handler(d, step)


def run_steps(
    d: Deployment,
    steps: Iterable[ScenarioStep],
    *,
    on_outcome: Callable[[StepOutcome], None] | None = None,
) -> list[StepOutcome]:
    """
    Run steps in order. A vault error fails only its own step; the run continues.

    There are no retries: a claim that is still locked stays a failed step.
    """
    outcomes: list[StepOutcome] = []
    for index, step in enumerate(steps):
        try:
            detail = apply_step(d, step)
        except LiquidVaultError as e:
            outcome = StepOutcome(
                index=index,
                step=step,
                ok=False,
                timestamp=d.clock.now(),
                detail=str(e),
                error_code=e.code,
            )
        else:
            outcome = StepOutcome(index=index, step=step, ok=True, timestamp=d.clock.now(), detail=detail)
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)
    return outcomes
